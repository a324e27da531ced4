"""
Test Suite for Questionnaire Parser Engine
==========================================
Unit and integration tests for all parser components.
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from questionnaire_parser.assembler import QuestionnaireAssembler, build_validation_rules
from questionnaire_parser.classifier import (
    ScoringRule,
    QuestionTypeClassifier,
)
from questionnaire_parser.cli import cli
from questionnaire_parser.config import HeuristicConfig
from questionnaire_parser.context import ContextAnalyzer, ContextSignals
from questionnaire_parser.engine import ParserConfig, QuestionnaireEngine, parse_document
from questionnaire_parser.errors import InputEmptyError, LineConsumedError
from questionnaire_parser.features import FeatureSet, extract_features
from questionnaire_parser.line_classifier import (
    LineClassifier,
    match_question,
)
from questionnaire_parser.lines import Line, LineTable, normalize_lines
from questionnaire_parser.markup import MarkupIndex
from questionnaire_parser.models import (
    DiagnosticType,
    Document,
    LineTag,
    MultilingualText,
    Option,
    ParseReport,
    Question,
    QuestionType,
)
from questionnaire_parser.options import OptionExtractor, slugify
from questionnaire_parser.segmenter import SectionSegmenter, clean_section_title


T = QuestionType


def _question(text: str = "Sample question", order_index: int = 0) -> Question:
    return Question(
        text=MultilingualText.replicate(text),
        type=QuestionType.TEXT,
        order_index=order_index,
        confidence=0.5,
    )


def _assemble(lines: list[str], markup: str = None):
    return QuestionnaireAssembler(markup=MarkupIndex.from_markup(markup)).assemble(lines)


# ═══════════════════════════════════════════════════════════════════════════════
# MODEL TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestModels:
    """Test output models and their serialization."""

    def test_multilingual_replicate(self):
        text = MultilingualText.replicate("Your name")
        assert text.en == text.sq == text.sr == "Your name"

    def test_option_allow_text_alias(self):
        option = Option(
            value="other",
            label=MultilingualText.replicate("Other"),
            allowText=True,
        )
        assert option.allow_text is True

        data = option.model_dump(by_alias=True)
        assert data["allowText"] is True
        assert "allow_text" not in data

    def test_sections_payload_uses_aliases(self):
        result = parse_document("\n".join([
            "1. Do you own a car?",
            "( ) Yes",
            "( ) Other (please specify) ____",
        ]))
        payload = result.sections_payload()

        options = payload[0]["questions"][0]["options"]
        assert [o["value"] for o in options] == ["yes", "other"]
        assert options[1]["allowText"] is True
        assert payload[0]["title"]["en"] == "General Questions"

    def test_question_type_declaration_order(self):
        order = [t.value for t in QuestionType]
        assert order[:3] == ["text", "textarea", "email"]
        assert order.index("radio") < order.index("checkbox")
        assert order[-1] == "file"

    def test_question_confidence_bounds(self):
        with pytest.raises(ValueError):
            Question(
                text=MultilingualText.replicate("x"),
                type=QuestionType.TEXT,
                order_index=0,
                confidence=1.5,
            )

    def test_report_no_structure_flag(self):
        assert ParseReport().no_structure_detected is True
        assert ParseReport(total_questions=3).no_structure_detected is False


# ═══════════════════════════════════════════════════════════════════════════════
# LINE TABLE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestLineNormalization:
    """Test line splitting and whitespace handling."""

    def test_collapses_whitespace_and_drops_empty_lines(self):
        text = "  a \t b \r\n\r\n c d  \n\n"
        assert normalize_lines(text) == ["a b", "c d"]

    def test_form_feed_is_line_break(self):
        assert normalize_lines("first\fsecond") == ["first", "second"]

    def test_empty_text(self):
        assert normalize_lines("") == []
        assert normalize_lines("   \n\t") == []


class TestLineTable:
    """Test the consumed-once line table."""

    def _table(self, *raws: str) -> LineTable:
        return LineTable(
            Line(index=i, raw=raw, tag=LineTag.PLAIN) for i, raw in enumerate(raws)
        )

    def test_consume_marks_owner(self):
        table = self._table("a", "b")
        table.consume(1, "question:0")

        assert table.is_consumed(1)
        assert not table.is_consumed(0)
        assert table.claims() == {1: "question:0"}
        assert table.consumed_count == 1

    def test_double_consume_raises(self):
        table = self._table("a")
        table.consume(0, "question:0")

        with pytest.raises(LineConsumedError) as exc:
            table.consume(0, "options")

        assert exc.value.claimed_by == "question:0"
        assert isinstance(exc.value, RuntimeError)

    def test_index_must_match_position(self):
        with pytest.raises(ValueError):
            LineTable([Line(index=3, raw="a", tag=LineTag.PLAIN)])

    def test_forward_stops_at_tag(self):
        table = LineTable([
            Line(index=0, raw="a", tag=LineTag.PLAIN),
            Line(index=1, raw="b", tag=LineTag.OPTION),
            Line(index=2, raw="c", tag=LineTag.QUESTION),
            Line(index=3, raw="d", tag=LineTag.OPTION),
        ])
        window = table.forward(0, 10, frozenset({LineTag.QUESTION}))
        assert [line.raw for line in window] == ["a", "b"]

    def test_backward_window(self):
        table = self._table("a", "b", "c", "d")
        assert [line.raw for line in table.backward(3, 2)] == ["b", "c"]
        assert [line.raw for line in table.backward(1, 5)] == ["a"]

    def test_tag_counts_cover_every_tag(self):
        counts = self._table("a", "b").tag_counts()
        assert counts["plain"] == 2
        assert set(counts) == {t.value for t in LineTag}


# ═══════════════════════════════════════════════════════════════════════════════
# LINE CLASSIFIER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestLineClassifier:
    """Test ordered line tagging rules."""

    @pytest.mark.parametrize("line", [
        "Section A: Demographics",
        "Part 2: Background",
        "II. Background",
        "A. Demographics",
        "## Background",
        "PERSONAL INFORMATION AND CONTACT",
    ])
    def test_section_headers(self, line):
        assert LineClassifier().tag(line) == LineTag.SECTION

    @pytest.mark.parametrize("line", [
        "1. What is your name?",
        "Q3: What is your name",
        "Question 4. Where do you live",
        "Where do you live now?",
    ])
    def test_questions(self, line):
        assert LineClassifier().tag(line) == LineTag.QUESTION

    @pytest.mark.parametrize("line", [
        "( ) Yes",
        "[ ] Email",
        "[x] Done",
        "a) Cat",
        "• Red",
        "- Blue",
        "* Green",
    ])
    def test_options(self, line):
        assert LineClassifier().tag(line) == LineTag.OPTION

    @pytest.mark.parametrize("line", ["_____", "Answer: ______", "[Short answer]", "..."])
    def test_blanks(self, line):
        assert LineClassifier().tag(line) == LineTag.BLANK

    @pytest.mark.parametrize("line", [
        "Thank you for your time",
        "Page 3 of 10",
        "3/10",
        "Dear participant,",
        "Survey of local residents",
    ])
    def test_boilerplate(self, line):
        assert LineClassifier().tag(line) == LineTag.SKIP

    def test_plain_fallthrough(self):
        classifier = LineClassifier()
        assert classifier.tag("Why?") == LineTag.PLAIN
        assert classifier.tag("Some descriptive sentence.") == LineTag.PLAIN

    def test_numbered_line_beats_boilerplate(self):
        assert LineClassifier().tag("1. Survey participation") == LineTag.QUESTION

    def test_question_mark_disables_boilerplate(self):
        assert LineClassifier().tag("Thank you for joining?") == LineTag.QUESTION

    def test_option_marker_beats_question_mark(self):
        assert LineClassifier().tag("- Is this an option line?") == LineTag.OPTION

    def test_markup_emphasis_marks_section(self):
        line = "Background Info"
        plain = LineClassifier()
        with_markup = LineClassifier(
            MarkupIndex.from_markup("<p><strong>Background Info</strong></p>")
        )
        assert plain.tag(line) == LineTag.PLAIN
        assert with_markup.tag(line) == LineTag.SECTION

    def test_markup_heading_marks_section(self):
        classifier = LineClassifier(MarkupIndex.from_markup("<h2>Your Household</h2>"))
        assert classifier.tag("Your Household") == LineTag.SECTION

    def test_long_emphasis_is_not_section(self):
        line = "This emphasized sentence is far too long to be any kind of a section title"
        classifier = LineClassifier(
            MarkupIndex.from_markup(f"<b>{line}</b>")
        )
        assert classifier.tag(line) == LineTag.PLAIN

    def test_match_question_prefixes(self):
        assert match_question("12. How old are you?") == (12, "How old are you?")
        assert match_question("Q 2: Where do you live?") == (2, "Where do you live?")
        assert match_question("Where do you live?") is None

    def test_classify_builds_indexed_table(self):
        table = LineClassifier().classify(["Section A: Info", "1. What is your name?"])
        assert [line.tag for line in table] == [LineTag.SECTION, LineTag.QUESTION]
        assert [line.index for line in table] == [0, 1]


# ═══════════════════════════════════════════════════════════════════════════════
# FEATURE EXTRACTION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestFeatureExtraction:
    """Test lexical cue extraction."""

    def test_contact_cues(self):
        features = extract_features("What is your email address?")
        assert features.has_email
        assert features.has_what
        assert not features.has_phone
        assert features.word_count == 5

    def test_upload_cue(self):
        assert extract_features("Please upload your CV").has_upload
        assert extract_features("Attach a photo of the receipt").has_upload

    def test_scale_cues(self):
        features = extract_features("On a scale of 1 to 5, how satisfied are you?")
        assert features.has_scale
        assert features.has_numeric_range
        assert features.has_agreement

    def test_selection_cues(self):
        features = extract_features("Select all that apply")
        assert features.has_select
        assert features.has_all
        assert features.has_multi_select
        assert not features.has_single_select

    def test_required_cues(self):
        assert extract_features("Your name *").has_required
        assert extract_features("This field is mandatory").has_required
        assert not extract_features("Your name").has_required

    def test_pure_function(self):
        text = "How many children do you have?"
        assert extract_features(text) == extract_features(text)

    def test_empty_text(self):
        features = extract_features("")
        assert features == FeatureSet()


# ═══════════════════════════════════════════════════════════════════════════════
# CONTEXT ANALYZER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestContextAnalyzer:
    """Test signals gathered from surrounding lines."""

    def test_paren_yes_no_options(self):
        signals = ContextAnalyzer().analyze_lines(["( ) Yes", "( ) No"], [])
        assert signals.has_options_after
        assert signals.option_count == 2
        assert signals.paren_option_count == 2
        assert signals.yes_no_count == 2
        assert not signals.has_bracket_options

    def test_scale_line_is_not_option(self):
        signals = ContextAnalyzer().analyze_lines(["( ) 1 ( ) 2 ( ) 3"], [])
        assert signals.has_scale_after
        assert not signals.has_options_after

    def test_blank_after(self):
        assert ContextAnalyzer().analyze_lines(["_____"], []).has_blank_after

    def test_blank_outside_near_window_ignored(self):
        after = ["Note one", "Note two", "Note three", "Note four", "Note five", "_____"]
        assert not ContextAnalyzer().analyze_lines(after, []).has_blank_after

    def test_instructions_before(self):
        signals = ContextAnalyzer().analyze_lines([], ["Please answer honestly"])
        assert signals.has_instructions

    def test_many_options(self):
        after = [f"- Item {i}" for i in range(11)]
        signals = ContextAnalyzer().analyze_lines(after, [])
        assert signals.option_count == 11
        assert signals.has_many_options

    def test_lookahead_stops_at_next_question(self):
        table = LineClassifier().classify([
            "1. What is your name?",
            "2. Pick one:",
            "( ) A",
            "( ) B",
        ])
        signals = ContextAnalyzer().analyze(table, 0, 1)
        assert not signals.has_options_after
        assert signals.option_count == 0


# ═══════════════════════════════════════════════════════════════════════════════
# TYPE CLASSIFIER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestQuestionTypeClassifier:
    """Test rule-table type scoring."""

    def test_upload_overrides_everything(self):
        features = FeatureSet(has_upload=True, has_email=True, has_scale=True)
        result = QuestionTypeClassifier().classify(features, ContextSignals())
        assert result.type == T.FILE
        assert result.confidence == 0.95

    def test_tie_goes_to_first_declared_type(self):
        classifier = QuestionTypeClassifier(
            rules=(
                ScoringRule("a", lambda f, c: True, T.RADIO, 50),
                ScoringRule("b", lambda f, c: True, T.TEXT, 50),
            ),
            adjustments=(),
        )
        result = classifier.classify(FeatureSet(), ContextSignals())
        assert result.type == T.TEXT
        assert result.confidence == 0.5

    def test_all_matching_rules_accumulate(self):
        features = extract_features("What is your email address?")
        result = QuestionTypeClassifier().classify(features, ContextSignals())
        assert result.type == T.EMAIL
        assert result.score_of(T.EMAIL) == 130
        assert result.confidence == 0.99

    def test_rating_beats_radio_for_scales(self):
        features = extract_features("On a scale of 1 to 5, how satisfied are you?")
        result = QuestionTypeClassifier().classify(features, ContextSignals())
        assert result.type == T.RATING
        assert result.score_of(T.RATING) == 180
        assert result.score_of(T.RADIO) == 100

    def test_no_choices_penalty_clamps_at_zero(self):
        classifier = QuestionTypeClassifier(rules=())
        result = classifier.classify(FeatureSet(), ContextSignals())
        assert result.score_of(T.RADIO) == 0
        assert result.score_of(T.RATING) == 0

    def test_options_follow_penalizes_text(self):
        classifier = QuestionTypeClassifier(
            rules=(ScoringRule("t", lambda f, c: True, T.TEXT, 60),)
        )
        result = classifier.classify(FeatureSet(), ContextSignals(has_options_after=True))
        assert result.score_of(T.TEXT) == 10

    def test_yes_no_options_are_radio(self):
        features = extract_features("Do you own a car?")
        context = ContextAnalyzer().analyze_lines(["( ) Yes", "( ) No"], [])
        assert QuestionTypeClassifier().classify(features, context).type == T.RADIO

    def test_bracket_options_are_checkbox(self):
        features = extract_features("Which fruits do you eat?")
        context = ContextAnalyzer().analyze_lines(["[ ] Apple", "[ ] Banana"], [])
        assert QuestionTypeClassifier().classify(features, context).type == T.CHECKBOX

    def test_many_options_become_select(self):
        features = extract_features("Which country do you live in?")
        context = ContextAnalyzer().analyze_lines(
            [f"- Country {i}" for i in range(12)], []
        )
        result = QuestionTypeClassifier().classify(features, context)
        assert result.type == T.SELECT
        assert result.confidence == 0.6

    def test_fallback_ladder(self):
        classifier = QuestionTypeClassifier(rules=(), adjustments=())

        long_text = classifier.classify(FeatureSet(word_count=20), ContextSignals())
        assert (long_text.type, long_text.confidence) == (T.TEXTAREA, 0.4)
        assert long_text.fallback

        blank = classifier.classify(
            FeatureSet(word_count=3), ContextSignals(has_blank_after=True)
        )
        assert (blank.type, blank.confidence) == (T.TEXT, 0.4)

        default = classifier.classify(FeatureSet(word_count=3), ContextSignals())
        assert (default.type, default.confidence) == (T.TEXT, 0.3)


# ═══════════════════════════════════════════════════════════════════════════════
# OPTION EXTRACTOR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestOptionExtractor:
    """Test option claiming and scale synthesis."""

    def test_slugify(self):
        assert slugify("Option X!") == "option_x"
        assert slugify("  Very   Satisfied ") == "very_satisfied"

    def test_match_option_patterns(self):
        extractor = OptionExtractor()
        assert extractor.match_option("( ) Option X").value == "option_x"
        assert extractor.match_option("[x] Cherry").value == "cherry"
        assert extractor.match_option("• Red").value == "red"
        assert extractor.match_option("- Blue").value == "blue"
        assert extractor.match_option("* Green").value == "green"
        assert extractor.match_option("b) Dog").value == "dog"
        assert extractor.match_option("Plain line") is None

    def test_checked_parenthesis_options(self):
        table = LineClassifier().classify([
            "1. Which fruits do you eat? (select all that apply)",
            "(✓) Apple",
            "[ ] Banana",
        ])
        assert table[1].tag == LineTag.OPTION

        block = OptionExtractor().extract(table, 1, T.CHECKBOX, 0)
        assert [o.label.en for o in block.options] == ["Apple", "Banana"]
        assert OptionExtractor().match_option("(x) Cherry").value == "cherry"

    def test_empty_slug_uses_position(self):
        assert OptionExtractor().match_option("( ) !!!", 2).value == "option_3"

    def test_other_option_allows_text(self):
        option = OptionExtractor().match_option("( ) Other (please specify) ____")
        assert option.value == "other"
        assert option.allow_text is True
        assert option.label.en == "Other (please specify)"

    def test_contiguous_list_closes_on_non_option(self):
        table = LineClassifier().classify([
            "1. Pick one colour:",
            "- Red",
            "- Blue",
            "Some unrelated note here",
            "- Green",
        ])
        block = OptionExtractor().extract(table, 1, T.RADIO, 0)

        assert [o.value for o in block.options] == ["red", "blue"]
        assert block.stop_reason == "closed_list"
        assert block.consumed == [1, 2]
        assert not table.is_consumed(4)

    def test_stops_at_blank(self):
        table = LineClassifier().classify(["1. Pick one:", "____", "( ) Yes"])
        block = OptionExtractor().extract(table, 1, T.RADIO, 0)
        assert block.options == []
        assert block.stop_reason == "blank"

    def test_stops_at_next_question(self):
        table = LineClassifier().classify(["1. Pick one:", "2. What is your name?"])
        block = OptionExtractor().extract(table, 1, T.RADIO, 0)
        assert block.options == []
        assert block.stop_reason == "boundary"

    def test_scale_from_question_text(self):
        table = LineClassifier().classify(["1. On a scale of 1 to 5, how satisfied are you?"])
        block = OptionExtractor().extract(
            table, 1, T.RATING, 0, "On a scale of 1 to 5, how satisfied are you?"
        )
        assert block.synthesized
        assert [o.value for o in block.options] == ["1", "2", "3", "4", "5"]

    def test_scale_from_indicator_line(self):
        table = LineClassifier().classify(["1. Rate us", "( ) 1 ( ) 2 ( ) 3 ( ) 4 ( ) 5"])
        block = OptionExtractor().extract(table, 1, T.RATING, 0, "Rate us")
        assert block.synthesized
        assert [o.value for o in block.options] == ["1", "2", "3", "4", "5"]

    def test_scale_span_and_direction_limits(self):
        table = LineClassifier().classify(["1. Rate us"])
        extractor = OptionExtractor()
        assert extractor.find_scale(table, 0, 1, "On a scale of 1 to 100") is None
        assert extractor.find_scale(table, 0, 1, "On a scale of 5 to 1") is None
        assert extractor.find_scale(table, 0, 1, "From 0 to 10") == list(range(0, 11))


# ═══════════════════════════════════════════════════════════════════════════════
# SECTION SEGMENTER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestSectionSegmenter:
    """Test section flushing rules."""

    def test_clean_section_title(self):
        assert clean_section_title("Section A: Demographics") == "Section A: Demographics"
        assert clean_section_title("PART 2 : Work") == "PART 2: Work"
        assert clean_section_title("## Background") == "Background"
        assert clean_section_title("II. Background") == "II. Background"

    def test_default_section_flushed_on_header(self):
        seg = SectionSegmenter()
        seg.add(_question())
        seg.start_section("Section A: Work")
        seg.add(_question())
        sections = seg.finish()

        assert [s.title.en for s in sections] == ["General Questions", "Section A: Work"]
        assert sections[0].title.sq == "Pyetje të Përgjithshme"
        assert [s.order_index for s in sections] == [0, 1]

    def test_leading_empty_section_dropped(self):
        seg = SectionSegmenter()
        seg.start_section("Section A: One")
        seg.start_section("Section B: Two")
        seg.add(_question())
        sections = seg.finish()

        assert len(sections) == 1
        assert sections[0].title.en == "Section B: Two"
        assert sections[0].order_index == 0

    def test_intermediate_empty_section_kept(self):
        seg = SectionSegmenter()
        seg.start_section("Section A: One")
        seg.add(_question())
        seg.start_section("Section B: Two")
        seg.start_section("Section C: Three")
        seg.add(_question())
        sections = seg.finish()

        assert [len(s.questions) for s in sections] == [1, 0, 1]
        assert [s.order_index for s in sections] == [0, 1, 2]

    def test_default_only_questions_stay_pending(self):
        seg = SectionSegmenter()
        seg.add(_question())
        assert seg.finish() == []
        assert len(seg.take_pending()) == 1

    def test_next_order_index_is_position(self):
        seg = SectionSegmenter()
        assert seg.next_order_index == 0
        seg.add(_question())
        assert seg.next_order_index == 1
        seg.start_section("Section A: One")
        assert seg.next_order_index == 0


# ═══════════════════════════════════════════════════════════════════════════════
# ASSEMBLER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestQuestionnaireAssembler:
    """Test end-to-end assembly of tagged lines."""

    def test_demographics_section(self):
        assembly = _assemble([
            "Section A: Demographics",
            "1. What is your email address?",
            "2. Select all that apply:",
            "( ) Option X",
            "( ) Option Y",
        ])

        assert len(assembly.sections) == 1
        section = assembly.sections[0]
        assert section.title.en == "Section A: Demographics"
        assert len(section.questions) == 2

        q1, q2 = section.questions
        assert q1.type == T.EMAIL
        assert q1.options is None
        assert q1.number == 1

        assert q2.type == T.RADIO
        assert [o.value for o in q2.options] == ["option_x", "option_y"]
        assert [q.order_index for q in section.questions] == [0, 1]

    def test_every_line_claimed_once(self):
        assembly = _assemble([
            "Section A: Demographics",
            "1. What is your email address?",
            "2. Select all that apply:",
            "( ) Option X",
            "( ) Option Y",
        ])
        assert assembly.table.claims() == {
            0: "section:0",
            1: "question:1",
            2: "question:2",
            3: "question:2",
            4: "question:2",
        }

    def test_describe_is_textarea(self):
        assembly = _assemble(["1. Please describe your experience."])
        q = assembly.sections[0].questions[0]
        assert q.type == T.TEXTAREA
        assert q.options is None

    def test_how_many_is_number(self):
        assembly = _assemble(["1. How many children do you have?"])
        q = assembly.sections[0].questions[0]
        assert q.type == T.NUMBER
        assert q.options is None
        assert q.validation_rules == {"min": 0}

    def test_upload_is_file(self):
        assembly = _assemble(["1. Please upload your resume."])
        q = assembly.sections[0].questions[0]
        assert q.type == T.FILE
        assert q.confidence == 0.95

    def test_rating_scale_synthesized(self):
        assembly = _assemble(["1. On a scale of 1 to 5, how satisfied are you?"])
        q = assembly.sections[0].questions[0]
        assert q.type == T.RATING
        assert [o.value for o in q.options] == ["1", "2", "3", "4", "5"]
        assert DiagnosticType.SCALE_SYNTHESIZED in [d.type for d in assembly.diagnostics]

    def test_checkbox_with_bracket_options(self):
        assembly = _assemble([
            "2. Which fruits do you eat? (select all that apply)",
            "[ ] Apple",
            "[ ] Banana",
            "[x] Cherry",
        ])
        q = assembly.sections[0].questions[0]
        assert q.type == T.CHECKBOX
        assert [o.value for o in q.options] == ["apple", "banana", "cherry"]

    def test_degraded_options(self):
        assembly = _assemble(["1. Select one of the following:"])
        q = assembly.sections[0].questions[0]

        assert q.type == T.RADIO
        assert q.options is None
        assert q.confidence == pytest.approx(0.792)
        assert DiagnosticType.DEGRADED_OPTIONS in [d.type for d in assembly.diagnostics]

    def test_continuation_lines_merged(self):
        assembly = _assemble([
            "1. Please tell us which languages you",
            "speak fluently at home.",
        ])
        q = assembly.sections[0].questions[0]
        assert q.text.en == "Please tell us which languages you speak fluently at home."
        assert assembly.table.consumed_count == 2

    def test_continuation_capped(self):
        assembly = _assemble([
            "1. Please tell us about your favourite",
            "hobby and how often",
            "you practice it and",
            "with whom you usually go",
            "and anything else worth noting",
        ])
        q = assembly.sections[0].questions[0]
        assert q.text.en.endswith("with whom you usually go")
        assert assembly.table.consumed_count == 4
        assert not assembly.table.is_consumed(4)

    def test_required_markers(self):
        assembly = _assemble([
            "1. What is your full name? *",
            "2. What is your date of birth (required)",
            "3. Where do you live?",
        ])
        q1, q2, q3 = assembly.sections[0].questions

        assert q1.required is True
        assert q1.text.en == "What is your full name?"
        assert q1.type == T.TEXT
        assert q1.validation_rules == {"maxLength": 500}

        assert q2.required is True
        assert q2.type == T.DATE

        assert q3.required is False

    def test_prefixed_numbers(self):
        assembly = _assemble(["Q2: Where do you live?"])
        q = assembly.sections[0].questions[0]
        assert q.number == 2
        assert q.text.en == "Where do you live?"

    def test_multiple_sections(self):
        assembly = _assemble([
            "Section A: About You",
            "1. What is your name?",
            "Section B: Work",
            "1. What is your job title?",
            "2. How many hours do you work per week?",
        ])
        assert [s.title.en for s in assembly.sections] == [
            "Section A: About You",
            "Section B: Work",
        ]
        work = assembly.sections[1]
        assert work.order_index == 1
        assert [q.number for q in work.questions] == [1, 2]
        assert [q.order_index for q in work.questions] == [0, 1]
        assert work.questions[1].type == T.NUMBER

    def test_section_description(self):
        assembly = _assemble([
            "Section B: Feedback",
            "Tell us about the event below.",
            "1. What did you like most?",
        ])
        section = assembly.sections[0]
        assert section.description.en == "Tell us about the event below."
        assert len(section.questions) == 1

    def test_markup_heading_section(self):
        assembly = _assemble(
            ["Household", "1. How many people live in your home?"],
            markup="<h2>Household</h2>",
        )
        assert assembly.sections[0].title.en == "Household"
        assert assembly.fallback_tier == 0

    def test_empty_section_diagnostic(self):
        assembly = _assemble([
            "Section A: One",
            "1. What is your name?",
            "Section B: Two",
            "Section C: Three",
            "1. Where do you live?",
        ])
        assert len(assembly.sections) == 3
        assert assembly.sections[1].questions == []
        assert DiagnosticType.EMPTY_SECTION in [d.type for d in assembly.diagnostics]

    def test_questions_without_header_use_default_section(self):
        assembly = _assemble(["1. What is your name?", "2. Where do you live?"])
        assert assembly.fallback_tier == 1
        assert len(assembly.sections) == 1
        assert assembly.sections[0].title.en == "General Questions"
        assert assembly.sections[0].title.sr == "Општа питања"

    def test_plain_text_imported(self):
        assembly = _assemble([
            "This is a plain paragraph without any question marks",
            "Another line of some length follows here",
        ])
        assert assembly.fallback_tier == 2
        section = assembly.sections[0]
        assert section.title.en == "Imported Content"
        assert len(section.questions) == 2
        assert all(q.type == T.TEXT for q in section.questions)
        assert all(q.confidence == 0.2 for q in section.questions)
        assert DiagnosticType.FALLBACK_TIER in [d.type for d in assembly.diagnostics]

    def test_imported_questions_capped(self):
        lines = [f"This is plain filler line number {i} here" for i in range(30)]
        assembly = _assemble(lines)
        questions = assembly.sections[0].questions
        assert len(questions) == 20
        assert [q.order_index for q in questions] == list(range(20))

    def test_short_text_still_yields_question(self):
        assembly = _assemble(["Short note"])
        assert assembly.fallback_tier == 2
        assert assembly.sections[0].questions[0].text.en == "Short note"

    def test_no_lines(self):
        assembly = _assemble([])
        assert assembly.sections == []
        assert [d.type for d in assembly.diagnostics] == [
            DiagnosticType.NO_STRUCTURE_DETECTED
        ]

    def test_validation_rules(self):
        assert build_validation_rules(T.NUMBER, "Pick 1 to 10") == {"min": 1, "max": 10}
        assert build_validation_rules(T.TEXTAREA, "Answer in 200 words") == {
            "maxLength": 5000,
            "maxWords": 200,
        }
        assert build_validation_rules(T.URL, "Website")["pattern"] == r"^https?://"
        assert build_validation_rules(T.RADIO, "Pick one") is None


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION ENGINE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestValidationEngine:
    """Test the post-parse report."""

    def test_report_counts(self):
        result = parse_document("\n".join([
            "Section A: Demographics",
            "1. What is your email address?",
            "2. Select all that apply:",
            "( ) Option X",
            "( ) Option Y",
        ]))
        report = result.report

        assert report.total_sections == 1
        assert report.total_questions == 2
        assert report.total_lines == 5
        assert report.consumed_lines == 5
        assert report.type_counts == {"email": 1, "radio": 1}
        assert report.average_confidence == 0.99
        assert report.fallback_tier == 0
        assert report.line_tags["option"] == 2

    def test_duplicate_and_missing_numbers(self):
        result = parse_document("\n".join([
            "1. What is your name?",
            "1. Where do you live?",
            "4. Who is your employer?",
        ]))
        report = result.report

        assert report.duplicate_question_numbers == [1]
        assert report.missing_question_numbers == [2, 3]
        assert report.diagnostic_breakdown["duplicate_question_number"] == 1

    def test_numbering_restart_per_section_is_not_duplicate(self):
        result = parse_document("\n".join([
            "Section A: One",
            "1. What is your name?",
            "Section B: Two",
            "1. Where do you live?",
        ]))
        assert result.report.duplicate_question_numbers == []

    def test_degraded_questions_listed(self):
        result = parse_document("1. Select one of the following:")
        assert result.report.questions_missing_options == ["section 0 / question 0"]

    def test_low_confidence_listed(self):
        result = parse_document("Short note")
        assert result.report.low_confidence_questions == ["section 0 / question 0"]


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestQuestionnaireEngine:
    """Test the orchestrator and file helpers."""

    def test_empty_input_raises(self):
        with pytest.raises(InputEmptyError):
            QuestionnaireEngine().parse("   \n\t  ")
        with pytest.raises(ValueError):
            QuestionnaireEngine().parse(Document(text=""))

    def test_deterministic_output(self):
        text = "\n".join([
            "Section A: Demographics",
            "1. What is your email address?",
            "2. Select all that apply:",
            "( ) Option X",
            "( ) Option Y",
            "3. On a scale of 1 to 5, how satisfied are you?",
        ])
        engine = QuestionnaireEngine()
        assert engine.parse(text).model_dump_json() == engine.parse(text).model_dump_json()

    def test_placeholder_titles_not_shared_between_parses(self):
        first = parse_document("1. What is your name?")
        first.sections[0].title.en = "Renamed by caller"

        second = parse_document("1. Where do you live?")
        assert second.sections[0].title.en == "General Questions"

        imported = parse_document("Short note")
        imported.sections[0].title.sq = "Changed"
        again = parse_document("Short note")
        assert again.sections[0].title.sq == "Përmbajtje e Importuar"

    def test_parser_version(self):
        from questionnaire_parser import __version__

        assert parse_document("1. What is your name?").parser_version == __version__

    def test_custom_heuristics(self):
        config = ParserConfig(heuristics=HeuristicConfig(fallback_question_cap=2))
        text = "\n".join(f"This is plain filler line number {i} here" for i in range(5))
        result = QuestionnaireEngine(config).parse(text)
        assert result.report.total_questions == 2

    def test_parse_text_file(self, tmp_path):
        path = tmp_path / "survey.txt"
        path.write_text("1. How many children do you have?\n", encoding="utf-8")

        result = QuestionnaireEngine().parse_file(path)
        assert result.questions()[0].type == T.NUMBER

    def test_parse_json_document(self, tmp_path):
        path = tmp_path / "survey.json"
        document = Document(
            text="Household\n1. How many people live in your home?",
            markup="<h2>Household</h2>",
        )
        path.write_text(document.model_dump_json(), encoding="utf-8")

        result = QuestionnaireEngine().parse_file(path)
        assert result.sections[0].title.en == "Household"

    def test_markup_file_overrides(self, tmp_path):
        path = tmp_path / "survey.txt"
        path.write_text("Household\n1. How many people live in your home?", encoding="utf-8")
        markup = tmp_path / "survey.html"
        markup.write_text("<p><b>Household</b></p>", encoding="utf-8")

        result = QuestionnaireEngine().parse_file(path, markup_path=markup)
        assert result.sections[0].title.en == "Household"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            QuestionnaireEngine().parse_file(tmp_path / "missing.txt")

    def test_save_writes_aliases(self, tmp_path):
        engine = QuestionnaireEngine(ParserConfig(output_dir=str(tmp_path / "out")))
        result = engine.parse("\n".join([
            "1. Do you own a car?",
            "( ) Yes",
            "( ) No",
        ]))
        output_file = engine.save(result, "cars")

        assert output_file.name == "cars_parsed.json"
        data = json.loads(output_file.read_text(encoding="utf-8"))
        options = data["sections"][0]["questions"][0]["options"]
        assert [o["value"] for o in options] == ["yes", "no"]
        assert options[0]["allowText"] is False
        assert data["report"]["no_structure_detected"] is False


# ═══════════════════════════════════════════════════════════════════════════════
# CLI TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCli:
    """Test the click command group."""

    SURVEY = "\n".join([
        "Section A: Demographics",
        "1. What is your email address?",
        "2. Select all that apply:",
        "( ) Option X",
        "( ) Option Y",
    ])

    def test_parse_json_output(self, tmp_path):
        path = tmp_path / "survey.txt"
        path.write_text(self.SURVEY, encoding="utf-8")

        result = CliRunner().invoke(
            cli, ["parse", str(path), "-o", str(tmp_path / "out"), "--json-output"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["sections"][0]["title"]["en"] == "Section A: Demographics"
        assert (tmp_path / "out" / "survey_parsed.json").exists()

    def test_parse_tables(self, tmp_path):
        path = tmp_path / "survey.txt"
        path.write_text(self.SURVEY, encoding="utf-8")

        result = CliRunner().invoke(
            cli, ["parse", str(path), "-o", str(tmp_path / "out"), "--log-level", "ERROR"]
        )

        assert result.exit_code == 0
        assert "Parse Report" in result.output

    def test_parse_empty_file_fails(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("   \n", encoding="utf-8")

        result = CliRunner().invoke(
            cli, ["parse", str(path), "-o", str(tmp_path / "out"), "--log-level", "ERROR"]
        )
        assert result.exit_code == 1

    def test_validate_saved_result(self, tmp_path):
        path = tmp_path / "survey.txt"
        path.write_text(self.SURVEY, encoding="utf-8")
        out = tmp_path / "out"
        CliRunner().invoke(cli, ["parse", str(path), "-o", str(out), "--json-output"])

        result = CliRunner().invoke(cli, ["validate", str(out / "survey_parsed.json")])
        assert result.exit_code == 0
        assert "Parse Report" in result.output

    def test_validate_rejects_other_json(self, tmp_path):
        path = tmp_path / "other.json"
        path.write_text("{}", encoding="utf-8")

        result = CliRunner().invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1

    def test_batch(self, tmp_path):
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "a.txt").write_text(self.SURVEY, encoding="utf-8")
        (docs / "b.txt").write_text("1. How many children do you have?", encoding="utf-8")
        out = tmp_path / "out"

        result = CliRunner().invoke(cli, ["batch", str(docs), "-o", str(out)])

        assert result.exit_code == 0
        assert (out / "a_parsed.json").exists()
        assert (out / "b_parsed.json").exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
