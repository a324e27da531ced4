"""
Questionnaire Parser Engine
===========================
Main orchestrator that combines line normalization, assembly,
validation and output formatting into a complete parsing pipeline.

Usage:
    engine = QuestionnaireEngine(config)
    result = engine.parse(Document(text=extracted_text))
    # result is a ParseResult with the section tree and report

Architecture:
    Document → normalize_lines → LineClassifier → QuestionnaireAssembler →
    Sections → ValidationEngine → ParseResult (JSON)

The engine holds no per-parse state; one instance may serve concurrent
parses.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from . import __version__
from .assembler import QuestionnaireAssembler
from .config import HeuristicConfig
from .errors import InputEmptyError
from .lines import normalize_lines
from .markup import MarkupIndex
from .models import Document, ParseResult
from .validator import ValidationEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ParserConfig:
    """Configuration for the parser engine."""

    # Heuristics
    heuristics: HeuristicConfig = field(default_factory=HeuristicConfig)

    # Reporting
    confidence_threshold: float = 0.5

    # Output settings
    output_dir: str = "output"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class QuestionnaireEngine:
    """
    Main questionnaire parsing engine.

    Orchestrates the full pipeline:
        1. Line normalization
        2. Markup side-channel indexing
        3. Line tagging and question assembly
        4. Validation
        5. Output formatting
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.validator = ValidationEngine(self.config.confidence_threshold)
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # Configure root logger for the package
        package_logger = logging.getLogger("questionnaire_parser")
        package_logger.setLevel(log_level)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
            package_logger.addHandler(console)
        else:
            for handler in package_logger.handlers:
                handler.setLevel(log_level)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file).resolve()
            already_attached = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path
                for h in package_logger.handlers
            )
            if not already_attached:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(
                    logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
                )
                package_logger.addHandler(file_handler)

    def parse(self, document: Union[Document, str]) -> ParseResult:
        """
        Parse extracted document text into a questionnaire structure.

        Args:
            document: A Document, or bare text.

        Returns:
            ParseResult containing sections, report and diagnostics.

        Raises:
            InputEmptyError: If the text has no non-whitespace character.
        """
        if isinstance(document, str):
            document = Document(text=document)

        if not document.text or not document.text.strip():
            raise InputEmptyError("Document text is empty")

        start_time = time.time()

        # ── Step 1: Normalize lines ───────────────────────────────────
        lines = normalize_lines(document.text)
        logger.info(f"Phase 1: Normalized {len(lines)} lines")

        # ── Step 2: Markup side channel ───────────────────────────────
        markup = MarkupIndex.from_markup(document.markup)
        if markup:
            logger.info(
                f"Phase 2: Markup index with {len(markup.headings)} headings, "
                f"{len(markup.emphasized)} emphasized spans"
            )

        # ── Step 3: Assemble ──────────────────────────────────────────
        logger.info("Phase 3: Assembling sections and questions")
        assembler = QuestionnaireAssembler(self.config.heuristics, markup)
        assembly = assembler.assemble(lines)

        # ── Step 4: Validation ────────────────────────────────────────
        logger.info("Phase 4: Validation")
        report = self.validator.validate(assembly)

        # ── Step 5: Build result ──────────────────────────────────────
        result = ParseResult(
            parser_version=__version__,
            sections=assembly.sections,
            report=report,
            diagnostics=assembly.diagnostics,
        )

        elapsed = time.time() - start_time
        logger.info(
            f"Parse complete in {elapsed:.3f}s: "
            f"{report.total_sections} sections, "
            f"{report.total_questions} questions"
        )
        return result

    def parse_file(
        self,
        path: Union[str, Path],
        markup_path: Optional[Union[str, Path]] = None,
    ) -> ParseResult:
        """
        Parse a plain-text file or a JSON-serialized Document.

        Raises:
            FileNotFoundError: If either file doesn't exist.
            pydantic.ValidationError: If a .json file is not a Document.
        """
        document = load_document(path, markup_path)
        logger.info(f"Starting parse of: {path}")
        return self.parse(document)

    def save(self, result: ParseResult, stem: str) -> Path:
        """Write ``<stem>_parsed.json`` to the configured output directory."""
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        output_file = output_dir / f"{stem}_parsed.json"
        data = result.model_dump(mode="json", by_alias=True)
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Saved JSON output: {output_file}")
        return output_file


def load_document(
    path: Union[str, Path],
    markup_path: Optional[Union[str, Path]] = None,
) -> Document:
    """Read a Document from disk (.json Document or plain UTF-8 text)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        document = Document.model_validate_json(content)
    else:
        document = Document(text=content, metadata={"source": path.name})

    if markup_path is not None:
        markup_path = Path(markup_path)
        if not markup_path.exists():
            raise FileNotFoundError(f"Markup not found: {markup_path}")
        document = document.model_copy(
            update={"markup": markup_path.read_text(encoding="utf-8")}
        )

    return document


def parse_document(
    document: Union[Document, str],
    config: Optional[ParserConfig] = None,
) -> ParseResult:
    """Parse one document with a fresh engine."""
    return QuestionnaireEngine(config).parse(document)
