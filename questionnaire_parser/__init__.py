"""
Questionnaire Parser Engine
===========================
Deterministic conversion of extracted document text into structured
questionnaires (sections → questions → options) with inferred input
types, per-question confidence and a post-parse report.

Architecture:
    - Line Classifier: Tags each line as section / question / option / blank / skip / plain
    - Feature Extractor: Lexical cues of the question text
    - Context Analyzer: Signals from the surrounding lines
    - Type Classifier: Rule-table scoring over the closed set of input types
    - Option Extractor: Claims option lines or synthesizes numeric scales
    - Section Segmenter: Groups questions into ordered sections
    - Assembler: Single left-to-right pass with fallback tiers

Version: 1.0.0
"""

__version__ = "1.0.0"
