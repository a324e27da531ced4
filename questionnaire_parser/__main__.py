"""
Module entry point for: python -m questionnaire_parser

Allows running the parser directly as a module:
    python -m questionnaire_parser parse <path> [options]
    python -m questionnaire_parser batch <directory> [options]
    python -m questionnaire_parser validate <json_path>
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
