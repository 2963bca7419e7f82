"""
Module entry point for: python -m standings_extractor

Allows running the extractor directly as a module:
    python -m standings_extractor parse <pdf_path> [options]
    python -m standings_extractor batch <directory> [options]
    python -m standings_extractor serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
