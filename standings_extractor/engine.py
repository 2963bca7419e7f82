"""
Standings Extractor Engine
==========================
Main orchestrator that combines text extraction, class detection, state
machine parsing and validation into one extraction call.

Usage:
    extractor = StandingsExtractor(config)
    result = extractor.parse("path/to/standings.pdf")
    # result is a ParseResult with standings, detected class and raw text

Architecture:
    PDF → TextExtractor → text stream → detect_class + StandingsStateMachine →
    ParsedStandings → ValidationEngine → ParseResult (JSON)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .class_detector import detect_class
from .models import ParseResult
from .state_machine import StandingsStateMachine
from .text_extractor import TextExtractor
from .validator import ValidationEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ExtractorConfig:
    """Configuration for the extractor engine."""

    # Class detection
    case_insensitive_detection: bool = False

    # Processing
    page_range: Optional[tuple[int, int]] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class StandingsExtractor:
    """
    Main standings extraction engine.

    Orchestrates the full pipeline:
        1. Text extraction (PyMuPDF)
        2. Class detection
        3. Row decoding
        4. Validation

    Each call builds its own state machine, so one extractor can serve
    concurrent requests.
    """

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.config = config or ExtractorConfig()
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("standings_extractor")
        package_logger.setLevel(log_level)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)
        else:
            for handler in package_logger.handlers:
                handler.setLevel(log_level)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file).absolute()
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
                    logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
                )
                package_logger.addHandler(file_handler)

    def parse_text(
        self,
        text: str,
        file_name: str = "",
        case_insensitive: Optional[bool] = None,
    ) -> ParseResult:
        """
        Parse an already extracted text stream.

        Args:
            text: Page texts concatenated in page order.
            file_name: Source file name, used as a class detection fallback.
            case_insensitive: Per-call override of
                config.case_insensitive_detection (None keeps the config).

        Returns:
            ParseResult with at least one standing.

        Raises:
            HeaderNotFound: If the table header is missing.
            NoStandingsFound: If no row could be decoded.
        """
        if case_insensitive is None:
            case_insensitive = self.config.case_insensitive_detection

        detected_class = detect_class(
            text,
            file_name,
            case_insensitive=case_insensitive,
        )

        parser = StandingsStateMachine()
        standings = parser.parse(text)

        validation = ValidationEngine().validate(
            standings, skipped_tokens=parser.skipped_tokens
        )

        return ParseResult(
            standings=standings,
            detected_class=detected_class,
            raw_text=text,
            file_name=file_name,
            skipped_tokens=parser.skipped_tokens,
            validation=validation,
        )

    def parse(self, pdf_path: str) -> ParseResult:
        """
        Parse a standings PDF on disk.

        Raises:
            FileNotFoundError: If the PDF file doesn't exist.
            ExtractionError: If the PDF cannot be read.
            HeaderNotFound / NoStandingsFound: If the table cannot be parsed.
        """
        pdf_path = os.path.abspath(pdf_path)

        if not os.path.exists(pdf_path):
            raise FileNotFoundError(f"PDF not found: {pdf_path}")

        start_time = time.time()
        logger.info(f"Starting parse of: {pdf_path}")

        extractor = TextExtractor(page_range=self.config.page_range)
        text = extractor.extract(pdf_path)
        result = self.parse_text(text, os.path.basename(pdf_path))

        elapsed = time.time() - start_time
        logger.info(
            f"Parse complete in {elapsed:.2f}s: "
            f"{len(result.standings)} standings extracted"
        )
        return result

    def parse_bytes(
        self,
        data: bytes,
        file_name: str,
        case_insensitive: Optional[bool] = None,
    ) -> ParseResult:
        """Parse an uploaded PDF held in memory."""
        logger.info(f"Starting parse of upload: {file_name}")

        extractor = TextExtractor(page_range=self.config.page_range)
        text = extractor.extract_bytes(data, file_name)
        return self.parse_text(text, file_name, case_insensitive=case_insensitive)
