"""
Class Detector
==============
Decides which competition class a standings document belongs to.

The markers are literal substrings seen in real documents: some print
"GT PRO", others "GT3 PRO". The checks form an ordered chain and the
first match wins, so a document mentioning both GT3 PRO and LMP2 is GT3 PRO.
"""

from __future__ import annotations

import logging
from typing import Optional

from .models import RaceClass

logger = logging.getLogger(__name__)

# (source, marker, class) evaluated top to bottom
DETECTION_RULES = [
    ("text", "GT PRO", RaceClass.GT3_PRO),
    ("text", "GT3 PRO", RaceClass.GT3_PRO),
    ("file_name", "GT PRO", RaceClass.GT3_PRO),
    ("text", "LMP2", RaceClass.LMP2),
    ("file_name", "LMP2", RaceClass.LMP2),
]


def detect_class(
    text: str,
    file_name: str,
    case_insensitive: bool = False,
) -> Optional[RaceClass]:
    """
    Classify a document from its extracted text and file name.

    Args:
        text: Extracted document text.
        file_name: Name of the uploaded file.
        case_insensitive: Match markers regardless of case. Off by default
            so older imports keep their original classification.

    Returns:
        The detected RaceClass, or None when no marker matches.
    """
    sources = {"text": text or "", "file_name": file_name or ""}
    if case_insensitive:
        sources = {key: value.upper() for key, value in sources.items()}

    for source, marker, race_class in DETECTION_RULES:
        if marker in sources[source]:
            logger.info(
                f"Detected class {race_class.value} "
                f"(marker '{marker}' in {source})"
            )
            return race_class

    logger.info("No class marker found in text or file name")
    return None
