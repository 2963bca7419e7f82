from __future__ import annotations

import fitz
import pytest

from standings_extractor.engine import ExtractorConfig, StandingsExtractor

# Attach the package log handler to the real stderr before any CliRunner
# swaps the streams out
StandingsExtractor(ExtractorConfig(log_level="DEBUG"))


GT3_PRO_PAGES = [
    [
        "IMSA 2024 Team Standings GT3 PRO",
        "RANK +/- NO. CAR TEAM POINTS BEHIND STARTS POLES WINS TOP5 TOP10",
        "1 -- 77 Proton Competition 2450 0 10 2 3 6 9",
        "2 +1 9A Pfaff Motorsports 2380 -70 10 1 2 5 8",
    ],
    [
        "3 new 23 Heart of Racing Team 2210 -240 9 0 1 4 7",
        "SportsCar Championship Points System",
    ],
]


def build_pdf(pages: list[list[str]]) -> bytes:
    """Render each page's lines into a small PDF."""
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        page.insert_text((36, 72), "\n".join(lines), fontsize=9)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def standings_pdf_bytes() -> bytes:
    return build_pdf(GT3_PRO_PAGES)


@pytest.fixture
def standings_pdf(tmp_path, standings_pdf_bytes) -> str:
    path = tmp_path / "standings_2024.pdf"
    path.write_bytes(standings_pdf_bytes)
    return str(path)


@pytest.fixture
def pdf_builder():
    return build_pdf
