"""
Data Models
===========
Pydantic models for parsed championship standings.
All models are serializable to JSON for the upload screen.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


class RaceClass(str, Enum):
    """Competition class a standings table belongs to."""
    LMP2 = "LMP2"
    GT3_PRO = "GT3 PRO"


# ─── Standing Models ──────────────────────────────────────────────────────────


class ParsedStanding(BaseModel):
    """
    One row of a championship table, as recovered from the text stream.
    The rank is the one printed in the document, never re-derived.
    """
    rank: int = Field(ge=1)
    car_number: str = Field(
        description="Car number copied verbatim, may contain letters"
    )
    team_name: str = Field(min_length=1)
    points: int
    behind: int
    starts: int
    poles: int
    wins: int
    top5: int
    top10: int


class StandingImportRow(BaseModel):
    """A parsed row prepared for the championship_standings table."""
    race_class: RaceClass
    rank: int = Field(ge=1)
    car_number: str
    country_code: str = "PT"
    team_name: str
    car_logo_url: Optional[str] = None
    points: int
    behind: int
    starts: int
    poles: int
    wins: int
    top5: int
    top10: int


# ─── Report / Result Models ───────────────────────────────────────────────────


class StandingsReport(BaseModel):
    """Post-parse consistency report."""
    total_rows: int = 0
    skipped_tokens: int = 0
    missing_ranks: list[int] = Field(default_factory=list)
    duplicate_ranks: list[int] = Field(default_factory=list)
    duplicate_car_numbers: list[str] = Field(default_factory=list)
    out_of_order_ranks: list[int] = Field(default_factory=list)
    points_order_violations: list[int] = Field(default_factory=list)

    @computed_field
    @property
    def is_consistent(self) -> bool:
        return not (
            self.missing_ranks
            or self.duplicate_ranks
            or self.duplicate_car_numbers
            or self.out_of_order_ranks
            or self.points_order_violations
        )


class ParseResult(BaseModel):
    """
    Complete output of one extraction.
    Dump with by_alias=True to get the detectedClass / rawText keys
    the upload screen expects.
    """
    model_config = ConfigDict(populate_by_name=True)

    standings: list[ParsedStanding] = Field(min_length=1)
    detected_class: Optional[RaceClass] = Field(
        default=None, alias="detectedClass"
    )
    raw_text: str = Field(
        default="",
        alias="rawText",
        description="Verbatim extracted text, kept for debugging",
    )
    file_name: str = ""
    skipped_tokens: int = 0
    validation: StandingsReport = Field(default_factory=StandingsReport)
