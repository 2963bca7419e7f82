"""
State Machine Parser
====================
Recovers championship standing rows from the whitespace-flattened text of a
PDF table.

Column boundaries are lost when the PDF text is extracted, only word order
survives. The table is located by its last header cell ("TOP10") and each
row is decoded with one lookahead rule: the team name ends where a run of
7 consecutive integers (the stats columns) begins.

Row grammar:
    RANK MARKER CAR_NUMBER TEAM_NAME... POINTS BEHIND STARTS POLES WINS TOP5 TOP10
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Optional

from .errors import HeaderNotFound, NoStandingsFound
from .models import ParsedStanding

logger = logging.getLogger(__name__)

# ─── Grammar Constants ────────────────────────────────────────────────────────

HEADER_ANCHOR = "TOP10"

STATS_COLUMNS = ("points", "behind", "starts", "poles", "wins", "top5", "top10")

MAX_TEAM_NAME_WORDS = 10

# Leading ASCII integer prefix: "1." -> 1, "12A" -> 12, "new" and "--" -> None
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def tokenize(text: str) -> list[str]:
    """Split text on any whitespace run into non-empty tokens."""
    return text.split()


def parse_int(token: str) -> Optional[int]:
    """Return the integer a token starts with, or None if it has none."""
    match = INTEGER_PATTERN.match(token)
    if match is None:
        return None
    return int(match.group())


def find_data_start(tokens: list[str]) -> int:
    """
    Index of the first token after the TOP10 header.

    Raises:
        HeaderNotFound: If the anchor is missing from the stream.
    """
    for idx, token in enumerate(tokens):
        if token == HEADER_ANCHOR:
            return idx + 1
    raise HeaderNotFound()


def is_footer(tokens: list[str], idx: int) -> bool:
    """Boilerplate appended after the table ("SportsCar ...", "Points System")."""
    token = tokens[idx]
    if "SportsCar" in token:
        return True
    return (
        "Points" in token
        and idx + 1 < len(tokens)
        and tokens[idx + 1] == "System"
    )


class RowState(Enum):
    """Decoding states of a single row."""
    EXPECT_RANK = "EXPECT_RANK"
    EXPECT_MARKER = "EXPECT_MARKER"
    EXPECT_CAR_NUMBER = "EXPECT_CAR_NUMBER"
    ACCUMULATE_NAME = "ACCUMULATE_NAME"
    EXPECT_STATS = "EXPECT_STATS"
    DONE = "DONE"


class StandingsStateMachine:
    """
    Finite State Machine that turns a token stream into ordered
    ParsedStanding rows.

    A row attempt that fails at any state is abandoned and retried one
    token later. Malformed rows are skipped rather than failing the
    document; skipped_tokens counts how many start positions were dropped.
    """

    def __init__(self):
        self.standings: list[ParsedStanding] = []
        self.skipped_tokens = 0

    def reset(self):
        """Reset the state machine for a fresh parsing run."""
        self.standings = []
        self.skipped_tokens = 0

    def parse(self, text: str) -> list[ParsedStanding]:
        """
        Parse the extracted text into standing rows.

        Raises:
            HeaderNotFound: If the TOP10 anchor is missing.
            NoStandingsFound: If no row could be decoded after the anchor.
        """
        self.reset()

        tokens = tokenize(text)
        logger.debug(f"Tokenized text into {len(tokens)} tokens")

        start = find_data_start(tokens)
        logger.debug(f"Table data starts at token {start}")

        idx = start
        while idx < len(tokens):
            if is_footer(tokens, idx):
                logger.debug(f"Footer reached at token {idx}: {tokens[idx]!r}")
                break

            decoded = self.decode_row(tokens, idx)
            if decoded is None:
                self.skipped_tokens += 1
                idx += 1
                continue

            standing, idx = decoded
            self.standings.append(standing)
            logger.debug(
                f"Row {standing.rank}: #{standing.car_number} "
                f"{standing.team_name} ({standing.points} pts)"
            )

        if not self.standings:
            logger.error("No standings decoded after the table header")
            raise NoStandingsFound()

        logger.info(
            f"Decoded {len(self.standings)} standings "
            f"({self.skipped_tokens} tokens skipped)"
        )
        return self.standings

    def decode_row(
        self, tokens: list[str], start: int
    ) -> Optional[tuple[ParsedStanding, int]]:
        """
        Try to decode one row beginning at tokens[start].

        Returns:
            (standing, next_index) on success, None if this position is not
            a valid row start.
        """
        state = RowState.EXPECT_RANK
        idx = start
        total = len(tokens)

        rank = 0
        car_number = ""
        name_words: list[str] = []
        stats: list[int] = []

        while state != RowState.DONE:
            if state == RowState.EXPECT_RANK:
                value = parse_int(tokens[idx])
                if value is None or value < 1:
                    return None
                rank = value
                idx += 1
                state = RowState.EXPECT_MARKER

            elif state == RowState.EXPECT_MARKER:
                # Position change: "+2", "-1", "new", "--"... never validated
                if idx >= total:
                    return None
                idx += 1
                state = RowState.EXPECT_CAR_NUMBER

            elif state == RowState.EXPECT_CAR_NUMBER:
                if idx >= total:
                    return None
                car_number = tokens[idx]
                idx += 1
                state = RowState.ACCUMULATE_NAME

            elif state == RowState.ACCUMULATE_NAME:
                if self._stats_ahead(tokens, idx):
                    if not name_words:
                        return None
                    state = RowState.EXPECT_STATS
                    continue
                if idx >= total:
                    return None
                name_words.append(tokens[idx])
                idx += 1
                if len(name_words) > MAX_TEAM_NAME_WORDS:
                    return None

            elif state == RowState.EXPECT_STATS:
                if idx + len(STATS_COLUMNS) > total:
                    return None
                for token in tokens[idx:idx + len(STATS_COLUMNS)]:
                    value = parse_int(token)
                    if value is None:
                        return None
                    stats.append(value)
                idx += len(STATS_COLUMNS)
                state = RowState.DONE

        standing = ParsedStanding(
            rank=rank,
            car_number=car_number,
            team_name=" ".join(name_words),
            **dict(zip(STATS_COLUMNS, stats)),
        )
        return standing, idx

    def _stats_ahead(self, tokens: list[str], idx: int) -> bool:
        """True if the next 7 tokens are all integers."""
        window = tokens[idx:idx + len(STATS_COLUMNS)]
        if len(window) < len(STATS_COLUMNS):
            return False
        return all(parse_int(token) is not None for token in window)
