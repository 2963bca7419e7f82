"""
Import Preparation
==================
Turns parsed standings into rows for the championship_standings table.

Country flags and car logos are set by hand on the site, so an import keeps
them for every car number that already exists in the class. Ranks are then
recomputed from points, with the leader on top and `behind` measured
against the leader (0 for the leader, negative for everyone else).

The HTTP service returns these rows as "prepared" whenever the class of an
upload is known.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence, TypeVar, Union

from .models import ParsedStanding, RaceClass, StandingImportRow

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY_CODE = "PT"

Row = TypeVar("Row", ParsedStanding, StandingImportRow)


def recompute_ranks(standings: Sequence[Row]) -> list[Row]:
    """
    Order rows by points (highest first) and reassign rank and behind.

    Ties keep their incoming order. The input rows are not modified.
    """
    ordered = sorted(standings, key=lambda s: -s.points)
    if not ordered:
        return []

    leader_points = ordered[0].points
    return [
        row.model_copy(update={
            "rank": idx + 1,
            "behind": row.points - leader_points,
        })
        for idx, row in enumerate(ordered)
    ]


def prepare_import(
    standings: Sequence[ParsedStanding],
    race_class: Union[RaceClass, str],
    existing: Optional[Mapping[str, Mapping[str, Optional[str]]]] = None,
) -> list[StandingImportRow]:
    """
    Build import rows for one class.

    Args:
        standings: Parsed rows.
        race_class: Class the rows will be stored under.
        existing: Current rows of that class keyed by car number, each with
            optional "country_code" and "car_logo_url".

    Returns:
        Import rows with ranks recomputed from points.
    """
    race_class = RaceClass(race_class)
    existing = existing or {}

    rows = []
    preserved = 0
    for standing in standings:
        previous = existing.get(standing.car_number) or {}
        country_code = previous.get("country_code") or DEFAULT_COUNTRY_CODE
        car_logo_url = previous.get("car_logo_url") or None
        if previous:
            preserved += 1

        rows.append(StandingImportRow(
            race_class=race_class,
            country_code=country_code,
            car_logo_url=car_logo_url,
            **standing.model_dump(),
        ))

    logger.info(
        f"Prepared {len(rows)} {race_class.value} rows "
        f"({preserved} kept existing flag/logo)"
    )
    return recompute_ranks(rows)
