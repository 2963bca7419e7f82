"""
Validation Engine
=================
Post-parse consistency report.

After parsing each PDF, reports:
    - Total rows decoded
    - Tokens skipped by the row retry
    - Missing ranks (gaps in the printed classification)
    - Duplicate ranks and car numbers
    - Ranks printed out of order
    - Rows with more points than the row above

The rows themselves are never modified; the report is for the person
reviewing the import.
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import ParsedStanding, StandingsReport

logger = logging.getLogger(__name__)


class ValidationEngine:
    """
    Validates parsed standings and produces a report.
    """

    def validate(
        self,
        standings: list[ParsedStanding],
        skipped_tokens: int = 0,
    ) -> StandingsReport:
        """
        Run full validation on parsed standings.

        Args:
            standings: Rows in source order.
            skipped_tokens: Row-start positions dropped during parsing.

        Returns:
            StandingsReport with all detected issues.
        """
        report = StandingsReport(skipped_tokens=skipped_tokens)

        if not standings:
            logger.warning("No standings to validate")
            return report

        report.total_rows = len(standings)

        ranks = [s.rank for s in standings]
        rank_counts = Counter(ranks)
        report.duplicate_ranks = sorted(
            rank for rank, count in rank_counts.items() if count > 1
        )
        expected = set(range(min(ranks), max(ranks) + 1))
        report.missing_ranks = sorted(expected - set(ranks))

        car_counts = Counter(s.car_number for s in standings)
        report.duplicate_car_numbers = sorted(
            car for car, count in car_counts.items() if count > 1
        )

        for previous, current in zip(standings, standings[1:]):
            if current.rank < previous.rank:
                report.out_of_order_ranks.append(current.rank)
            if current.points > previous.points:
                report.points_order_violations.append(current.rank)

        # Log summary
        logger.info("=" * 60)
        logger.info("STANDINGS REPORT")
        logger.info("=" * 60)
        logger.info(f"Rows Decoded: {report.total_rows}")
        logger.info(f"Tokens Skipped: {report.skipped_tokens}")
        logger.info(f"Missing Ranks: {len(report.missing_ranks)}")
        logger.info(f"Duplicate Ranks: {len(report.duplicate_ranks)}")
        logger.info(
            f"Duplicate Car Numbers: {len(report.duplicate_car_numbers)}"
        )
        logger.info(f"Out of Order Ranks: {len(report.out_of_order_ranks)}")
        logger.info(
            f"Points Order Violations: {len(report.points_order_violations)}"
        )
        logger.info("=" * 60)

        if not report.is_consistent:
            logger.warning("Standings need review before import")

        return report
