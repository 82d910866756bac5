"""Regression detection. Finds pairs that were identical last run and differ now."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sitediff.models.comparison import RunResult

logger = logging.getLogger(__name__)


@dataclass
class Regression:
    page_path: str
    viewport: str
    previous_status: str
    current_status: str
    diff_pixels: int | None = None


def detect_regressions(previous: RunResult, current: RunResult) -> list[Regression]:
    """Compare two runs and find (page, viewport) pairs that went identical -> different.

    Errors are not regressions: a pair that failed to capture says nothing
    about the rendered page.

    Runs that used another strategy or environment pair are not comparable
    and yield no regressions.
    """
    if (previous.strategy, previous.environment_a, previous.environment_b) != (
        current.strategy, current.environment_a, current.environment_b,
    ):
        logger.debug("Previous run %s compared %s vs %s (%s); skipping regression detection",
                     previous.run_id, previous.environment_a, previous.environment_b, previous.strategy)
        return []

    prev_by_key = {(c.page_id, c.viewport): c for c in previous.comparisons}

    regressions = []
    for result in current.comparisons:
        prev = prev_by_key.get((result.page_id, result.viewport))
        if prev and prev.status == "identical" and result.status == "different":
            regressions.append(Regression(
                page_path=result.page_path,
                viewport=result.viewport,
                previous_status=prev.status,
                current_status=result.status,
                diff_pixels=result.diff_pixels,
            ))

    if regressions:
        logger.warning("Detected %d regressions", len(regressions))
    return regressions
