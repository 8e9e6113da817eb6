"""
Iteration advancer.

"Next" is positional in the team's schedule, in the order the schedule
service returns it. Dates are not compared.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from ..wit.models import TeamIteration

logger = structlog.get_logger()


def next_iteration_path(current_path: str, schedule: Sequence[TeamIteration]) -> str:
    """
    Path of the iteration that follows ``current_path`` in ``schedule``.

    Returns ``current_path`` unchanged when it is the last entry or is not in
    the schedule at all.
    """
    for index, iteration in enumerate(schedule):
        if iteration.path == current_path:
            if index + 1 < len(schedule):
                return schedule[index + 1].path
            logger.info("no_next_iteration", iteration_path=current_path)
            return current_path

    # TODO: confirm with product whether a work item outside its team's
    # schedule should block the split instead of staying in place.
    logger.warning(
        "iteration_not_in_schedule",
        iteration_path=current_path,
        schedule_size=len(schedule),
    )
    return current_path
