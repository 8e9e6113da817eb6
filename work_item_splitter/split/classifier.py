"""
Completion classifier.

A child is eligible to move to the continuation item unless its state is in
its type's exclusion set (states in the Completed or Removed category).
"""

from __future__ import annotations

from typing import AbstractSet

from ..wit.models import WorkItem
from .cache import TypeMetadataCache


def is_eligible(state: str, excluded_state_names: AbstractSet[str]) -> bool:
    return state not in excluded_state_names


async def is_work_item_eligible(work_item: WorkItem, cache: TypeMetadataCache) -> bool:
    """Classify a work item against the exclusion set of its own type."""
    excluded = await cache.excluded_states(work_item.work_item_type or "")
    return is_eligible(work_item.state, excluded)
