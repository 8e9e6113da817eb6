"""
Eligible-children resolver.

Proposes the default migration set for a parent: every child whose state is
not done, in the order the store returned them.
"""

from __future__ import annotations

from typing import List

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..wit.models import WorkItem
from ..wit.store import WorkItemStore
from .cache import TypeMetadataCache
from .classifier import is_work_item_eligible

logger = structlog.get_logger()


class EligibleChildren(BaseModel):
    """Children of a parent that may be moved by a split."""

    model_config = ConfigDict(frozen=True)

    parent: WorkItem
    eligible: List[WorkItem] = Field(default_factory=list)
    fetched_ids: List[int] = Field(default_factory=list)

    @property
    def has_children(self) -> bool:
        return bool(self.fetched_ids)

    @property
    def eligible_ids(self) -> List[int]:
        return [child.id for child in self.eligible]


class EligibleChildrenResolver:
    """Fetches a parent's children and keeps the ones that are not done."""

    def __init__(self, store: WorkItemStore, cache: TypeMetadataCache):
        self.store = store
        self.cache = cache

    async def resolve(self, parent: WorkItem) -> EligibleChildren:
        child_ids = parent.child_ids()
        if not child_ids:
            logger.info("no_children", parent_id=parent.id)
            return EligibleChildren(parent=parent)

        children = await self.store.get_work_items(child_ids)
        eligible = [
            child for child in children if await is_work_item_eligible(child, self.cache)
        ]
        logger.info(
            "children_resolved",
            parent_id=parent.id,
            fetched=len(children),
            eligible=len(eligible),
        )
        return EligibleChildren(
            parent=parent,
            eligible=eligible,
            fetched_ids=[child.id for child in children],
        )
