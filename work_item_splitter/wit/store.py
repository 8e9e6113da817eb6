"""
Work item store abstraction.

The split engine treats the store as a black box: it reads work items, type
schemas, type states and the team iteration schedule, and it submits patch
documents. Each patch document is assumed to be applied atomically to one
work item.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from .models import (
    FieldDescriptor,
    PatchOperation,
    StateDescriptor,
    TeamIteration,
    WorkItem,
)


class WorkItemStore(ABC):
    """Abstract base class for work item tracking backends."""

    @abstractmethod
    async def get_work_item(
        self, work_item_id: int, expand_relations: bool = True
    ) -> WorkItem:
        """Fetch one work item, optionally with its relations."""
        pass

    @abstractmethod
    async def get_work_items(self, work_item_ids: Sequence[int]) -> List[WorkItem]:
        """Fetch many work items, in the order of ``work_item_ids``."""
        pass

    @abstractmethod
    async def update_work_item(
        self, work_item_id: int, patch: Sequence[PatchOperation]
    ) -> WorkItem:
        """Apply a patch document to one work item."""
        pass

    @abstractmethod
    async def create_work_item(
        self, work_item_type: str, patch: Sequence[PatchOperation]
    ) -> WorkItem:
        """Create a work item of ``work_item_type`` from initial field values."""
        pass

    @abstractmethod
    async def get_work_item_type_fields(
        self, work_item_type: str
    ) -> List[FieldDescriptor]:
        """Fetch the field descriptors of a work item type."""
        pass

    @abstractmethod
    async def get_work_item_type_states(
        self, work_item_type: str
    ) -> List[StateDescriptor]:
        """Fetch the state descriptors of a work item type."""
        pass

    @abstractmethod
    async def get_team_iterations(self) -> List[TeamIteration]:
        """Fetch the team's iteration schedule, in schedule order."""
        pass

    @abstractmethod
    def work_item_web_url(self, work_item_id: int) -> str:
        """Human-facing link to a work item, used in audit comments."""
        pass

    async def close(self) -> None:
        """Release any connection held by the store."""
        pass
