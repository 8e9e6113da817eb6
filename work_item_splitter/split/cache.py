"""
Per-session cache of work item type metadata.

One cache is owned by one dialog session or one split invocation. It is not
synchronized and must not be shared between concurrent sessions.

An unreadable schema degrades to defaults. A type that does not exist
(:class:`WorkItemNotFoundError`) propagates to the caller.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional

import structlog

from ..wit.enums import StateCategory
from ..wit.models import FieldDescriptor
from ..wit.store import WorkItemStore
from .errors import SchemaUnavailableError

logger = structlog.get_logger()

# Used when a type's states cannot be read or none fall in an excluded category
DEFAULT_EXCLUDED_STATES: FrozenSet[str] = frozenset(
    {"Closed", "Removed", "Cut", "Done", "Completed"}
)

EXCLUDED_STATE_CATEGORIES: FrozenSet[str] = frozenset(
    {StateCategory.COMPLETED.value, StateCategory.REMOVED.value}
)


class TypeMetadataCache:
    """Memoizes excluded states and field schemas per work item type."""

    def __init__(self, store: WorkItemStore):
        self.store = store
        self._excluded_states: Dict[str, FrozenSet[str]] = {}
        self._fields: Dict[str, Optional[List[FieldDescriptor]]] = {}

    async def excluded_states(self, work_item_type: str) -> FrozenSet[str]:
        """State names of ``work_item_type`` that count as done.

        Falls back to :data:`DEFAULT_EXCLUDED_STATES` when the states cannot
        be read or none of them is in the Completed or Removed category.
        """
        if work_item_type not in self._excluded_states:
            self._excluded_states[work_item_type] = await self._load_excluded_states(
                work_item_type
            )
        return self._excluded_states[work_item_type]

    async def _load_excluded_states(self, work_item_type: str) -> FrozenSet[str]:
        try:
            states = await self.store.get_work_item_type_states(work_item_type)
        except SchemaUnavailableError as e:
            logger.warning(
                "type_states_unavailable", work_item_type=work_item_type, error=str(e)
            )
            return DEFAULT_EXCLUDED_STATES

        names = frozenset(
            state.name for state in states if state.category in EXCLUDED_STATE_CATEGORIES
        )
        if not names:
            logger.warning("type_states_empty", work_item_type=work_item_type)
            return DEFAULT_EXCLUDED_STATES
        return names

    async def field_descriptors(
        self, work_item_type: str
    ) -> Optional[List[FieldDescriptor]]:
        """Field schema of ``work_item_type``, or ``None`` if it cannot be read."""
        if work_item_type not in self._fields:
            try:
                self._fields[work_item_type] = await self.store.get_work_item_type_fields(
                    work_item_type
                )
            except SchemaUnavailableError as e:
                logger.warning(
                    "type_schema_unavailable", work_item_type=work_item_type, error=str(e)
                )
                self._fields[work_item_type] = None
        return self._fields[work_item_type]
