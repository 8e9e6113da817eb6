"""
Error taxonomy for the split engine.

Every error carries a stable ``code`` for programmatic handling and a
human-readable ``message``. Nothing in the engine retries or rolls back;
callers decide what to do with a failed split.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

if TYPE_CHECKING:
    from ..wit.models import WorkItem


class SplitError(Exception):
    """
    Base class for all split engine errors.

    Attributes:
        code: Stable error code for programmatic handling
        message: Human-readable error description
    """

    code = "split_error"

    def __init__(self, message: str, code: Optional[str] = None):
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(f"{self.code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {"error": "split_failed", "code": self.code, "message": self.message}


class StoreError(SplitError):
    """A call to the work item store failed."""

    code = "store_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.status_code = status_code
        super().__init__(message, code=code)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class WorkItemNotFoundError(StoreError):
    """A work item, or a work item type, does not exist."""

    code = "not_found"


class SchemaUnavailableError(StoreError):
    """A work item type's fields or states could not be read."""

    code = "schema_unavailable"


class NothingSelectedError(SplitError):
    """The split was requested without any child to move."""

    code = "nothing_selected"


class InvalidMoveSetError(SplitError):
    """The move set names ids that are not children of the source."""

    code = "invalid_move_set"

    def __init__(self, work_item_id: int, unknown_ids: Iterable[int]):
        self.work_item_id = work_item_id
        self.unknown_ids = sorted(unknown_ids)
        ids = ", ".join(str(i) for i in self.unknown_ids)
        super().__init__(f"Work item {work_item_id} has no children with ids: {ids}")


class PartialMigrationError(SplitError):
    """
    Relation migration stopped half way.

    The target work item already exists. If ``stage`` is ``"add"`` the moved
    child links were removed from the source but never added to the target,
    so they are linked to neither and need manual reconciliation.
    """

    code = "partial_migration"

    def __init__(self, target: "WorkItem", stage: str, cause: Exception):
        self.target = target
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"Relation migration to work item {target.id} failed during '{stage}': {cause}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["target_id"] = self.target.id
        data["stage"] = self.stage
        return data
