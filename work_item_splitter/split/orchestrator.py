"""
Split orchestrator.

Runs one split end to end:

1. Fetch the source work item with its relations
2. Compute the next iteration from the team schedule
3. Create the continuation work item from the field-copy policy
4. Migrate relations from the source to the continuation
5. Move every migrated child to the new iteration

Steps 1-4 are sequential. Step 5 fans out one independent update per child;
a failing child is reported in the result and does not fail the split.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..wit.enums import CoreFields
from ..wit.models import PatchOperation, WorkItem
from ..wit.store import WorkItemStore
from .cache import TypeMetadataCache
from .errors import InvalidMoveSetError, NothingSelectedError, SplitError
from .field_policy import FieldCopyPolicy
from .iterations import next_iteration_path
from .relations import RelationMigrator

logger = structlog.get_logger()


class SplitPhase(str, Enum):
    """Where a split invocation currently is."""

    IDLE = "idle"
    FETCHING_SOURCE = "fetching_source"
    RESOLVING_ITERATION = "resolving_iteration"
    CREATING_TARGET = "creating_target"
    MIGRATING_RELATIONS = "migrating_relations"
    REASSIGNING_ITERATIONS = "reassigning_iterations"
    DONE = "done"
    FAILED = "failed"


class SplitRequest(BaseModel):
    """What the user asked for: which children move, and how."""

    model_config = ConfigDict(frozen=True)

    work_item_id: int = Field(..., description="Work item being split")
    child_ids: List[int] = Field(default_factory=list, description="Children to move")
    title: Optional[str] = Field(None, description="Title override for the new item")
    copy_tags: bool = Field(False, description="Copy tags to the new item")
    open_new_work_item: bool = Field(
        False, description="Front end should open the new item afterwards"
    )


class SplitResult(BaseModel):
    """Outcome of a split that created its continuation item."""

    target: WorkItem
    source_id: int
    moved_ids: List[int] = Field(default_factory=list)
    iteration_path: str = ""
    updated_children: List[int] = Field(default_factory=list)
    child_failures: Dict[int, str] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.child_failures


class SplitOrchestrator:
    """
    Coordinates one split invocation.

    An orchestrator owns its own :class:`TypeMetadataCache` and is meant to be
    used for a single split.
    """

    def __init__(
        self,
        store: WorkItemStore,
        reference_url: str,
        cache: Optional[TypeMetadataCache] = None,
    ):
        self.store = store
        self.reference_url = reference_url
        self.cache = cache or TypeMetadataCache(store)
        self.field_policy = FieldCopyPolicy(
            self.cache, store.work_item_web_url, reference_url
        )
        self.migrator = RelationMigrator(store, reference_url)
        self.phase = SplitPhase.IDLE

    def _enter(self, phase: SplitPhase, **context) -> None:
        self.phase = phase
        logger.debug("split_phase", phase=phase.value, **context)

    async def split(self, request: SplitRequest) -> SplitResult:
        """Perform ``request`` and return the created continuation.

        Raises:
            NothingSelectedError: no child ids were given
            InvalidMoveSetError: a child id is not a child of the source
            WorkItemNotFoundError: the source or its work item type does not exist
            PartialMigrationError: relations were only partly migrated
        """
        if not request.child_ids:
            raise NothingSelectedError(
                f"No children selected to split from work item {request.work_item_id}"
            )

        split_logger = logger.bind(source_id=request.work_item_id)
        split_logger.info("split_started", child_ids=request.child_ids)

        try:
            return await self._run(request, split_logger)
        except SplitError as e:
            self.phase = SplitPhase.FAILED
            split_logger.error("split_failed", code=e.code, error=e.message)
            raise

    async def _run(self, request: SplitRequest, split_logger) -> SplitResult:
        self._enter(SplitPhase.FETCHING_SOURCE)
        source = await self.store.get_work_item(request.work_item_id, expand_relations=True)

        move_ids = set(request.child_ids)
        unknown = move_ids - set(source.child_ids())
        if unknown:
            raise InvalidMoveSetError(source.id, unknown)

        self._enter(SplitPhase.RESOLVING_ITERATION)
        schedule = await self.store.get_team_iterations()
        current_path = source.iteration_path or ""
        iteration_path = next_iteration_path(current_path, schedule)

        self._enter(SplitPhase.CREATING_TARGET, iteration_path=iteration_path)
        patch = await self.field_policy.build_patch(
            source,
            copy_tags=request.copy_tags,
            title=request.title,
            iteration_path=iteration_path,
        )
        target = await self.store.create_work_item(source.work_item_type or "", patch)
        split_logger = split_logger.bind(target_id=target.id)

        self._enter(SplitPhase.MIGRATING_RELATIONS, target_id=target.id)
        target = await self.migrator.migrate(source, target, move_ids)

        moved_ids = [i for i in source.child_ids() if i in move_ids]
        self._enter(SplitPhase.REASSIGNING_ITERATIONS, target_id=target.id)
        updated, failures = await self._reassign_iterations(moved_ids, iteration_path)

        self._enter(SplitPhase.DONE, target_id=target.id)
        split_logger.info(
            "split_completed",
            iteration_path=iteration_path,
            moved_ids=moved_ids,
            failed_children=sorted(failures),
        )
        return SplitResult(
            target=target,
            source_id=source.id,
            moved_ids=moved_ids,
            iteration_path=iteration_path,
            updated_children=updated,
            child_failures=failures,
        )

    async def _reassign_iterations(self, child_ids: List[int], iteration_path: str):
        patch = [PatchOperation.add_field(CoreFields.ITERATION_PATH, iteration_path)]
        results = await asyncio.gather(
            *(self.store.update_work_item(child_id, patch) for child_id in child_ids),
            return_exceptions=True,
        )

        updated: List[int] = []
        failures: Dict[int, str] = {}
        for child_id, result in zip(child_ids, results):
            if isinstance(result, Exception):
                logger.warning(
                    "child_iteration_update_failed", child_id=child_id, error=str(result)
                )
                failures[child_id] = str(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                updated.append(child_id)
        return updated, failures
