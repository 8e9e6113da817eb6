"""
Split orchestration engine.

Splitting a work item detaches some of its open children and re-parents them
under a newly created continuation item in the next iteration:

- classifier: which child states count as done
- children: default set of children eligible to move
- iterations: next iteration in the team schedule
- field_policy: fields the continuation is created with
- relations: parent link, child links and attachments moved to the continuation
- orchestrator: the end-to-end split
- dialog: immutable dialog state and its reducers
"""

from .cache import DEFAULT_EXCLUDED_STATES, TypeMetadataCache
from .children import EligibleChildren, EligibleChildrenResolver
from .classifier import is_eligible, is_work_item_eligible
from .dialog import (
    ChildSummary,
    DialogState,
    DialogStore,
    LoadState,
    start_split,
)
from .errors import (
    InvalidMoveSetError,
    NothingSelectedError,
    PartialMigrationError,
    SchemaUnavailableError,
    SplitError,
    StoreError,
    WorkItemNotFoundError,
)
from .field_policy import BASELINE_FIELDS, FieldCopyPolicy, fields_to_copy
from .iterations import next_iteration_path
from .orchestrator import SplitOrchestrator, SplitPhase, SplitRequest, SplitResult
from .relations import RelationMigrator, partition_relations, removal_indices

__all__ = [
    "BASELINE_FIELDS",
    "ChildSummary",
    "DEFAULT_EXCLUDED_STATES",
    "DialogState",
    "DialogStore",
    "EligibleChildren",
    "EligibleChildrenResolver",
    "FieldCopyPolicy",
    "InvalidMoveSetError",
    "LoadState",
    "NothingSelectedError",
    "PartialMigrationError",
    "RelationMigrator",
    "SchemaUnavailableError",
    "SplitError",
    "SplitOrchestrator",
    "SplitPhase",
    "SplitRequest",
    "SplitResult",
    "StoreError",
    "TypeMetadataCache",
    "WorkItemNotFoundError",
    "fields_to_copy",
    "is_eligible",
    "is_work_item_eligible",
    "next_iteration_path",
    "partition_relations",
    "removal_indices",
    "start_split",
]
