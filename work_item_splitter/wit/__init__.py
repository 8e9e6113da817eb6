"""
Work Item Tracking contract.

Models and the store interface the split engine talks to. The concrete REST
client lives in :mod:`work_item_splitter.wit.client`.
"""

# Enums
from .enums import (
    AdditionalFields,
    CoreFields,
    PatchOp,
    RelationKind,
    RelationType,
    StateCategory,
)

# Models
from .models import (
    FieldDescriptor,
    PatchOperation,
    Relation,
    StateDescriptor,
    TeamIteration,
    WorkItem,
    patch_document,
)

# Store
from .store import WorkItemStore

__all__ = [
    # Enums
    "AdditionalFields",
    "CoreFields",
    "PatchOp",
    "RelationKind",
    "RelationType",
    "StateCategory",
    # Models
    "FieldDescriptor",
    "PatchOperation",
    "Relation",
    "StateDescriptor",
    "TeamIteration",
    "WorkItem",
    "patch_document",
    # Store
    "WorkItemStore",
]
