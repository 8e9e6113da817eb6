"""
Work Item Tracking models.

Transient, in-memory copies of store objects. Work items and relations are
fetched fresh for each operation and discarded afterwards; nothing here is
cached across operations.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import CoreFields, PatchOp, RelationKind


def parse_target_id(url: str) -> Optional[int]:
    """Extract the work item id from the last segment of a relation locator.

    Attachment locators end in a GUID and yield ``None``.
    """
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


class Relation(BaseModel):
    """A typed link from a work item to another work item or an attachment.

    ``kind`` and ``target_id`` are derived from ``rel`` and ``url`` when the
    relation is ingested, so callers never parse locator strings again.
    """

    model_config = ConfigDict(extra="ignore")

    rel: str = Field(..., description="Wire relation type name")
    url: str = Field(..., description="Locator of the linked resource")
    attributes: Dict[str, Any] = Field(
        default_factory=dict, description="Relation attributes"
    )
    kind: RelationKind = Field(RelationKind.OTHER, description="Parsed relation kind")
    target_id: Optional[int] = Field(
        None, description="Linked work item id, None for attachments"
    )

    @model_validator(mode="before")
    @classmethod
    def _parse_locator(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            rel = data.get("rel", "")
            kind = RelationKind.from_rel(rel)
            data.setdefault("kind", kind)
            if "target_id" not in data and kind != RelationKind.ATTACHMENT:
                data["target_id"] = parse_target_id(data.get("url", ""))
            if data.get("attributes") is None:
                data["attributes"] = {}
        return data

    @property
    def is_parent_link(self) -> bool:
        return self.kind == RelationKind.PARENT_LINK

    @property
    def is_child_link(self) -> bool:
        return self.kind == RelationKind.CHILD_LINK

    @property
    def is_attachment(self) -> bool:
        return self.kind == RelationKind.ATTACHMENT

    def to_wire(self) -> Dict[str, Any]:
        """Serialize as the store expects in a relation patch value."""
        return {"rel": self.rel, "url": self.url, "attributes": dict(self.attributes)}


class WorkItem(BaseModel):
    """A work item with its fields and ordered relations."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Work item id")
    rev: Optional[int] = Field(None, description="Revision number")
    fields: Dict[str, Any] = Field(default_factory=dict, description="Field values")
    relations: List[Relation] = Field(
        default_factory=list, description="Ordered relations"
    )
    url: Optional[str] = Field(None, description="REST locator of the work item")

    @model_validator(mode="before")
    @classmethod
    def _null_relations(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("relations") is None:
            data = dict(data)
            data["relations"] = []
        return data

    def get_field(self, reference_name: str, default: Any = None) -> Any:
        """Look up a field value, ignoring reference name case."""
        if reference_name in self.fields:
            return self.fields[reference_name]
        wanted = reference_name.lower()
        for name, value in self.fields.items():
            if name.lower() == wanted:
                return value
        return default

    @property
    def work_item_type(self) -> Optional[str]:
        return self.get_field(CoreFields.WORK_ITEM_TYPE)

    @property
    def title(self) -> str:
        return self.get_field(CoreFields.TITLE, "") or ""

    @property
    def state(self) -> Optional[str]:
        return self.get_field(CoreFields.STATE)

    @property
    def iteration_path(self) -> Optional[str]:
        return self.get_field(CoreFields.ITERATION_PATH)

    def child_ids(self) -> List[int]:
        """Ids of child-link relations, in relation order."""
        return [
            relation.target_id
            for relation in self.relations
            if relation.is_child_link and relation.target_id is not None
        ]


class FieldDescriptor(BaseModel):
    """One field of a work item type schema."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    reference_name: str = Field(..., alias="referenceName")
    always_required: bool = Field(False, alias="alwaysRequired")


class StateDescriptor(BaseModel):
    """One state of a work item type and the category it belongs to."""

    model_config = ConfigDict(extra="ignore")

    name: str
    category: Optional[str] = None


class TeamIteration(BaseModel):
    """An entry of a team's iteration schedule."""

    model_config = ConfigDict(extra="ignore")

    path: str
    id: Optional[str] = None
    name: Optional[str] = None


class PatchOperation(BaseModel):
    """A single JSON patch operation against one work item."""

    model_config = ConfigDict(frozen=True)

    op: PatchOp
    path: str
    value: Any = None

    @classmethod
    def add_field(cls, reference_name: str, value: Any) -> "PatchOperation":
        # The store keeps a field's default unless it is set explicitly.
        return cls(
            op=PatchOp.ADD,
            path=f"/fields/{reference_name}",
            value="" if value is None else value,
        )

    @classmethod
    def add_relation(cls, relation: Relation) -> "PatchOperation":
        return cls(op=PatchOp.ADD, path="/relations/-", value=relation.to_wire())

    @classmethod
    def remove_relation(cls, index: int) -> "PatchOperation":
        return cls(op=PatchOp.REMOVE, path=f"/relations/{index}")

    def to_wire(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"op": self.op.value, "path": self.path}
        if self.op == PatchOp.ADD:
            payload["value"] = self.value
        return payload


def patch_document(operations: List[PatchOperation]) -> List[Dict[str, Any]]:
    """Serialize an ordered patch document for the wire."""
    return [operation.to_wire() for operation in operations]
