"""Test configuration and fixtures."""

import itertools
from typing import Dict, List, Optional, Sequence

import pytest

from work_item_splitter.split.errors import (
    SchemaUnavailableError,
    StoreError,
    WorkItemNotFoundError,
)
from work_item_splitter.wit.enums import CoreFields, PatchOp, RelationType
from work_item_splitter.wit.models import (
    FieldDescriptor,
    PatchOperation,
    Relation,
    StateDescriptor,
    TeamIteration,
    WorkItem,
)
from work_item_splitter.wit.store import WorkItemStore

ORG = "https://dev.azure.com/contoso"
PROJECT = "Fabrikam"
REFERENCE_URL = "http://aka.ms/split"


def api_url(work_item_id: int) -> str:
    return f"{ORG}/_apis/wit/workItems/{work_item_id}"


def parent_link(work_item_id: int) -> dict:
    return {"rel": RelationType.PARENT, "url": api_url(work_item_id), "attributes": {}}


def child_link(work_item_id: int) -> dict:
    return {"rel": RelationType.CHILD, "url": api_url(work_item_id), "attributes": {}}


def attachment(guid: str = "3f0c1c1e-8f6b-4b1e-9d1a-2a4b5c6d7e8f", name: str = "wireframes.png") -> dict:
    return {
        "rel": RelationType.ATTACHMENT,
        "url": f"{ORG}/_apis/wit/attachments/{guid}",
        "attributes": {
            "authorizedDate": "2024-01-02T10:00:00Z",
            "id": 1234,
            "name": name,
            "resourceCreatedDate": "2024-01-01T09:00:00Z",
            "resourceModifiedDate": "2024-01-01T09:30:00Z",
            "resourceSize": 2048,
            "revisedDate": "9999-01-01T00:00:00Z",
        },
    }


def related_link(work_item_id: int) -> dict:
    return {"rel": "System.LinkTypes.Related", "url": api_url(work_item_id), "attributes": {}}


def make_work_item(
    work_item_id: int,
    work_item_type: str = "Task",
    state: str = "New",
    title: Optional[str] = None,
    iteration_path: str = "Fabrikam\\Sprint 1",
    relations: Optional[List[dict]] = None,
    **extra_fields,
) -> WorkItem:
    fields = {
        CoreFields.WORK_ITEM_TYPE: work_item_type,
        CoreFields.STATE: state,
        CoreFields.TITLE: title or f"{work_item_type} {work_item_id}",
        CoreFields.ITERATION_PATH: iteration_path,
    }
    fields.update(extra_fields)
    return WorkItem.model_validate(
        {"id": work_item_id, "fields": fields, "relations": relations or []}
    )


class InMemoryWorkItemStore(WorkItemStore):
    """Work item store fake that applies patches and records every call."""

    def __init__(self):
        self.items: Dict[int, WorkItem] = {}
        self.type_fields: Dict[str, List[FieldDescriptor]] = {}
        self.type_states: Dict[str, List[StateDescriptor]] = {}
        self.iterations: List[TeamIteration] = []
        self.calls: List[tuple] = []
        self.fail_updates: Dict[int, Exception] = {}
        self.fail_type_metadata = False
        self.missing_types: set = set()
        self._ids = itertools.count(500)

    # setup helpers

    def add(self, work_item: WorkItem) -> WorkItem:
        self.items[work_item.id] = work_item
        return work_item

    def set_schedule(self, *paths: str) -> None:
        self.iterations = [TeamIteration(path=path) for path in paths]

    @property
    def mutations(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in ("update", "create")]

    # WorkItemStore

    async def get_work_item(self, work_item_id, expand_relations=True):
        self.calls.append(("get", work_item_id))
        if work_item_id not in self.items:
            raise WorkItemNotFoundError(f"work item {work_item_id} was not found", 404)
        item = self.items[work_item_id].model_copy(deep=True)
        if not expand_relations:
            item = item.model_copy(update={"relations": []})
        return item

    async def get_work_items(self, work_item_ids: Sequence[int]):
        self.calls.append(("get_many", list(work_item_ids)))
        missing = [i for i in work_item_ids if i not in self.items]
        if missing:
            raise WorkItemNotFoundError(f"work items {missing} were not found", 404)
        return [self.items[i].model_copy(deep=True) for i in work_item_ids]

    async def update_work_item(self, work_item_id, patch):
        self.calls.append(("update", work_item_id, list(patch)))
        if work_item_id in self.fail_updates:
            raise self.fail_updates[work_item_id]
        if work_item_id not in self.items:
            raise WorkItemNotFoundError(f"work item {work_item_id} was not found", 404)
        item = self.items[work_item_id]
        self.items[work_item_id] = self._apply(item, patch)
        return self.items[work_item_id].model_copy(deep=True)

    async def create_work_item(self, work_item_type, patch):
        self.calls.append(("create", work_item_type, list(patch)))
        item = WorkItem(
            id=next(self._ids), fields={CoreFields.WORK_ITEM_TYPE: work_item_type}
        )
        self.items[item.id] = self._apply(item, patch)
        return self.items[item.id].model_copy(deep=True)

    async def get_work_item_type_fields(self, work_item_type):
        self.calls.append(("type_fields", work_item_type))
        self._check_type(work_item_type)
        return list(self.type_fields.get(work_item_type, []))

    async def get_work_item_type_states(self, work_item_type):
        self.calls.append(("type_states", work_item_type))
        self._check_type(work_item_type)
        return list(self.type_states.get(work_item_type, []))

    def _check_type(self, work_item_type):
        if work_item_type in self.missing_types:
            raise WorkItemNotFoundError(f"work item type {work_item_type} was not found", 404)
        if self.fail_type_metadata:
            raise SchemaUnavailableError("type metadata unavailable", 503)

    async def get_team_iterations(self):
        self.calls.append(("iterations",))
        return list(self.iterations)

    def work_item_web_url(self, work_item_id):
        return f"{ORG}/{PROJECT}/_workitems/edit/{work_item_id}"

    @staticmethod
    def _apply(item: WorkItem, patch: Sequence[PatchOperation]) -> WorkItem:
        fields = dict(item.fields)
        relations = list(item.relations)
        for operation in patch:
            if operation.path.startswith("/fields/"):
                fields[operation.path[len("/fields/"):]] = operation.value
            elif operation.path == "/relations/-" and operation.op == PatchOp.ADD:
                relations.append(Relation.model_validate(operation.value))
            elif operation.path.startswith("/relations/") and operation.op == PatchOp.REMOVE:
                index = int(operation.path.rsplit("/", 1)[-1])
                if index >= len(relations):
                    raise StoreError(f"relation index {index} out of range", 400)
                del relations[index]
            else:
                raise StoreError(f"unsupported patch operation {operation}", 400)
        return item.model_copy(update={"fields": fields, "relations": relations})


AGILE_STATES = [
    StateDescriptor(name="New", category="Proposed"),
    StateDescriptor(name="Active", category="InProgress"),
    StateDescriptor(name="Resolved", category="Resolved"),
    StateDescriptor(name="Closed", category="Completed"),
    StateDescriptor(name="Removed", category="Removed"),
]


@pytest.fixture
def store() -> InMemoryWorkItemStore:
    """An empty in-memory store with Agile process states for Task and Feature."""
    s = InMemoryWorkItemStore()
    s.type_states["Task"] = list(AGILE_STATES)
    s.type_states["Feature"] = list(AGILE_STATES)
    return s


@pytest.fixture
def feature_store(store) -> InMemoryWorkItemStore:
    """Feature #100 in Sprint 1 with children #101 New, #102 Closed, #103 Active."""
    store.add(
        make_work_item(
            100,
            work_item_type="Feature",
            title="Checkout redesign",
            iteration_path="Sprint 1",
            relations=[parent_link(50), child_link(101), child_link(102), child_link(103), attachment()],
            **{CoreFields.AREA_PATH: "Fabrikam\\Web", CoreFields.TAGS: "web; q3"},
        )
    )
    store.add(make_work_item(50, work_item_type="Epic", iteration_path="Sprint 1"))
    store.add(make_work_item(101, state="New", iteration_path="Sprint 1"))
    store.add(make_work_item(102, state="Closed", iteration_path="Sprint 1"))
    store.add(make_work_item(103, state="Active", iteration_path="Sprint 1"))
    store.type_fields["Feature"] = [
        FieldDescriptor(reference_name=CoreFields.TITLE, always_required=True),
        FieldDescriptor(reference_name=CoreFields.STATE, always_required=True),
        FieldDescriptor(reference_name="Microsoft.VSTS.Common.ValueArea", always_required=True),
        FieldDescriptor(reference_name="Microsoft.VSTS.Common.Priority", always_required=False),
    ]
    store.set_schedule("Sprint 1", "Sprint 2")
    return store
