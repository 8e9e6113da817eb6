"""
Split dialog state.

The dialog's state is an immutable snapshot. Every user action is a pure
reducer that takes the current snapshot and returns the next one; the
:class:`DialogStore` applies reducers and exposes the current snapshot
read-only to the presentation layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict

from .children import EligibleChildren, EligibleChildrenResolver
from .orchestrator import SplitRequest

logger = structlog.get_logger()


class LoadState(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"


class ChildSummary(BaseModel):
    """A child as listed in the dialog."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str = ""

    @property
    def label(self) -> str:
        return f"{self.id}: {self.title}"


class DialogState(BaseModel):
    """Snapshot of the split dialog."""

    model_config = ConfigDict(frozen=True)

    load_state: LoadState = LoadState.LOADING
    work_item_id: Optional[int] = None
    work_item_type: Optional[str] = None
    children: Tuple[ChildSummary, ...] = ()
    selected_ids: Tuple[int, ...] = ()
    new_title: str = ""
    open_new_work_item: bool = False
    copy_tags: bool = False

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def selected_children(self) -> List[ChildSummary]:
        """Children still selected, in the order they were listed."""
        return [child for child in self.children if child.id in self.selected_ids]


Reducer = Callable[..., DialogState]


def loaded_without_children(state: DialogState) -> DialogState:
    return DialogState(load_state=LoadState.LOADED)


def loaded_with_children(state: DialogState, resolved: EligibleChildren) -> DialogState:
    """Every eligible child starts selected and the title defaults to the parent's."""
    parent = resolved.parent
    children = tuple(
        ChildSummary(id=child.id, title=child.title) for child in resolved.eligible
    )
    return DialogState(
        load_state=LoadState.LOADED,
        work_item_id=parent.id,
        work_item_type=parent.work_item_type,
        children=children,
        selected_ids=tuple(child.id for child in children),
        new_title=parent.title,
        open_new_work_item=True,
        copy_tags=True,
    )


def deselect(state: DialogState, child_id: int) -> DialogState:
    return state.model_copy(
        update={"selected_ids": tuple(i for i in state.selected_ids if i != child_id)}
    )


def select(state: DialogState, child_id: int) -> DialogState:
    known = {child.id for child in state.children}
    if child_id not in known or child_id in state.selected_ids:
        return state
    # Keep selection in listing order.
    selected = set(state.selected_ids) | {child_id}
    return state.model_copy(
        update={
            "selected_ids": tuple(c.id for c in state.children if c.id in selected)
        }
    )


def edit_title(state: DialogState, title: str) -> DialogState:
    return state.model_copy(update={"new_title": title})


def set_open_new_work_item(state: DialogState, value: bool) -> DialogState:
    return state.model_copy(update={"open_new_work_item": value})


def set_copy_tags(state: DialogState, value: bool) -> DialogState:
    return state.model_copy(update={"copy_tags": value})


class DialogStore:
    """Holds the current dialog snapshot and applies reducers to it."""

    def __init__(self, initial: Optional[DialogState] = None):
        self._state = initial or DialogState()
        self._listeners: List[Callable[[DialogState], None]] = []

    @property
    def state(self) -> DialogState:
        return self._state

    def subscribe(self, listener: Callable[[DialogState], None]) -> None:
        """Call ``listener`` with every new snapshot."""
        self._listeners.append(listener)

    def dispatch(self, reducer: Reducer, *args) -> DialogState:
        new_state = reducer(self._state, *args)
        if new_state is not self._state:
            self._state = new_state
            for listener in self._listeners:
                listener(new_state)
        return self._state

    @property
    def can_split(self) -> bool:
        return self._state.load_state == LoadState.LOADED and bool(
            self._state.selected_ids
        )

    def details(self) -> SplitRequest:
        """The split the user has configured so far."""
        state = self._state
        if state.work_item_id is None:
            raise ValueError("Dialog has no work item loaded")
        return SplitRequest(
            work_item_id=state.work_item_id,
            child_ids=list(state.selected_ids),
            title=state.new_title,
            copy_tags=state.copy_tags,
            open_new_work_item=state.open_new_work_item,
        )


async def start_split(
    store: DialogStore, resolver: EligibleChildrenResolver, work_item_id: int
) -> bool:
    """
    Populate the dialog for ``work_item_id``.

    Returns whether the split action should be enabled, which is the case
    when at least one child is selected by default.
    """
    parent = await resolver.store.get_work_item(work_item_id, expand_relations=True)
    resolved = await resolver.resolve(parent)

    if not resolved.has_children:
        store.dispatch(loaded_without_children)
        return False

    store.dispatch(loaded_with_children, resolved)
    logger.info(
        "dialog_loaded",
        work_item_id=work_item_id,
        selected=len(store.state.selected_ids),
    )
    return store.can_split
