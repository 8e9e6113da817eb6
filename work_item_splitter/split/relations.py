"""
Relation migrator.

Moves the selected child links from the source work item to its
continuation, and gives the continuation the source's parent link and
attachments. The source is patched first and awaited before the target is
patched, so a failure in between leaves moved children linked to neither
item rather than to both.

Only the child links of moved children are removed from the source. Any
other link that points at a moved child, such as a Related link, stays on
the source and is not copied to the continuation.
"""

from __future__ import annotations

from typing import AbstractSet, List, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..wit.enums import CoreFields
from ..wit.models import PatchOperation, Relation, WorkItem
from ..wit.store import WorkItemStore
from .comments import WebUrl, split_to_comment
from .errors import PartialMigrationError, StoreError

logger = structlog.get_logger()

# Attributes kept when an attachment is re-linked to the continuation item
ATTACHMENT_ATTRIBUTES = (
    "name",
    "resourceCreatedDate",
    "resourceModifiedDate",
    "resourceSize",
)


def reduce_attachment(relation: Relation) -> Relation:
    attributes = {name: relation.attributes.get(name) for name in ATTACHMENT_ATTRIBUTES}
    return relation.model_copy(update={"attributes": attributes})


class RelationPartition(BaseModel):
    """Source relations grouped by what happens to them during a split."""

    model_config = ConfigDict(frozen=True)

    parent_links: List[Relation] = Field(default_factory=list)
    moved_child_links: List[Relation] = Field(default_factory=list)
    attachments: List[Relation] = Field(default_factory=list)

    @property
    def moved_ids(self) -> List[int]:
        return [relation.target_id for relation in self.moved_child_links]

    def relations_to_add(self) -> List[Relation]:
        """Parent links, then moved child links, then attachments, without repeats."""
        seen = set()
        relations = []
        for relation in self.parent_links + self.moved_child_links + self.attachments:
            if relation.url in seen:
                continue
            seen.add(relation.url)
            relations.append(relation)
        return relations


def partition_relations(source: WorkItem, move_ids: AbstractSet[int]) -> RelationPartition:
    return RelationPartition(
        parent_links=[r for r in source.relations if r.is_parent_link],
        moved_child_links=[
            r for r in source.relations if r.is_child_link and r.target_id in move_ids
        ],
        attachments=[reduce_attachment(r) for r in source.relations if r.is_attachment],
    )


def removal_indices(relations: Sequence[Relation], to_remove: Sequence[Relation]) -> List[int]:
    """
    Indices of ``to_remove`` within ``relations``, highest first.

    Removing in descending order keeps every lower index valid while the
    patch is applied.
    """
    indices = [
        index for index, relation in enumerate(relations) if relation in to_remove
    ]
    return sorted(indices, reverse=True)


def build_removal_patch(
    source: WorkItem,
    moved_child_links: Sequence[Relation],
    target_id: int,
    web_url: WebUrl,
    reference_url: str,
) -> List[PatchOperation]:
    patch = [
        PatchOperation.remove_relation(index)
        for index in removal_indices(source.relations, moved_child_links)
    ]
    moved_ids = [relation.target_id for relation in moved_child_links]
    comment = split_to_comment(target_id, moved_ids, web_url, reference_url)
    patch.append(PatchOperation.add_field(CoreFields.HISTORY, comment))
    return patch


def build_addition_patch(relations: Sequence[Relation]) -> List[PatchOperation]:
    return [PatchOperation.add_relation(relation) for relation in relations]


class RelationMigrator:
    """Moves relations from a source work item to its continuation."""

    def __init__(self, store: WorkItemStore, reference_url: str):
        self.store = store
        self.reference_url = reference_url

    async def migrate(
        self, source: WorkItem, target: WorkItem, move_ids: AbstractSet[int]
    ) -> WorkItem:
        """
        Migrate relations and return the latest copy of ``target``.

        An empty ``move_ids`` performs no call at all.

        Raises:
            PartialMigrationError: if either patch fails. ``target`` exists
                by then and is attached to the error.
        """
        migration_logger = logger.bind(source_id=source.id, target_id=target.id)
        if not move_ids:
            migration_logger.info("relation_migration_skipped")
            return target

        partition = partition_relations(source, move_ids)

        removal = build_removal_patch(
            source,
            partition.moved_child_links,
            target.id,
            self.store.work_item_web_url,
            self.reference_url,
        )
        try:
            await self.store.update_work_item(source.id, removal)
        except StoreError as e:
            migration_logger.error("relations_remove_failed", error=str(e))
            raise PartialMigrationError(target, "remove", e) from e
        migration_logger.info("relations_removed", moved_ids=partition.moved_ids)

        relations = partition.relations_to_add()
        if not relations:
            return target

        try:
            updated = await self.store.update_work_item(
                target.id, build_addition_patch(relations)
            )
        except StoreError as e:
            migration_logger.error(
                "relations_add_failed", moved_ids=partition.moved_ids, error=str(e)
            )
            raise PartialMigrationError(target, "add", e) from e
        migration_logger.info("relations_added", count=len(relations))
        return updated
