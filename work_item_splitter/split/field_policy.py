"""
Field-copy policy.

Decides which fields the continuation item is created with and what values
they get. The list is a fixed baseline, extended with every field the work
item type always requires, plus tags on request.

Policy Rules:
- Baseline fields are always copied, whatever the type schema says
- Always-required schema fields are appended in schema order
- System.IterationId and System.State are never copied, even when required
- Reference names are compared case-insensitively and never duplicated
- A field missing on the source is written as an empty string
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import structlog

from ..wit.enums import AdditionalFields, CoreFields
from ..wit.models import FieldDescriptor, PatchOperation, WorkItem
from .cache import TypeMetadataCache
from .comments import WebUrl, split_from_comment

logger = structlog.get_logger()

# Add custom field reference names here to carry them over on every split.
BASELINE_FIELDS: Tuple[str, ...] = (
    CoreFields.TITLE,
    CoreFields.ASSIGNED_TO,
    CoreFields.ITERATION_PATH,
    CoreFields.AREA_PATH,
    CoreFields.DESCRIPTION,
    AdditionalFields.ACCEPTANCE_CRITERIA,
    AdditionalFields.REPRO_STEPS,
    AdditionalFields.SYSTEM_INFO,
)

NEVER_COPIED_FIELDS: Tuple[str, ...] = (AdditionalFields.ITERATION_ID, CoreFields.STATE)


def _same_field(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def _contains_field(fields: Sequence[str], reference_name: str) -> bool:
    return any(_same_field(name, reference_name) for name in fields)


def fields_to_copy(
    schema: Optional[Sequence[FieldDescriptor]], copy_tags: bool
) -> List[str]:
    """
    Ordered reference names to populate on the new work item.

    ``schema`` is ``None`` when the type schema could not be read, in which
    case only the baseline (and tags) are copied.
    """
    fields = list(BASELINE_FIELDS)

    for descriptor in schema or []:
        if not descriptor.always_required:
            continue
        if _contains_field(NEVER_COPIED_FIELDS, descriptor.reference_name):
            continue
        if not _contains_field(fields, descriptor.reference_name):
            fields.append(descriptor.reference_name)

    if copy_tags and not _contains_field(fields, CoreFields.TAGS):
        fields.append(CoreFields.TAGS)

    return fields


def build_field_patch(
    source: WorkItem,
    fields: Sequence[str],
    web_url: WebUrl,
    reference_url: str,
    title: Optional[str] = None,
    iteration_path: Optional[str] = None,
) -> List[PatchOperation]:
    """Patch document that creates the continuation of ``source``."""
    patch = []
    for field in fields:
        if _same_field(field, CoreFields.TITLE) and title:
            value = title
        elif _same_field(field, CoreFields.ITERATION_PATH) and iteration_path:
            value = iteration_path
        else:
            value = source.get_field(field)
        patch.append(PatchOperation.add_field(field, value))

    comment = split_from_comment(source.id, source.title, web_url, reference_url)
    patch.append(PatchOperation.add_field(CoreFields.HISTORY, comment))
    return patch


class FieldCopyPolicy:
    """Builds the creation patch for a continuation work item."""

    def __init__(self, cache: TypeMetadataCache, web_url: WebUrl, reference_url: str):
        self.cache = cache
        self.web_url = web_url
        self.reference_url = reference_url

    async def build_patch(
        self,
        source: WorkItem,
        copy_tags: bool,
        title: Optional[str] = None,
        iteration_path: Optional[str] = None,
    ) -> List[PatchOperation]:
        work_item_type = source.work_item_type or ""
        schema = await self.cache.field_descriptors(work_item_type)
        if schema is None:
            logger.warning(
                "copying_baseline_fields_only",
                source_id=source.id,
                work_item_type=work_item_type,
            )

        fields = fields_to_copy(schema, copy_tags)
        logger.debug("fields_to_copy", source_id=source.id, fields=fields)
        return build_field_patch(
            source,
            fields,
            self.web_url,
            self.reference_url,
            title=title,
            iteration_path=iteration_path,
        )
