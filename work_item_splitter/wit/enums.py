"""
Work Item Tracking constants.

Field reference names, relation type names and state categories as they
appear on the Azure DevOps wire. Field names are plain string constants so
they can be dropped straight into patch paths.
"""

from enum import Enum


class CoreFields:
    """System field reference names."""

    TITLE = "System.Title"
    ASSIGNED_TO = "System.AssignedTo"
    ITERATION_PATH = "System.IterationPath"
    AREA_PATH = "System.AreaPath"
    DESCRIPTION = "System.Description"
    STATE = "System.State"
    TAGS = "System.Tags"
    HISTORY = "System.History"
    WORK_ITEM_TYPE = "System.WorkItemType"


class AdditionalFields:
    """Process field reference names copied or ignored during a split."""

    ACCEPTANCE_CRITERIA = "Microsoft.VSTS.Common.AcceptanceCriteria"
    REPRO_STEPS = "Microsoft.VSTS.TCM.ReproSteps"
    SYSTEM_INFO = "Microsoft.VSTS.TCM.SystemInfo"
    ITERATION_ID = "System.IterationId"


class RelationType:
    """Wire names of the relation types the splitter cares about."""

    PARENT = "System.LinkTypes.Hierarchy-Reverse"
    CHILD = "System.LinkTypes.Hierarchy-Forward"
    ATTACHMENT = "AttachedFile"


class RelationKind(str, Enum):
    """Typed relation kind, parsed once from the wire relation type."""

    PARENT_LINK = "parent_link"
    CHILD_LINK = "child_link"
    ATTACHMENT = "attachment"
    OTHER = "other"

    @classmethod
    def from_rel(cls, rel: str) -> "RelationKind":
        return _REL_TO_KIND.get(rel, cls.OTHER)


_REL_TO_KIND = {
    RelationType.PARENT: RelationKind.PARENT_LINK,
    RelationType.CHILD: RelationKind.CHILD_LINK,
    RelationType.ATTACHMENT: RelationKind.ATTACHMENT,
}


class StateCategory(str, Enum):
    """Meta-state categories every process state belongs to."""

    PROPOSED = "Proposed"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    COMPLETED = "Completed"
    REMOVED = "Removed"


class PatchOp(str, Enum):
    """JSON patch operations emitted by the splitter."""

    ADD = "add"
    REMOVE = "remove"
