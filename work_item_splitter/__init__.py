"""
Work Item Splitter

Splits a work item: its unfinished children move to a new continuation item
in the team's next iteration.
"""

import importlib.metadata

__version__ = importlib.metadata.version("work-item-splitter")

from .split import (
    SplitError,
    SplitOrchestrator,
    SplitRequest,
    SplitResult,
)
from .wit import WorkItem, WorkItemStore

__all__ = [
    "SplitError",
    "SplitOrchestrator",
    "SplitRequest",
    "SplitResult",
    "WorkItem",
    "WorkItemStore",
]
