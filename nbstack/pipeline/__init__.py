"""
Install pipeline: the single chokepoint between units and storage.

Units only append to a MutationSet; the orchestrator finalizes it once and
the committer is the only code that writes to a FileStore.
"""

from __future__ import annotations

from .commit import CommitResult, CommitStep, Committer
from .orchestrator import Orchestrator, PipelineReport, PipelineState
from .stack import GENERATION_TASKS, UNIT_ORDER, unit_args
from .store import DiskFileStore, FileStore, MemoryFileStore
from .tasks import RecordingTaskRunner, SubprocessTaskRunner, TaskRunner

__all__ = [
    # Orchestration
    "GENERATION_TASKS",
    "Orchestrator",
    "PipelineReport",
    "PipelineState",
    "UNIT_ORDER",
    "unit_args",
    # Commit
    "CommitResult",
    "CommitStep",
    "Committer",
    # Collaborators
    "DiskFileStore",
    "FileStore",
    "MemoryFileStore",
    "RecordingTaskRunner",
    "SubprocessTaskRunner",
    "TaskRunner",
]
