"""Directory content hashing with streamed progress events."""

from progress_hasher.core import (
    Error,
    Progress,
    ProgressPipeline,
    Result,
    Started,
    WorkStatus,
    hash_directory,
    progressed_hashing,
    with_deadline,
)

__version__ = "0.1.0"

__all__ = [
    "Error",
    "Progress",
    "ProgressPipeline",
    "Result",
    "Started",
    "WorkStatus",
    "hash_directory",
    "progressed_hashing",
    "with_deadline",
]
