"""Core pipeline components."""

from progress_hasher.core.aggregator import ResultAggregator
from progress_hasher.core.enumerator import PathEnumerator, SymlinkPolicy, enumerate_files
from progress_hasher.core.errors import (
    EnumerationError,
    HashingCancelledError,
    HashingError,
    HashingTimeoutError,
    ReadError,
    TooLargeError,
)
from progress_hasher.core.pipeline import (
    PipelineState,
    ProgressPipeline,
    hash_directory,
    progressed_hashing,
    with_deadline,
)
from progress_hasher.core.status import Error, Progress, Result, Started, WorkStatus

__all__ = [
    "EnumerationError",
    "Error",
    "HashingCancelledError",
    "HashingError",
    "HashingTimeoutError",
    "PathEnumerator",
    "PipelineState",
    "Progress",
    "ProgressPipeline",
    "ReadError",
    "Result",
    "ResultAggregator",
    "Started",
    "SymlinkPolicy",
    "TooLargeError",
    "WorkStatus",
    "enumerate_files",
    "hash_directory",
    "progressed_hashing",
    "with_deadline",
]
