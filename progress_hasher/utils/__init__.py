"""Hashing and logging helpers."""

from progress_hasher.utils.hash import FileRecord, compute_file_hash, compute_hash
from progress_hasher.utils.logger import get_logger, log_event

__all__ = [
    "FileRecord",
    "compute_file_hash",
    "compute_hash",
    "get_logger",
    "log_event",
]
