"""Accumulates hashed files and produces the terminal event of a run."""

import threading
from pathlib import Path

from progress_hasher.core.errors import HashingError
from progress_hasher.core.status import Error, Result
from progress_hasher.utils.hash import FileRecord


class ResultAggregator:
    """
    Owner of the path-to-hash mapping for a single run.

    Insertions are serialised by a lock so concurrent producers cannot lose
    entries. The mapping is only handed out inside the terminal Result, and
    only one terminal event can ever be produced.
    """

    def __init__(self):
        self._hashes: dict[Path, str] = {}
        self._lock = threading.Lock()
        self._finalized = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def add(self, record: FileRecord) -> None:
        """
        Store one (path, hash) pair.

        Raises:
            ValueError: If the path was already added
            RuntimeError: If the run was already finalized
        """
        with self._lock:
            if self._finalized:
                raise RuntimeError("Aggregator already finalized")
            if record.path in self._hashes:
                raise ValueError(f"Duplicate path: {record.path}")
            self._hashes[record.path] = record.digest

    def finalize_result(self) -> Result:
        """Close the run successfully and hand over the mapping."""
        with self._lock:
            self._mark_finalized()
            hashes, self._hashes = self._hashes, {}
        return Result(hashes=hashes)

    def finalize_error(self, cause: HashingError) -> Error:
        """Close the run with an error, discarding accumulated pairs."""
        with self._lock:
            self._mark_finalized()
            self._hashes = {}
        return Error(cause=cause)

    def _mark_finalized(self) -> None:
        if self._finalized:
            raise RuntimeError("Aggregator already finalized")
        self._finalized = True
