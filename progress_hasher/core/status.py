"""Events emitted by the hashing pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from progress_hasher.core.errors import HashingError


@dataclass(frozen=True)
class Started:
    """First event of a run, carrying the number of files to hash."""

    total_files: int

    is_terminal = False

    def to_dict(self) -> dict[str, Any]:
        return {"status": "started", "total_files": self.total_files}


@dataclass(frozen=True)
class Progress:
    """One file finished hashing."""

    current_file: Path
    total_hashed_files: int

    is_terminal = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "progress",
            "current_file": str(self.current_file),
            "total_hashed_files": self.total_hashed_files,
        }


@dataclass(frozen=True)
class Result:
    """Successful end of a run."""

    hashes: dict[Path, str] = field(default_factory=dict)

    is_terminal = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "result",
            "hashes": {str(path): digest for path, digest in self.hashes.items()},
        }


@dataclass(frozen=True)
class Error:
    """Failed end of a run."""

    cause: HashingError

    is_terminal = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "error",
            "kind": type(self.cause).__name__,
            "message": str(self.cause),
        }


WorkStatus = Union[Started, Progress, Result, Error]
