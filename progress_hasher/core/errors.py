"""Error types raised and reported by the hashing pipeline."""

from pathlib import Path


class HashingError(Exception):
    """Base class for every failure the pipeline can report."""


class EnumerationError(HashingError):
    """Root is missing, not a directory, or a subdirectory cannot be read."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class ReadError(HashingError):
    """A single file could not be opened or read."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


class TooLargeError(ReadError):
    """File exceeds the configured size ceiling."""

    def __init__(self, path: Path, size: int, limit: int):
        super().__init__(f"{path} is {size} bytes, limit is {limit}", path)
        self.size = size
        self.limit = limit


class HashingCancelledError(HashingError):
    """Consumer stopped the run before it finished."""


class HashingTimeoutError(HashingError):
    """Run did not finish before its deadline."""

    def __init__(self, seconds: float):
        super().__init__(f"hashing did not finish within {seconds}s")
        self.seconds = seconds
