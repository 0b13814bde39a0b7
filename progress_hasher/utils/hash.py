"""Content hashing utilities for files and in-memory data."""

import hashlib
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from progress_hasher.core.errors import HashingCancelledError, ReadError, TooLargeError

DEFAULT_ALGORITHM = "sha256"
DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class FileRecord:
    """A hashed file as produced by one worker."""

    path: Path
    size: int
    digest: str


def validate_algorithm(name: str) -> str:
    """
    Normalise and check a hashlib algorithm name.

    Args:
        name: Algorithm name, e.g. "sha256" or "BLAKE2b"

    Returns:
        Lower-cased algorithm name

    Raises:
        ValueError: If hashlib does not provide the algorithm, or it needs
            an explicit output length (the shake family)
    """
    normalised = name.lower()
    if normalised not in {a.lower() for a in hashlib.algorithms_available}:
        raise ValueError(f"Unsupported hash algorithm: {name}")
    if normalised.startswith("shake_"):
        raise ValueError(f"Variable-length algorithm not supported: {name}")
    return normalised


def compute_hash(content: str | bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Compute the digest of in-memory content.

    Args:
        content: String or bytes content to hash
        algorithm: hashlib algorithm name

    Returns:
        Hexadecimal hash string (64 characters for sha256)

    Examples:
        >>> compute_hash("hello")
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'

        >>> compute_hash(b"hello")
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    return hashlib.new(algorithm, content).hexdigest()


def compute_file_hash(
    filepath: Path,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_file_size: int | None = None,
    cancel_event: threading.Event | None = None,
) -> FileRecord:
    """
    Stream a file through a digest.

    Blocking; the pipeline runs it in a worker thread. The file handle is
    closed before this returns or raises.

    Args:
        filepath: Path to file
        algorithm: hashlib algorithm name
        chunk_size: Bytes read per block
        max_file_size: Optional size ceiling in bytes
        cancel_event: Checked between blocks; when set, reading stops

    Returns:
        FileRecord with the byte count and hex digest

    Raises:
        ReadError: If the file vanished, is unreadable, or a read fails
        TooLargeError: If the file is larger than max_file_size
        HashingCancelledError: If cancel_event was set mid-read
    """
    filepath = Path(filepath)
    digest = hashlib.new(algorithm)
    size = 0

    try:
        with open(filepath, "rb") as f:
            if max_file_size is not None:
                declared = os.fstat(f.fileno()).st_size
                if declared > max_file_size:
                    raise TooLargeError(filepath, declared, max_file_size)

            for chunk in iter(lambda: f.read(chunk_size), b""):
                if cancel_event is not None and cancel_event.is_set():
                    raise HashingCancelledError(f"Cancelled while reading {filepath}")

                size += len(chunk)
                # File may grow between fstat and the last read
                if max_file_size is not None and size > max_file_size:
                    raise TooLargeError(filepath, size, max_file_size)

                digest.update(chunk)
    except OSError as e:
        raise ReadError(f"Failed to read {filepath}: {e}", filepath) from e

    return FileRecord(path=filepath, size=size, digest=digest.hexdigest())
