"""Concurrent directory hashing exposed as a stream of progress events."""

import asyncio
import logging
import threading
import time
from collections import deque
from collections.abc import AsyncIterator
from contextlib import aclosing
from enum import Enum
from pathlib import Path

from progress_hasher.config.settings import Settings, get_settings
from progress_hasher.core.aggregator import ResultAggregator
from progress_hasher.core.enumerator import SymlinkPolicy, enumerate_files
from progress_hasher.core.errors import (
    EnumerationError,
    HashingError,
    HashingTimeoutError,
    ReadError,
)
from progress_hasher.core.status import Error, Progress, Result, Started, WorkStatus
from progress_hasher.utils.hash import FileRecord, compute_file_hash
from progress_hasher.utils.logger import log_event

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Lifecycle of a single pipeline run."""

    IDLE = "idle"
    ENUMERATING = "enumerating"
    STARTED = "started"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class ProgressPipeline:
    """
    Hashes every file under a root and reports progress as it goes.

    Workflow:
    1. Enumerate the tree (Error and stop if that fails)
    2. Emit Started with the file count
    3. Hash files in worker threads, at most max_concurrency at a time
    4. Emit one Progress per hashed file, in completion order
    5. Emit Result, or Error on the first failing file

    Events are produced lazily: new files are only admitted while the
    consumer keeps pulling. Closing the stream early stops admission, asks
    running workers to stop after their current block, and waits for them
    so no file handle outlives the stream.

    A pipeline instance runs once.
    """

    def __init__(
        self,
        root: Path | str,
        settings: Settings | None = None,
        *,
        max_concurrency: int | None = None,
        hash_algorithm: str | None = None,
        symlink_policy: SymlinkPolicy | str | None = None,
        max_file_size: int | None = None,
    ):
        """
        Initialize pipeline.

        Args:
            root: Directory to hash
            settings: Base settings (defaults to cached environment settings)
            max_concurrency: Override for the number of files read at once
            hash_algorithm: Override for the hashlib algorithm
            symlink_policy: Override for symlink handling during the walk
            max_file_size: Override for the per-file size ceiling
        """
        base = settings or get_settings()
        overrides = {
            "max_concurrency": max_concurrency,
            "hash_algorithm": hash_algorithm,
            "symlink_policy": symlink_policy,
            "max_file_size": max_file_size,
        }
        overrides = {key: value for key, value in overrides.items() if value is not None}

        # Re-validate so overrides get the same checks as environment values
        self.settings = Settings(**{**base.model_dump(), **overrides}) if overrides else base
        self.root = Path(root)
        self.state = PipelineState.IDLE
        self._claimed = False

    def run(self) -> AsyncIterator[WorkStatus]:
        """
        Start the run and return its event stream.

        Raises:
            RuntimeError: If this pipeline was already run
        """
        if self._claimed:
            raise RuntimeError("ProgressPipeline instances can only be run once")
        self._claimed = True
        return self._events()

    async def _events(self) -> AsyncIterator[WorkStatus]:
        aggregator = ResultAggregator()
        cancel_event = threading.Event()
        in_flight: set[asyncio.Task] = set()
        enumeration: asyncio.Task | None = None
        start = time.monotonic()

        try:
            self.state = PipelineState.ENUMERATING
            enumeration = asyncio.create_task(
                asyncio.to_thread(
                    self._enumerate,
                    self.root,
                    self.settings.symlink_policy,
                    cancel_event,
                )
            )
            try:
                # Shielded so cancellation reaches the walk through cancel_event
                files = await asyncio.shield(enumeration)
            except EnumerationError as e:
                log_event(logger, "hashing_failed", str(e), level=logging.ERROR, root=str(self.root))
                self.state = PipelineState.TERMINATED
                yield aggregator.finalize_error(e)
                return

            total = len(files)
            log_event(
                logger,
                "hashing_started",
                f"Hashing {total} files under {self.root}",
                root=str(self.root),
                total_files=total,
                max_concurrency=self.settings.max_concurrency,
                algorithm=self.settings.hash_algorithm,
            )
            self.state = PipelineState.STARTED
            yield Started(total_files=total)

            self.state = PipelineState.RUNNING
            queue = deque(files)
            hashed = 0
            failure: HashingError | None = None

            self._admit(queue, in_flight, cancel_event)
            while in_flight and failure is None:
                done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)

                for task in done:
                    try:
                        record = task.result()
                    except HashingError as e:
                        failure = e
                        break
                    in_flight.discard(task)

                    aggregator.add(record)
                    hashed += 1
                    yield Progress(current_file=record.path, total_hashed_files=hashed)

                if failure is None:
                    self._admit(queue, in_flight, cancel_event)

            self.state = PipelineState.DRAINING
            if failure is not None:
                queue.clear()
                await self._drain(in_flight, cancel_event)
                log_event(
                    logger,
                    "hashing_failed",
                    f"Aborted after {hashed} of {total} files: {failure}",
                    level=logging.ERROR,
                    root=str(self.root),
                    total_hashed_files=hashed,
                    error=type(failure).__name__,
                )
                self.state = PipelineState.TERMINATED
                yield aggregator.finalize_error(failure)
                return

            log_event(
                logger,
                "hashing_finished",
                f"Hashed {hashed} files in {time.monotonic() - start:.2f}s",
                root=str(self.root),
                total_hashed_files=hashed,
            )
            self.state = PipelineState.TERMINATED
            yield aggregator.finalize_result()

        finally:
            cancel_event.set()
            if enumeration is not None and not enumeration.done():
                log_event(
                    logger,
                    "hashing_cancelled",
                    "Stream closed during enumeration",
                    level=logging.WARNING,
                    root=str(self.root),
                )
                await self._drain({enumeration}, cancel_event)
            if in_flight:
                log_event(
                    logger,
                    "hashing_cancelled",
                    f"Stream closed with {len(in_flight)} files in flight",
                    level=logging.WARNING,
                    root=str(self.root),
                )
                await self._drain(in_flight, cancel_event)
            self.state = PipelineState.TERMINATED

    def _admit(
        self,
        queue: deque[Path],
        in_flight: set[asyncio.Task],
        cancel_event: threading.Event,
    ) -> None:
        while queue and len(in_flight) < self.settings.max_concurrency:
            path = queue.popleft()
            task = asyncio.create_task(
                asyncio.to_thread(
                    self._hash_file,
                    path,
                    algorithm=self.settings.hash_algorithm,
                    chunk_size=self.settings.chunk_size,
                    max_file_size=self.settings.max_file_size,
                    cancel_event=cancel_event,
                )
            )
            in_flight.add(task)

    @staticmethod
    def _enumerate(
        root: Path,
        symlink_policy: SymlinkPolicy,
        cancel_event: threading.Event,
    ) -> list[Path]:
        """Walk root in a worker thread; any failure becomes EnumerationError."""
        try:
            return enumerate_files(root, symlink_policy, cancel_event=cancel_event)
        except HashingError:
            raise
        except Exception as e:
            raise EnumerationError(f"Unexpected failure walking {root}: {e}", Path(root)) from e

    @staticmethod
    def _hash_file(path: Path, **kwargs) -> FileRecord:
        """Hash one file in a worker thread; any failure becomes a HashingError."""
        try:
            return compute_file_hash(path, **kwargs)
        except HashingError:
            raise
        except Exception as e:
            raise ReadError(f"Unexpected failure hashing {path}: {e}", path) from e

    @staticmethod
    async def _drain(in_flight: set[asyncio.Task], cancel_event: threading.Event) -> None:
        """Stop workers after their current block and wait for them to exit."""
        cancel_event.set()
        tasks = list(in_flight)
        in_flight.clear()
        if not tasks:
            return

        # Worker threads cannot be interrupted, so wait rather than cancel
        await asyncio.wait(tasks)
        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                logger.debug(f"Discarded worker outcome: {task.exception()}")


def progressed_hashing(
    root: Path | str,
    *,
    settings: Settings | None = None,
    max_concurrency: int | None = None,
    hash_algorithm: str | None = None,
    symlink_policy: SymlinkPolicy | str | None = None,
    max_file_size: int | None = None,
) -> AsyncIterator[WorkStatus]:
    """
    Hash every regular file under root, streaming WorkStatus events.

    The stream is Started, then one Progress per hashed file, then exactly
    one Result or Error. If the root cannot be enumerated the stream is a
    single Error. Close it early with aclose() (or contextlib.aclosing) to
    cancel the run.

    Args:
        root: Directory to hash
        settings: Base settings (defaults to environment settings)
        max_concurrency: Maximum number of files read at once
        hash_algorithm: hashlib algorithm name
        symlink_policy: "skip" (default) or "follow"
        max_file_size: Optional per-file ceiling in bytes

    Returns:
        Async iterator of WorkStatus events
    """
    pipeline = ProgressPipeline(
        root,
        settings,
        max_concurrency=max_concurrency,
        hash_algorithm=hash_algorithm,
        symlink_policy=symlink_policy,
        max_file_size=max_file_size,
    )
    return pipeline.run()


async def with_deadline(
    events: AsyncIterator[WorkStatus],
    seconds: float,
) -> AsyncIterator[WorkStatus]:
    """
    Pass events through until a deadline expires.

    On expiry the wrapped stream is closed, which cancels its run, and a
    single Error(HashingTimeoutError) ends this stream.

    Args:
        events: Stream returned by progressed_hashing
        seconds: Time allowed for the whole run
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + seconds

    async with aclosing(events):
        while True:
            remaining = deadline - loop.time()
            try:
                if remaining <= 0:
                    raise asyncio.TimeoutError
                event = await asyncio.wait_for(anext(events), remaining)
            except StopAsyncIteration:
                return
            except asyncio.TimeoutError:
                logger.warning(f"Hashing exceeded deadline of {seconds}s, cancelling")
                await events.aclose()
                yield Error(cause=HashingTimeoutError(seconds))
                return

            yield event
            if event.is_terminal:
                return


async def hash_directory(root: Path | str, **kwargs) -> dict[Path, str]:
    """
    Run a pipeline to completion and return its mapping.

    Args:
        root: Directory to hash
        **kwargs: Passed to progressed_hashing

    Returns:
        Mapping of file path to hex digest

    Raises:
        HashingError: The cause carried by the terminal Error event
    """
    async with aclosing(progressed_hashing(root, **kwargs)) as events:
        async for event in events:
            if isinstance(event, Result):
                return event.hashes
            if isinstance(event, Error):
                raise event.cause

    raise RuntimeError("Event stream ended without a terminal event")
