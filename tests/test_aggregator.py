"""Tests for result aggregation."""

import threading
from pathlib import Path

import pytest

from progress_hasher.core.aggregator import ResultAggregator
from progress_hasher.core.errors import ReadError
from progress_hasher.core.status import Error, Result
from progress_hasher.utils.hash import FileRecord


def record(name: str, digest: str = "00") -> FileRecord:
    return FileRecord(path=Path("/data") / name, size=1, digest=digest)


def test_result_contains_added_pairs():
    aggregator = ResultAggregator()
    aggregator.add(record("a", "aa"))
    aggregator.add(record("b", "bb"))

    result = aggregator.finalize_result()

    assert isinstance(result, Result)
    assert result.hashes == {Path("/data/a"): "aa", Path("/data/b"): "bb"}


def test_empty_result():
    assert ResultAggregator().finalize_result() == Result(hashes={})


def test_duplicate_path_rejected():
    aggregator = ResultAggregator()
    aggregator.add(record("a"))

    with pytest.raises(ValueError):
        aggregator.add(record("a"))

    assert len(aggregator) == 1


def test_only_one_terminal_event():
    """Any second finalize fails, whichever kind came first."""
    aggregator = ResultAggregator()
    aggregator.finalize_result()

    with pytest.raises(RuntimeError):
        aggregator.finalize_result()
    with pytest.raises(RuntimeError):
        aggregator.finalize_error(ReadError("boom", Path("/data/a")))


def test_error_discards_pairs():
    aggregator = ResultAggregator()
    aggregator.add(record("a"))
    cause = ReadError("boom", Path("/data/b"))

    event = aggregator.finalize_error(cause)

    assert event == Error(cause=cause)
    assert len(aggregator) == 0
    assert aggregator.finalized


def test_add_after_finalize_rejected():
    aggregator = ResultAggregator()
    aggregator.finalize_result()

    with pytest.raises(RuntimeError):
        aggregator.add(record("late"))


def test_concurrent_adds_are_not_lost():
    """Many threads inserting at once keep every pair."""
    aggregator = ResultAggregator()

    def worker(offset: int) -> None:
        for i in range(200):
            aggregator.add(record(f"{offset}-{i}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(aggregator.finalize_result().hashes) == 8 * 200
