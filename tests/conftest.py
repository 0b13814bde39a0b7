"""Pytest configuration and fixtures."""

import asyncio
import logging
import os
from pathlib import Path

import pytest

from progress_hasher.config.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep environment variables and .env files out of tests."""
    for name in list(os.environ):
        if name.upper().startswith("PROGRESS_HASHER_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

    # Handlers attached by the CLI hold captured streams that pytest closes
    package_logger = logging.getLogger("progress_hasher")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def settings() -> Settings:
    """Settings with a small worker pool."""
    return Settings(max_concurrency=2)


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """
    Small directory tree:

        tree/a.txt          "hello"
        tree/b.bin          bytes 0-255
        tree/sub/c.txt      "nested"
        tree/sub/deep/d.txt ""
        tree/empty/
    """
    root = tmp_path / "tree"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "a.txt").write_bytes(b"hello")
    (root / "b.bin").write_bytes(bytes(range(256)))
    (root / "sub" / "c.txt").write_bytes(b"nested")
    (root / "sub" / "deep" / "d.txt").write_bytes(b"")
    return root


@pytest.fixture
def many_files(tmp_path: Path) -> Path:
    """Flat directory with 40 small files."""
    root = tmp_path / "many"
    root.mkdir()
    for i in range(40):
        (root / f"file_{i:02d}.txt").write_text(f"content {i}\n" * 100)
    return root


@pytest.fixture
def collect():
    """Run an event stream to the end and return its events as a list."""

    def _collect(events) -> list:
        async def _drain():
            return [event async for event in events]

        return asyncio.run(_drain())

    return _collect
