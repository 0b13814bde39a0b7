"""Tests for project metadata."""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_project_metadata():
    with open(PYPROJECT, "rb") as f:
        project = tomllib.load(f)["project"]

    assert project["name"] == "progress-hasher"
    assert "readme" not in project
    assert project["scripts"]["progress-hasher"] == "progress_hasher.cli:main"
