"""Test settings defaults, environment overrides and YAML loading."""

import os

import pytest
from pydantic import ValidationError

from progress_hasher.config.settings import Settings, get_settings, load_settings_file
from progress_hasher.core.enumerator import SymlinkPolicy


def test_settings_defaults():
    """Test that settings can be created with defaults."""
    settings = Settings()

    assert settings.hash_algorithm == "sha256"
    assert settings.symlink_policy is SymlinkPolicy.SKIP
    assert settings.max_file_size is None
    assert settings.chunk_size == 1024 * 1024
    assert settings.max_concurrency == min(32, (os.cpu_count() or 1) + 4)
    assert settings.log_level == "INFO"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("PROGRESS_HASHER_MAX_CONCURRENCY", "7")
    monkeypatch.setenv("PROGRESS_HASHER_HASH_ALGORITHM", "SHA512")
    monkeypatch.setenv("PROGRESS_HASHER_SYMLINK_POLICY", "follow")

    settings = get_settings()

    assert settings.max_concurrency == 7
    assert settings.hash_algorithm == "sha512"
    assert settings.symlink_policy is SymlinkPolicy.FOLLOW


def test_settings_cached():
    assert get_settings() is get_settings()


@pytest.mark.parametrize(
    "field,value",
    [
        ("max_concurrency", 0),
        ("hash_algorithm", "crc-nope"),
        ("symlink_policy", "sometimes"),
        ("max_file_size", 0),
        ("log_level", "LOUD"),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_load_settings_file(tmp_path):
    config = tmp_path / "hasher.yaml"
    config.write_text("max_concurrency: 3\nhash_algorithm: md5\nunrelated: true\n")

    settings = load_settings_file(config, max_concurrency=5, max_file_size=None)

    assert settings.max_concurrency == 5
    assert settings.hash_algorithm == "md5"
    assert settings.max_file_size is None


def test_load_settings_file_empty(tmp_path):
    config = tmp_path / "empty.yaml"
    config.write_text("")

    assert load_settings_file(config).hash_algorithm == "sha256"


def test_load_settings_file_requires_mapping(tmp_path):
    config = tmp_path / "list.yaml"
    config.write_text("- 1\n- 2\n")

    with pytest.raises(ValueError):
        load_settings_file(config)
