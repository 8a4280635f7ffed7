"""Shared test fixtures for tagger tests."""

from __future__ import annotations

import pathlib

import pytest

import tagger.config


@pytest.fixture(autouse=True)
def isolated_global_config(
    tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
) -> pathlib.Path:
    """Point the global config file into tmp_path so tests never read ~."""
    global_toml = tmp_path / "global" / "config.toml"
    monkeypatch.setattr(tagger.config, "_global_path", lambda: global_toml)
    return global_toml


@pytest.fixture
def project(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create an empty project root."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def local_config(project: pathlib.Path):
    """Factory for writing .tagger/config.toml in the project root."""

    def _write(content: str) -> pathlib.Path:
        path = project / ".tagger" / "config.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def raw_config():
    """Factory for raw host-style configuration mappings."""

    def _create(overrides: dict | None = None) -> dict:
        base: dict = {
            "defaultPattern.flags": "g",
            "defaultPattern.style": {},
            "patterns": [
                {"name": "todo", "pattern": "TODO"},
                {"name": "fixme", "pattern": "FIXME", "flags": "gi"},
            ],
        }
        if overrides:
            base.update(overrides)
        return base

    return _create
