"""Shared pytest fixtures for the histdb-import test suite."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from histdb_import.lib.config import DEFAULT_IGNORE, ImportConfig, split_ignore  # noqa: E402


@pytest.fixture(scope="session")
def testdata_dir() -> Path:
    return Path(__file__).resolve().parent / "testdata"


@pytest.fixture()
def import_config(tmp_path: Path, testdata_dir: Path) -> ImportConfig:
    """Config pointing at the sample history and a fresh database under tmp_path."""
    return ImportConfig(
        database=str(tmp_path / "histdb" / "zsh-history.db"),
        history=str(testdata_dir / "zsh_history"),
        ignore=split_ignore(DEFAULT_IGNORE),
        host="testhost",
        home_dir="/home/tester",
        session="7",
        exit_status="0",
    )


@pytest.fixture()
def write_history(tmp_path: Path):
    """Write raw history text to a file and return its path."""

    def _write(text: str, name: str = "zsh_history") -> str:
        path = tmp_path / name
        path.write_bytes(text.encode("utf-8"))
        return str(path)

    return _write
