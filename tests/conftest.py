"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest


def write_csv(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture()
def simple_csv(tmp_path: Path) -> Path:
    """Two rows, three single-character columns."""
    return write_csv(tmp_path / "simple.csv", "a,b,c\n1,2,3\n")


@pytest.fixture()
def people_csv(tmp_path: Path) -> Path:
    """Header plus three rows with uneven widths and padded cells."""
    return write_csv(
        tmp_path / "people.csv",
        "name, age ,city\n"
        "alexander,7,Oslo\n"
        "bo , 42, Rio de Janeiro\n"
        "cy,103,Lima\n",
    )


@pytest.fixture()
def ragged_csv(tmp_path: Path) -> Path:
    """Second row short, third row long."""
    return write_csv(tmp_path / "ragged.csv", "a,b,c\n1,2\n1,2,3,4\n")


@pytest.fixture()
def empty_csv(tmp_path: Path) -> Path:
    return write_csv(tmp_path / "empty.csv", "")
