"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.factories import HEADER, make_line  # noqa: E402


@pytest.fixture
def collisions_csv(tmp_path: Path) -> Path:
    """A small export in the dataset's column layout, two of its rows malformed."""
    lines = [
        HEADER,
        '04/14/2021,12:47,BROOKLYN,11208,40.67,-73.87,"(40.67, -73.87)",,,1211 LORING AVENUE,'
        "1,0,0,0,0,0,1,0,Unspecified,,,,,4407458,Sedan,,,,",
        "09/11/2021,2:39,,,,,,WHITESTONE EXPRESSWAY,20 AVENUE,,2,0,0,0,0,0,2,0,Aggressive Driving/Road Rage,"
        "Unspecified,,,,4455765,Sedan,Sedan,,,",
        make_line("12/14/2021", "8:17", persons_injured=7, motorists_injured=7),
        make_line("2021-12-14", "8:17"),
        "12/14/2021,8:17,QUEENS",
    ]
    path = tmp_path / "collisions.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
