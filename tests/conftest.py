"""Shared fixtures for OmniFind tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

from omnifind.index.catalogue import Catalogue
from omnifind.models import FileRecord

FIXED_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_record(path: str, size: int = 0) -> FileRecord:
    return FileRecord(path=path, size=size, modified_time=FIXED_TIME)


@pytest.fixture
def record_factory() -> Callable[..., FileRecord]:
    return make_record


@pytest.fixture
def scenario_catalogue() -> Catalogue:
    catalogue = Catalogue()
    catalogue.replace(
        [
            make_record("/a/report.txt", 10),
            make_record("/a/report.csv", 2000),
            make_record("/b/image.png", 500),
        ]
    )
    return catalogue


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Scan root with regular files, nested dirs and pruned subtrees."""
    root = tmp_path / "root"
    (root / "docs" / "deep").mkdir(parents=True)
    (root / "photos").mkdir()
    (root / ".git" / "objects").mkdir(parents=True)
    (root / "node_modules" / "left-pad").mkdir(parents=True)

    (root / "readme.md").write_text("hello")
    (root / "docs" / "report.txt").write_text("quarterly report")
    (root / "docs" / "deep" / "notes.txt").write_text("deep notes")
    (root / "photos" / "beach.png").write_bytes(b"\x89PNG" + b"\x00" * 96)
    (root / ".git" / "config").write_text("[core]")
    (root / ".git" / "objects" / "abc").write_text("blob")
    (root / "node_modules" / "left-pad" / "index.js").write_text("module.exports = 1")
    return root
