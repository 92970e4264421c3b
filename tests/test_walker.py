"""Tests for the breadth-first tree walker and skip policy."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from omnifind.models import FileRecord
from omnifind.scan.channel import ChannelClosed, ResultChannel
from omnifind.scan.walker import TreeWalker, is_hidden, is_skipped_name, should_prune


def _walk(root: Path, sink: MagicMock | None = None) -> tuple[int, list[FileRecord]]:
    channel: ResultChannel[FileRecord] = ResultChannel(10_000)
    sender = channel.sender()
    walker = TreeWalker(root, sender, sink or MagicMock())
    count = walker.walk()
    sender.close()
    return count, list(channel)


class TestSkipPolicy:
    """Test directory pruning rules."""

    @pytest.mark.parametrize(
        "name",
        ["node_modules", "NODE_MODULES", ".git", "__pycache__", "my-venv", "Program Files", "vendor"],
    )
    def test_skipped_names(self, name: str) -> None:
        """Equality and substring containment, ignoring case."""
        assert is_skipped_name(name)

    @pytest.mark.parametrize("name", ["docs", "photos", "src", "music"])
    def test_regular_names(self, name: str) -> None:
        assert not is_skipped_name(name)

    def test_leading_dot_is_hidden(self) -> None:
        assert is_hidden(".config")
        assert not is_hidden("config")

    def test_hidden_attribute(self) -> None:
        """The platform hidden attribute marks a directory hidden."""
        stat_result = MagicMock(st_file_attributes=0x2)
        assert is_hidden("Folder", stat_result)

    def test_pseudo_filesystems_pruned(self) -> None:
        assert should_prune("/proc", "proc")
        assert should_prune("/sys", "sys")
        assert not should_prune("/home/user/proc", "proc")


class TestTreeWalker:
    """Test TreeWalker traversal."""

    def test_emits_every_regular_file(self, sample_tree: Path) -> None:
        """All files outside pruned subtrees are emitted and counted."""
        count, records = _walk(sample_tree)

        names = {record.name for record in records}
        assert names == {"readme.md", "report.txt", "notes.txt", "beach.png"}
        assert count == 4

    def test_pruned_subtrees_contribute_nothing(self, sample_tree: Path) -> None:
        """.git and node_modules are never descended into."""
        _, records = _walk(sample_tree)

        for record in records:
            parts = Path(record.path).parts
            assert ".git" not in parts
            assert "node_modules" not in parts

    def test_name_matches_path(self, sample_tree: Path) -> None:
        """record.name is always the final path component."""
        _, records = _walk(sample_tree)

        for record in records:
            assert record.name == os.path.basename(record.path)
            assert os.path.isabs(record.path)

    def test_record_metadata(self, sample_tree: Path) -> None:
        """Sizes come from the file metadata."""
        _, records = _walk(sample_tree)
        by_name = {record.name: record for record in records}

        assert by_name["beach.png"].size == 100
        assert by_name["readme.md"].size == 5

    def test_breadth_first_order(self, sample_tree: Path) -> None:
        """Shallower files are emitted before deeper ones."""
        _, records = _walk(sample_tree)
        depths = [len(Path(record.path).relative_to(sample_tree).parts) for record in records]

        assert depths == sorted(depths)

    def test_hidden_and_skipped_dirs_anywhere(self, tmp_path: Path) -> None:
        """Pruning applies at every depth."""
        nested = tmp_path / "work" / "project"
        (nested / "__pycache__").mkdir(parents=True)
        (nested / ".idea").mkdir()
        (nested / "main.py").write_text("print()")
        (nested / "__pycache__" / "main.cpython-312.pyc").write_bytes(b"\x00")
        (nested / ".idea" / "workspace.xml").write_text("<xml/>")

        _, records = _walk(tmp_path)

        assert [record.name for record in records] == ["main.py"]

    def test_hidden_files_are_emitted(self, tmp_path: Path) -> None:
        """Only directories are pruned; dotfiles are still regular files."""
        (tmp_path / ".bashrc").write_text("alias ll='ls -l'")

        _, records = _walk(tmp_path)

        assert [record.name for record in records] == [".bashrc"]

    def test_symlinks_not_followed(self, tmp_path: Path) -> None:
        """Symlinked files and directories are neither emitted nor walked."""
        real = tmp_path / "real"
        real.mkdir()
        (real / "data.txt").write_text("x")
        (tmp_path / "link_dir").symlink_to(real, target_is_directory=True)
        (tmp_path / "link_file.txt").symlink_to(real / "data.txt")

        _, records = _walk(tmp_path)

        assert [record.path for record in records] == [str(real / "data.txt")]

    def test_missing_root(self, tmp_path: Path) -> None:
        """A root that does not exist yields nothing."""
        count, records = _walk(tmp_path / "missing")

        assert count == 0
        assert records == []

    def test_permission_denied_is_skipped_silently(
        self, sample_tree: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Inaccessible directories are skipped without a sink message."""
        blocked = str(sample_tree / "docs")
        real_scandir = os.scandir

        def fake_scandir(path):
            if os.fspath(path) == blocked:
                raise PermissionError(13, "Permission denied", blocked)
            return real_scandir(path)

        monkeypatch.setattr("omnifind.scan.walker.os.scandir", fake_scandir)
        sink = MagicMock()

        _, records = _walk(sample_tree, sink)

        assert {record.name for record in records} == {"readme.md", "beach.png"}
        sink.scan_log.assert_not_called()

    def test_other_listing_errors_are_reported(
        self, sample_tree: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Unexpected listing errors warn the sink and skip the directory."""
        broken = str(sample_tree / "photos")
        real_scandir = os.scandir

        def fake_scandir(path):
            if os.fspath(path) == broken:
                raise OSError(5, "Input/output error", broken)
            return real_scandir(path)

        monkeypatch.setattr("omnifind.scan.walker.os.scandir", fake_scandir)
        sink = MagicMock()

        _, records = _walk(sample_tree, sink)

        assert "beach.png" not in {record.name for record in records}
        assert "report.txt" in {record.name for record in records}
        sink.scan_log.assert_called_once()
        assert broken in sink.scan_log.call_args[0][0]

    def test_closed_channel_aborts_walk(self, sample_tree: Path) -> None:
        """A dropped receiver is fatal to the walker."""
        channel: ResultChannel[FileRecord] = ResultChannel(10)
        sender = channel.sender()
        channel.close_receiver()
        walker = TreeWalker(sample_tree, sender, MagicMock())

        with pytest.raises(ChannelClosed):
            walker.walk()
        assert walker.file_count == 0

    def test_deep_tree_does_not_recurse(self, tmp_path: Path) -> None:
        """Deep nesting is walked through the pending-directory queue."""
        current = tmp_path
        for _ in range(60):
            current = current / "d"
        current.mkdir(parents=True)
        (current / "leaf.txt").write_text("leaf")

        count, records = _walk(tmp_path)

        assert count == 1
        assert records[0].name == "leaf.txt"
