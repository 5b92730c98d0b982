"""Tests for directory snapshots."""

from datetime import datetime
from pathlib import Path

from neat_folder.core.snapshot import (
    DirectorySnapshot,
    deserialize_directory_map,
    serialize_directory_map,
)
from neat_folder.models.organization import FileMapping


class TestBuild:

    def test_groups_by_parent_directory(self):
        files = [Path("/data/a.txt"), Path("/data/b.txt"), Path("/data/sub/c.txt")]
        result = DirectorySnapshot.build(files)
        assert result == {"/data": {"a.txt", "b.txt"}, "/data/sub": {"c.txt"}}

    def test_relative_to_base(self):
        files = [Path("/data/a.txt"), Path("/data/images/b.png"), Path("/data/images/2023/c.png")]
        result = DirectorySnapshot.build(files, "/data")
        assert result == {
            ".": {"a.txt"},
            "images": {"b.png"},
            "images/2023": {"c.png"},
        }

    def test_same_tree_at_different_roots_compares_equal(self):
        first = DirectorySnapshot.build([Path("/one/x/a.txt")], Path("/one"))
        second = DirectorySnapshot.build([Path("/two/x/a.txt")], Path("/two"))
        assert first == second

    def test_paths_outside_base_keep_full_directory(self):
        result = DirectorySnapshot.build([Path("/elsewhere/a.txt")], Path("/data"))
        assert result == {"/elsewhere": {"a.txt"}}

    def test_does_not_mutate_input(self):
        files = [Path("/data/a.txt")]
        DirectorySnapshot.build(files, "/data")
        assert files == [Path("/data/a.txt")]

    def test_empty(self):
        assert DirectorySnapshot.build([]) == {}


def test_apply_moves():
    mapping = FileMapping(Path("/d/a.jpg"), Path("/d/images/a.jpg"), 3, datetime(2024, 1, 1))
    files = [Path("/d/a.jpg"), Path("/d/b.txt")]

    result = DirectorySnapshot.apply_moves(files, [mapping])

    assert set(result) == {Path("/d/b.txt"), Path("/d/images/a.jpg")}
    assert DirectorySnapshot.build(result, "/d") == {".": {"b.txt"}, "images": {"a.jpg"}}


def test_file_set():
    dir_map = {".": {"a.txt"}, "images": {"b.png", "c.png"}}
    assert DirectorySnapshot.file_set(dir_map) == {"./a.txt", "images/b.png", "images/c.png"}


def test_serialization_is_sorted_and_reversible():
    dir_map = {"b": {"z.txt", "a.txt"}, "a": {"m.txt"}}
    serialized = serialize_directory_map(dir_map)

    assert list(serialized) == ["a", "b"]
    assert serialized["b"] == ["a.txt", "z.txt"]
    assert deserialize_directory_map(serialized) == dir_map
