"""Tests for the path categorizer."""

import re
from datetime import datetime

import pytest

from neat_folder.core.categorizer import (
    DEFAULT_CATEGORY,
    FILE_CATEGORIES,
    PathCategorizer,
)
from neat_folder.exceptions import ConfigurationError
from neat_folder.models.organization import GroupingMethod
from neat_folder.utils.sizes import MB

MTIME = datetime(2023, 3, 5, 14, 30)


@pytest.fixture
def categorizer():
    return PathCategorizer()


class TestExtensionMethod:
    """Grouping by file extension."""

    @pytest.mark.parametrize("filename,expected", [
        ("photo.jpg", "images"),
        ("PHOTO.JPEG", "images"),
        ("report.pdf", "documents"),
        ("notes.md", "documents"),
        ("song.flac", "audio"),
        ("clip.mkv", "video"),
        ("backup.tar.gz", "archives"),
        ("script.py", "code"),
        ("setup.exe", "executables"),
        ("font.woff2", "fonts"),
    ])
    def test_known_extensions(self, categorizer, filename, expected):
        assert categorizer.target_directory(filename, 10, MTIME, GroupingMethod.EXTENSION) == expected

    @pytest.mark.parametrize("filename", ["README", "data.bin", ".bashrc", "archive.gz.part"])
    def test_unmatched_falls_back_to_others(self, categorizer, filename):
        assert categorizer.target_directory(filename, 10, MTIME, "extension") == DEFAULT_CATEGORY

    def test_first_matching_rule_wins(self):
        rules = (
            (re.compile(r"\.txt$"), "first"),
            (re.compile(r"\.txt$"), "second"),
        )
        categorizer = PathCategorizer(categories=rules)
        assert categorizer.category_for("a.txt") == "first"

    def test_builtin_table_order(self):
        assert [category for _, category in FILE_CATEGORIES] == [
            "images", "documents", "audio", "video",
            "archives", "code", "executables", "fonts",
        ]


class TestNameMethod:
    """Grouping by first character."""

    @pytest.mark.parametrize("filename,expected", [
        ("Apple.txt", "a"),
        ("zebra.png", "z"),
        ("2024-report.pdf", "2"),
        ("_draft.doc", "other"),
        (".hidden", "other"),
        ("", "other"),
    ])
    def test_name_buckets(self, categorizer, filename, expected):
        assert categorizer.target_directory(filename, 1, MTIME, GroupingMethod.NAME) == expected


class TestDateMethod:
    """Grouping by category, year and month."""

    def test_date_directory(self, categorizer):
        result = categorizer.target_directory("photo.jpg", 1, MTIME, GroupingMethod.DATE)
        assert result == "images/2023/03"

    def test_unknown_extension_uses_others(self, categorizer):
        result = categorizer.target_directory("blob", 1, datetime(1999, 12, 31), "date")
        assert result == "others/1999/12"


class TestSizeMethod:
    """Grouping by size bucket."""

    @pytest.mark.parametrize("size,expected", [
        (0, "small"),
        (MB - 1, "small"),
        (MB, "medium"),
        (100 * MB - 1, "medium"),
        (100 * MB, "large"),
        (10 * 1024 * MB, "large"),
    ])
    def test_breakpoints(self, categorizer, size, expected):
        assert categorizer.target_directory("x.bin", size, MTIME, GroupingMethod.SIZE) == expected

    def test_custom_breakpoints(self):
        categorizer = PathCategorizer(size_breakpoints=((10, "tiny"),))
        assert categorizer.size_bucket(5) == "tiny"
        assert categorizer.size_bucket(10) == "large"


def test_invalid_method_rejected(categorizer):
    with pytest.raises(ConfigurationError, match="Invalid method"):
        categorizer.target_directory("a.txt", 1, MTIME, "colour")


def test_method_strings_are_case_insensitive(categorizer):
    assert categorizer.target_directory("a.txt", 1, MTIME, "EXTENSION") == "documents"
