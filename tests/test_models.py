"""Tests for the data models."""

from datetime import datetime
from pathlib import Path

import pytest

from neat_folder.exceptions import ConfigurationError
from neat_folder.models.history import HistoryStats, OrganizationHistoryRecord
from neat_folder.models.organization import FileMapping, GroupingMethod, OrganizationStats


@pytest.fixture
def mapping():
    return FileMapping(
        source_path=Path("/d/photo.jpg"),
        target_path=Path("/d/images/photo.jpg"),
        size=1234,
        modified_time=datetime(2024, 2, 29, 8, 15, 30),
    )


class TestGroupingMethod:

    def test_parse(self):
        assert GroupingMethod.parse("date") is GroupingMethod.DATE
        assert GroupingMethod.parse(GroupingMethod.SIZE) is GroupingMethod.SIZE

    def test_parse_invalid(self):
        with pytest.raises(ConfigurationError, match="expected one of extension, name, date, size"):
            GroupingMethod.parse("random")


class TestFileMapping:

    def test_to_dict(self, mapping):
        assert mapping.to_dict() == {
            "source_path": "/d/photo.jpg",
            "target_path": "/d/images/photo.jpg",
            "size": 1234,
            "modified_time": "2024-02-29T08:15:30",
        }

    def test_from_dict(self, mapping):
        assert FileMapping.from_dict(mapping.to_dict()) == mapping

    def test_immutable(self, mapping):
        with pytest.raises(AttributeError):
            mapping.size = 1


class TestOrganizationStats:

    def test_record_move(self, mapping):
        stats = OrganizationStats()
        stats.record_move(mapping)

        assert stats.files_processed == 1
        assert stats.bytes_moved == 1234
        assert stats.created == {"/d/images"}

    def test_simulated_move_creates_nothing(self, mapping):
        stats = OrganizationStats()
        stats.record_move(mapping, simulated=True)

        assert stats.files_processed == 1
        assert stats.created == set()

    def test_to_dict(self, mapping):
        stats = OrganizationStats(errors=["e"], skipped=["s"])
        stats.record_move(mapping)
        assert stats.to_dict() == {
            "files_processed": 1,
            "bytes_moved": 1234,
            "errors": ["e"],
            "skipped": ["s"],
            "created": ["/d/images"],
            "new_directories": [],
        }


class TestHistoryRecord:

    def make_record(self, **kwargs):
        defaults = dict(
            id=1,
            timestamp=datetime(2024, 1, 1, 9, 0),
            directory="/d",
            method=GroupingMethod.EXTENSION,
            files_processed=1,
            bytes_moved=10,
            duration=0.5,
        )
        defaults.update(kwargs)
        return OrganizationHistoryRecord(**defaults)

    @pytest.mark.parametrize("is_reversed,original,kind", [
        (False, None, "organize"),
        (True, 1, "undo"),
        (False, 1, "redo"),
    ])
    def test_kind(self, is_reversed, original, kind):
        record = self.make_record(is_reversed=is_reversed, original_operation_id=original)
        assert record.kind == kind
        assert record.is_redo is (kind == "redo")

    def test_to_dict(self, mapping):
        record = self.make_record(
            before_structure={".": {"photo.jpg"}},
            after_structure={"images": {"photo.jpg"}},
            file_mappings=[mapping],
        )
        data = record.to_dict()

        assert data["method"] == "extension"
        assert data["before_structure"] == {".": ["photo.jpg"]}
        assert data["after_structure"] == {"images": ["photo.jpg"]}
        assert data["file_mappings"] == [mapping.to_dict()]
        assert data["timestamp"] == "2024-01-01T09:00:00"


def test_history_stats_to_dict():
    stats = HistoryStats(3, 5, 40, None, 1, 1)
    assert stats.to_dict()["last_operation_timestamp"] is None
    assert stats.to_dict()["total_files_processed"] == 5
