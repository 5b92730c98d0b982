"""Tests for async file mover."""

from datetime import datetime
from pathlib import Path

import pytest

from neat_folder.core.async_mover import AsyncFileMover
from neat_folder.exceptions import FileOperationError
from neat_folder.models.organization import FileMapping


def make_mapping(source: Path, target: Path) -> FileMapping:
    return FileMapping(source, target, source.stat().st_size if source.exists() else 0, datetime(2024, 1, 1))


@pytest.fixture
async def mover():
    async with AsyncFileMover(max_workers=2) as m:
        yield m


class TestAsyncFileMover:
    """Test cases for AsyncFileMover."""

    @pytest.mark.asyncio
    async def test_move_file_creates_target_directory(self, mover, tmp_path):
        source = tmp_path / "photo.jpg"
        source.write_bytes(b"jpeg")
        target = tmp_path / "images" / "2023" / "photo.jpg"

        result = await mover.move_file(make_mapping(source, target))

        assert result.target_path == target
        assert not source.exists()
        assert target.read_bytes() == b"jpeg"

    @pytest.mark.asyncio
    async def test_never_overwrites_existing_target(self, mover, tmp_path):
        source = tmp_path / "a.txt"
        source.write_text("new")
        target = tmp_path / "documents" / "a.txt"
        target.parent.mkdir()
        target.write_text("old")

        with pytest.raises(FileOperationError, match="already exists"):
            await mover.move_file(make_mapping(source, target))

        assert source.read_text() == "new"
        assert target.read_text() == "old"

    @pytest.mark.asyncio
    async def test_missing_source_raises(self, mover, tmp_path):
        mapping = FileMapping(tmp_path / "gone.txt", tmp_path / "documents" / "gone.txt", 0, datetime(2024, 1, 1))

        with pytest.raises(FileOperationError, match="no longer exists"):
            await mover.move_file(mapping)

    @pytest.mark.asyncio
    async def test_move_back(self, mover, tmp_path):
        source = tmp_path / "a.txt"
        source.write_text("x")
        mapping = make_mapping(source, tmp_path / "documents" / "a.txt")

        await mover.move_file(mapping)
        await mover.move_back(mapping)

        assert source.exists()
        assert not mapping.target_path.exists()

    @pytest.mark.asyncio
    async def test_exists(self, mover, tmp_path):
        (tmp_path / "here.txt").write_text("x")
        assert await mover.exists(tmp_path / "here.txt") is True
        assert await mover.exists(tmp_path / "missing.txt") is False


class TestBatchMoves:

    @pytest.mark.asyncio
    async def test_batch_results_in_input_order(self, mover, tmp_path):
        mappings = []
        for name in ["a.txt", "b.txt", "c.txt"]:
            source = tmp_path / name
            source.write_text(name)
            mappings.append(make_mapping(source, tmp_path / "documents" / name))

        results = await mover.move_files_batch(mappings)

        assert [r.value() for r in results] == mappings
        assert sorted(p.name for p in (tmp_path / "documents").iterdir()) == ["a.txt", "b.txt", "c.txt"]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self, mover, tmp_path):
        good = tmp_path / "good.txt"
        good.write_text("ok")
        missing = FileMapping(tmp_path / "missing.txt", tmp_path / "documents" / "missing.txt", 0, datetime(2024, 1, 1))

        results = await mover.move_files_batch([missing, make_mapping(good, tmp_path / "documents" / "good.txt")])

        assert results[0].is_failure()
        assert isinstance(results[0].error(), FileOperationError)
        assert results[1].is_success()
        assert (tmp_path / "documents" / "good.txt").exists()


class TestPruneEmptyDirectories:

    @pytest.mark.asyncio
    async def test_removes_nested_empty_directories(self, mover, tmp_path):
        nested = tmp_path / "images" / "2023" / "03"
        nested.mkdir(parents=True)

        removed = await mover.prune_empty_directories(
            [nested, nested.parent, tmp_path / "images"], stop_at=tmp_path
        )

        assert not (tmp_path / "images").exists()
        assert tmp_path.exists()
        assert nested in removed

    @pytest.mark.asyncio
    async def test_keeps_non_empty_directories(self, mover, tmp_path):
        (tmp_path / "images" / "2023").mkdir(parents=True)
        (tmp_path / "images" / "keep.png").write_bytes(b"png")

        await mover.prune_empty_directories([tmp_path / "images" / "2023"], stop_at=tmp_path)

        assert not (tmp_path / "images" / "2023").exists()
        assert (tmp_path / "images" / "keep.png").exists()

    @pytest.mark.asyncio
    async def test_never_removes_stop_directory(self, mover, tmp_path):
        removed = await mover.prune_empty_directories([tmp_path], stop_at=tmp_path)
        assert removed == []
        assert tmp_path.exists()

    @pytest.mark.asyncio
    async def test_leaves_unlisted_parents_alone(self, mover, tmp_path):
        nested = tmp_path / "images" / "2023"
        nested.mkdir(parents=True)

        removed = await mover.prune_empty_directories([nested], stop_at=tmp_path)

        assert removed == [nested]
        assert (tmp_path / "images").is_dir()


class TestMakeDirectories:

    @pytest.mark.asyncio
    async def test_returns_only_new_directories(self, mover, tmp_path):
        (tmp_path / "images").mkdir()

        made = await mover.make_directories([
            tmp_path / "images",
            tmp_path / "images" / "2023",
            tmp_path / "documents" / "2023",
        ])

        assert (tmp_path / "documents" / "2023").is_dir()
        assert sorted(made) == sorted([
            tmp_path / "images" / "2023",
            tmp_path / "documents",
            tmp_path / "documents" / "2023",
        ])

    @pytest.mark.asyncio
    async def test_existing_directories_give_nothing(self, mover, tmp_path):
        assert await mover.make_directories([tmp_path]) == []
