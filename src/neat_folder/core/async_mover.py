"""Async file operations for moving files into (and back out of) category directories."""

import asyncio
import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional, TypeVar

from ..domain.result import Failure, Result, Success
from ..exceptions import FileOperationError
from ..models.organization import FileMapping

logger = logging.getLogger(__name__)

T = TypeVar('T')


class AsyncFileMover:
    """Run blocking filesystem calls on a thread pool and await them."""

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or (os.cpu_count() or 1)
        self.executor = ThreadPoolExecutor(max_workers=self.max_workers)

    async def run(self, fn: Callable[..., T], *args) -> T:
        """Await ``fn(*args)`` on the mover's thread pool."""
        return await asyncio.get_running_loop().run_in_executor(self.executor, fn, *args)

    async def exists(self, path: Path) -> bool:
        return await self.run(path.exists)

    async def move_file(self, mapping: FileMapping) -> FileMapping:
        """Move ``mapping.source_path`` to ``mapping.target_path``.

        The target directory is created if needed. An existing file at the
        target is never overwritten.

        Raises:
            FileOperationError: If the move cannot be completed.
        """
        await self._relocate(mapping.source_path, mapping.target_path)
        logger.debug(f"{mapping.source_path} -> {mapping.target_path}")
        return mapping

    async def move_back(self, mapping: FileMapping) -> FileMapping:
        """Reverse a mapping: move the file at its target back to its source."""
        await self._relocate(mapping.target_path, mapping.source_path)
        logger.debug(f"{mapping.target_path} -> {mapping.source_path}")
        return mapping

    async def move_files_batch(self, mappings: List[FileMapping]) -> List[Result[FileMapping, FileOperationError]]:
        """Move a batch of files concurrently.

        One failing move never affects the others; every mapping yields a
        Result in input order.
        """
        tasks = [asyncio.create_task(self.move_file(mapping)) for mapping in mappings]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        processed_results: List[Result[FileMapping, FileOperationError]] = []
        for mapping, result in zip(mappings, results):
            if isinstance(result, FileOperationError):
                processed_results.append(Failure(result))
            elif isinstance(result, Exception):
                processed_results.append(Failure(FileOperationError(
                    f"Failed to move {mapping.source_path}: {result}"
                )))
            else:
                processed_results.append(Success(result))

        return processed_results

    async def make_directories(self, directories: Iterable[Path]) -> List[Path]:
        """Create ``directories`` and any missing parents.

        Returns only the directories that did not exist beforehand, so a
        later undo can remove exactly what this run added.
        """
        def _make() -> List[Path]:
            made = []
            for directory in sorted({Path(d) for d in directories}):
                missing = []
                current = directory
                while not current.exists():
                    missing.append(current)
                    current = current.parent
                try:
                    directory.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    # The moves into it fail and are reported per file
                    logger.debug(f"Cannot create {directory}: {e}")
                    continue
                made.extend(reversed(missing))
            return made

        return await self.run(_make)

    async def prune_empty_directories(self, directories: Iterable[Path], stop_at: Path) -> List[Path]:
        """Remove those of ``directories`` below ``stop_at`` that are empty.

        Only the listed directories are touched; their parents are left alone
        unless listed too.
        """
        def _prune() -> List[Path]:
            removed = []
            # Deepest first so nested category directories collapse upwards
            for directory in sorted({Path(d) for d in directories}, key=lambda p: len(p.parts), reverse=True):
                if stop_at not in directory.parents:
                    continue
                try:
                    directory.rmdir()
                except OSError:
                    continue
                removed.append(directory)
            return removed

        return await self.run(_prune)

    async def _relocate(self, source: Path, target: Path) -> None:
        def _do_move():
            if not source.exists():
                raise FileOperationError(f"Failed to move {source}: file no longer exists")
            if target.exists():
                raise FileOperationError(f"Failed to move {source}: {target} already exists")
            target.parent.mkdir(parents=True, exist_ok=True)
            # Same-volume rename, copy + delete otherwise
            shutil.move(str(source), str(target))

        try:
            await self.run(_do_move)
        except FileOperationError:
            raise
        except OSError as e:
            raise FileOperationError(f"Failed to move {source}: {e}") from e

    def close(self) -> None:
        self.executor.shutdown(wait=True)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
