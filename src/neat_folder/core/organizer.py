"""Async orchestration of one folder organization run."""

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

from ..domain.result import partition
from ..exceptions import InaccessibleDirectoryError
from ..models.config import OrganizationOptions
from ..models.organization import DirectoryMap, FileMapping, OrganizationStats
from .async_mover import AsyncFileMover
from .categorizer import PathCategorizer
from .operation_history import OperationHistoryStore
from .snapshot import DirectorySnapshot

logger = logging.getLogger(__name__)


@dataclass
class OrganizationResult:
    """Everything a caller needs to report on a finished run."""
    directory: Path
    stats: OrganizationStats
    before: DirectoryMap = field(default_factory=dict)
    after: DirectoryMap = field(default_factory=dict)
    mappings: List[FileMapping] = field(default_factory=list)
    duration: float = 0.0
    operation_id: Optional[int] = None
    dry_run: bool = False

    @property
    def nothing_to_do(self) -> bool:
        return not self.mappings


class AsyncFolderOrganizer:
    """Sorts the files of one directory into category subdirectories."""

    def __init__(self,
                 options: Optional[OrganizationOptions] = None,
                 history_store: Optional[OperationHistoryStore] = None,
                 categorizer: Optional[PathCategorizer] = None,
                 mover: Optional[AsyncFileMover] = None):
        """
        Initialize the organizer.

        Args:
            options: Run options (default: OrganizationOptions())
            history_store: Where completed runs are logged; runs are not
                logged when omitted
            categorizer: Target directory rules (default: PathCategorizer())
            mover: File mover to use (default: a new AsyncFileMover)
        """
        self.options = (options or OrganizationOptions()).validate()
        self.history_store = history_store
        self.categorizer = categorizer or PathCategorizer()
        self._owns_mover = mover is None
        self.mover = mover or AsyncFileMover(max_workers=self.options.max_workers)
        self.stats = OrganizationStats()

    async def organize(self, directory: Union[Path, str]) -> OrganizationResult:
        """Organize ``directory`` according to the configured options.

        Per-file problems end up in ``stats.errors`` or ``stats.skipped``.

        Raises:
            InaccessibleDirectoryError: If the directory cannot be read and written.
            HistoryError: If the finished run cannot be logged.
        """
        start = time.monotonic()
        root = await self._resolve_directory(directory)

        # Fresh counters per run
        self.stats = stats = OrganizationStats()
        dry_run = self.options.dry_run

        all_files = await self.scan_directory(root, stats)
        before = DirectorySnapshot.build(all_files, root)

        mappings = await self.build_mappings(root, all_files, stats)
        if not mappings:
            logger.info(f"Nothing to organize in {root}")
            return OrganizationResult(
                directory=root,
                stats=stats,
                before=before,
                after=before,
                duration=time.monotonic() - start,
                dry_run=dry_run,
            )

        if dry_run:
            for mapping in mappings:
                stats.record_move(mapping, simulated=True)
            applied = mappings
        else:
            applied = await self._execute_moves(mappings, stats)

        after = DirectorySnapshot.build(DirectorySnapshot.apply_moves(all_files, applied), root)
        duration = time.monotonic() - start

        operation_id = None
        if not dry_run and self.history_store is not None:
            operation_id = await self.history_store.log_organization(
                root, self.options.method, before, after, applied, stats, duration
            )

        logger.info(
            f"{'Would organize' if dry_run else 'Organized'} {stats.files_processed} files "
            f"in {root} ({len(stats.errors)} errors, {len(stats.skipped)} skipped)"
        )
        return OrganizationResult(
            directory=root,
            stats=stats,
            before=before,
            after=after,
            mappings=list(applied),
            duration=duration,
            operation_id=operation_id,
            dry_run=dry_run,
        )

    async def _resolve_directory(self, directory: Union[Path, str]) -> Path:
        def _check() -> Path:
            path = Path(directory).expanduser().resolve()
            if not path.is_dir() or not os.access(path, os.R_OK | os.W_OK | os.X_OK):
                raise InaccessibleDirectoryError(path)
            return path

        return await self.mover.run(_check)

    async def scan_directory(self, root: Path, stats: OrganizationStats) -> List[Path]:
        """Enumerate files under ``root`` honouring recursion, depth and dotfile options.

        Directories are listed one at a time; subdirectories that cannot be
        listed are reported in ``stats.errors``.
        """
        files: List[Path] = []
        pending: List[Tuple[Path, int]] = [(root, 0)]

        while pending:
            current, depth = pending.pop(0)
            try:
                entries = await self.mover.run(self._list_directory, current)
            except OSError as e:
                if current == root:
                    raise InaccessibleDirectoryError(root) from e
                stats.errors.append(f"Cannot read directory {current}: {e}")
                logger.error(f"Cannot read directory {current}: {e}")
                continue

            for path, is_dir in entries:
                # Subdirectories outside the scan are not candidates at all
                if is_dir and not self._may_descend(depth + 1):
                    continue
                if self.options.ignore_dotfiles and path.name.startswith('.'):
                    stats.skipped.append(f"Dotfile ignored: {path}")
                    logger.debug(f"Dotfile ignored: {path}")
                    continue
                if is_dir:
                    pending.append((path, depth + 1))
                else:
                    files.append(path)

        return files

    def _may_descend(self, depth: int) -> bool:
        if not self.options.recursive:
            return False
        return self.options.max_depth is None or depth <= self.options.max_depth

    @staticmethod
    def _list_directory(directory: Path) -> List[Tuple[Path, bool]]:
        entries = []
        with os.scandir(directory) as it:
            for entry in it:
                if entry.is_dir(follow_symlinks=False):
                    entries.append((Path(entry.path), True))
                elif entry.is_file():
                    entries.append((Path(entry.path), False))
        entries.sort(key=lambda e: e[0].name)
        return entries

    async def build_mappings(self, root: Path, files: List[Path],
                             stats: OrganizationStats) -> List[FileMapping]:
        """Stat each file, apply the size filters and compute its target."""
        claimed: Set[Path] = set()
        mappings = []

        for file_path in files:
            try:
                st = await self.mover.run(file_path.stat)
            except OSError as e:
                stats.errors.append(f"Failed to read {file_path}: {e}")
                logger.error(f"Failed to read {file_path}: {e}")
                continue

            if st.st_size < self.options.min_size:
                stats.skipped.append(f"Size too small: {file_path}")
                logger.debug(f"Size too small: {file_path}")
                continue
            if self.options.max_size is not None and st.st_size > self.options.max_size:
                stats.skipped.append(f"Size too large: {file_path}")
                logger.debug(f"Size too large: {file_path}")
                continue

            modified_time = datetime.fromtimestamp(st.st_mtime)
            relative_dir = self.categorizer.target_directory(
                file_path.name, st.st_size, modified_time, self.options.method
            )
            target_dir = root.joinpath(*relative_dir.split("/"))

            if file_path.parent == target_dir:
                stats.skipped.append(f"Already organized: {file_path}")
                logger.debug(f"Already organized: {file_path}")
                continue

            target = await self.mover.run(self._free_target, target_dir / file_path.name, claimed)
            claimed.add(target)
            mappings.append(FileMapping(
                source_path=file_path,
                target_path=target,
                size=st.st_size,
                modified_time=modified_time,
            ))

        return mappings

    @staticmethod
    def _free_target(target: Path, claimed: Set[Path]) -> Path:
        """First of ``name.ext``, ``name (1).ext``, ... that is neither on disk nor claimed."""
        candidate = target
        counter = 1
        while candidate in claimed or candidate.exists():
            candidate = target.with_name(f"{target.stem} ({counter}){target.suffix}")
            counter += 1
        return candidate

    async def _execute_moves(self, mappings: List[FileMapping],
                             stats: OrganizationStats) -> List[FileMapping]:
        batch_size = self.options.batch_size(len(mappings))
        moved: List[FileMapping] = []

        made = await self.mover.make_directories({m.target_path.parent for m in mappings})
        stats.new_directories.update(str(d) for d in made)

        for i in range(0, len(mappings), batch_size):
            batch = mappings[i:i + batch_size]
            results = await self.mover.move_files_batch(batch)
            successes, failures = partition(results)

            for mapping in successes:
                stats.record_move(mapping)
                moved.append(mapping)
            for error in failures:
                stats.errors.append(str(error))
                logger.error(str(error))

        return moved

    def close(self) -> None:
        if self._owns_mover:
            self.mover.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()


async def organize_directory(directory: Union[Path, str],
                             options: Optional[OrganizationOptions] = None,
                             history_store: Optional[OperationHistoryStore] = None) -> OrganizationResult:
    """Run a single organization pass with a throwaway organizer."""
    async with AsyncFolderOrganizer(options, history_store) as organizer:
        return await organizer.organize(directory)


__all__ = [
    "AsyncFolderOrganizer",
    "OrganizationResult",
    "organize_directory",
]
