"""Reverse or replay previously logged organization runs."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ..exceptions import FileOperationError
from ..models.history import OrganizationHistoryRecord
from ..models.organization import FileMapping
from .async_mover import AsyncFileMover
from .operation_history import OperationHistoryStore

logger = logging.getLogger(__name__)


class UndoRedoController:
    """Drives undo and redo of history records against the filesystem.

    Mappings are processed one at a time, in reverse order for undo and in
    logged order for redo, since each step checks where files currently are.
    Refusals (nothing to undo, already undone, already redone) are reported
    by returning False.
    """

    def __init__(self, history_store: OperationHistoryStore,
                 mover: Optional[AsyncFileMover] = None):
        self.history_store = history_store
        self._owns_mover = mover is None
        self.mover = mover or AsyncFileMover()

    async def undo(self, operation_id: Optional[int] = None) -> bool:
        """Move the files of an operation back where they came from.

        Args:
            operation_id: Operation to undo (default: the most recent
                operation that is not itself an undo)

        Returns:
            True if the undo ran, even if some files could not be restored.
        """
        if operation_id is not None:
            record = await self.history_store.get_by_id(operation_id)
        else:
            record = await self.history_store.get_last_operation()

        if record is None:
            logger.warning(
                f"Operation {operation_id} not found" if operation_id is not None
                else "No operation to undo"
            )
            return False
        if record.is_reversed:
            logger.warning(f"Operation {record.id} is an undo and cannot be undone")
            return False
        if await self.history_store.find_reversal_of(record.id) is not None:
            logger.warning(f"Operation {record.id} has already been undone")
            return False

        restored, errors = await self._restore(record)
        # Only directories the operation itself created; pre-existing ones stay
        await self.mover.prune_empty_directories(
            [Path(d) for d in record.created_directories],
            stop_at=Path(record.directory),
        )
        await self.history_store.log_undo(record, len(restored), restored, errors)

        logger.info(f"Undid operation {record.id}: {len(restored)} files restored")
        return True

    async def _restore(self, record: OrganizationHistoryRecord) -> Tuple[List[FileMapping], List[str]]:
        restored: List[FileMapping] = []
        errors: List[str] = []

        for mapping in reversed(record.file_mappings):
            # Files moved again since the operation are left alone
            if not await self.mover.exists(mapping.target_path):
                logger.debug(f"Not restoring {mapping.target_path}: no longer there")
                continue
            try:
                await self.mover.move_back(mapping)
            except FileOperationError as e:
                errors.append(str(e))
                logger.error(str(e))
                continue
            restored.append(mapping)

        return restored, errors

    async def redo(self, undo_operation_id: Optional[int] = None) -> bool:
        """Re-apply the operation that an undo reversed.

        Args:
            undo_operation_id: The undo record to redo (default: the most
                recent undo)

        Returns:
            True if the redo ran, even if some files could not be moved.
        """
        if undo_operation_id is not None:
            undo_record = await self.history_store.get_by_id(undo_operation_id)
        else:
            undo_record = await self.history_store.get_last_undo_operation()

        if undo_record is None or not undo_record.is_reversed:
            logger.warning(
                f"Undo operation {undo_operation_id} not found" if undo_operation_id is not None
                else "No undo operation to redo"
            )
            return False
        if undo_record.original_operation_id is None:
            logger.warning(f"Undo operation {undo_record.id} has no original operation")
            return False
        if await self.history_store.find_redo_of(undo_record) is not None:
            logger.warning(f"Undo operation {undo_record.id} has already been redone")
            return False

        original = await self.history_store.get_by_id(undo_record.original_operation_id)
        if original is None:
            logger.warning(f"Original operation {undo_record.original_operation_id} not found")
            return False

        pending: List[FileMapping] = []
        for mapping in original.file_mappings:
            if await self.mover.exists(mapping.source_path):
                pending.append(mapping)
            else:
                logger.debug(f"Not moving {mapping.source_path}: no longer there")

        made = await self.mover.make_directories({m.target_path.parent for m in pending})

        moved: List[FileMapping] = []
        errors: List[str] = []
        for mapping in pending:
            try:
                await self.mover.move_file(mapping)
            except FileOperationError as e:
                errors.append(str(e))
                logger.error(str(e))
                continue
            moved.append(mapping)

        await self.history_store.log_redo(original, len(moved), moved, errors, made)

        logger.info(f"Redid operation {original.id}: {len(moved)} files moved")
        return True

    def close(self) -> None:
        if self._owns_mover:
            self.mover.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
