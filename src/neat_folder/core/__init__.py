"""Core neat-folder modules."""

from .categorizer import PathCategorizer
from .snapshot import DirectorySnapshot
from .async_mover import AsyncFileMover
from .operation_history import OperationHistoryStore
from .organizer import AsyncFolderOrganizer, OrganizationResult
from .undo_redo import UndoRedoController

__all__ = [
    'PathCategorizer',
    'DirectorySnapshot',
    'AsyncFileMover',
    'OperationHistoryStore',
    'AsyncFolderOrganizer',
    'OrganizationResult',
    'UndoRedoController',
]
