"""Neat Folder

Sort the files of a directory into category subdirectories, with a
persistent history that lets any run be undone and redone.
"""

__version__ = "0.1.0"

from .core.organizer import AsyncFolderOrganizer, OrganizationResult, organize_directory
from .core.operation_history import OperationHistoryStore
from .core.undo_redo import UndoRedoController
from .core.categorizer import PathCategorizer
from .core.snapshot import DirectorySnapshot
from .models.config import OrganizationOptions
from .models.organization import FileMapping, GroupingMethod, OrganizationStats

__all__ = [
    "AsyncFolderOrganizer",
    "OrganizationResult",
    "organize_directory",
    "OperationHistoryStore",
    "UndoRedoController",
    "PathCategorizer",
    "DirectorySnapshot",
    "OrganizationOptions",
    "FileMapping",
    "GroupingMethod",
    "OrganizationStats",
]
