"""Data models for neat-folder."""

from .organization import DirectoryMap, FileMapping, GroupingMethod, OrganizationStats
from .history import FileOperationKind, FileOperationRow, HistoryStats, OrganizationHistoryRecord
from .config import OrganizationOptions, load_config, save_config

__all__ = [
    "DirectoryMap",
    "FileMapping",
    "GroupingMethod",
    "OrganizationStats",
    "FileOperationKind",
    "FileOperationRow",
    "HistoryStats",
    "OrganizationHistoryRecord",
    "OrganizationOptions",
    "load_config",
    "save_config",
]
