"""History records persisted by the operation history store."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .organization import (
    DirectoryMap,
    FileMapping,
    GroupingMethod,
    serialize_directory_map,
)


class FileOperationKind(Enum):
    """Kind of a per-file row in the file_operations table."""
    MOVE = "move"
    UNDO_MOVE = "undo_move"


@dataclass(slots=True, frozen=True)
class OrganizationHistoryRecord:
    """One organize, undo or redo run as stored in history.

    Records are append-only. A record with ``is_reversed`` set always
    carries the id of the operation it reverses in ``original_operation_id``.
    """
    id: int
    timestamp: datetime
    directory: str
    method: GroupingMethod
    files_processed: int
    bytes_moved: int
    duration: float
    before_structure: DirectoryMap = field(default_factory=dict)
    after_structure: DirectoryMap = field(default_factory=dict)
    file_mappings: List[FileMapping] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    created_directories: List[str] = field(default_factory=list)
    is_reversed: bool = False
    original_operation_id: Optional[int] = None

    @property
    def is_redo(self) -> bool:
        """A forward re-application of an earlier operation."""
        return not self.is_reversed and self.original_operation_id is not None

    @property
    def kind(self) -> str:
        if self.is_reversed:
            return "undo"
        if self.is_redo:
            return "redo"
        return "organize"

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "directory": self.directory,
            "method": self.method.value,
            "files_processed": self.files_processed,
            "bytes_moved": self.bytes_moved,
            "duration": self.duration,
            "before_structure": serialize_directory_map(self.before_structure),
            "after_structure": serialize_directory_map(self.after_structure),
            "file_mappings": [m.to_dict() for m in self.file_mappings],
            "errors": list(self.errors),
            "skipped": list(self.skipped),
            "created_directories": list(self.created_directories),
            "is_reversed": self.is_reversed,
            "original_operation_id": self.original_operation_id,
        }


@dataclass(slots=True, frozen=True)
class FileOperationRow:
    """A single file move belonging to a history record."""
    id: int
    operation_id: int
    source_path: Path
    target_path: Path
    size: int
    modified_time: datetime
    operation_kind: FileOperationKind
    executed_at: datetime


@dataclass(slots=True, frozen=True)
class HistoryStats:
    """Aggregate figures over the whole history store."""
    total_operations: int
    total_files_processed: int
    total_bytes_processed: int
    last_operation_timestamp: Optional[datetime]
    available_undos: int
    available_redos: int

    def to_dict(self) -> Dict:
        return {
            "total_operations": self.total_operations,
            "total_files_processed": self.total_files_processed,
            "total_bytes_processed": self.total_bytes_processed,
            "last_operation_timestamp": (
                self.last_operation_timestamp.isoformat()
                if self.last_operation_timestamp else None
            ),
            "available_undos": self.available_undos,
            "available_redos": self.available_redos,
        }
