"""Data models for a single organization run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Set

from ..exceptions import ConfigurationError


# Directory path -> names of the files it holds
DirectoryMap = Dict[str, Set[str]]


class GroupingMethod(Enum):
    """How files are grouped into category directories."""
    EXTENSION = "extension"
    NAME = "name"
    DATE = "date"
    SIZE = "size"

    @classmethod
    def parse(cls, value) -> "GroupingMethod":
        """Coerce a string (or an existing member) into a grouping method."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ConfigurationError(f"Invalid method: {value} (expected one of {valid})")


@dataclass(slots=True, frozen=True)
class FileMapping:
    """Where one file lives now and where it is going."""
    source_path: Path
    target_path: Path
    size: int
    modified_time: datetime

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_path": str(self.source_path),
            "target_path": str(self.target_path),
            "size": self.size,
            "modified_time": self.modified_time.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "FileMapping":
        """Create from dictionary."""
        return cls(
            source_path=Path(data["source_path"]),
            target_path=Path(data["target_path"]),
            size=int(data["size"]),
            modified_time=datetime.fromisoformat(data["modified_time"]),
        )


@dataclass
class OrganizationStats:
    """Counters for one organize() run.

    Owned by the run that creates it; treat it as read-only once the run
    has returned.
    """
    files_processed: int = 0
    bytes_moved: int = 0
    errors: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    created: Set[str] = field(default_factory=set)
    # Directories that did not exist before the run; undo removes these when empty
    new_directories: Set[str] = field(default_factory=set)

    def record_move(self, mapping: FileMapping, simulated: bool = False) -> None:
        """Account for one file that reached (or, in a dry run, would reach) its target."""
        self.files_processed += 1
        self.bytes_moved += mapping.size
        if not simulated:
            self.created.add(str(mapping.target_path.parent))

    def to_dict(self) -> Dict:
        return {
            "files_processed": self.files_processed,
            "bytes_moved": self.bytes_moved,
            "errors": list(self.errors),
            "skipped": list(self.skipped),
            "created": sorted(self.created),
            "new_directories": sorted(self.new_directories),
        }


def serialize_directory_map(dir_map: DirectoryMap) -> Dict[str, List[str]]:
    """Convert a directory map into JSON-friendly sorted lists."""
    return {directory: sorted(files) for directory, files in sorted(dir_map.items())}


def deserialize_directory_map(data: Dict[str, List[str]]) -> DirectoryMap:
    """Rebuild a directory map from its serialized form."""
    return {directory: set(files) for directory, files in data.items()}
