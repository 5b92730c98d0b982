"""Point-in-time maps of directories to the files they contain."""

from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from ..models.organization import (
    DirectoryMap,
    FileMapping,
    deserialize_directory_map,
    serialize_directory_map,
)

PathLike = Union[str, Path]


class DirectorySnapshot:
    """Builds DirectoryMaps from flat file lists."""

    @staticmethod
    def build(file_paths: Iterable[PathLike], base_path: Optional[PathLike] = None) -> DirectoryMap:
        """Group ``file_paths`` by containing directory.

        When ``base_path`` is given, directories under it are expressed
        relative to it (files directly inside it land under "."), so two
        snapshots of the same tree compare equal wherever the tree lives.
        Paths outside ``base_path`` keep their full directory.
        """
        base = Path(base_path) if base_path is not None else None
        structure: DirectoryMap = {}

        for file_path in file_paths:
            path = Path(file_path)
            parent = path.parent
            if base is not None:
                try:
                    parent = parent.relative_to(base)
                except ValueError:
                    pass
            structure.setdefault(parent.as_posix(), set()).add(path.name)

        return structure

    @staticmethod
    def apply_moves(file_paths: Iterable[PathLike], mappings: Iterable[FileMapping]) -> List[Path]:
        """File list after ``mappings`` have been carried out on ``file_paths``."""
        mappings = list(mappings)
        moved_sources = {Path(m.source_path) for m in mappings}
        remaining = [Path(p) for p in file_paths if Path(p) not in moved_sources]
        return remaining + [Path(m.target_path) for m in mappings]

    @staticmethod
    def file_set(dir_map: DirectoryMap) -> Set[str]:
        """Flatten a map back into "directory/name" strings."""
        return {f"{directory}/{name}" for directory, names in dir_map.items() for name in names}


__all__ = [
    "DirectorySnapshot",
    "serialize_directory_map",
    "deserialize_directory_map",
]
