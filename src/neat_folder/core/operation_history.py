"""Operation history tracking for neat-folder.

Every organize, undo and redo run becomes one append-only row in
``organization_history`` plus one ``file_operations`` row per file it
touched. The undo/redo controller reads these records back to reverse or
replay a run.
"""

import json
import logging
import os
import sqlite3
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..exceptions import HistoryError
from ..models.history import (
    FileOperationKind,
    FileOperationRow,
    HistoryStats,
    OrganizationHistoryRecord,
)
from ..models.organization import (
    DirectoryMap,
    FileMapping,
    GroupingMethod,
    OrganizationStats,
    deserialize_directory_map,
    serialize_directory_map,
)

logger = logging.getLogger(__name__)

EXPORT_LIMIT = 1000

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS organization_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        directory TEXT NOT NULL,
        method TEXT NOT NULL,
        files_processed INTEGER NOT NULL,
        bytes_moved INTEGER NOT NULL,
        duration REAL NOT NULL,
        before_structure TEXT NOT NULL,
        after_structure TEXT NOT NULL,
        file_mappings TEXT NOT NULL,
        errors TEXT NOT NULL,
        skipped TEXT NOT NULL,
        created_directories TEXT NOT NULL DEFAULT '[]',
        is_reversed INTEGER NOT NULL DEFAULT 0,
        original_operation_id INTEGER NULL,
        FOREIGN KEY (original_operation_id) REFERENCES organization_history(id)
    );

    CREATE TABLE IF NOT EXISTS file_operations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        operation_id INTEGER NOT NULL,
        source_path TEXT NOT NULL,
        target_path TEXT NOT NULL,
        size INTEGER NOT NULL,
        modified_time TEXT NOT NULL,
        operation_kind TEXT NOT NULL,
        executed_at TEXT NOT NULL,
        FOREIGN KEY (operation_id) REFERENCES organization_history(id)
    );

    CREATE INDEX IF NOT EXISTS idx_history_timestamp ON organization_history(timestamp);
    CREATE INDEX IF NOT EXISTS idx_history_directory ON organization_history(directory);
    CREATE INDEX IF NOT EXISTS idx_history_original ON organization_history(original_operation_id);
    CREATE INDEX IF NOT EXISTS idx_file_operations_operation_id ON file_operations(operation_id);
"""

_NEWEST_FIRST = "ORDER BY timestamp DESC, id DESC"


def _now() -> str:
    return datetime.now().isoformat(timespec="microseconds")


def _camel_case(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _export_record(record: OrganizationHistoryRecord) -> Dict:
    """A record as it appears in an export file, with camelCase keys throughout."""
    data = record.to_dict()
    data["file_mappings"] = [
        {_camel_case(key): value for key, value in mapping.items()}
        for mapping in data["file_mappings"]
    ]
    # Directory maps are keyed by path and stay as they are
    return {_camel_case(key): value for key, value in data.items()}


class OperationHistoryStore:
    """Append-only history of organization runs backed by SQLite."""

    def __init__(self, db_path: Union[Path, str] = ":memory:"):
        """Open (creating if needed) the history database at ``db_path``."""
        if str(db_path) == ":memory:":
            self.db_path: Union[Path, str] = ":memory:"
        else:
            self.db_path = Path(db_path).expanduser().resolve()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._init_database()

    def _init_database(self) -> None:
        """Initialize the SQLite database with required tables."""
        with self._conn:
            self._conn.executescript(_SCHEMA)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def log_organization(self, directory: Union[Path, str], method,
                               before: DirectoryMap, after: DirectoryMap,
                               mappings: List[FileMapping], stats: OrganizationStats,
                               duration: float) -> int:
        """Persist one completed organize run and return its operation id.

        Raises:
            HistoryError: If the record cannot be written. Nothing is
                stored in that case.
        """
        operation_id = self._insert_record(
            directory=str(directory),
            method=GroupingMethod.parse(method),
            files_processed=stats.files_processed,
            bytes_moved=stats.bytes_moved,
            duration=duration,
            before=before,
            after=after,
            mappings=mappings,
            errors=stats.errors,
            skipped=stats.skipped,
            created_directories=stats.new_directories,
            is_reversed=False,
            original_operation_id=None,
            file_rows=mappings,
            kind=FileOperationKind.MOVE,
        )
        logger.info(f"Operation logged with ID: {operation_id}")
        return operation_id

    async def log_undo(self, original: OrganizationHistoryRecord, files_restored: int,
                       restored: List[FileMapping], errors: Optional[List[str]] = None) -> int:
        """Persist the reversal of ``original`` and return the new record id.

        The before/after structures are swapped relative to the original.
        """
        operation_id = self._insert_record(
            directory=original.directory,
            method=original.method,
            files_processed=files_restored,
            bytes_moved=0,
            duration=0.0,
            before=original.after_structure,
            after=original.before_structure,
            mappings=original.file_mappings,
            errors=errors or [],
            skipped=[],
            created_directories=[],
            is_reversed=True,
            original_operation_id=original.id,
            file_rows=restored,
            kind=FileOperationKind.UNDO_MOVE,
        )
        logger.info(f"Undo of operation {original.id} logged with ID: {operation_id}")
        return operation_id

    async def log_redo(self, original: OrganizationHistoryRecord, files_moved: int,
                       moved: List[FileMapping], errors: Optional[List[str]] = None,
                       created_directories: Optional[Iterable[str]] = None) -> int:
        """Persist a forward re-application of ``original`` and return the new record id.

        Redo records are ordinary (non-reversed) records that point back
        at the operation they replay. ``created_directories`` lists the
        directories the redo had to create.
        """
        operation_id = self._insert_record(
            directory=original.directory,
            method=original.method,
            files_processed=files_moved,
            bytes_moved=0,
            duration=0.0,
            before=original.before_structure,
            after=original.after_structure,
            mappings=original.file_mappings,
            errors=errors or [],
            skipped=[],
            created_directories=created_directories or [],
            is_reversed=False,
            original_operation_id=original.id,
            file_rows=moved,
            kind=FileOperationKind.MOVE,
        )
        logger.info(f"Redo of operation {original.id} logged with ID: {operation_id}")
        return operation_id

    def _insert_record(self, *, directory: str, method: GroupingMethod,
                       files_processed: int, bytes_moved: int, duration: float,
                       before: DirectoryMap, after: DirectoryMap,
                       mappings: Iterable[FileMapping], errors: Iterable[str],
                       skipped: Iterable[str], created_directories: Iterable[str],
                       is_reversed: bool,
                       original_operation_id: Optional[int],
                       file_rows: Iterable[FileMapping],
                       kind: FileOperationKind) -> int:
        timestamp = _now()
        try:
            values = (
                timestamp,
                directory,
                method.value,
                files_processed,
                bytes_moved,
                duration,
                json.dumps(serialize_directory_map(before)),
                json.dumps(serialize_directory_map(after)),
                json.dumps([m.to_dict() for m in mappings]),
                json.dumps(list(errors)),
                json.dumps(list(skipped)),
                json.dumps(sorted(str(d) for d in created_directories)),
                1 if is_reversed else 0,
                original_operation_id,
            )
            file_values = [
                (m.source_path, m.target_path, m.size, m.modified_time.isoformat())
                for m in file_rows
            ]

            # One transaction: either the record and all of its rows land, or nothing does
            with self._conn:
                cursor = self._conn.execute(
                    """INSERT INTO organization_history
                       (timestamp, directory, method, files_processed, bytes_moved, duration,
                        before_structure, after_structure, file_mappings, errors, skipped,
                        created_directories, is_reversed, original_operation_id)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    values
                )
                operation_id = cursor.lastrowid
                self._conn.executemany(
                    """INSERT INTO file_operations
                       (operation_id, source_path, target_path, size, modified_time,
                        operation_kind, executed_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    [
                        (operation_id, str(source), str(target), size, mtime, kind.value, timestamp)
                        for source, target, size, mtime in file_values
                    ]
                )
            return operation_id

        except (sqlite3.Error, TypeError, ValueError) as e:
            raise HistoryError(f"Failed to log operation for {directory}: {e}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_history(self, limit: int = 10,
                          directory: Optional[Union[Path, str]] = None) -> List[OrganizationHistoryRecord]:
        """Most recent records first, optionally only those for ``directory``."""
        query = "SELECT * FROM organization_history"
        params: list = []
        if directory is not None:
            query += " WHERE directory = ?"
            params.append(str(directory))
        query += f" {_NEWEST_FIRST} LIMIT ?"
        params.append(limit)

        cursor = self._conn.execute(query, params)
        return [self._row_to_record(row) for row in cursor.fetchall()]

    async def get_by_id(self, operation_id: int) -> Optional[OrganizationHistoryRecord]:
        """Get a specific record by ID."""
        return self._fetch_one(
            "SELECT * FROM organization_history WHERE id = ?", (operation_id,)
        )

    async def get_last_operation(self) -> Optional[OrganizationHistoryRecord]:
        """Most recent record that is not a reversal."""
        return self._fetch_one(
            f"SELECT * FROM organization_history WHERE is_reversed = 0 {_NEWEST_FIRST} LIMIT 1"
        )

    async def get_last_undo_operation(self) -> Optional[OrganizationHistoryRecord]:
        """Most recent reversal record."""
        return self._fetch_one(
            f"SELECT * FROM organization_history WHERE is_reversed = 1 {_NEWEST_FIRST} LIMIT 1"
        )

    async def find_reversal_of(self, operation_id: int) -> Optional[OrganizationHistoryRecord]:
        """The reversal record that already undid ``operation_id``, if any."""
        return self._fetch_one(
            f"""SELECT * FROM organization_history
                WHERE is_reversed = 1 AND original_operation_id = ?
                {_NEWEST_FIRST} LIMIT 1""",
            (operation_id,)
        )

    async def find_redo_of(self, undo_record: OrganizationHistoryRecord) -> Optional[OrganizationHistoryRecord]:
        """The redo record, logged after ``undo_record``, that replayed its original."""
        return self._fetch_one(
            f"""SELECT * FROM organization_history
                WHERE is_reversed = 0 AND original_operation_id = ? AND id > ?
                {_NEWEST_FIRST} LIMIT 1""",
            (undo_record.original_operation_id, undo_record.id)
        )

    async def get_file_operations(self, operation_id: int) -> List[FileOperationRow]:
        """Per-file rows recorded for one operation, in execution order."""
        cursor = self._conn.execute(
            "SELECT * FROM file_operations WHERE operation_id = ? ORDER BY id",
            (operation_id,)
        )
        return [
            FileOperationRow(
                id=row["id"],
                operation_id=row["operation_id"],
                source_path=Path(row["source_path"]),
                target_path=Path(row["target_path"]),
                size=row["size"],
                modified_time=datetime.fromisoformat(row["modified_time"]),
                operation_kind=FileOperationKind(row["operation_kind"]),
                executed_at=datetime.fromisoformat(row["executed_at"]),
            )
            for row in cursor.fetchall()
        ]

    async def get_structure_comparison(self, operation_id: int) -> Optional[Tuple[DirectoryMap, DirectoryMap]]:
        """(before, after) directory maps of one operation."""
        record = await self.get_by_id(operation_id)
        if record is None:
            return None
        return record.before_structure, record.after_structure

    async def get_stats(self) -> HistoryStats:
        """Aggregate figures over all stored records."""
        row = self._conn.execute(
            """SELECT
                   COUNT(*) AS total_operations,
                   COALESCE(SUM(CASE WHEN is_reversed = 0 THEN files_processed END), 0) AS total_files,
                   COALESCE(SUM(CASE WHEN is_reversed = 0 THEN bytes_moved END), 0) AS total_bytes,
                   MAX(timestamp) AS last_timestamp
               FROM organization_history"""
        ).fetchone()

        available_undos = self._conn.execute(
            """SELECT COUNT(*) FROM organization_history
               WHERE is_reversed = 0 AND id NOT IN (
                   SELECT original_operation_id FROM organization_history
                   WHERE is_reversed = 1 AND original_operation_id IS NOT NULL
               )"""
        ).fetchone()[0]

        available_redos = self._conn.execute(
            """SELECT COUNT(*) FROM organization_history
               WHERE is_reversed = 1 AND original_operation_id IS NOT NULL"""
        ).fetchone()[0]

        return HistoryStats(
            total_operations=row["total_operations"],
            total_files_processed=row["total_files"],
            total_bytes_processed=row["total_bytes"],
            last_operation_timestamp=(
                datetime.fromisoformat(row["last_timestamp"]) if row["last_timestamp"] else None
            ),
            available_undos=available_undos,
            available_redos=available_redos,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def clear_history(self) -> None:
        """Delete every record and file row. Cannot be undone."""
        with self._conn:
            self._conn.execute("DELETE FROM file_operations")
            self._conn.execute("DELETE FROM organization_history")
        logger.info("History cleared")

    async def export_history(self, file_path: Union[Path, str], limit: int = EXPORT_LIMIT) -> int:
        """Write up to ``limit`` recent records to a JSON file and return how many were written.

        The file is written to a temporary sibling first and then renamed
        into place, so readers never see a half-written export.
        """
        file_path = Path(file_path)
        history = await self.get_history(limit)
        export_data: Dict = {
            "exportedAt": datetime.now().isoformat(),
            "totalRecords": len(history),
            "history": [_export_record(record) for record in history],
        }

        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(export_data, f, indent=2)
            os.replace(tmp_name, file_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(f"History exported to {file_path}")
        return len(history)

    def close(self) -> None:
        self._conn.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    def _fetch_one(self, query: str, params: tuple = ()) -> Optional[OrganizationHistoryRecord]:
        row = self._conn.execute(query, params).fetchone()
        return self._row_to_record(row) if row else None

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> OrganizationHistoryRecord:
        return OrganizationHistoryRecord(
            id=row["id"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            directory=row["directory"],
            method=GroupingMethod.parse(row["method"]),
            files_processed=row["files_processed"],
            bytes_moved=row["bytes_moved"],
            duration=row["duration"],
            before_structure=deserialize_directory_map(json.loads(row["before_structure"])),
            after_structure=deserialize_directory_map(json.loads(row["after_structure"])),
            file_mappings=[FileMapping.from_dict(m) for m in json.loads(row["file_mappings"])],
            errors=json.loads(row["errors"]),
            skipped=json.loads(row["skipped"]),
            created_directories=json.loads(row["created_directories"]),
            is_reversed=bool(row["is_reversed"]),
            original_operation_id=row["original_operation_id"],
        )
