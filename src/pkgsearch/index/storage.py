"""SQLite store holding the source package records."""

from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pkgsearch.errors import InvalidRecord
from pkgsearch.models import PackageRecord
from pkgsearch.utils.versions import is_valid_version, version_key


class SQLitePackageStore:
    """Persistence layer for the latest record of every package path."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        # One connection is shared by request workers and the refresh thread.
        self._lock = threading.RLock()
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the block as one transaction, holding the store lock throughout."""
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS packages (
                    package_path TEXT PRIMARY KEY,
                    module_path TEXT NOT NULL,
                    version TEXT NOT NULL,
                    name TEXT,
                    synopsis TEXT,
                    readme TEXT,
                    licenses TEXT,
                    commit_time TEXT,
                    num_imported_by INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TRIGGER IF NOT EXISTS packages_updated
                AFTER UPDATE ON packages
                BEGIN
                    UPDATE packages SET updated_at = CURRENT_TIMESTAMP
                    WHERE package_path = NEW.package_path;
                END;
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_packages_module_path
                    ON packages(module_path)
                """
            )

    def upsert_record(self, record: PackageRecord) -> str:
        """Store ``record`` unless a newer version of its package is already stored.

        Returns:
            'inserted', 'updated' or 'skipped'.
        """
        package_path = record.package_path.strip("/")
        if not package_path:
            raise InvalidRecord("package path is empty")
        if not is_valid_version(record.version):
            raise InvalidRecord(f"{package_path}: invalid version {record.version!r}")

        with self.transaction() as conn:
            existing = conn.execute(
                "SELECT version FROM packages WHERE package_path = ?",
                (package_path,),
            ).fetchone()

            if existing and version_key(existing["version"]) > version_key(record.version):
                return "skipped"

            conn.execute(
                """
                INSERT INTO packages(
                    package_path, module_path, version, name, synopsis,
                    readme, licenses, commit_time, num_imported_by
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(package_path) DO UPDATE SET
                    module_path = excluded.module_path,
                    version = excluded.version,
                    name = excluded.name,
                    synopsis = excluded.synopsis,
                    readme = excluded.readme,
                    licenses = excluded.licenses,
                    commit_time = excluded.commit_time,
                    num_imported_by = excluded.num_imported_by
                """,
                (
                    package_path,
                    record.module_path,
                    record.version,
                    record.name,
                    record.synopsis,
                    record.readme,
                    json.dumps(list(record.licenses), ensure_ascii=True),
                    record.commit_time.isoformat() if record.commit_time else None,
                    record.num_imported_by,
                ),
            )
        return "updated" if existing else "inserted"

    def iter_records(self) -> Iterator[PackageRecord]:
        """Yield every stored record, ordered by package path.

        Rows are fetched up front so the scan sees one consistent state.
        """
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT package_path, module_path, version, name, synopsis, readme,
                       licenses, commit_time, num_imported_by
                FROM packages
                ORDER BY package_path
                """
            ).fetchall()
        for row in rows:
            data = dict(row)
            data["licenses"] = json.loads(row["licenses"]) if row["licenses"] else []
            yield PackageRecord.from_dict(data)

    def get_record(self, package_path: str) -> PackageRecord | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM packages WHERE package_path = ?",
                (package_path.strip("/"),),
            ).fetchone()
        if row is None:
            return None
        data = dict(row)
        data["licenses"] = json.loads(row["licenses"]) if row["licenses"] else []
        return PackageRecord.from_dict(data)

    def delete_record(self, package_path: str) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM packages WHERE package_path = ?",
                (package_path.strip("/"),),
            )
        return cursor.rowcount > 0

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM packages").fetchone()[0]
