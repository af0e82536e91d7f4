"""
Local SQLite store for saved web archive snapshots.

This module manages the single on-device database that caches
SavedSnapshot records across restarts:
- Upsert (insert or full replace by id)
- Point lookup by id
- Full listing, newest savedAt first
- Idempotent delete

Invariants:
    - One database file per process, opened lazily and at most once
    - Schema is created by an explicit versioned migration, never re-run
    - Every call is its own transaction; failed writes leave no trace
    - listAll ordering comes from an in-memory sort, not index order

How to change safely:
    - Schema changes go through migrations.py with a new version
    - Keep every engine call on the store's executor; the connection
      is shared and must see one transaction at a time

Table schema:
    snapshots:
        - id TEXT PRIMARY KEY NOT NULL
        - original_url TEXT (indexed, non-unique)
        - timestamp (indexed, non-unique, no type affinity)
        - saved_at NUMERIC (epoch ms)
        - record_json TEXT (full camelCase record)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ..config import StorageConfig
from ..errors import StorageInitError, StorageReadError, StorageWriteError
from .migrations import SCHEMA_VERSION, apply_migrations
from .models import SavedSnapshot

logger = logging.getLogger(__name__)

_global_store: SnapshotStore | None = None
_store_lock = threading.Lock()


class SnapshotStore:
    """Durable, indexed store for SavedSnapshot records.

    All public operations call open() first, so callers never manage
    the database handle. Blocking SQLite calls run on a single-worker
    executor; the engine therefore sees one serialized stream of
    transactions and the store adds no locking of its own beyond the
    single-flight guard on open().

    Example:
        >>> store = SnapshotStore("/tmp/omnidash")
        >>> await store.upsert(snapshot)
        >>> await store.list_all()
    """

    SCHEMA_VERSION = SCHEMA_VERSION

    def __init__(
        self,
        data_dir: str,
        db_name: str = "OmniDashDB",
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the snapshot store. Nothing touches disk until open().

        Args:
            data_dir: Directory for the SQLite database file
            db_name: Database name
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
        """
        self.data_dir = Path(data_dir)
        self.db_name = db_name
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: sqlite3.Connection | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: StorageConfig) -> SnapshotStore:
        return cls(
            data_dir=config.data_dir,
            db_name=config.db_name,
            wal_mode=config.wal_mode,
            busy_timeout_ms=config.busy_timeout_ms,
        )

    @property
    def db_path(self) -> Path:
        """Database file path."""
        return self.data_dir / f"{self.db_name}.db"

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        """Open the database and run pending migrations (executor thread)."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit by default, explicit transactions
            check_same_thread=False,
        )

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")

            applied = apply_migrations(conn, self.SCHEMA_VERSION)
        except Exception:
            conn.close()
            raise

        logger.info(
            f"Opened snapshot database: {self.db_path}",
            extra={"db_path": str(self.db_path), "migrations_applied": applied},
        )
        return conn

    async def open(self) -> None:
        """Open the database handle if it is not open yet.

        Safe to call repeatedly and concurrently: only the first caller
        runs the connect/migrate sequence, later callers wait for it and
        return once the handle is ready.

        Raises:
            StorageInitError: If the database cannot be opened or migrated
        """
        if self._conn is not None:
            return

        async with self._lock:
            if self._conn is not None:
                return

            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="snapshot-store"
                )

            loop = asyncio.get_event_loop()
            try:
                self._conn = await loop.run_in_executor(self._executor, self._connect)
            except StorageInitError as e:
                e.db_path = str(self.db_path)
                e.details["db_path"] = str(self.db_path)
                logger.debug(f"Snapshot database init failed: {e}")
                raise
            except (sqlite3.Error, OSError) as e:
                logger.debug(f"Snapshot database init failed: {e}")
                raise StorageInitError(
                    f"Cannot open snapshot database: {e}",
                    db_path=str(self.db_path),
                    cause=e,
                ) from e

    def close(self) -> None:
        """Close the handle and stop the executor.

        The application never needs this; it exists for tests and
        short-lived tools. A later operation re-opens lazily.
        """
        if self._executor is None:
            return
        if self._conn is not None:
            self._executor.submit(self._conn.close).result()
            self._conn = None
        self._executor.shutdown(wait=True)
        self._executor = None

    async def _run(self, func, *args):
        await self.open()
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    # ------------------------------------------------------------------
    # Engine calls (executor thread)
    # ------------------------------------------------------------------

    def _put(
        self,
        snapshot_id: str,
        original_url: str,
        timestamp,
        saved_at,
        record_json: str,
    ) -> None:
        conn = self._conn
        conn.execute("BEGIN IMMEDIATE")
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO snapshots
                    (id, original_url, timestamp, saved_at, record_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                (snapshot_id, original_url, timestamp, saved_at, record_json),
            )
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

    def _select_one(self, snapshot_id: str) -> str | None:
        cursor = self._conn.execute(
            "SELECT record_json FROM snapshots WHERE id = ?",
            (snapshot_id,),
        )
        row = cursor.fetchone()
        return row[0] if row else None

    def _select_all(self) -> list[str]:
        cursor = self._conn.execute("SELECT record_json FROM snapshots")
        return [row[0] for row in cursor.fetchall()]

    def _delete(self, snapshot_id: str) -> int:
        conn = self._conn
        conn.execute("BEGIN IMMEDIATE")
        try:
            cursor = conn.execute("DELETE FROM snapshots WHERE id = ?", (snapshot_id,))
            conn.execute("COMMIT")
            return cursor.rowcount
        except Exception:
            conn.execute("ROLLBACK")
            raise

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upsert(self, snapshot: SavedSnapshot) -> None:
        """Insert a snapshot, or replace the stored record with the same id.

        The previous record is replaced entirely; fields are never merged.

        Args:
            snapshot: Record to persist

        Raises:
            StorageInitError: If the database cannot be opened
            StorageWriteError: If the write transaction aborts
        """
        try:
            record_json = json.dumps(snapshot.to_dict())
        except (TypeError, ValueError) as e:
            raise StorageWriteError(
                f"Snapshot {snapshot.id!r} is not serializable: {e}",
                snapshot_id=snapshot.id,
                cause=e,
            ) from e

        try:
            await self._run(
                self._put,
                snapshot.id,
                snapshot.original_url,
                snapshot.timestamp,
                snapshot.saved_at,
                record_json,
            )
        except sqlite3.Error as e:
            raise StorageWriteError(
                f"Failed to save snapshot {snapshot.id!r}: {e}",
                snapshot_id=snapshot.id,
                cause=e,
            ) from e

        logger.debug(
            "Saved snapshot",
            extra={"snapshot_id": snapshot.id, "original_url": snapshot.original_url},
        )

    async def get_by_id(self, snapshot_id: str) -> SavedSnapshot | None:
        """Get a snapshot by id.

        Returns:
            The stored record, or None if no record has that id

        Raises:
            StorageReadError: If the read fails
        """
        try:
            record_json = await self._run(self._select_one, snapshot_id)
        except sqlite3.Error as e:
            raise StorageReadError(f"Failed to read snapshot {snapshot_id!r}: {e}", cause=e) from e

        if record_json is None:
            return None
        return _decode(record_json)

    async def list_all(self) -> list[SavedSnapshot]:
        """Get every snapshot, most recently saved first.

        Raises:
            StorageReadError: If the read fails
        """
        try:
            rows = await self._run(self._select_all)
        except sqlite3.Error as e:
            raise StorageReadError(f"Failed to list snapshots: {e}", cause=e) from e

        snapshots = [_decode(r) for r in rows]
        snapshots.sort(key=lambda s: s.saved_at, reverse=True)
        return snapshots

    async def delete_by_id(self, snapshot_id: str) -> None:
        """Delete a snapshot. Deleting an unknown id succeeds silently.

        Raises:
            StorageWriteError: If the delete transaction aborts
        """
        try:
            deleted = await self._run(self._delete, snapshot_id)
        except sqlite3.Error as e:
            raise StorageWriteError(
                f"Failed to delete snapshot {snapshot_id!r}: {e}",
                snapshot_id=snapshot_id,
                cause=e,
            ) from e

        logger.debug(
            "Deleted snapshot",
            extra={"snapshot_id": snapshot_id, "existed": deleted > 0},
        )


def _decode(record_json: str) -> SavedSnapshot:
    try:
        return SavedSnapshot.from_dict(json.loads(record_json))
    except (ValueError, KeyError, TypeError) as e:
        raise StorageReadError(f"Corrupted snapshot record: {e!r}", cause=e) from e


def get_snapshot_store(config: StorageConfig | None = None) -> SnapshotStore:
    """Get the process-wide snapshot store.

    Creates the store on first call; config is ignored afterwards.
    The database itself is opened lazily by the first operation.

    Returns:
        Global SnapshotStore instance
    """
    global _global_store
    with _store_lock:
        if _global_store is None:
            _global_store = SnapshotStore.from_config(config or StorageConfig.from_env())
        return _global_store


def reset_snapshot_store() -> None:
    """Close and drop the process-wide store (for testing only)."""
    global _global_store
    with _store_lock:
        if _global_store is not None:
            _global_store.close()
        _global_store = None
