"""
Schema migrations for the snapshot database.

Versions are tracked in our own schema_version table rather than
PRAGMA user_version, so the upgrade path does not depend on any
engine-native versioning.

Invariants:
    - Migrations for a version run at most once per database
    - All pending migrations apply in one transaction, or none do
    - A database newer than the code is refused, never downgraded

How to change safely:
    - Append a new version to MIGRATIONS and bump SCHEMA_VERSION
    - Never edit a migration that has shipped
"""

from __future__ import annotations

import logging
import sqlite3
import time

from ..errors import StorageInitError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

MIGRATIONS: dict[int, tuple[str, ...]] = {
    1: (
        """
        CREATE TABLE snapshots (
            id TEXT PRIMARY KEY NOT NULL,
            original_url TEXT NOT NULL,
            timestamp,
            saved_at NUMERIC NOT NULL,
            record_json TEXT NOT NULL
        )
        """,
        "CREATE INDEX idx_snapshots_timestamp ON snapshots(timestamp)",
        "CREATE INDEX idx_snapshots_original_url ON snapshots(original_url)",
    ),
}


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at INTEGER NOT NULL
        )
        """
    )


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied schema version, 0 for a fresh database."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
    )
    if cursor.fetchone() is None:
        return 0
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def apply_migrations(conn: sqlite3.Connection, target_version: int = SCHEMA_VERSION) -> list[int]:
    """Bring the database up to target_version.

    The connection must be in autocommit mode (isolation_level=None).
    The version is re-read after taking the write lock, so two processes
    opening the same fresh database cannot both create the schema.

    Args:
        conn: Open SQLite connection
        target_version: Version to migrate to

    Returns:
        Versions applied by this call, empty if already up to date

    Raises:
        StorageInitError: If the database is newer than target_version
        sqlite3.Error: If a migration statement fails (nothing is applied)
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        _ensure_version_table(conn)
        version = current_version(conn)

        if version > target_version:
            raise StorageInitError(
                f"Database schema version {version} is newer than supported "
                f"version {target_version}"
            )

        applied = []
        for next_version in range(version + 1, target_version + 1):
            for statement in MIGRATIONS[next_version]:
                conn.execute(statement)
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (next_version, int(time.time() * 1000)),
            )
            applied.append(next_version)

        conn.execute("COMMIT")

    except Exception:
        conn.execute("ROLLBACK")
        raise

    if applied:
        logger.info(f"Applied schema migrations: {applied}")
    return applied
