"""
Storage module for OmniDash - durable local cache of saved snapshots.

This module handles:
- The SavedSnapshot record type
- Versioned schema migrations
- The SQLite-backed SnapshotStore and its process-wide accessor

Invariants:
    - One database handle per process, opened lazily
    - Each public operation is its own transaction
    - list_all() is always ordered by savedAt, newest first
"""

from .migrations import SCHEMA_VERSION, apply_migrations, current_version
from .models import SavedSnapshot
from .snapshot_store import SnapshotStore, get_snapshot_store, reset_snapshot_store

__all__ = [
    "SCHEMA_VERSION",
    "apply_migrations",
    "current_version",
    "SavedSnapshot",
    "SnapshotStore",
    "get_snapshot_store",
    "reset_snapshot_store",
]
