"""
OmniDash - local companion for a public web archive dashboard.

This package implements:
- A durable SQLite cache of snapshots the user chose to keep
- A thin async client for the archive's availability, history and
  capture endpoints
- A small HTTP API and CLI over the snapshot cache

Architecture:
    ┌─────────────┐     ┌──────────────┐     ┌────────────────┐
    │  UI / CLI   │────▶│  HTTP API    │────▶│ SnapshotStore  │
    └──────┬──────┘     └──────────────┘     └───────┬────────┘
           │                                         │
           ▼                                         ▼
    ┌─────────────┐                          ┌────────────────┐
    │WaybackClient│                          │ SQLite (local) │
    └─────────────┘                          └────────────────┘

Invariants:
    - The archive client never talks to the store directly
    - The store is opened at most once per process

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
