"""
Snapshot CLI tool for OmniDash.

This tool manages the local snapshot cache from a terminal:
- list: Print all saved snapshots, newest first
- get: Print one snapshot
- delete: Remove one snapshot
- capture: Ask the archive to capture a URL, then save a record of it

Usage:
    omnidash-snapshots list
    omnidash-snapshots get <id>
    omnidash-snapshots delete <id>
    omnidash-snapshots capture https://example.com --title "Example"

Invariants:
    - Output on stdout is JSON, messages go to stderr
    - A failed capture persists nothing
    - Exit code is non-zero on any failure or a missed lookup
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone

from ..archive import WaybackClient
from ..config import AppConfig
from ..errors import ArchiveError, OmniDashError
from ..storage import SavedSnapshot, SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotCLI:
    """CLI commands over a snapshot store and an archive client.

    Each command returns a process exit code.

    Example:
        >>> cli = SnapshotCLI(store, client)
        >>> await cli.capture("https://example.com", "key", "secret")
    """

    def __init__(self, store: SnapshotStore, archive: WaybackClient) -> None:
        self.store = store
        self.archive = archive

    async def list_snapshots(self) -> int:
        snapshots = await self.store.list_all()
        print(json.dumps([s.to_dict() for s in snapshots], indent=2))
        return 0

    async def get_snapshot(self, snapshot_id: str) -> int:
        snapshot = await self.store.get_by_id(snapshot_id)
        if snapshot is None:
            print(f"Snapshot {snapshot_id} not found", file=sys.stderr)
            return 1
        print(json.dumps(snapshot.to_dict(), indent=2))
        return 0

    async def delete_snapshot(self, snapshot_id: str) -> int:
        await self.store.delete_by_id(snapshot_id)
        print(f"Deleted snapshot {snapshot_id}", file=sys.stderr)
        return 0

    async def capture(
        self,
        url: str,
        access_key: str | None,
        secret_key: str | None,
        title: str | None = None,
    ) -> int:
        """Request a capture and save a record of it on success.

        Args:
            url: URL to capture
            access_key: Archive access key
            secret_key: Archive secret key
            title: Optional display title for the saved record

        Returns:
            0 on success, 1 if the archive refused the capture
        """
        try:
            result = await self.archive.save_page_now(url, access_key or "", secret_key or "")
        except ArchiveError as e:
            print(f"Capture failed: {e.message}", file=sys.stderr)
            return 1

        snapshot = SavedSnapshot(
            id=uuid.uuid4().hex,
            original_url=url,
            timestamp=datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S"),
            saved_at=int(time.time() * 1000),
            title=title,
            status="queued",
        )
        await self.store.upsert(snapshot)
        logger.info(f"Saved capture record {snapshot.id} for {url}")

        print(result.message, file=sys.stderr)
        print(json.dumps(snapshot.to_dict(), indent=2))
        return 0


async def _run(args: argparse.Namespace, config: AppConfig) -> int:
    store = SnapshotStore.from_config(config.storage)
    try:
        async with WaybackClient(config.archive) as archive:
            cli = SnapshotCLI(store, archive)

            if args.command == "list":
                return await cli.list_snapshots()
            elif args.command == "get":
                return await cli.get_snapshot(args.id)
            elif args.command == "delete":
                return await cli.delete_snapshot(args.id)
            elif args.command == "capture":
                return await cli.capture(
                    args.url,
                    config.archive.access_key,
                    config.archive.secret_key,
                    title=args.title,
                )
            return 2
    finally:
        store.close()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for snapshot tool."""
    parser = argparse.ArgumentParser(description="OmniDash snapshot cache tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List saved snapshots, newest first")

    get_parser = subparsers.add_parser("get", help="Show one saved snapshot")
    get_parser.add_argument("id", help="Snapshot ID")

    delete_parser = subparsers.add_parser("delete", help="Delete a saved snapshot")
    delete_parser.add_argument("id", help="Snapshot ID")

    capture_parser = subparsers.add_parser("capture", help="Capture a URL and save a record")
    capture_parser.add_argument("url", help="URL to capture")
    capture_parser.add_argument("--title", help="Display title for the saved record")

    args = parser.parse_args(argv)

    try:
        config = AppConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        code = asyncio.run(_run(args, config))
    except OmniDashError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
