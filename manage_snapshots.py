#!/usr/bin/env python3
"""
Snapshot Management Utility

This script provides utilities to inspect stored schedules:
- Show the stored snapshot of the configured event
- List recently delivered change reports
- Preview the report the next poll would send, without saving anything
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from utilities.logger import setup_logging
from utilities.config import config
from tracker.client import TrackerClient, TrackerFetchError
from tracker.storage import SnapshotStore
from scheduler.report import build_change_report


def create_store() -> SnapshotStore:
    return SnapshotStore(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        snapshot_collection=config.snapshot_collection,
        report_collection=config.report_collection
    )


async def show_snapshot(store: SnapshotStore):
    """Print the stored schedule in order."""
    snapshot = await store.previous(config.event_name)
    if snapshot is None:
        print(f"❌ No snapshot stored for {config.event_name}")
        return

    print(f"📋 {snapshot.event}: {len(snapshot.runs)} runs (fetched {snapshot.fetched_at.isoformat()})")
    print()
    for run in snapshot.runs:
        fields = run.fields
        print(f"{fields.order:4d}. [{run.pk}] {fields.name} - {fields.category} ({fields.console})")


async def list_reports(store: SnapshotStore, limit: int):
    """Print the most recent change reports."""
    reports = await store.recent_reports(config.event_name, limit=limit)
    if not reports:
        print(f"❌ No change reports stored for {config.event_name}")
        return

    for report in reports:
        print("=" * 60)
        print(f"🕒 {report.generated_at.isoformat()}  ({report.report_id})")
        print(report.text.strip())
    print("=" * 60)


async def preview_diff(store: SnapshotStore):
    """Fetch the live schedule and print what would be reported."""
    before = await store.previous(config.event_name)
    if before is None:
        print(f"❌ No snapshot stored for {config.event_name}, nothing to compare against")
        return

    try:
        after = await TrackerClient().fetch_snapshot(config.event_id, config.event_name)
    except TrackerFetchError as e:
        print(f"❌ Failed to fetch schedule: {e}")
        return

    report = build_change_report(before, after)
    if not report.has_changes:
        print("✅ No schedule changes")
        return

    print(report.text.strip())


async def main():
    """Main function."""
    if len(sys.argv) < 2:
        print("Usage: python manage_snapshots.py [show|reports|diff] [limit]")
        print()
        print("Commands:")
        print("  show     - Show the stored snapshot")
        print("  reports  - List recent change reports (default 5)")
        print("  diff     - Preview changes against the live schedule")
        sys.exit(1)

    command = sys.argv[1].lower()
    if command not in ("show", "reports", "diff"):
        print(f"❌ Unknown command: {command}")
        print("Available commands: show, reports, diff")
        sys.exit(1)

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    store = create_store()
    await store.connect()
    try:
        if command == "show":
            await show_snapshot(store)
        elif command == "reports":
            limit = int(sys.argv[2]) if len(sys.argv) > 2 else 5
            await list_reports(store, limit)
        else:
            await preview_diff(store)
    finally:
        await store.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
