"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import AsyncMock

from tracker.models import Run, RunFields, Snapshot
from tracker.storage import SnapshotStore


def make_run(pk, name, order=1, **fields):
    """Build a Run with sensible defaults for every unset field."""
    return Run(pk=pk, fields=RunFields(name=name, order=order, **fields))


def make_snapshot(runs, event="SGDQ2018"):
    """Wrap runs into a Snapshot."""
    return Snapshot(event=event, runs=runs)


@pytest.fixture
def sample_run_payload():
    """A run record as returned by the tracker search API."""
    return {
        "pk": 2001,
        "model": "tracker.speedrun",
        "fields": {
            "category": "120 Star",
            "giantbomb_id": None,
            "coop": False,
            "console": "N64",
            "name": "Super Mario 64",
            "setup_time": "0:10:00",
            "event": 23,
            "order": 1,
            "public": "Super Mario 64 120 Star",
            "release_year": 1996,
            "run_time": "1:45:00",
            "starttime": "2018-06-24T16:30:00Z",
            "display_name": "Super Mario 64",
            "commentators": "",
            "endtime": "2018-06-24T18:25:00Z",
            "deprecated_runners": "cheese",
            "runners": [101],
            "description": "",
        },
    }


@pytest.fixture
def sample_runs():
    """Five runs in schedule order."""
    return [
        make_run(1, "Super Mario 64", order=1, category="120 Star", release_year=1996),
        make_run(2, "Celeste", order=2, category="Any%", release_year=2018),
        make_run(3, "Hollow Knight", order=3, category="All Skills", release_year=2017),
        make_run(4, "Hades", order=4, category="Fresh File", release_year=2020, runners=[7, 8]),
        make_run(5, "Tetris", order=5, category="Max Out", coop=False, release_year=None),
    ]


@pytest.fixture
def sample_snapshot(sample_runs):
    """Snapshot of the sample runs."""
    return make_snapshot(sample_runs)


@pytest.fixture
def mock_snapshot_store():
    """Create a mock snapshot store for testing."""
    store = AsyncMock(spec=SnapshotStore)
    store.previous.return_value = None
    return store


@pytest.fixture
def scheduler_config():
    """Create scheduler configuration for testing."""
    from scheduler.models import SchedulerConfig, AlertConfig
    return SchedulerConfig(
        event_id=23,
        event_name="SGDQ2018",
        poll_interval_seconds=60,
        timezone="UTC",
        store_reports=True,
        alert_config=AlertConfig(enabled=True, log_enabled=True)
    )


@pytest.fixture
def alert_config():
    """Create alert configuration for testing."""
    from scheduler.models import AlertConfig
    return AlertConfig(
        enabled=True,
        log_enabled=True
    )
