"""Tests for deriving the backup status from marker files."""

from datetime import datetime, timedelta, timezone

import pytest

from rsync_backup.markers import Marker
from rsync_backup.status import RunStatus, StatusResolver, StatusSnapshot, minutes_between

T0 = datetime(2024, 3, 7, 20, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def resolver(store) -> StatusResolver:
    return StatusResolver(store)


class TestResolve:
    def test_no_start_marker_means_no_status(self, resolver):
        snap = resolver.resolve(now=T0)
        assert snap == StatusSnapshot(RunStatus.NO_STATUS, None, None)

    def test_no_start_marker_ignores_other_markers(self, resolver, place_marker):
        place_marker(Marker.LOCK, T0)
        place_marker(Marker.SUCCESS, T0)
        assert resolver.resolve(now=T0).status is RunStatus.NO_STATUS

    def test_lock_means_running_for_now_minus_start(self, resolver, place_marker):
        place_marker(Marker.START, T0)
        place_marker(Marker.LOCK, T0)

        snap = resolver.resolve(now=T0 + timedelta(minutes=42, seconds=59))

        assert snap.status is RunStatus.RUNNING
        assert snap.started_at == T0
        assert snap.duration_minutes == 42

    def test_lock_takes_priority_over_previous_outcome(self, resolver, place_marker):
        place_marker(Marker.START, T0)
        place_marker(Marker.LOCK, T0)
        place_marker(Marker.ERROR, T0 - timedelta(days=1))
        assert resolver.resolve(now=T0).status is RunStatus.RUNNING

    def test_error_means_failed_with_error_mtime_duration(self, resolver, place_marker, store):
        place_marker(Marker.START, T0)
        place_marker(Marker.ERROR, T0 + timedelta(minutes=7, seconds=30))

        snap = resolver.resolve(now=T0 + timedelta(hours=5))

        assert snap.status is RunStatus.FAILED
        assert snap.duration_minutes == 7
        assert not store.exists(Marker.SUCCESS)

    def test_error_wins_over_success(self, resolver, place_marker):
        place_marker(Marker.START, T0)
        place_marker(Marker.ERROR, T0 + timedelta(minutes=1))
        place_marker(Marker.SUCCESS, T0 + timedelta(minutes=2))
        assert resolver.resolve(now=T0).status is RunStatus.FAILED

    def test_success_means_succeeded(self, resolver, place_marker):
        place_marker(Marker.START, T0)
        place_marker(Marker.SUCCESS, T0 + timedelta(hours=2, minutes=3))

        snap = resolver.resolve(now=T0 + timedelta(days=1))

        assert snap.status is RunStatus.SUCCEEDED
        assert snap.started_at == T0
        assert snap.duration_minutes == 123

    def test_start_only_is_indeterminate(self, resolver, place_marker):
        place_marker(Marker.START, T0)

        snap = resolver.resolve(now=T0 + timedelta(minutes=10))

        assert snap.status is RunStatus.NO_STATUS
        assert snap.started_at == T0
        assert snap.duration_minutes is None

    def test_outcome_older_than_start_clamps_to_zero(self, resolver, place_marker):
        place_marker(Marker.START, T0)
        place_marker(Marker.SUCCESS, T0 - timedelta(minutes=30))
        assert resolver.resolve(now=T0).duration_minutes == 0

    def test_default_now_comes_from_clock(self, store, place_marker):
        place_marker(Marker.START, T0)
        place_marker(Marker.LOCK, T0)
        resolver = StatusResolver(store, clock=lambda: T0 + timedelta(minutes=5))
        assert resolver.resolve().duration_minutes == 5

    def test_repeated_resolves_agree(self, resolver, place_marker):
        place_marker(Marker.START, T0)
        place_marker(Marker.ERROR, T0 + timedelta(minutes=3))
        now = T0 + timedelta(hours=1)
        assert resolver.resolve(now=now) == resolver.resolve(now=now)

    def test_resolve_does_not_touch_markers(self, resolver, place_marker, store):
        place_marker(Marker.START, T0)
        place_marker(Marker.SUCCESS, T0 + timedelta(minutes=1))
        before = sorted(p.name for p in store.folder.iterdir())
        resolver.resolve(now=T0)
        assert sorted(p.name for p in store.folder.iterdir()) == before


class TestDaylightSaving:
    """Durations are real elapsed time, not wall-clock differences."""

    def test_failed_run_across_fall_back(self, eastern_time, resolver, place_marker):
        # 01:50 EDT, then 01:10 EST twenty minutes later
        start = datetime(2024, 11, 3, 5, 50, tzinfo=timezone.utc)
        place_marker(Marker.START, start)
        place_marker(Marker.ERROR, start + timedelta(minutes=20))

        snap = resolver.resolve()

        assert snap.status is RunStatus.FAILED
        assert snap.duration_minutes == 20
        assert (snap.started_at.hour, snap.started_at.minute) == (1, 50)

    def test_running_across_spring_forward(self, eastern_time, store, place_marker):
        # 01:50 EST, then 03:10 EDT twenty minutes later
        start = datetime(2024, 3, 10, 6, 50, tzinfo=timezone.utc)
        place_marker(Marker.START, start)
        place_marker(Marker.LOCK, start)
        resolver = StatusResolver(
            store, clock=lambda: (start + timedelta(minutes=20)).astimezone()
        )

        assert resolver.resolve().duration_minutes == 20


class TestMinutesBetween:
    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(seconds=59), 0),
            (timedelta(minutes=1), 1),
            (timedelta(minutes=90, seconds=59), 90),
            (timedelta(minutes=-5), 0),
        ],
    )
    def test_truncates_and_clamps(self, delta, expected):
        assert minutes_between(T0, T0 + delta) == expected
