"""
Tests for appending per-frame records after a flow pass.
"""

import numpy as np
import pytest

from lk_tracker.model.entities import PointRecord, PointStatus
from lk_tracker.model.tracking import (
    LengthMismatchError,
    TrackerState,
    TrajectoryStore,
    advance,
    project,
    reactivate_not_tracked,
    sync_user_status,
)


@pytest.fixture
def store():
    store = TrajectoryStore()
    store.create(0, PointRecord((10.0, 10.0)))
    store.create(0, PointRecord((50.0, 50.0), user_status=0b101))
    return store


class TestAdvance:
    """Tests for writing tracking results into the store."""

    def test_success_and_failure(self, store):
        previous = project(store, 0, TrackerState())
        positions = np.array([(12, 11), (50, 50)], dtype=np.float32)

        result = advance(store, 1, previous, positions, [True, False])

        assert result.updated == [0]
        assert result.invalidated == [1]
        assert result.some_points_invalid
        assert store.get(0, 1) == PointRecord((12.0, 11.0), PointStatus.VALID)
        assert store.get(1, 1).status is PointStatus.INVALID
        assert store.get(1, 1).position == (50.0, 50.0)

    def test_user_bits_carried_forward(self, store):
        previous = project(store, 0, TrackerState())
        advance(store, 1, previous, previous.positions.copy(), [True, True])
        assert store.get(1, 1).user_status == 0b101

    def test_invalid_and_non_existent_skipped(self, store):
        store.append(0, 1, PointRecord((10.0, 10.0), PointStatus.INVALID))
        store.append(1, 1, PointRecord((50.0, 50.0)))
        store.create(2, PointRecord((70.0, 70.0)))
        previous = project(store, 1, TrackerState())

        result = advance(store, 2, previous, previous.positions.copy(), [True] * 3)

        assert result.updated == [1]
        assert store.get(0, 2) is None
        assert store.get(2, 2) == PointRecord((70.0, 70.0))

    def test_stored_invalid_is_sticky(self, store):
        store.append(0, 1, PointRecord((30.0, 30.0), PointStatus.INVALID))
        previous = project(store, 0, TrackerState())

        result = advance(store, 1, previous, previous.positions.copy(), [True, True])

        assert result.skipped_invalid == [0]
        assert store.get(0, 1) == PointRecord((30.0, 30.0), PointStatus.INVALID)

    def test_not_tracked_keeps_status(self, store):
        state = TrackerState(track_only_active=True, active_id=1)
        previous = project(store, 0, state)

        result = advance(store, 1, previous, previous.positions.copy(), [True, True])

        assert result.updated == [0, 1]
        assert store.get(0, 1).status is PointStatus.NOT_TRACKED
        assert store.get(1, 1).status is PointStatus.VALID

    def test_length_mismatch(self, store):
        previous = project(store, 0, TrackerState())
        with pytest.raises(LengthMismatchError):
            advance(store, 1, previous, np.zeros((1, 2), dtype=np.float32), [True])


class TestSyncUserStatus:
    """Tests for writing the toggles into the active point."""

    def test_bits_follow_toggles(self, store):
        state = TrackerState(active_id=1, user_states=(False, True, False))

        assert sync_user_status(store, 0, state)
        assert store.get(1, 0).user_status == 0b010
        assert store.get(0, 0).user_status == 0

    def test_unchanged_bits_not_rewritten(self, store):
        state = TrackerState(active_id=1, user_states=(True, False, True))
        before = store.get(1, 0)

        assert not sync_user_status(store, 0, state)
        assert store.get(1, 0) is before

    def test_no_active_point(self, store):
        assert not sync_user_status(store, 0, TrackerState())
        assert not sync_user_status(store, 0, TrackerState(active_id=9))
        assert not sync_user_status(store, 3, TrackerState(active_id=0))


class TestReactivateNotTracked:
    def test_only_current_frame(self, store):
        store.append(0, 1, PointRecord((10.0, 10.0), PointStatus.NOT_TRACKED))
        store.append(0, 2, PointRecord((10.0, 10.0), PointStatus.NOT_TRACKED))
        store.append(1, 2, PointRecord((50.0, 50.0), PointStatus.INVALID))

        assert reactivate_not_tracked(store, 2) == [0]
        assert store.get(0, 2).status is PointStatus.VALID
        assert store.get(0, 1).status is PointStatus.NOT_TRACKED
        assert store.get(1, 2).status is PointStatus.INVALID
