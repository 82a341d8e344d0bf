"""
Tests for splitting the flat view into the flow batch and joining results back.
"""

import numpy as np
import pytest

from lk_tracker.model.entities import PointStatus
from lk_tracker.model.tracking import (
    ActiveSet,
    FrameView,
    LengthMismatchError,
    TrackerState,
    clamp_positions,
    freeze_failed,
    join,
    split,
)


def _view(statuses, positions=None):
    if positions is None:
        positions = [(10.0 * (i + 1), 5.0 * (i + 1)) for i in range(len(statuses))]
    return FrameView(
        frame_index=0,
        positions=np.asarray(positions, dtype=np.float32).reshape(-1, 2),
        statuses=list(statuses),
        records=[None] * len(statuses),
    )


V, I, N, T = (
    PointStatus.VALID,
    PointStatus.INVALID,
    PointStatus.NON_EXISTENT,
    PointStatus.NOT_TRACKED,
)


class TestSplit:
    """Tests for choosing the points submitted to the flow engine."""

    def test_only_valid_in_id_order(self):
        active = split(_view([V, I, N, V, T]), TrackerState())

        assert active.ids.tolist() == [0, 3]
        np.testing.assert_allclose(active.positions, [(10, 5), (40, 20)])

    def test_track_only_active(self):
        state = TrackerState(track_only_active=True, active_id=3)
        active = split(_view([T, I, N, V]), state)
        assert active.ids.tolist() == [3]

    def test_track_only_active_requires_valid(self):
        state = TrackerState(track_only_active=True, active_id=1)
        assert len(split(_view([T, I]), state)) == 0

    def test_track_only_active_without_active_point(self):
        state = TrackerState(track_only_active=True, active_id=None)
        assert len(split(_view([V, V]), state)) == 0

    def test_nothing_eligible(self):
        active = split(_view([I, N]), TrackerState())
        assert len(active) == 0
        assert active.positions.shape == (0, 2)

    def test_length_mismatch(self):
        view = _view([V, V])
        view.statuses.append(V)
        with pytest.raises(LengthMismatchError):
            split(view, TrackerState())


class TestJoin:
    """Tests for scattering flow results back by trajectory id."""

    def test_scatter_by_id(self):
        view = _view([V, I, V])
        active = split(view, TrackerState())
        positions = view.positions.copy()

        success = join(positions, active, [(1, 2), (3, 4)], [True, False])

        np.testing.assert_allclose(positions, [(1, 2), (20, 10), (3, 4)])
        assert success.tolist() == [True, True, False]

    def test_round_trip_identity(self):
        view = _view([V, T, N, V, I])
        active = split(view, TrackerState())
        positions = view.positions.copy()

        success = join(positions, active, active.positions.copy(), np.ones(len(active), dtype=bool))

        np.testing.assert_array_equal(positions, view.positions)
        assert success.all()

    def test_empty_batch(self):
        view = _view([I, N])
        positions = view.positions.copy()
        success = join(positions, ActiveSet.empty(), np.empty((0, 2)), [])
        assert success.tolist() == [True, True]

    def test_flag_length_mismatch(self):
        view = _view([V, V])
        active = split(view, TrackerState())
        with pytest.raises(LengthMismatchError):
            join(view.positions.copy(), active, [(1, 1), (2, 2)], [True])

    def test_mismatch_is_assertion(self):
        view = _view([V])
        active = split(view, TrackerState())
        with pytest.raises(AssertionError):
            join(view.positions.copy(), active, [(1, 1), (2, 2)], [True, True])


class TestClamp:
    """Tests for keeping points inside the image."""

    def test_clamp_to_border(self):
        positions = np.array([(-5, 3), (120, -1), (99.5, 99.9), (40, 40)], dtype=np.float32)

        clamp_positions(positions, 100, 80)

        np.testing.assert_allclose(positions, [(0, 3), (99, 0), (99, 79), (40, 40)])
        assert (positions[:, 0] >= 0).all() and (positions[:, 0] <= 99).all()
        assert (positions[:, 1] >= 0).all() and (positions[:, 1] <= 79).all()

    def test_clamp_empty(self):
        assert clamp_positions(np.empty((0, 2), dtype=np.float32), 10, 10).shape == (0, 2)


class TestFreezeFailed:
    """Tests for holding failed points at their previous position."""

    def test_failed_points_restored(self):
        positions = np.array([(1, 1), (2, 2)], dtype=np.float32)
        prior = np.array([(5, 5), (6, 6)], dtype=np.float32)

        freeze_failed(positions, prior, np.array([True, False]))

        np.testing.assert_allclose(positions, [(1, 1), (6, 6)])
