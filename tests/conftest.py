"""
Shared fixtures for the tracker tests.
"""

from collections import deque

import numpy as np
import pytest

from lk_tracker.model.tracking import LucasKanadeTracker


class ScriptedFlow:
    """Flow engine returning queued results; identity with success when the queue is empty."""

    def __init__(self):
        self.responses = deque()
        self.calls = []
        self.refine_offset = (0.0, 0.0)

    def queue(self, positions, flags):
        self.responses.append(
            (np.asarray(positions, dtype=np.float32).reshape(-1, 2), np.asarray(flags, dtype=bool))
        )

    def compute_flow(self, prev_gray, gray, points, window_size):
        points = np.asarray(points, dtype=np.float32).reshape(-1, 2)
        self.calls.append(points.copy())
        if self.responses:
            return self.responses.popleft()
        return points.copy(), np.ones(len(points), dtype=bool)

    def refine(self, gray, point, window_size):
        return (point[0] + self.refine_offset[0], point[1] + self.refine_offset[1])


@pytest.fixture
def flow():
    return ScriptedFlow()


@pytest.fixture
def frame():
    return np.zeros((100, 100, 3), dtype=np.uint8)


@pytest.fixture
def tracker(flow, frame):
    tracker = LucasKanadeTracker(flow=flow)
    tracker.show_frame(0, frame)
    return tracker
