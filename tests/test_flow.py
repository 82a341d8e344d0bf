"""
Tests for the OpenCV-backed flow engine.
"""

import cv2
import numpy as np
import pytest

from lk_tracker.model.tracking import LucasKanadeFlow, to_gray


@pytest.fixture
def texture():
    rng = np.random.default_rng(7)
    noise = rng.integers(0, 255, size=(120, 160), dtype=np.uint8)
    return cv2.GaussianBlur(noise, (7, 7), 2)


class TestLucasKanadeFlow:
    def test_empty_input(self, texture):
        positions, flags = LucasKanadeFlow().compute_flow(texture, texture, np.empty((0, 2)), 21)
        assert positions.shape == (0, 2)
        assert flags.shape == (0,)

    def test_follows_shift(self, texture):
        shifted = np.roll(texture, 3, axis=1)
        points = np.array([(60.0, 50.0), (90.0, 70.0)], dtype=np.float32)

        positions, flags = LucasKanadeFlow(max_level=3).compute_flow(texture, shifted, points, 21)

        assert flags.all()
        np.testing.assert_allclose(positions, points + (3.0, 0.0), atol=0.5)

    def test_criteria(self):
        flow = LucasKanadeFlow(term_count=7, term_epsilon=0.5)
        assert flow.criteria == (cv2.TERM_CRITERIA_COUNT | cv2.TERM_CRITERIA_EPS, 7, 0.5)

    def test_refine_snaps_to_corner(self):
        image = np.zeros((80, 80), dtype=np.uint8)
        image[40:, 40:] = 255
        image = cv2.GaussianBlur(image, (5, 5), 1)

        x, y = LucasKanadeFlow().refine(image, (42.0, 41.0), 5)

        assert x == pytest.approx(39.5, abs=1.0)
        assert y == pytest.approx(39.5, abs=1.0)

    def test_refine_on_tiny_image(self):
        assert LucasKanadeFlow().refine(np.zeros((6, 6), dtype=np.uint8), (2.0, 3.0), 31) == (2.0, 3.0)

    def test_to_gray(self):
        bgr = np.zeros((4, 5, 3), dtype=np.uint8)
        assert to_gray(bgr).shape == (4, 5)
        gray = np.zeros((4, 5), dtype=np.uint8)
        assert to_gray(gray) is gray
