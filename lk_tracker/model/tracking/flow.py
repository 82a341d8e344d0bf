"""Pyramidal Lucas-Kanade flow and sub-pixel refinement backed by OpenCV."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

import cv2
import numpy as np

from ..entities import Point2D


class FlowEngine(Protocol):
    def compute_flow(
        self, prev_gray: np.ndarray, gray: np.ndarray, points: np.ndarray, window_size: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        ...

    def refine(self, gray: np.ndarray, point: Point2D, window_size: int) -> Point2D:
        ...


def to_gray(frame_bgr: np.ndarray) -> np.ndarray:
    if frame_bgr.ndim == 2:
        return frame_bgr
    return cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2GRAY)


@dataclass
class LucasKanadeFlow:
    """
    Sparse optical flow between two grayscale frames.

    Attributes:
        max_level (int): Highest pyramid level used by the search.
        term_count (int): Iteration limit of the termination criteria.
        term_epsilon (float): Convergence epsilon of the termination criteria.
        min_eig_threshold (float): Points whose spatial gradient matrix has a
            smaller minimum eigenvalue are reported as failed.
    """

    max_level: int = 10
    term_count: int = 20
    term_epsilon: float = 0.03
    min_eig_threshold: float = 0.001

    @property
    def criteria(self) -> Tuple[int, int, float]:
        return (
            cv2.TERM_CRITERIA_COUNT | cv2.TERM_CRITERIA_EPS,
            self.term_count,
            self.term_epsilon,
        )

    def compute_flow(
        self, prev_gray: np.ndarray, gray: np.ndarray, points: np.ndarray, window_size: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Track ``points`` (N, 2) from ``prev_gray`` to ``gray``.

        Returns:
            Tuple[np.ndarray, np.ndarray]: new positions (N, 2) float32 and
            success flags (N,) bool. An empty input yields empty outputs.
        """
        points = np.asarray(points, dtype=np.float32).reshape(-1, 2)
        if len(points) == 0:
            return np.empty((0, 2), dtype=np.float32), np.empty((0,), dtype=bool)

        next_pts, status, _err = cv2.calcOpticalFlowPyrLK(
            prev_gray,
            gray,
            points.reshape(-1, 1, 2),
            None,
            winSize=(window_size, window_size),
            maxLevel=self.max_level,
            criteria=self.criteria,
            flags=0,
            minEigThreshold=self.min_eig_threshold,
        )
        if next_pts is None or status is None:
            return points.copy(), np.zeros(len(points), dtype=bool)
        return next_pts.reshape(-1, 2).astype(np.float32), status.reshape(-1).astype(bool)

    def refine(self, gray: np.ndarray, point: Point2D, window_size: int) -> Point2D:
        """Snap a clicked position to the nearest corner with sub-pixel accuracy."""
        corners = np.array([[point]], dtype=np.float32)
        height, width = gray.shape[:2]
        # cornerSubPix needs the search window to fit inside the image.
        half = min(window_size, (min(width, height) - 5) // 2)
        if half < 1:
            return float(point[0]), float(point[1])
        refined = cv2.cornerSubPix(gray, corners, (half, half), (-1, -1), self.criteria)
        x, y = refined.reshape(2)
        return float(x), float(y)
