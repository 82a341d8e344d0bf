from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple, Union
import logging
import math
import threading

import numpy as np
from PyQt5 import QtCore

from ..entities import (
    OverlayItem,
    Point2D,
    PointRecord,
    PointStatus,
)
from ..issues import IssueLog
from ..settings import AppSettings
from .active_set import clamp_positions, freeze_failed, join, split
from .export import export_rows, write_export
from .flow import FlowEngine, LucasKanadeFlow, to_gray
from .frame_view import FrameView, project
from .state import MAX_HISTORY, TrackerState
from .status import AdvanceResult, advance, reactivate_not_tracked, sync_user_status
from .trajectories import OutOfRangeError, TrajectoryStore

MSG_TOO_CLOSE = "too close to an existing point.."
MSG_NO_POINTS = "There are no points to select"
MSG_OUT_OF_RANGE = "Selected point is not in range!"
MSG_SOME_INVALID = "Some points are invalid"

# Overlay items are scaled to roughly 1/45 of the shorter image side.
ITEM_SIZE_DIVISOR = 45
# The flow window may grow up to 1/10 of the shorter image side.
WINDOW_BOUND_DIVISOR = 10


class LucasKanadeTracker(QtCore.QObject):
    """Interactive tracker for user-placed points.

    All reads and writes of the trajectory store, the grayscale buffers and
    the configuration snapshot happen under one lock, so a tracking pass for
    a frame is never observed half done by an overlay pass or an input handler.
    """

    notify_gui = QtCore.pyqtSignal(str)
    pause_playback = QtCore.pyqtSignal(bool)
    updated = QtCore.pyqtSignal()

    def __init__(
        self,
        flow: Optional[FlowEngine] = None,
        state: Optional[TrackerState] = None,
        min_point_distance: float = 5.0,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._log = logging.getLogger(__name__)
        self.flow: FlowEngine = flow or LucasKanadeFlow()
        self.store = TrajectoryStore()
        self.issues = IssueLog()
        self.min_point_distance = min_point_distance
        self.item_size = 1
        self._state = state or TrackerState()
        self._lock = threading.RLock()
        self._gray: Optional[np.ndarray] = None
        self._prev_gray: Optional[np.ndarray] = None
        self._prev_gray_frame: Optional[int] = None
        self._initialized = False
        self._last_drawn_active: Optional[Point2D] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def state(self) -> TrackerState:
        with self._lock:
            return self._state

    @property
    def current_frame(self) -> int:
        return self.state.current_frame

    @property
    def active_id(self) -> Optional[int]:
        return self.state.active_id

    def update_from_settings(self, settings: AppSettings) -> None:
        tracking = settings.tracking
        if isinstance(self.flow, LucasKanadeFlow):
            self.flow.max_level = max(0, int(tracking.max_level))
            self.flow.term_count = max(1, int(tracking.term_count))
            self.flow.term_epsilon = float(max(1e-7, tracking.term_epsilon))
            self.flow.min_eig_threshold = float(max(0.0, tracking.min_eig_threshold))
        self.min_point_distance = float(max(0.0, tracking.min_point_distance))
        with self._lock:
            state = replace(
                self._state,
                min_window_size=max(1, int(tracking.min_window_size)),
                max_window_size=max(self._state.max_window_size, int(tracking.window_size)),
                pause_on_invalid=bool(tracking.pause_on_invalid),
            )
            state = state.with_window_size(tracking.window_size)
            state = state.with_user_status_count(settings.user_status.count)
            self._state = state.with_history(settings.display.history)
        self.set_track_only_active(bool(tracking.track_only_active))

    def set_pause_on_invalid(self, enabled: bool) -> None:
        with self._lock:
            self._state = replace(self._state, pause_on_invalid=bool(enabled))

    def set_user_state(self, index: int, enabled: bool) -> None:
        with self._lock:
            self._state = self._state.with_user_state(index, bool(enabled))

    def set_user_status_count(self, count: int) -> None:
        with self._lock:
            self._state = self._state.with_user_status_count(count)

    def set_window_size(self, size: int) -> int:
        with self._lock:
            self._state = self._state.with_window_size(size)
            return self._state.window_size

    def set_history(self, depth: int) -> int:
        with self._lock:
            self._state = self._state.with_history(depth)
            depth = self._state.history
        self.updated.emit()
        return depth

    def history_text(self) -> str:
        return f"{self.state.history}/{MAX_HISTORY}"

    def set_track_only_active(self, enabled: bool) -> List[int]:
        """Switch single-point mode; switching it off revives NotTracked points."""
        with self._lock:
            self._state = replace(self._state, track_only_active=bool(enabled))
            if enabled:
                return []
            reactivated = reactivate_not_tracked(self.store, self._state.current_frame)
        if reactivated:
            self._log.debug(
                "set_track_only_active: reactivated %s at frame=%s",
                reactivated,
                self._state.current_frame,
            )
            self.updated.emit()
        return reactivated

    def reset(self) -> None:
        with self._lock:
            self.store.clear()
            self.issues.clear()
            self._state = replace(self._state, active_id=None)
            self._gray = None
            self._prev_gray = None
            self._prev_gray_frame = None
            self._initialized = False
            self._last_drawn_active = None
        self._log.debug("reset: tracked points cleared")

    # ------------------------------------------------------------------
    # Per-frame passes
    # ------------------------------------------------------------------
    def track(self, frame_index: int, frame_bgr: np.ndarray) -> AdvanceResult:
        """Propagate every eligible point from ``frame_index - 1`` to ``frame_index``."""
        messages: List[str] = []
        pause = False
        with self._lock:
            height, width = frame_bgr.shape[:2]
            state = self._state.with_frame(frame_index)
            state = state.with_window_bound(min(width, height) // WINDOW_BOUND_DIVISOR)
            self._state = state

            gray = to_gray(frame_bgr)
            if self._prev_gray is None or self._prev_gray.shape != gray.shape:
                self._prev_gray = gray
                self._prev_gray_frame = frame_index
            self._gray = gray

            previous = project(self.store, frame_index - 1, state)
            active = split(previous, state)
            self._log.debug(
                "track: frame=%s points=%d eligible=%d window=%s",
                frame_index,
                len(previous),
                len(active),
                state.window_size,
            )

            # NotTracked points still get a record at this frame even when
            # nothing is submitted to the flow engine.
            if len(active):
                new_positions, flow_ok = self.flow.compute_flow(
                    self._prev_gray, gray, active.positions, state.window_size
                )
            else:
                new_positions, flow_ok = active.positions, np.ones(0, dtype=bool)
            positions = previous.positions.copy()
            prior = clamp_positions(previous.positions.copy(), width, height)
            success = join(positions, active, new_positions, flow_ok)
            clamp_positions(positions, width, height)
            freeze_failed(positions, prior, success)

            result = advance(self.store, frame_index, previous, positions, success)
            sync_user_status(self.store, frame_index, state)

            for point_id in result.invalidated:
                self.issues.tracking_lost(frame_index, point_id)
            if result.some_points_invalid:
                self._log.info("track: frame=%s invalidated=%s", frame_index, result.invalidated)
                messages.append(MSG_SOME_INVALID)
                pause = state.pause_on_invalid

            self._prev_gray = gray
            self._prev_gray_frame = frame_index

        for message in messages:
            self.notify_gui.emit(message)
        if pause:
            self.pause_playback.emit(True)
        return result

    def show_frame(self, frame_index: int, frame_bgr: np.ndarray, tracking_active: bool = False) -> None:
        """Keep buffers consistent with the frame currently on screen.

        When frames are skipped without tracking, the previous-gray buffer is
        refreshed so the next pass never compares two non-adjacent frames.
        """
        with self._lock:
            self._state = self._state.with_frame(frame_index)
            if not self._initialized:
                height, width = frame_bgr.shape[:2]
                self.item_size = max(1, min(width, height) // ITEM_SIZE_DIVISOR)
                self._initialized = True
            gray = None
            if not tracking_active and frame_index != self._prev_gray_frame:
                gray = to_gray(frame_bgr)
                self._prev_gray = gray
                self._prev_gray_frame = frame_index
            self._gray = gray if gray is not None else to_gray(frame_bgr)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def project(self, frame_index: Optional[int] = None) -> FrameView:
        with self._lock:
            frame = self._state.current_frame if frame_index is None else frame_index
            return project(self.store, frame, self._state)

    def history_trail(self, point_id: int, frame_index: Optional[int] = None) -> List[Tuple[int, Point2D]]:
        """Recorded positions before ``frame_index``, nearest frame first."""
        with self._lock:
            frame = self._state.current_frame if frame_index is None else frame_index
            trajectory = self.store.trajectory(point_id)
            trail: List[Tuple[int, Point2D]] = []
            for step in range(1, self._state.history + 1):
                if step > frame:
                    break
                record = trajectory.get(frame - step)
                if record is not None and not record.is_placeholder:
                    trail.append((frame - step, record.position))
            return trail

    def overlay(self, frame_index: Optional[int] = None) -> List[OverlayItem]:
        with self._lock:
            frame = self._state.current_frame if frame_index is None else frame_index
            view = project(self.store, frame, self._state)
            active_id = self._state.active_id
            items: List[OverlayItem] = []
            active_drawn = False
            for point_id, status in enumerate(view.statuses):
                if status is PointStatus.NON_EXISTENT:
                    continue
                record = view.records[point_id]
                is_active = point_id == active_id
                if is_active:
                    self._last_drawn_active = record.position
                    active_drawn = True
                items.append(
                    OverlayItem(
                        point_id=point_id,
                        position=record.position,
                        status=status,
                        user_status=record.user_status,
                        is_active=is_active,
                        trail=[pos for _, pos in self.history_trail(point_id, frame)],
                    )
                )
            if not active_drawn and active_id is not None and self._last_drawn_active is not None:
                latest = self.store.trajectory(active_id).latest_at(frame)
                items.append(
                    OverlayItem(
                        point_id=active_id,
                        position=self._last_drawn_active,
                        status=PointStatus.NOT_TRACKED,
                        user_status=latest[1].user_status if latest else 0,
                        is_active=True,
                        ghost=True,
                    )
                )
            return items

    # ------------------------------------------------------------------
    # User interaction
    # ------------------------------------------------------------------
    def create_point(self, position: Point2D) -> Optional[int]:
        with self._lock:
            frame = self._state.current_frame
            view = project(self.store, frame, self._state)
            for point_id, status in enumerate(view.statuses):
                if status is PointStatus.NON_EXISTENT:
                    continue
                other = view.records[point_id].position
                if math.hypot(position[0] - other[0], position[1] - other[1]) <= self.min_point_distance:
                    self._log.info("create_point: %s too close to point %s", position, point_id)
                    too_close = True
                    break
            else:
                too_close = False

            if not too_close:
                refined = (float(position[0]), float(position[1]))
                if self._gray is not None:
                    refined = self.flow.refine(self._gray, refined, self._state.window_size)
                else:
                    self._log.debug("create_point: no frame yet, skipping refinement")
                point_id = self.store.create(frame, PointRecord(position=refined, status=PointStatus.VALID))
                self._state = self._state.with_active(point_id)
                self._log.debug("create_point: id=%s frame=%s position=%s", point_id, frame, refined)

        if too_close:
            self.notify_gui.emit(MSG_TOO_CLOSE)
            return None
        self.updated.emit()
        return point_id

    def activate_nearest(self, position: Point2D) -> Optional[int]:
        with self._lock:
            if not len(self.store):
                self._state = self._state.with_active(None)
                selected = None
            else:
                view = project(self.store, self._state.current_frame, self._state)
                candidates = [
                    (math.hypot(position[0] - r.position[0], position[1] - r.position[1]), point_id)
                    for point_id, (r, status) in enumerate(zip(view.records, view.statuses))
                    if status is not PointStatus.NON_EXISTENT
                ]
                selected = min(candidates)[1] if candidates else None
                if selected is not None:
                    self._state = self._state.with_active(selected)
        if selected is None:
            self.notify_gui.emit(MSG_NO_POINTS)
            return None
        self._log.debug("activate_nearest: %s -> id=%s", position, selected)
        self.updated.emit()
        return selected

    def move_active_point(self, position: Point2D) -> bool:
        with self._lock:
            active_id = self._state.active_id
            if active_id is None or not len(self.store):
                return False
            frame = self._state.current_frame
            try:
                trajectory = self.store.trajectory(active_id)
            except OutOfRangeError:
                moved = False
            else:
                latest = trajectory.latest_at(frame)
                user_status = latest[1].user_status if latest else 0
                trajectory.add(
                    frame,
                    PointRecord(
                        position=(float(position[0]), float(position[1])),
                        status=PointStatus.VALID,
                        user_status=user_status,
                    ),
                )
                moved = True
        if not moved:
            self.notify_gui.emit(MSG_OUT_OF_RANGE)
            return False
        self._log.debug("move_active_point: id=%s frame=%s -> %s", active_id, frame, position)
        self.updated.emit()
        return True

    def delete_active_point(self) -> bool:
        """Mark the active point Invalid at the current frame; other frames keep their records."""
        with self._lock:
            active_id = self._state.active_id
            if active_id is None:
                return False
            frame = self._state.current_frame
            try:
                record = self.store.get(active_id, frame)
            except OutOfRangeError:
                record = None
                out_of_range = True
            else:
                out_of_range = False
            if record is not None:
                self.store.append(active_id, frame, record.with_status(PointStatus.INVALID))
                self.issues.deleted(frame, active_id)
        if out_of_range:
            self.notify_gui.emit(MSG_OUT_OF_RANGE)
            return False
        if record is None:
            return False
        self._log.debug("delete_active_point: id=%s frame=%s", active_id, frame)
        self.updated.emit()
        return True

    def export(self, folder: Union[str, Path]) -> Path:
        with self._lock:
            rows = export_rows(self.store)
        path = write_export(folder, rows)
        self._log.info("export: %d rows -> %s", len(rows), path)
        self.notify_gui.emit(f"Saved trajectories to file: {path}")
        return path
