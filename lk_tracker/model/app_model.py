from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np

from .settings import AppSettings, SettingsManager, get_settings_path
from .tracking import LucasKanadeTracker
from .tracking.flow import FlowEngine
from .video import VideoMetadata, VideoPlayer


class TrackerModel:
    """Encapsulates the non-UI state of a tracking session."""

    def __init__(self, root_path: Path, flow: Optional[FlowEngine] = None) -> None:
        self.settings_manager = SettingsManager(get_settings_path(root_path))
        self.settings: AppSettings = self.settings_manager.settings

        self.video_player = VideoPlayer()
        self.tracker = LucasKanadeTracker(
            flow=flow, min_point_distance=self.settings.tracking.min_point_distance
        )
        self.tracker.update_from_settings(self.settings)

        self.current_frame_bgr: Optional[np.ndarray] = None
        self.tracking_active: bool = True

    def load_video(self, path: Path) -> VideoMetadata:
        metadata = self.video_player.load(str(path))
        self.tracker.reset()
        frame = self.video_player.read_first_frame()
        if frame is not None:
            self.current_frame_bgr = frame
            self.tracker.show_frame(0, frame, tracking_active=False)
        return metadata

    def step(self) -> Optional[np.ndarray]:
        """Advance one frame and, if tracking is active, propagate the points."""
        frame = self.video_player.read_next()
        if frame is None:
            return None
        index = self.video_player.current_frame_index
        self.current_frame_bgr = frame
        if self.tracking_active:
            self.tracker.track(index, frame)
        self.tracker.show_frame(index, frame, tracking_active=self.tracking_active)
        return frame

    def seek(self, frame_index: int) -> Optional[np.ndarray]:
        frame = self.video_player.seek(frame_index)
        if frame is None:
            return None
        self.current_frame_bgr = frame
        self.tracker.show_frame(self.video_player.current_frame_index, frame, tracking_active=False)
        return frame

    def apply_settings(self) -> None:
        self.tracker.update_from_settings(self.settings)
