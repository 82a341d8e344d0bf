from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from PyQt5 import QtCore

from ..model.app_model import TrackerModel
from ..model.entities import Point2D
from ..model.settings import AppSettings, SettingsManager
from ..model.tracking import LucasKanadeTracker
from ..model.tracking.flow import FlowEngine
from ..model.video import VideoPlayer


class TrackerController:
    """Translates input events and control changes into tracker operations."""

    def __init__(self, root_path: Path, flow: Optional[FlowEngine] = None) -> None:
        self._model = TrackerModel(root_path, flow=flow)

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------
    @property
    def model(self) -> TrackerModel:
        return self._model

    @property
    def settings_manager(self) -> SettingsManager:
        return self._model.settings_manager

    @property
    def settings(self) -> AppSettings:
        return self._model.settings

    @property
    def tracker(self) -> LucasKanadeTracker:
        return self._model.tracker

    @property
    def video_player(self) -> VideoPlayer:
        return self._model.video_player

    # ------------------------------------------------------------------
    # Input events
    # ------------------------------------------------------------------
    def mouse_released(self, position: Point2D, modifiers: int = QtCore.Qt.NoModifier) -> None:
        """Shift selects the nearest point, Control adds one, a plain click moves the active point."""
        if modifiers == QtCore.Qt.ShiftModifier:
            self.tracker.activate_nearest(position)
        elif modifiers == QtCore.Qt.ControlModifier:
            self.tracker.create_point(position)
        else:
            self.tracker.move_active_point(position)

    def key_pressed(self, key: int) -> bool:
        if key == QtCore.Qt.Key_D:
            return self.tracker.delete_active_point()
        return False

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------
    def user_status_changed(self, index: int, state: int) -> None:
        self.tracker.set_user_state(index, state == QtCore.Qt.Checked)

    def pause_on_invalid_changed(self, state: int) -> None:
        enabled = state == QtCore.Qt.Checked
        self.settings.tracking.pause_on_invalid = enabled
        self.tracker.set_pause_on_invalid(enabled)

    def track_only_active_changed(self, state: int) -> None:
        enabled = state == QtCore.Qt.Checked
        self.settings.tracking.track_only_active = enabled
        self.tracker.set_track_only_active(enabled)

    def window_size_changed(self, value: int) -> int:
        applied = self.tracker.set_window_size(value)
        self.settings.tracking.window_size = applied
        return applied

    def history_changed(self, value: int) -> str:
        self.settings.display.history = self.tracker.set_history(value)
        return self.tracker.history_text()

    def valid_color_selected(self, color) -> None:
        self.settings.display.valid_color = tuple(color)

    def invalid_color_selected(self, color) -> None:
        self.settings.display.invalid_color = tuple(color)

    def export_clicked(self, folder: Optional[Union[str, Path]] = None) -> Path:
        target = folder if folder is not None else self.settings.data.export_folder
        return self.tracker.export(target)

    def save_settings(self) -> None:
        self.settings_manager.save()

    def refresh_settings(self) -> None:
        """Reload settings from disk and push them into the tracker."""
        self.settings_manager.load()
        self._model.settings = self.settings_manager.settings
        self._model.apply_settings()
