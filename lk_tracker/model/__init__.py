"""Model layer containing the tracker's core logic and data structures."""

from .app_model import TrackerModel
from .entities import (
    MAX_USER_STATUS,
    ColorRGB,
    OverlayItem,
    Point2D,
    PointRecord,
    PointStatus,
    TrackIssue,
)
from .issues import IssueFilter, IssueLog
from .settings import (
    AppSettings,
    DataSettings,
    DisplaySettings,
    SettingsManager,
    TrackingSettings,
    UserStatusSettings,
    get_settings_path,
)
from .tracking import LucasKanadeTracker, TrackerState, TrajectoryStore
from .video import VideoPlayer

__all__ = [
    "AppSettings",
    "ColorRGB",
    "DataSettings",
    "DisplaySettings",
    "IssueFilter",
    "IssueLog",
    "LucasKanadeTracker",
    "MAX_USER_STATUS",
    "OverlayItem",
    "Point2D",
    "PointRecord",
    "PointStatus",
    "SettingsManager",
    "TrackIssue",
    "TrackerModel",
    "TrackerState",
    "TrackingSettings",
    "TrajectoryStore",
    "UserStatusSettings",
    "VideoPlayer",
    "get_settings_path",
]
