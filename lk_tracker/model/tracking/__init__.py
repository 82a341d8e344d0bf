"""Trajectory bookkeeping and Lucas-Kanade point tracking."""

from .active_set import ActiveSet, LengthMismatchError, clamp_positions, freeze_failed, join, split
from .export import ExportRow, export_rows, write_export
from .flow import FlowEngine, LucasKanadeFlow, to_gray
from .frame_view import FrameView, project, projected_status
from .state import MAX_HISTORY, TrackerState
from .status import AdvanceResult, advance, reactivate_not_tracked, sync_user_status
from .tracker import LucasKanadeTracker
from .trajectories import OutOfRangeError, Trajectory, TrajectoryStore

__all__ = [
    "ActiveSet",
    "AdvanceResult",
    "ExportRow",
    "FlowEngine",
    "FrameView",
    "LengthMismatchError",
    "LucasKanadeFlow",
    "LucasKanadeTracker",
    "MAX_HISTORY",
    "OutOfRangeError",
    "TrackerState",
    "Trajectory",
    "TrajectoryStore",
    "advance",
    "clamp_positions",
    "export_rows",
    "freeze_failed",
    "join",
    "project",
    "projected_status",
    "reactivate_not_tracked",
    "split",
    "sync_user_status",
    "to_gray",
    "write_export",
]
