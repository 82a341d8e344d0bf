from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from ..entities import PointRecord, PointStatus, SENTINEL_POSITION
from .state import TrackerState
from .trajectories import TrajectoryStore


@dataclass
class FrameView:
    """Flat per-frame view; index ``i`` is always trajectory id ``i``."""

    frame_index: int
    positions: np.ndarray
    statuses: List[PointStatus]
    records: List[PointRecord]

    def __len__(self) -> int:
        return len(self.statuses)


def projected_status(
    stored: PointStatus, point_id: int, track_only_active: bool, active_id
) -> PointStatus:
    """Mask a stored Valid as NotTracked while only the active point is tracked."""
    if stored is PointStatus.VALID and track_only_active and point_id != active_id:
        return PointStatus.NOT_TRACKED
    return stored


def project(store: TrajectoryStore, frame_index: int, state: TrackerState) -> FrameView:
    count = len(store)
    # Stored precision; only the flow batch is narrowed to float32.
    positions = np.empty((count, 2), dtype=np.float64)
    statuses: List[PointStatus] = []
    records: List[PointRecord] = []

    for point_id, trajectory in enumerate(store):
        record = trajectory.get(frame_index) if frame_index >= 0 else None
        if record is None:
            positions[point_id] = SENTINEL_POSITION
            statuses.append(PointStatus.NON_EXISTENT)
            records.append(PointRecord.placeholder())
            continue
        positions[point_id] = record.position
        statuses.append(
            projected_status(record.status, point_id, state.track_only_active, state.active_id)
        )
        records.append(record)

    return FrameView(frame_index=frame_index, positions=positions, statuses=statuses, records=records)
