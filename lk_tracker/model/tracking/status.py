from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..entities import PointRecord, PointStatus, TRACKABLE_STATUSES, apply_user_states
from .active_set import LengthMismatchError
from .frame_view import FrameView
from .state import TrackerState
from .trajectories import OutOfRangeError, TrajectoryStore


@dataclass
class AdvanceResult:
    frame_index: int
    updated: List[int] = field(default_factory=list)
    invalidated: List[int] = field(default_factory=list)
    skipped_invalid: List[int] = field(default_factory=list)

    @property
    def some_points_invalid(self) -> bool:
        return bool(self.invalidated)


def advance(
    store: TrajectoryStore,
    frame_index: int,
    previous: FrameView,
    positions: np.ndarray,
    success: Sequence[bool],
) -> AdvanceResult:
    """Append this frame's record for every point that took part in tracking.

    ``previous`` is the projection of the frame tracked from; ``positions``
    and ``success`` are the joined, clamped flow results in id order (failed
    points already frozen by ``freeze_failed``). An Invalid record already
    stored at ``frame_index`` is never overwritten here.
    """
    if not (len(previous) == len(positions) == len(success) == len(store)):
        raise LengthMismatchError(
            f"view={len(previous)} positions={len(positions)} "
            f"success={len(success)} store={len(store)}"
        )

    result = AdvanceResult(frame_index=frame_index)
    for point_id, projected in enumerate(previous.statuses):
        if projected not in TRACKABLE_STATUSES:
            continue
        existing = store.get(point_id, frame_index)
        if existing is not None and existing.status is PointStatus.INVALID:
            result.skipped_invalid.append(point_id)
            continue

        x, y = positions[point_id]
        if success[point_id]:
            status = projected
            result.updated.append(point_id)
        else:
            status = PointStatus.INVALID
            result.invalidated.append(point_id)
        record = PointRecord(
            position=(float(x), float(y)),
            status=status,
            user_status=previous.records[point_id].user_status,
        )
        store.append(point_id, frame_index, record)
    return result


def sync_user_status(store: TrajectoryStore, frame_index: int, state: TrackerState) -> bool:
    """Write the toggle states into the active point's record at ``frame_index``."""
    if state.active_id is None:
        return False
    try:
        record = store.get(state.active_id, frame_index)
    except OutOfRangeError:
        return False
    if record is None:
        return False
    bits = apply_user_states(record.user_status, state.user_states)
    if bits == record.user_status:
        return False
    store.append(state.active_id, frame_index, record.with_user_status(bits))
    return True


def reactivate_not_tracked(store: TrajectoryStore, frame_index: int) -> List[int]:
    """Turn every stored NotTracked record at ``frame_index`` back into Valid."""
    reactivated: List[int] = []
    for trajectory in store:
        record: Optional[PointRecord] = trajectory.get(frame_index)
        if record is not None and record.status is PointStatus.NOT_TRACKED:
            trajectory.add(frame_index, record.with_status(PointStatus.VALID))
            reactivated.append(trajectory.point_id)
    return reactivated
