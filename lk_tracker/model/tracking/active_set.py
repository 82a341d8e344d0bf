from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..entities import PointStatus
from .frame_view import FrameView
from .state import TrackerState


class LengthMismatchError(AssertionError):
    """Parallel arrays at a split/join boundary disagree in length."""


@dataclass
class ActiveSet:
    """Dense subset of a frame view submitted to the flow engine.

    ``ids[k]`` is the trajectory id of ``positions[k]``; results are written
    back through that mapping, never by position.
    """

    positions: np.ndarray
    ids: np.ndarray

    def __len__(self) -> int:
        return len(self.ids)

    @classmethod
    def empty(cls) -> "ActiveSet":
        return cls(
            positions=np.empty((0, 2), dtype=np.float32),
            ids=np.empty((0,), dtype=np.int64),
        )


def split(view: FrameView, state: TrackerState) -> ActiveSet:
    if len(view.positions) != len(view.statuses):
        raise LengthMismatchError(
            f"positions ({len(view.positions)}) and statuses ({len(view.statuses)}) differ"
        )

    if state.track_only_active:
        active = state.active_id
        if active is None or not 0 <= active < len(view.statuses):
            return ActiveSet.empty()
        if view.statuses[active] is not PointStatus.VALID:
            return ActiveSet.empty()
        ids = [active]
    else:
        ids = [i for i, status in enumerate(view.statuses) if status is PointStatus.VALID]

    if not ids:
        return ActiveSet.empty()
    id_array = np.asarray(ids, dtype=np.int64)
    return ActiveSet(positions=view.positions[id_array].astype(np.float32), ids=id_array)


def join(
    full_positions: np.ndarray,
    active: ActiveSet,
    new_positions: np.ndarray,
    flow_success: Sequence[bool],
) -> np.ndarray:
    """Scatter flow results into ``full_positions`` in place.

    Returns per-id success flags sized like ``full_positions``; ids that were
    not submitted report success since nothing was evaluated for them.
    """
    new_positions = np.asarray(new_positions, dtype=np.float32).reshape(-1, 2)
    flow_success = np.asarray(flow_success, dtype=bool).reshape(-1)
    if len(new_positions) != len(flow_success):
        raise LengthMismatchError(
            f"flow returned {len(new_positions)} positions but {len(flow_success)} flags"
        )
    if len(new_positions) != len(active):
        raise LengthMismatchError(
            f"flow returned {len(new_positions)} positions for {len(active)} submitted points"
        )
    if len(active) > len(full_positions):
        raise LengthMismatchError("more submitted points than trajectories")

    success = np.ones(len(full_positions), dtype=bool)
    for k, point_id in enumerate(active.ids):
        full_positions[point_id] = new_positions[k]
        success[point_id] = flow_success[k]
    return success


def clamp_positions(positions: np.ndarray, width: int, height: int) -> np.ndarray:
    """Pull points that left the image back onto its border, in place."""
    if len(positions):
        np.clip(positions[:, 0], 0, max(0, width - 1), out=positions[:, 0])
        np.clip(positions[:, 1], 0, max(0, height - 1), out=positions[:, 1])
    return positions


def freeze_failed(positions: np.ndarray, prior: np.ndarray, success: np.ndarray) -> np.ndarray:
    """Hold failed points at their last good position instead of the flow output."""
    if len(positions) != len(prior) or len(positions) != len(success):
        raise LengthMismatchError("freeze_failed arrays differ in length")
    failed = ~np.asarray(success, dtype=bool)
    positions[failed] = prior[failed]
    return positions
