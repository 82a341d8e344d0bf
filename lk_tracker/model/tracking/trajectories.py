from __future__ import annotations

from bisect import bisect_right, insort
from typing import Dict, Iterator, List, Optional, Tuple

from ..entities import PointRecord


class OutOfRangeError(IndexError):
    """Raised when a trajectory id is outside the store."""


class Trajectory:
    """Sparse frame-indexed history of one tracked point.

    Records are never edited in place. Appending a second record for a frame
    replaces the first one for lookups (last write wins) while earlier and
    later frames stay untouched, so seeking backwards shows history as it was.
    """

    def __init__(self, point_id: int) -> None:
        self.point_id = point_id
        self._records: Dict[int, PointRecord] = {}
        self._frames: List[int] = []

    def __len__(self) -> int:
        return len(self._records)

    def add(self, frame_index: int, record: PointRecord) -> None:
        if frame_index < 0:
            raise OutOfRangeError(f"frame {frame_index} is negative")
        if frame_index not in self._records:
            insort(self._frames, frame_index)
        self._records[frame_index] = record

    def has_value_at(self, frame_index: int) -> bool:
        return frame_index in self._records

    def get(self, frame_index: int) -> Optional[PointRecord]:
        return self._records.get(frame_index)

    def latest_at(self, frame_index: int) -> Optional[Tuple[int, PointRecord]]:
        pos = bisect_right(self._frames, frame_index)
        if pos == 0:
            return None
        frame = self._frames[pos - 1]
        return frame, self._records[frame]

    def last_frame(self) -> Optional[int]:
        return self._frames[-1] if self._frames else None

    def items(self) -> Iterator[Tuple[int, PointRecord]]:
        for frame in self._frames:
            yield frame, self._records[frame]


class TrajectoryStore:
    """Ordered trajectories; a trajectory's id is its index and never changes."""

    def __init__(self) -> None:
        self._trajectories: List[Trajectory] = []

    def __len__(self) -> int:
        return len(self._trajectories)

    def __iter__(self) -> Iterator[Trajectory]:
        return iter(self._trajectories)

    def count(self) -> int:
        return len(self._trajectories)

    def create(self, frame_index: int, record: PointRecord) -> int:
        point_id = len(self._trajectories)
        trajectory = Trajectory(point_id)
        trajectory.add(frame_index, record)
        self._trajectories.append(trajectory)
        return point_id

    def trajectory(self, point_id: int) -> Trajectory:
        if point_id is None or not 0 <= point_id < len(self._trajectories):
            raise OutOfRangeError(
                f"trajectory {point_id} outside 0..{len(self._trajectories) - 1}"
            )
        return self._trajectories[point_id]

    def append(self, point_id: int, frame_index: int, record: PointRecord) -> None:
        self.trajectory(point_id).add(frame_index, record)

    def get(self, point_id: int, frame_index: int) -> Optional[PointRecord]:
        return self.trajectory(point_id).get(frame_index)

    def has_value_at(self, point_id: int, frame_index: int) -> bool:
        return self.trajectory(point_id).has_value_at(frame_index)

    def maximum_frame(self) -> Optional[int]:
        frames = [t.last_frame() for t in self._trajectories if len(t)]
        return max(frames) if frames else None

    def clear(self) -> None:
        self._trajectories.clear()
