from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..entities import MAX_USER_STATUS

MAX_HISTORY = 150


@dataclass(frozen=True)
class TrackerState:
    """Configuration snapshot handed to every frame-processing step.

    Input handlers never mutate a snapshot; they derive a new one with the
    ``with_*`` helpers and the tracker swaps it in under its lock.
    """

    current_frame: int = 0
    active_id: Optional[int] = None
    track_only_active: bool = False
    pause_on_invalid: bool = False
    user_states: Tuple[bool, ...] = (False, False, False)
    window_size: int = 31
    min_window_size: int = 10
    max_window_size: int = 31
    history: int = 0

    def with_frame(self, frame_index: int) -> "TrackerState":
        return replace(self, current_frame=frame_index)

    def with_active(self, point_id: Optional[int]) -> "TrackerState":
        return replace(self, active_id=point_id)

    def with_user_state(self, index: int, enabled: bool) -> "TrackerState":
        if not 0 <= index < len(self.user_states):
            raise ValueError(f"user status {index} outside 0..{len(self.user_states) - 1}")
        states = list(self.user_states)
        states[index] = enabled
        return replace(self, user_states=tuple(states))

    def with_user_status_count(self, count: int) -> "TrackerState":
        count = max(1, min(MAX_USER_STATUS, int(count)))
        states = tuple(self.user_states[:count]) + (False,) * max(0, count - len(self.user_states))
        return replace(self, user_states=states)

    def with_window_size(self, size: int) -> "TrackerState":
        size = max(self.min_window_size, min(self.max_window_size, int(size)))
        return replace(self, window_size=size)

    def with_window_bound(self, bound: int) -> "TrackerState":
        if bound <= self.min_window_size or bound == self.max_window_size:
            return self
        return replace(
            self,
            max_window_size=bound,
            window_size=min(self.window_size, bound),
        )

    def with_history(self, history: int) -> "TrackerState":
        return replace(self, history=max(0, min(MAX_HISTORY, int(history))))
