from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Tuple

Point2D = Tuple[float, float]
ColorRGB = Tuple[int, int, int]

# Width of the user classification bit set (one machine word).
MAX_USER_STATUS = 64

SENTINEL_POSITION: Point2D = (-1.0, -1.0)


class PointStatus(Enum):
    VALID = "valid"
    # Tracking failed or the user deleted the point; never retried automatically.
    INVALID = "invalid"
    # No record at the queried frame (created later, or the user jumped back).
    NON_EXISTENT = "non_existent"
    # Excluded from this round because only the active point is tracked.
    NOT_TRACKED = "not_tracked"


TRACKABLE_STATUSES = frozenset({PointStatus.VALID, PointStatus.NOT_TRACKED})


def _check_bit(index: int) -> None:
    if not 0 <= index < MAX_USER_STATUS:
        raise ValueError(f"user status bit {index} outside 0..{MAX_USER_STATUS - 1}")


def set_user_bit(bits: int, index: int) -> int:
    _check_bit(index)
    return bits | (1 << index)


def clear_user_bit(bits: int, index: int) -> int:
    _check_bit(index)
    return bits & ~(1 << index)


def has_user_bit(bits: int, index: int) -> bool:
    _check_bit(index)
    return bool(bits & (1 << index))


def apply_user_states(bits: int, states: Iterable[bool]) -> int:
    """Write toggle states into ``bits``; bit ``i`` follows ``states[i]``."""
    for index, enabled in enumerate(states):
        bits = set_user_bit(bits, index) if enabled else clear_user_bit(bits, index)
    return bits


@dataclass(frozen=True)
class PointRecord:
    position: Point2D
    status: PointStatus = PointStatus.VALID
    user_status: int = 0
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls) -> "PointRecord":
        return cls(
            position=SENTINEL_POSITION,
            status=PointStatus.NON_EXISTENT,
            user_status=0,
            is_placeholder=True,
        )

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    def with_status(self, status: PointStatus) -> "PointRecord":
        return replace(self, status=status)

    def with_user_status(self, user_status: int) -> "PointRecord":
        return replace(self, user_status=user_status)


@dataclass
class TrackIssue:
    frame_index: int
    point_id: int
    note: str
    hidden: bool = False


@dataclass
class OverlayItem:
    point_id: int
    position: Point2D
    status: PointStatus
    user_status: int
    is_active: bool = False
    ghost: bool = False
    trail: List[Point2D] = field(default_factory=list)
