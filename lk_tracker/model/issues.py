from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .entities import TrackIssue

NOTE_TRACKING_LOST = "Tracking lost."
NOTE_DELETED = "Deleted by user."


class IssueFilter(Enum):
    VISIBLE = "Visible"
    HIDDEN = "Hidden"
    ALL = "All"


class IssueLog:
    """Frames where a point stopped being Valid, one entry per (frame, point)."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[int, int], TrackIssue] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TrackIssue]:
        return iter(sorted(self._entries.values(), key=_issue_key))

    def record_issue(self, issue: TrackIssue) -> bool:
        """Store ``issue``; a repeat for the same frame and point refreshes its note and unhides it."""
        key = (issue.frame_index, issue.point_id)
        known = self._entries.get(key)
        if known is None:
            self._entries[key] = issue
            return True
        if known.note == issue.note and not known.hidden:
            return False
        self._entries[key] = TrackIssue(issue.frame_index, issue.point_id, issue.note)
        return True

    def tracking_lost(self, frame_index: int, point_id: int) -> bool:
        return self.record_issue(TrackIssue(frame_index, point_id, NOTE_TRACKING_LOST))

    def deleted(self, frame_index: int, point_id: int) -> bool:
        return self.record_issue(TrackIssue(frame_index, point_id, NOTE_DELETED))

    def find(self, frame_index: int, point_id: int) -> Optional[TrackIssue]:
        return self._entries.get((frame_index, point_id))

    def remove_issue(self, frame_index: int, point_id: int) -> Optional[TrackIssue]:
        return self._entries.pop((frame_index, point_id), None)

    def for_point(self, point_id: int) -> List[TrackIssue]:
        return [issue for issue in self if issue.point_id == point_id]

    def at_frame(self, frame_index: int) -> List[TrackIssue]:
        return [issue for issue in self if issue.frame_index == frame_index]

    def clear_for_point(self, point_id: int) -> bool:
        keys = [key for key in self._entries if key[1] == point_id]
        for key in keys:
            del self._entries[key]
        return bool(keys)

    def clear(self) -> None:
        self._entries.clear()

    def set_hidden(self, frame_index: int, point_id: int, hidden: bool) -> bool:
        issue = self.find(frame_index, point_id)
        if issue is None or issue.hidden == hidden:
            return False
        issue.hidden = hidden
        return True

    def filtered(self, mode: IssueFilter = IssueFilter.VISIBLE) -> List[TrackIssue]:
        if mode is IssueFilter.ALL:
            return list(self)
        want_hidden = mode is IssueFilter.HIDDEN
        return [issue for issue in self if issue.hidden == want_hidden]


def _issue_key(issue: TrackIssue) -> Tuple[int, int]:
    return issue.frame_index, issue.point_id
