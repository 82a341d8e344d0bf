from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..entities import PointStatus
from .trajectories import TrajectoryStore

EXPORT_PREFIX = "output_lk_"
EXPORT_SEPARATOR = ";"


@dataclass(frozen=True)
class ExportRow:
    frame_index: int
    point_id: int
    x: float
    y: float
    user_status: int

    def to_row(self) -> list:
        return [self.frame_index, self.point_id, self.x, self.y, self.user_status]


def export_rows(store: TrajectoryStore) -> List[ExportRow]:
    """One row per (frame, id) whose record is Valid, by frame then id."""
    last_frame = store.maximum_frame()
    if last_frame is None:
        return []
    rows: List[ExportRow] = []
    for frame_index in range(last_frame + 1):
        for trajectory in store:
            record = trajectory.get(frame_index)
            if record is None or record.is_placeholder or record.status is not PointStatus.VALID:
                continue
            rows.append(
                ExportRow(
                    frame_index=frame_index,
                    point_id=trajectory.point_id,
                    x=float(record.x),
                    y=float(record.y),
                    user_status=record.user_status,
                )
            )
    return rows


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{EXPORT_PREFIX}{now.strftime('%Y_%m_%d_%H_%S')}.csv"


def write_export(
    folder: Union[str, Path], rows: Iterable[ExportRow], now: Optional[datetime] = None
) -> Path:
    folder = Path(folder)
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / export_filename(now)
    with open(path, "w", newline="") as handle:
        writer = csv.writer(handle, delimiter=EXPORT_SEPARATOR, lineterminator="\n")
        for row in rows:
            writer.writerow(row.to_row())
    return path
