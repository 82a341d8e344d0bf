"""
Tests for CSV export of recorded trajectories.
"""

from datetime import datetime

from lk_tracker.model.entities import PointRecord, PointStatus
from lk_tracker.model.tracking import ExportRow, TrajectoryStore, export_rows, write_export
from lk_tracker.model.tracking.export import export_filename


def _store():
    store = TrajectoryStore()
    store.create(0, PointRecord((1.0, 2.0), user_status=3))
    store.create(1, PointRecord((5.0, 6.0)))
    store.append(0, 1, PointRecord((1.5, 2.5), PointStatus.INVALID))
    store.append(0, 2, PointRecord((2.0, 3.0), PointStatus.NOT_TRACKED))
    store.append(1, 2, PointRecord((7.0, 8.0)))
    return store


class TestExportRows:
    def test_valid_rows_by_frame_then_id(self):
        rows = export_rows(_store())
        assert rows == [
            ExportRow(0, 0, 1.0, 2.0, 3),
            ExportRow(1, 1, 5.0, 6.0, 0),
            ExportRow(2, 1, 7.0, 8.0, 0),
        ]

    def test_empty_store(self):
        assert export_rows(TrajectoryStore()) == []


class TestWriteExport:
    def test_filename(self):
        assert export_filename(datetime(2024, 3, 5, 14, 7, 9)) == "output_lk_2024_03_05_14_09.csv"

    def test_write(self, tmp_path):
        folder = tmp_path / "nested" / "out"
        path = write_export(folder, export_rows(_store()), now=datetime(2024, 3, 5, 14, 7, 9))

        assert path == folder / "output_lk_2024_03_05_14_09.csv"
        assert path.read_text() == "0;0;1.0;2.0;3\n1;1;5.0;6.0;0\n2;1;7.0;8.0;0\n"
