"""
Tests for the headless command line session.
"""

import argparse

import pytest

from lk_tracker.app import _parse_point, build_parser, run
from tests.test_player import write_video


class TestParser:
    def test_seeds(self):
        args = build_parser().parse_args(["clip.avi", "-s", "1,2", "--seed", "3.5,4"])
        assert args.seed == [(1.0, 2.0), (3.5, 4.0)]
        assert args.frames is None

    def test_bad_point(self):
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_point("1;2")


class TestRun:
    def test_missing_video(self, tmp_path):
        assert run([str(tmp_path / "missing.avi"), "--settings-dir", str(tmp_path)]) == 1

    def test_exports_tracks(self, tmp_path):
        video = write_video(tmp_path / "clip.avi")
        out = tmp_path / "out"

        code = run(
            [str(video), "-s", "20,20", "--settings-dir", str(tmp_path), "-o", str(out), "-n", "2"]
        )

        assert code == 0
        exported = list(out.glob("output_lk_*.csv"))
        assert len(exported) == 1
        frames = [line.split(";")[0] for line in exported[0].read_text().splitlines()]
        assert frames[0] == "0"
