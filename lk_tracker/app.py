"""
Headless Lucas-Kanade point tracking session.

Usage:
    lk-tracker VIDEO --seed X,Y [--seed X,Y ...] [options]

Examples:
    lk-tracker clip.mp4 --seed 120,80 --seed 300,210 --export-dir out
    lk-tracker clip.mp4 --seed 120,80 --pause-on-invalid --preview preview.avi
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2
from PyQt5 import QtCore

from . import __version__
from .controller import TrackerController
from .view import draw_overlay


def _parse_point(text: str):
    try:
        x, y = (float(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y but got {text!r}")
    return (x, y)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lk-tracker",
        description="Track user-placed points through a video with pyramidal Lucas-Kanade flow",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-V", "--version", action="version", version=f"lk-tracker {__version__}")
    parser.add_argument("input", help="Input video file")
    parser.add_argument(
        "-s", "--seed",
        action="append",
        type=_parse_point,
        default=[],
        metavar="X,Y",
        help="Point to place on the first frame (can be used multiple times)",
    )
    parser.add_argument(
        "-n", "--frames",
        type=int,
        default=None,
        help="Number of frames to track after the first (default: whole video)",
    )
    parser.add_argument(
        "--settings-dir",
        type=Path,
        default=Path("."),
        help="Directory holding settings.json (default: current directory)",
    )
    parser.add_argument(
        "-o", "--export-dir",
        type=Path,
        default=None,
        help="Folder for the exported CSV (default: from settings)",
    )
    parser.add_argument("--track-only-active", action="store_true", help="Track only the last placed point")
    parser.add_argument("--pause-on-invalid", action="store_true", help="Stop as soon as a point is lost")
    parser.add_argument("--history", type=int, default=None, help="Trail length drawn in the preview")
    parser.add_argument("--preview", type=Path, default=None, help="Write an overlay preview video")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    log = logging.getLogger(__name__)

    controller = TrackerController(args.settings_dir)
    model = controller.model
    tracker = controller.tracker
    tracker.notify_gui.connect(lambda message: log.info("%s", message))

    paused = []
    tracker.pause_playback.connect(lambda pause: paused.append(pause))

    try:
        metadata = model.load_video(Path(args.input))
    except ValueError as exc:
        log.error("%s: %s", args.input, exc)
        return 1

    if args.history is not None:
        controller.history_changed(args.history)
    if args.pause_on_invalid:
        controller.pause_on_invalid_changed(QtCore.Qt.Checked)
    for point in args.seed:
        controller.mouse_released(point, QtCore.Qt.ControlModifier)
    if args.track_only_active:
        controller.track_only_active_changed(QtCore.Qt.Checked)

    writer = None
    if args.preview is not None and model.current_frame_bgr is not None:
        height, width = model.current_frame_bgr.shape[:2]
        writer = cv2.VideoWriter(
            str(args.preview), cv2.VideoWriter_fourcc(*"MJPG"), metadata.fps, (width, height)
        )

    def write_preview() -> None:
        if writer is None:
            return
        display = controller.settings.display
        writer.write(
            draw_overlay(
                model.current_frame_bgr,
                tracker.overlay(),
                tracker.item_size,
                valid_color=display.valid_color,
                invalid_color=display.invalid_color,
                not_tracked_alpha=display.not_tracked_alpha,
            )
        )

    write_preview()
    tracked = 0
    try:
        while args.frames is None or tracked < args.frames:
            if model.step() is None:
                break
            tracked += 1
            write_preview()
            if any(paused):
                log.info("Paused at frame %s: a point became invalid", tracker.current_frame)
                break
    finally:
        if writer is not None:
            writer.release()
        model.video_player.release()

    log.info("Tracked %d frames, %d points", tracked, len(tracker.store))
    controller.export_clicked(args.export_dir)
    return 0


def main() -> None:
    sys.exit(run())
