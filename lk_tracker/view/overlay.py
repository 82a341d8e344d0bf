from __future__ import annotations

# Draws tracker overlay items onto BGR frames: a circle per point, its id
# above, its user-status integer below right, and a dot per trail entry.

from typing import Iterable, Tuple

import cv2
import numpy as np

from ..model.entities import ColorRGB, OverlayItem, PointStatus


def _to_bgr(rgb: ColorRGB, alpha: int = 255) -> Tuple[int, int, int]:
    scale = max(0, min(255, alpha)) / 255.0
    r, g, b = rgb
    return (int(b * scale), int(g * scale), int(r * scale))


def item_color(
    item: OverlayItem,
    valid_color: ColorRGB,
    invalid_color: ColorRGB,
    not_tracked_alpha: int = 100,
) -> Tuple[int, int, int]:
    if item.status is PointStatus.INVALID:
        return _to_bgr(invalid_color)
    if item.status is PointStatus.NOT_TRACKED or item.ghost:
        return _to_bgr(valid_color, not_tracked_alpha)
    return _to_bgr(valid_color)


def draw_overlay(
    frame_bgr: np.ndarray,
    items: Iterable[OverlayItem],
    item_size: int,
    valid_color: ColorRGB = (0, 0, 255),
    invalid_color: ColorRGB = (255, 0, 0),
    not_tracked_alpha: int = 100,
) -> np.ndarray:
    """Return a copy of ``frame_bgr`` with the overlay drawn on it."""
    canvas = frame_bgr.copy()
    item_size = max(1, int(item_size))
    half = max(1, item_size // 2)
    thickness = max(1, item_size // 3)
    font_scale = max(0.3, item_size / 30.0)

    for item in items:
        color = item_color(item, valid_color, invalid_color, not_tracked_alpha)
        x, y = int(item.position[0]), int(item.position[1])

        base = invalid_color if item.status is PointStatus.INVALID else valid_color
        trail_color = _to_bgr(base, not_tracked_alpha)
        for tx, ty in item.trail:
            if tx > 0 and ty > 0:
                cv2.rectangle(canvas, (int(tx), int(ty)), (int(tx) + 1, int(ty) + 1), trail_color, -1)

        cv2.circle(canvas, (x, y), half, color, thickness + (1 if item.is_active else 0))
        cv2.putText(
            canvas, str(item.point_id), (x, y - half), cv2.FONT_HERSHEY_SIMPLEX, font_scale, color, 1
        )
        cv2.putText(
            canvas,
            str(item.user_status),
            (x + half, y + half),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            1,
        )
        cv2.rectangle(canvas, (x, y), (x + 1, y + 1), color, -1)
    return canvas
