from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
import logging
import threading

import cv2
import numpy as np


@dataclass(frozen=True)
class VideoMetadata:
    frame_count: int = 0
    fps: float = 30.0
    frame_size: Tuple[int, int] = (0, 0)

    @property
    def last_index(self) -> int:
        return max(0, self.frame_count - 1)


class VideoPlayer:
    """Frame source that can revisit any frame.

    Sequential reads decode straight from the capture; jumps go through a
    seek. Recently decoded frames are kept so stepping back and forth around
    the current position does not hit the decoder again.
    """

    def __init__(self, cache_size: int = 16) -> None:
        self._log = logging.getLogger(__name__)
        self._capture: Optional[cv2.VideoCapture] = None
        self._metadata = VideoMetadata()
        self._cache: "OrderedDict[int, np.ndarray]" = OrderedDict()
        self._cache_size = max(0, cache_size)
        # Index the capture will decode on the next plain read().
        self._decoder_position = 0
        self.current_frame_index = 0
        self.current_frame: Optional[np.ndarray] = None
        self._io_lock = threading.RLock()

    def load(self, path: str) -> VideoMetadata:
        with self._io_lock:
            self.release()
            capture = cv2.VideoCapture(str(path))
            if not capture.isOpened():
                capture.release()
                raise ValueError("Failed to open video.")

            fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
            self._metadata = VideoMetadata(
                frame_count=int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0),
                fps=fps if fps > 0 else 30.0,
                frame_size=(
                    int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                ),
            )
            self._capture = capture
            self._log.debug("load: %s %s", path, self._metadata)
            return self._metadata

    @property
    def metadata(self) -> VideoMetadata:
        return self._metadata

    def is_loaded(self) -> bool:
        return self._capture is not None

    def frame(self, frame_index: int) -> Optional[np.ndarray]:
        """Decode ``frame_index`` (clamped to the video) without moving the current position."""
        with self._io_lock:
            if self._capture is None:
                return None
            frame_index = max(0, min(int(frame_index), self._metadata.last_index))
            cached = self._cache.get(frame_index)
            if cached is not None:
                self._cache.move_to_end(frame_index)
                return cached

            if frame_index != self._decoder_position:
                self._capture.set(cv2.CAP_PROP_POS_FRAMES, frame_index)
            ok, image = self._capture.read()
            if not ok or image is None:
                self._decoder_position = -1
                return None
            self._decoder_position = frame_index + 1
            self._remember(frame_index, image)
            return image

    def seek(self, frame_index: int) -> Optional[np.ndarray]:
        with self._io_lock:
            image = self.frame(frame_index)
            if image is None:
                return None
            self.current_frame_index = max(0, min(int(frame_index), self._metadata.last_index))
            self.current_frame = image
            return image

    def read_first_frame(self) -> Optional[np.ndarray]:
        return self.seek(0)

    def read_next(self) -> Optional[np.ndarray]:
        return self.advance(1)

    def advance(self, frames_to_advance: int = 1) -> Optional[np.ndarray]:
        """Move forward; returns None at the end of the video."""
        with self._io_lock:
            if self._capture is None or self.current_frame is None:
                return None
            target = self.current_frame_index + max(1, int(frames_to_advance))
            if target > self._metadata.last_index:
                return None
            return self.seek(target)

    def frames(self, start: int = 0) -> Iterator[Tuple[int, np.ndarray]]:
        """Iterate ``(index, frame)`` from ``start`` to the end, moving the current position."""
        image = self.seek(start)
        while image is not None:
            yield self.current_frame_index, image
            image = self.advance()

    def release(self) -> None:
        with self._io_lock:
            if self._capture is not None:
                self._capture.release()
            self._capture = None
            self._cache.clear()
            self._decoder_position = 0
            self._metadata = VideoMetadata()
            self.current_frame_index = 0
            self.current_frame = None

    def _remember(self, frame_index: int, image: np.ndarray) -> None:
        if not self._cache_size:
            return
        self._cache[frame_index] = image
        self._cache.move_to_end(frame_index)
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
