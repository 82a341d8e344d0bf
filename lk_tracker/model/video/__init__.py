"""Video frame sources."""

from .player import VideoMetadata, VideoPlayer

__all__ = ["VideoMetadata", "VideoPlayer"]
