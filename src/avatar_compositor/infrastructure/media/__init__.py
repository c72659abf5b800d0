"""Media processing package."""

from avatar_compositor.infrastructure.media.ffmpeg import FFmpegOverlayTranscoder
from avatar_compositor.infrastructure.media.progress import ProgressTracker

__all__ = ["FFmpegOverlayTranscoder", "ProgressTracker"]
