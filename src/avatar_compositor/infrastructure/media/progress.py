"""Progress parsing for ffmpeg stderr output."""

import re
from typing import Optional

DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")
TIME_RE = re.compile(r"time=\s*(-?)(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def parse_timestamp(hours: str, minutes: str, seconds: str) -> float:
    """Convert an ``HH:MM:SS.ss`` triple to seconds."""
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


class ProgressTracker:
    """
    Turns ffmpeg stderr lines into completion percentages.

    Input durations are read from ``Duration:`` lines. With ``-shortest`` the
    output ends with the shortest input, so the smallest duration is used as
    the reference. Percentages are clamped to [0, 100] and never decrease.
    """

    def __init__(self):
        self.duration: Optional[float] = None
        self.last_percent: Optional[float] = None

    def feed(self, line: str) -> Optional[float]:
        """Return a percentage for a progress line, None for anything else."""
        match = DURATION_RE.search(line)
        if match:
            duration = parse_timestamp(*match.groups())
            if duration > 0:
                self.duration = duration if self.duration is None else min(self.duration, duration)
            return None

        match = TIME_RE.search(line)
        if not match or not self.duration:
            return None

        negative, hours, minutes, seconds = match.groups()
        position = 0.0 if negative else parse_timestamp(hours, minutes, seconds)

        percent = max(0.0, min(100.0, position / self.duration * 100.0))
        if self.last_percent is not None and percent < self.last_percent:
            percent = self.last_percent

        self.last_percent = percent
        return percent
