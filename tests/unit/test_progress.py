"""Tests for ffmpeg progress parsing."""

import pytest

from avatar_compositor.infrastructure.media.progress import ProgressTracker, parse_timestamp


def test_parse_timestamp():
    assert parse_timestamp("01", "02", "03.50") == pytest.approx(3723.5)


class TestProgressTracker:
    """Test percentage tracking."""

    def test_no_percent_before_duration_is_known(self):
        tracker = ProgressTracker()

        assert tracker.feed("frame=  10 fps=0.0 time=00:00:01.00 bitrate=N/A") is None

    def test_percent_relative_to_shortest_input(self):
        tracker = ProgressTracker()
        tracker.feed("  Duration: 00:00:20.00, start: 0.000000, bitrate: 2000 kb/s")
        tracker.feed("  Duration: 00:00:10.00, start: 0.000000, bitrate: 800 kb/s")
        tracker.feed("  Duration: 00:00:30.00, start: 0.000000, bitrate: 128 kb/s")

        assert tracker.duration == pytest.approx(10.0)
        assert tracker.feed("frame=  50 fps=25 time=00:00:05.00 bitrate=1000kbits/s") == pytest.approx(50.0)

    def test_percent_is_clamped(self):
        tracker = ProgressTracker()
        tracker.feed("  Duration: 00:00:04.00, start: 0.000000")

        assert tracker.feed("time=00:00:09.00") == pytest.approx(100.0)

    def test_negative_time_counts_as_zero(self):
        tracker = ProgressTracker()
        tracker.feed("  Duration: 00:00:04.00, start: 0.000000")

        assert tracker.feed("size=0kB time=-00:00:00.04 bitrate=N/A") == pytest.approx(0.0)

    def test_percent_never_decreases(self):
        tracker = ProgressTracker()
        tracker.feed("  Duration: 00:00:10.00, start: 0.000000")

        first = tracker.feed("time=00:00:06.00")
        second = tracker.feed("time=00:00:03.00")

        assert first == pytest.approx(60.0)
        assert second == pytest.approx(60.0)

    def test_unavailable_duration_is_ignored(self):
        tracker = ProgressTracker()
        tracker.feed("  Duration: N/A, bitrate: N/A")

        assert tracker.duration is None
        assert tracker.feed("time=00:00:01.00") is None

    def test_unrelated_lines(self):
        tracker = ProgressTracker()
        tracker.feed("  Duration: 00:00:10.00, start: 0.000000")

        assert tracker.feed("Stream #0:0: Video: h264 (High)") is None
        assert tracker.feed("time=N/A bitrate=N/A") is None
