"""Tests for FFmpegOverlayTranscoder."""

import os
import stat
import pytest
from pathlib import Path

from avatar_compositor.domain.exceptions import InvocationError
from avatar_compositor.domain.models import (
    InputSet,
    TranscodeCompleted,
    TranscodeDiagnostic,
    TranscodeFailed,
    TranscodeProgress,
    TranscodeStarted,
)
from avatar_compositor.infrastructure.media.ffmpeg import FFmpegOverlayTranscoder

posix_only = pytest.mark.skipif(os.name != 'posix', reason="fake engine is a POSIX shell script")

# Prints two input durations and two progress updates, then writes the
# last argument (the output path).
ENGINE_OK = r"""#!/bin/sh
for last; do :; done
echo "  Duration: 00:00:08.00, start: 0.000000, bitrate: 900 kb/s" >&2
echo "  Duration: 00:00:04.00, start: 0.000000, bitrate: 128 kb/s" >&2
printf 'frame=  25 fps=25 time=00:00:01.00 bitrate=N/A\rframe=  50 fps=25 time=00:00:02.00 bitrate=N/A\r' >&2
printf 'video' > "$last"
exit 0
"""

ENGINE_FAIL = r"""#!/bin/sh
echo "ffmpeg version 6.0" >&2
echo "media/avatar_in.mp4: Invalid data found when processing input" >&2
exit 1
"""

ENGINE_NO_OUTPUT = r"""#!/bin/sh
echo "  Duration: 00:00:04.00, start: 0.000000" >&2
exit 0
"""

ENGINE_NOISY_STDOUT = r"""#!/bin/sh
for last; do :; done
yes frame | head -n 40000
echo "  Duration: 00:00:04.00, start: 0.000000" >&2
printf 'video' > "$last"
exit 0
"""

ENGINE_NOISY_STDOUT_FAIL = r"""#!/bin/sh
yes frame | head -n 40000
echo "last stdout line"
echo "Conversion failed!" >&2
exit 1
"""

ENGINE_HANG = r"""#!/bin/sh
echo "  Duration: 00:00:04.00, start: 0.000000" >&2
exec sleep 5
"""


@pytest.fixture
def make_engine(tmp_path):
    def _make(script: str) -> str:
        path = tmp_path / "fake-ffmpeg"
        path.write_text(script)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)
    return _make


@pytest.fixture
def inputs(tmp_path):
    return InputSet(
        background=tmp_path / "background_in.mp4",
        avatar=tmp_path / "avatar_in.mp4",
        audio=tmp_path / "audio_in.aac",
    )


@pytest.fixture
def output(tmp_path):
    return tmp_path / "output.mp4"


class TestBuildCommand:
    """Test the fixed command line."""

    def test_full_command(self, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path='ffmpeg')

        cmd = transcoder.build_command(inputs, output)

        assert cmd == [
            'ffmpeg', '-y',
            '-i', str(inputs.background),
            '-i', str(inputs.avatar),
            '-i', str(inputs.audio),
            '-filter_complex',
            '[1:v]scale=100:-1[avatar];'
            '[0:v][avatar]overlay=main_w-overlay_w-10:main_h-overlay_h-10[video_out];'
            '[2:a]anull[audio_out]',
            '-map', '[video_out]',
            '-map', '[audio_out]',
            '-c:v', 'libx264',
            '-preset', 'fast',
            '-c:a', 'aac',
            '-shortest',
            str(output),
        ]

    def test_custom_executable(self, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path='/opt/ffmpeg/bin/ffmpeg')

        assert transcoder.build_command(inputs, output)[0] == '/opt/ffmpeg/bin/ffmpeg'


@posix_only
class TestStream:
    """Test the event stream against a scripted engine."""

    def test_success_events(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_OK))

        events = list(transcoder.stream(inputs, output))

        assert isinstance(events[0], TranscodeStarted)
        assert '-filter_complex' in events[0].command_line
        assert isinstance(events[-1], TranscodeCompleted)
        assert events[-1].output_path == output
        assert output.read_bytes() == b"video"

        percents = [e.percent for e in events if isinstance(e, TranscodeProgress)]
        assert percents == [pytest.approx(25.0), pytest.approx(50.0)]

        diagnostics = [e.line for e in events if isinstance(e, TranscodeDiagnostic)]
        assert any("Duration: 00:00:04.00" in line for line in diagnostics)

    def test_exactly_one_terminal_event_last(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_FAIL))

        events = list(transcoder.stream(inputs, output))

        terminal = [e for e in events if e.terminal]
        assert len(terminal) == 1
        assert terminal[0] is events[-1]

    def test_nonzero_exit(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_FAIL))

        failed = list(transcoder.stream(inputs, output))[-1]

        assert isinstance(failed, TranscodeFailed)
        assert failed.message.startswith("ffmpeg exited with code 1")
        assert "Invalid data found" in failed.message
        assert "ffmpeg version 6.0" in failed.stderr

    def test_missing_output(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_NO_OUTPUT))

        failed = list(transcoder.stream(inputs, output))[-1]

        assert isinstance(failed, TranscodeFailed)
        assert failed.message == "Output video is empty or missing"

    def test_missing_executable(self, tmp_path, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=str(tmp_path / "no-such-ffmpeg"))

        events = list(transcoder.stream(inputs, output))

        assert len(events) == 2
        assert isinstance(events[0], TranscodeStarted)
        assert isinstance(events[1], TranscodeFailed)
        assert "Failed to start ffmpeg" in events[1].message

    def test_timeout_kills_process(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_HANG), timeout=0.5)

        failed = list(transcoder.stream(inputs, output))[-1]

        assert isinstance(failed, TranscodeFailed)
        assert failed.message == "ffmpeg timed out after 0.5s"

    def test_large_stdout_does_not_stall(self, make_engine, inputs, output):
        # The timeout only turns a stall into a failure instead of a hung test
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_NOISY_STDOUT), timeout=30)

        events = list(transcoder.stream(inputs, output))

        assert isinstance(events[-1], TranscodeCompleted)
        assert output.read_bytes() == b"video"

    def test_large_stdout_keeps_tail_on_failure(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(
            ffmpeg_path=make_engine(ENGINE_NOISY_STDOUT_FAIL),
            timeout=30,
            stdout_tail_lines=5
        )

        failed = list(transcoder.stream(inputs, output))[-1]

        assert isinstance(failed, TranscodeFailed)
        assert failed.message == "ffmpeg exited with code 1: Conversion failed!"
        assert failed.stdout.splitlines() == ["frame"] * 4 + ["last stdout line"]

    def test_closing_stream_early(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_HANG))
        events = transcoder.stream(inputs, output)

        assert isinstance(next(events), TranscodeStarted)
        assert isinstance(next(events), TranscodeDiagnostic)

        events.close()

        assert not output.exists()


@posix_only
class TestRun:
    """Test run() on top of the stream."""

    def test_returns_output_path(self, make_engine, inputs, output, recording_observer):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_OK))

        result = transcoder.run(inputs, output, recording_observer)

        assert result == output
        assert isinstance(recording_observer.events[0], TranscodeStarted)
        assert isinstance(recording_observer.events[-1], TranscodeCompleted)

    def test_failure_raises(self, make_engine, inputs, output, recording_observer):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_FAIL))

        with pytest.raises(InvocationError, match="FFmpeg failed: ffmpeg exited with code 1") as exc_info:
            transcoder.run(inputs, output, recording_observer)

        assert "Invalid data found" in exc_info.value.stderr
        assert isinstance(recording_observer.events[-1], TranscodeFailed)

    def test_observer_errors_do_not_abort(self, make_engine, inputs, output):
        class BrokenObserver:
            def on_event(self, event):
                raise RuntimeError("sink unavailable")

        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_OK))

        assert transcoder.run(inputs, output, BrokenObserver()) == output

    def test_without_observer(self, make_engine, inputs, output):
        transcoder = FFmpegOverlayTranscoder(ffmpeg_path=make_engine(ENGINE_OK))

        assert transcoder.run(inputs, output) == Path(output)
