"""FFmpeg invocation for the fixed avatar overlay + audio mux recipe."""

import shlex
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Iterator, List, Optional

from avatar_compositor.domain.exceptions import InvocationError
from avatar_compositor.domain.models import (
    InputSet,
    TranscodeCompleted,
    TranscodeDiagnostic,
    TranscodeEvent,
    TranscodeFailed,
    TranscodeProgress,
    TranscodeStarted,
)
from avatar_compositor.domain.protocols import ITranscodeObserver
from avatar_compositor.infrastructure.media.progress import ProgressTracker
from avatar_compositor.shared.logging import get_logger

logger = get_logger(__name__)

AVATAR_WIDTH = 100
CORNER_INSET = 10

# Input 0: background video, 1: avatar video, 2: audio track
FILTER_GRAPH = [
    f"[1:v]scale={AVATAR_WIDTH}:-1[avatar]",
    f"[0:v][avatar]overlay=main_w-overlay_w-{CORNER_INSET}:main_h-overlay_h-{CORNER_INSET}[video_out]",
    "[2:a]anull[audio_out]",
]

OUTPUT_OPTIONS = [
    '-map', '[video_out]',
    '-map', '[audio_out]',
    '-c:v', 'libx264',
    '-preset', 'fast',
    '-c:a', 'aac',
    '-shortest',
]


class FFmpegOverlayTranscoder:
    """
    Runs one ffmpeg process that overlays the avatar onto the background
    (bottom-right, 10px inset) and muxes in the audio track.
    Implements ITranscoder protocol.
    """

    def __init__(
        self,
        ffmpeg_path: str = 'ffmpeg',
        timeout: Optional[float] = None,
        stderr_tail_lines: int = 200,
        stdout_tail_lines: int = 200
    ):
        """
        Args:
            ffmpeg_path: ffmpeg executable (name on PATH or absolute path)
            timeout: Seconds before the process is killed (None: no limit)
            stderr_tail_lines: Stderr lines kept for failure reports
            stdout_tail_lines: Stdout lines kept for failure reports
        """
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
        self.stderr_tail_lines = stderr_tail_lines
        self.stdout_tail_lines = stdout_tail_lines
        self._logger = get_logger(__name__)

    def build_command(self, inputs: InputSet, output_path: Path) -> List[str]:
        """Build the full ffmpeg argument list."""
        cmd = [self.ffmpeg_path, '-y']
        for input_path in inputs.as_list():
            cmd.extend(['-i', str(input_path)])
        cmd.extend(['-filter_complex', ';'.join(FILTER_GRAPH)])
        cmd.extend(OUTPUT_OPTIONS)
        cmd.append(str(output_path))
        return cmd

    def stream(self, inputs: InputSet, output_path: Path) -> Iterator[TranscodeEvent]:
        """
        Run ffmpeg and yield its events lazily.

        Yields one TranscodeStarted, then TranscodeDiagnostic for every stderr
        line and TranscodeProgress whenever a percentage is known, and ends
        with exactly one TranscodeCompleted or TranscodeFailed. Closing the
        generator early kills the process.
        """
        output_path = Path(output_path)
        cmd = self.build_command(inputs, output_path)
        yield TranscodeStarted(command_line=shlex.join(cmd))

        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors='replace'
            )
        except OSError as e:
            yield TranscodeFailed(message=f"Failed to start ffmpeg ({self.ffmpeg_path}): {e}")
            return

        tracker = ProgressTracker()
        tail = deque(maxlen=self.stderr_tail_lines)

        # stdout is drained concurrently; a full pipe would stall the engine
        stdout_tail = deque(maxlen=self.stdout_tail_lines)
        stdout_reader = threading.Thread(
            target=self._drain,
            args=(proc.stdout, stdout_tail),
            daemon=True
        )
        stdout_reader.start()

        timed_out = threading.Event()
        timer = None
        if self.timeout:
            timer = threading.Timer(self.timeout, self._kill, args=(proc, timed_out))
            timer.daemon = True
            timer.start()

        finished = False
        try:
            for raw_line in proc.stderr:
                line = raw_line.rstrip()
                if not line:
                    continue
                tail.append(line)
                yield TranscodeDiagnostic(line=line)

                percent = tracker.feed(line)
                if percent is not None:
                    yield TranscodeProgress(percent=percent)

            returncode = proc.wait()
            finished = True
        finally:
            if timer is not None:
                timer.cancel()
            if not finished:
                self._kill(proc)
                proc.wait()
            stdout_reader.join()
            proc.stdout.close()
            proc.stderr.close()

        stdout = "".join(stdout_tail)
        stderr = "\n".join(tail)

        if timed_out.is_set():
            yield TranscodeFailed(
                message=f"ffmpeg timed out after {self.timeout}s",
                stdout=stdout,
                stderr=stderr
            )
        elif returncode != 0:
            message = f"ffmpeg exited with code {returncode}"
            if tail:
                message = f"{message}: {tail[-1]}"
            yield TranscodeFailed(
                message=message,
                stdout=stdout,
                stderr=stderr
            )
        elif not output_path.exists() or output_path.stat().st_size == 0:
            yield TranscodeFailed(
                message="Output video is empty or missing",
                stdout=stdout,
                stderr=stderr
            )
        else:
            yield TranscodeCompleted(output_path=output_path)

    def run(
        self,
        inputs: InputSet,
        output_path: Path,
        observer: Optional[ITranscodeObserver] = None
    ) -> Path:
        """
        Run to the terminal event, forwarding every event to ``observer``.

        Returns:
            Path to the finished output file

        Raises:
            InvocationError: If ffmpeg fails for any reason
        """
        for event in self.stream(inputs, output_path):
            self._notify(observer, event)

            if isinstance(event, TranscodeFailed):
                raise InvocationError(
                    f"FFmpeg failed: {event.message}",
                    stdout=event.stdout,
                    stderr=event.stderr
                )
            if isinstance(event, TranscodeCompleted):
                return event.output_path

        raise InvocationError("FFmpeg failed: no terminal event was produced")

    def _notify(self, observer: Optional[ITranscodeObserver], event: TranscodeEvent) -> None:
        if observer is None:
            return
        try:
            observer.on_event(event)
        except Exception as e:
            self._logger.warning(f"Transcode observer raised on {type(event).__name__}: {e}")

    @staticmethod
    def _drain(pipe, sink: deque) -> None:
        for line in pipe:
            sink.append(line)

    @staticmethod
    def _kill(proc: subprocess.Popen, flag: Optional[threading.Event] = None) -> None:
        if proc.poll() is not None:
            return
        if flag is not None:
            flag.set()
        try:
            proc.kill()
        except OSError:
            pass
