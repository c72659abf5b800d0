"""Transcode event sinks."""

import logging

from avatar_compositor.domain.models import (
    TranscodeCompleted,
    TranscodeDiagnostic,
    TranscodeEvent,
    TranscodeFailed,
    TranscodeProgress,
    TranscodeStarted,
)
from avatar_compositor.shared.logging import JobLoggerAdapter


class LoggingTranscodeObserver:
    """Logs transcode events for one job. Implements ITranscodeObserver."""

    def __init__(self, logger: logging.Logger, job_id: str):
        self._log = JobLoggerAdapter(logger, job_id)

    def on_event(self, event: TranscodeEvent) -> None:
        if isinstance(event, TranscodeStarted):
            self._log.info(f"Spawned FFmpeg with command: {event.command_line}")
        elif isinstance(event, TranscodeProgress):
            self._log.info(f"FFmpeg Processing: {event.percent:.2f}% done")
        elif isinstance(event, TranscodeDiagnostic):
            self._log.debug(f"FFmpeg stderr: {event.line}")
        elif isinstance(event, TranscodeCompleted):
            self._log.info(f"FFmpeg processing finished successfully: {event.output_path}")
        elif isinstance(event, TranscodeFailed):
            self._log.error(f"FFmpeg error: {event.message}")
            if event.stdout:
                self._log.error(f"FFmpeg stdout (on error): {event.stdout}")
            if event.stderr:
                self._log.error(f"FFmpeg stderr (on error): {event.stderr}")
