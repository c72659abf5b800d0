"""Shared fixtures and fakes for the avatar compositor tests."""

import sys
import os
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

# Ensure src/ is importable without an editable install
SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from avatar_compositor.application.orchestrator import CompositeJobOrchestrator
from avatar_compositor.domain.exceptions import DownloadError, UploadError
from avatar_compositor.domain.models import (
    TranscodeCompleted,
    TranscodeDiagnostic,
    TranscodeFailed,
    TranscodeProgress,
    TranscodeStarted,
)
from avatar_compositor.infrastructure.io.transfer import BlobTransfer
from avatar_compositor.infrastructure.media.ffmpeg import FFmpegOverlayTranscoder
from avatar_compositor.infrastructure.storage.scratch_workspace import ScratchWorkspace


class FakeBlobStore:
    """In-memory IBlobStore keyed by (store, path)."""

    def __init__(self, objects: Dict[Tuple[str, str], bytes] = None):
        self.objects: Dict[Tuple[str, str], bytes] = dict(objects or {})
        self.content_types: Dict[Tuple[str, str], str] = {}
        self.get_calls: List[Tuple[str, str]] = []
        self.put_calls: List[Tuple[str, str]] = []
        self.fail_put = False

    def get(self, store: str, path: str, local_path: Path) -> None:
        self.get_calls.append((store, path))
        if (store, path) not in self.objects:
            raise DownloadError(f"Object not found: {store}/{path}")
        Path(local_path).write_bytes(self.objects[(store, path)])

    def put(self, local_path: Path, store: str, path: str, content_type: str) -> None:
        self.put_calls.append((store, path))
        if self.fail_put:
            raise UploadError(f"Upload to {store}/{path} failed: permission denied")
        self.objects[(store, path)] = Path(local_path).read_bytes()
        self.content_types[(store, path)] = content_type


class FakeTranscoder(FFmpegOverlayTranscoder):
    """Replaces the ffmpeg process with a scripted event stream."""

    def __init__(self, fail_with: str = None, raise_error: Exception = None):
        super().__init__(ffmpeg_path='ffmpeg-fake')
        self.fail_with = fail_with
        self.raise_error = raise_error
        self.calls = []
        self.scratch_dirs = []

    def stream(self, inputs, output_path):
        self.calls.append((inputs, output_path))
        self.scratch_dirs.append(Path(output_path).parent)
        yield TranscodeStarted(command_line=' '.join(self.build_command(inputs, output_path)))

        if self.raise_error is not None:
            raise self.raise_error

        for path in inputs.as_list():
            assert Path(path).is_file(), f"input not staged: {path}"

        yield TranscodeDiagnostic(line="  Duration: 00:00:04.00, start: 0.000000")
        yield TranscodeProgress(percent=50.0)

        if self.fail_with:
            yield TranscodeFailed(message=self.fail_with, stdout='', stderr=self.fail_with)
            return

        Path(output_path).write_bytes(b"composited-video")
        yield TranscodeProgress(percent=100.0)
        yield TranscodeCompleted(output_path=Path(output_path))


class RecordingObserver:
    def __init__(self):
        self.events = []

    def on_event(self, event):
        self.events.append(event)


VALID_PAYLOAD = {
    'backgroundVideoGcsPath': 'gs://media/backgrounds/beach.mp4',
    'avatarVideoGcsPath': 'gs://media/avatars/host.mp4',
    'audioGcsPath': 'gs://media/audio/voice.aac',
    'outputGcsBucket': 'renders',
    'outputGcsFileName': 'out/final.mp4',
}


@pytest.fixture
def valid_payload():
    return dict(VALID_PAYLOAD)


@pytest.fixture
def blob_store():
    return FakeBlobStore({
        ('media', 'backgrounds/beach.mp4'): b"background",
        ('media', 'avatars/host.mp4'): b"avatar",
        ('media', 'audio/voice.aac'): b"audio",
    })


@pytest.fixture
def scratch_base(tmp_path):
    return tmp_path / "scratch"


@pytest.fixture
def workspace(scratch_base):
    return ScratchWorkspace(base_dir=scratch_base)


@pytest.fixture
def make_orchestrator(blob_store, workspace):
    """Build an orchestrator over the fake store; pass a transcoder to override."""

    def _make(transcoder=None, **kwargs):
        return CompositeJobOrchestrator(
            transfer=BlobTransfer(blob_store=blob_store, scheme='gs'),
            workspace=workspace,
            transcoder=transcoder or FakeTranscoder(),
            **kwargs
        )

    return _make


@pytest.fixture
def recording_observer():
    return RecordingObserver()


@pytest.fixture
def fake_transcoder():
    """Factory for scripted transcoders."""
    return FakeTranscoder
