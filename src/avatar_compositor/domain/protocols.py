"""Protocol definitions for dependency inversion."""

from contextlib import AbstractContextManager
from typing import Iterator, Optional, Protocol, Union
from pathlib import Path

from .models import InputSet, RemoteLocator, TranscodeEvent


class IBlobStore(Protocol):
    """Remote object store with get/put semantics."""

    def get(self, store: str, path: str, local_path: Path) -> None:
        """Copy a remote object to a local file."""
        ...

    def put(self, local_path: Path, store: str, path: str, content_type: str) -> None:
        """Write a local file to the remote store."""
        ...


class ITransfer(Protocol):
    """Interface for moving job files to and from the blob store."""

    def download(self, locator: Union[str, RemoteLocator], local_path: Path) -> Path:
        """Download a remote object to ``local_path``."""
        ...

    def upload(
        self,
        local_path: Path,
        store: str,
        destination_path: str,
        content_type: str
    ) -> RemoteLocator:
        """Upload a local file and return its remote locator."""
        ...


class IScratchWorkspace(Protocol):
    """Interface for managing per-job scratch directories."""

    def acquire(self, job_id: str) -> Path:
        """Create the scratch directory for a job."""
        ...

    def release(self, workspace: Path) -> None:
        """Remove a scratch directory. Never raises."""
        ...

    def scoped(self, job_id: str) -> AbstractContextManager:
        """Acquire on entry, release on every exit path."""
        ...


class ITranscodeObserver(Protocol):
    """Receives transcode events. Used for logging, never for control."""

    def on_event(self, event: TranscodeEvent) -> None:
        ...


class ITranscoder(Protocol):
    """Interface for the fixed overlay + mux invocation."""

    def stream(self, inputs: InputSet, output_path: Path) -> Iterator[TranscodeEvent]:
        """Yield events, ending with exactly one terminal event."""
        ...

    def run(
        self,
        inputs: InputSet,
        output_path: Path,
        observer: Optional[ITranscodeObserver] = None
    ) -> Path:
        """Run to completion; raise InvocationError on failure."""
        ...


class IMetricsCollector(Protocol):
    """Interface for collecting metrics."""

    def start_timer(self, name: str) -> None:
        ...

    def stop_timer(self, name: str) -> float:
        ...

    def record_metric(self, name: str, value: float) -> None:
        ...

    def increment_counter(self, name: str, amount: int = 1) -> None:
        ...

    def get_summary(self) -> dict:
        ...

    def format_durations(self) -> str:
        ...

    def elapsed_time(self) -> float:
        ...
