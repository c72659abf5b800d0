"""Application layer package."""

from avatar_compositor.application.orchestrator import CompositeJobOrchestrator
from avatar_compositor.application.observers import LoggingTranscodeObserver
from avatar_compositor.application.factories import create_orchestrator, create_blob_store

__all__ = [
    "CompositeJobOrchestrator",
    "LoggingTranscodeObserver",
    "create_orchestrator",
    "create_blob_store",
]
