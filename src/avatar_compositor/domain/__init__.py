"""Domain layer package."""

from .models import (
    OUTPUT_CONTENT_TYPE,
    CompositeJob,
    CompositeRequest,
    InputSet,
    JobResponse,
    JobStage,
    RemoteLocator,
    TranscodeCompleted,
    TranscodeDiagnostic,
    TranscodeEvent,
    TranscodeFailed,
    TranscodeProgress,
    TranscodeStarted,
)
from .exceptions import (
    DomainException,
    ValidationError,
    TransferError,
    InvalidLocator,
    DownloadError,
    UploadError,
    InvocationError,
    WorkspaceError,
    WorkspaceCollisionError,
    CleanupError,
    ConfigurationError,
)
from .protocols import (
    IBlobStore,
    ITransfer,
    IScratchWorkspace,
    ITranscodeObserver,
    ITranscoder,
    IMetricsCollector,
)

__all__ = [
    # Models
    "OUTPUT_CONTENT_TYPE",
    "CompositeJob",
    "CompositeRequest",
    "InputSet",
    "JobResponse",
    "JobStage",
    "RemoteLocator",
    "TranscodeCompleted",
    "TranscodeDiagnostic",
    "TranscodeEvent",
    "TranscodeFailed",
    "TranscodeProgress",
    "TranscodeStarted",
    # Exceptions
    "DomainException",
    "ValidationError",
    "TransferError",
    "InvalidLocator",
    "DownloadError",
    "UploadError",
    "InvocationError",
    "WorkspaceError",
    "WorkspaceCollisionError",
    "CleanupError",
    "ConfigurationError",
    # Protocols
    "IBlobStore",
    "ITransfer",
    "IScratchWorkspace",
    "ITranscodeObserver",
    "ITranscoder",
    "IMetricsCollector",
]
