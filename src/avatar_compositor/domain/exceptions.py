"""Domain exceptions for the composite pipeline."""

from typing import Optional, Sequence


class DomainException(Exception):
    """Base exception for all domain errors."""
    pass


class ValidationError(DomainException):
    """Raised when a composite request is missing required fields."""

    def __init__(self, message: str, missing_fields: Sequence[str] = ()):
        super().__init__(message)
        self.missing_fields = list(missing_fields)


class TransferError(DomainException):
    """Raised when moving an object to or from the blob store fails."""
    pass


class InvalidLocator(TransferError):
    """Raised when a locator cannot be parsed into (store, path)."""
    pass


class DownloadError(TransferError):
    """Raised when file download fails."""
    pass


class UploadError(TransferError):
    """Raised when file upload fails."""
    pass


class InvocationError(DomainException):
    """Raised when the transcoding engine fails."""

    def __init__(
        self,
        message: str,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None
    ):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class WorkspaceError(DomainException):
    """Raised when a scratch workspace cannot be allocated."""
    pass


class WorkspaceCollisionError(WorkspaceError):
    """Raised when a job's scratch directory already exists."""
    pass


class CleanupError(DomainException):
    """Scratch removal failure. Logged, never propagated."""
    pass


class ConfigurationError(DomainException):
    """Raised when configuration is invalid."""
    pass
