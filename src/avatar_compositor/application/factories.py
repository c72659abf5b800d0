"""Composition root: builds the orchestrator and its collaborators from config."""

from typing import Optional
from urllib.parse import urlparse

from avatar_compositor.application.orchestrator import CompositeJobOrchestrator
from avatar_compositor.domain.exceptions import ConfigurationError, InvalidLocator
from avatar_compositor.domain.protocols import IBlobStore
from avatar_compositor.infrastructure.config import ServiceConfig
from avatar_compositor.infrastructure.io import BlobTransfer
from avatar_compositor.infrastructure.media import FFmpegOverlayTranscoder
from avatar_compositor.infrastructure.storage import S3BlobStore, ScratchWorkspace
from avatar_compositor.shared.logging import get_logger
from avatar_compositor.shared.retry import RetryStrategy

logger = get_logger(__name__)

GCS_INTEROP_HOST = "storage.googleapis.com"


def create_blob_store(config: ServiceConfig) -> S3BlobStore:
    """
    Create the shared blob store client.

    The GCS interoperability endpoint only accepts HMAC keys; boto3 never
    picks up Google credentials from the environment.

    Raises:
        ConfigurationError: If the GCS endpoint is configured without HMAC keys
    """
    if _is_gcs_endpoint(config.storage_endpoint) and not (
        config.storage_access_key and config.storage_secret_key
    ):
        raise ConfigurationError(
            f"{config.storage_endpoint} requires HMAC keys: "
            "set STORAGE_ACCESS_KEY and STORAGE_SECRET_KEY"
        )

    logger.info(f"Using blob store endpoint: {config.storage_endpoint or 'default'}")
    return S3BlobStore(
        endpoint=config.storage_endpoint,
        access_key=config.storage_access_key,
        secret_key=config.storage_secret_key,
        region=config.storage_region
    )


def create_orchestrator(
    config: ServiceConfig,
    blob_store: Optional[IBlobStore] = None
) -> CompositeJobOrchestrator:
    """
    Create orchestrator with all dependencies from config.

    Args:
        config: Service configuration
        blob_store: Store to use instead of the configured S3 client
    """
    retry = RetryStrategy(
        max_attempts=config.transfer_attempts,
        backoff_seconds=config.transfer_backoff,
        give_up_on=(InvalidLocator,)
    )
    transfer = BlobTransfer(
        blob_store=blob_store or create_blob_store(config),
        scheme=config.locator_scheme,
        retry=retry
    )

    return CompositeJobOrchestrator(
        transfer=transfer,
        workspace=ScratchWorkspace(base_dir=config.scratch_dir),
        transcoder=FFmpegOverlayTranscoder(
            ffmpeg_path=config.ffmpeg_path,
            timeout=config.transcode_timeout
        )
    )


def _is_gcs_endpoint(endpoint: Optional[str]) -> bool:
    return bool(endpoint) and urlparse(endpoint).hostname == GCS_INTEROP_HOST
