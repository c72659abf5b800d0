"""Blob transfer between the remote store and a job's scratch directory."""

import os
from pathlib import Path
from typing import Optional, Union

from avatar_compositor.domain.models import DEFAULT_SCHEME, RemoteLocator
from avatar_compositor.domain.protocols import IBlobStore
from avatar_compositor.domain.exceptions import (
    DownloadError,
    InvalidLocator,
    TransferError,
    UploadError,
)
from avatar_compositor.shared.logging import get_logger
from avatar_compositor.shared.retry import RetryStrategy

logger = get_logger(__name__)


class BlobTransfer:
    """
    Downloads job inputs and uploads job outputs through an IBlobStore.
    Implements ITransfer protocol.
    """

    def __init__(
        self,
        blob_store: IBlobStore,
        scheme: str = DEFAULT_SCHEME,
        retry: Optional[RetryStrategy] = None
    ):
        """
        Initialize transfer.

        Args:
            blob_store: Remote store collaborator
            scheme: Scheme used when rendering uploaded locators
            retry: Retry strategy for store calls (default: single attempt)
        """
        self.blob_store = blob_store
        self.scheme = scheme
        self.retry = retry or RetryStrategy(max_attempts=1, give_up_on=(InvalidLocator,))
        self._logger = get_logger(__name__)

    def download(self, locator: Union[str, RemoteLocator], local_path: Path) -> Path:
        """
        Download a remote object to ``local_path``.

        The object is fetched to a ``.part`` sibling and renamed into place,
        so ``local_path`` exists only after a complete copy.

        Raises:
            InvalidLocator: If the locator cannot be parsed
            DownloadError: If the object is missing or the copy fails
        """
        if not isinstance(locator, RemoteLocator):
            locator = RemoteLocator.parse(locator, default_scheme=self.scheme)

        local_path = Path(local_path)
        partial_path = local_path.with_name(local_path.name + ".part")

        self._logger.info(f"Downloading {locator.uri} to {local_path}")

        try:
            self.retry.execute(self.blob_store.get, locator.store, locator.path, partial_path)
            os.replace(partial_path, local_path)
        except TransferError:
            self._discard(partial_path)
            raise
        except Exception as e:
            self._discard(partial_path)
            raise DownloadError(f"Failed to download {locator.uri}: {e}") from e

        self._logger.info(f"Downloaded {local_path.stat().st_size} bytes to {local_path}")
        return local_path

    def upload(
        self,
        local_path: Path,
        store: str,
        destination_path: str,
        content_type: str
    ) -> RemoteLocator:
        """
        Upload a local file and return its fully-qualified locator.

        Raises:
            UploadError: On a missing local file or any store failure
        """
        local_path = Path(local_path)
        if not local_path.is_file():
            raise UploadError(f"File not found: {local_path}")

        try:
            destination = RemoteLocator(scheme=self.scheme, store=store, path=destination_path)
        except InvalidLocator as e:
            raise UploadError(f"Invalid upload destination: {e}") from e

        file_size = local_path.stat().st_size
        self._logger.info(f"Uploading {local_path} ({file_size} bytes) to {destination.uri}")

        try:
            self.retry.execute(
                self.blob_store.put, local_path, store, destination_path, content_type
            )
        except UploadError:
            raise
        except Exception as e:
            raise UploadError(f"Failed to upload {local_path} to {destination.uri}: {e}") from e

        self._logger.info(f"Upload successful: {destination.uri}")
        return destination

    def _discard(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self._logger.warning(f"Could not remove partial download {path}: {e}")
