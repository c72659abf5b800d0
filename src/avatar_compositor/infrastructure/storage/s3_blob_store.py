"""
Blob store client implementation.

Infrastructure layer for the remote object store, using boto3 against an
S3-compatible API. Google Cloud Storage is reached through its
interoperability endpoint (``https://storage.googleapis.com``) with HMAC keys.
"""

from pathlib import Path
from typing import Optional
import logging

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from avatar_compositor.domain.exceptions import DownloadError, UploadError

_NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound', 'NoSuchBucket')


class S3BlobStore:
    """
    Blob store backed by boto3.
    Implements IBlobStore protocol.

    The underlying client is stateless per job and shared by all requests.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region: Optional[str] = None,
        client=None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize blob store.

        Args:
            endpoint: S3-compatible endpoint URL (None for AWS default)
            access_key: Access key id (None to use the default credential chain)
            secret_key: Secret access key
            region: Optional region name
            client: Pre-built boto3 client, mainly for tests
            logger: Logger instance
        """
        self.endpoint = endpoint
        self.region = region
        self.logger = logger or logging.getLogger(__name__)
        self._client = client or self._create_client(access_key, secret_key)

    def _create_client(self, access_key: Optional[str], secret_key: Optional[str]):
        """Create S3 client with path-style addressing."""
        config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'}
        )

        kwargs = {'config': config}
        if self.endpoint:
            kwargs['endpoint_url'] = self.endpoint
        if access_key and secret_key:
            kwargs['aws_access_key_id'] = access_key
            kwargs['aws_secret_access_key'] = secret_key
        if self.region:
            kwargs['region_name'] = self.region

        return boto3.client('s3', **kwargs)

    def get(self, store: str, path: str, local_path: Path) -> None:
        """Download ``store/path`` to ``local_path``."""
        self.logger.debug(f"GET {store}/{path} -> {local_path}")

        try:
            self._client.download_file(store, path, str(local_path))
        except ClientError as e:
            code = str(e.response.get('Error', {}).get('Code', ''))
            if code in _NOT_FOUND_CODES:
                raise DownloadError(f"Object not found: {store}/{path}") from e
            raise DownloadError(f"Download of {store}/{path} failed: {e}") from e
        except (BotoCoreError, OSError) as e:
            raise DownloadError(f"Download of {store}/{path} failed: {e}") from e

    def put(self, local_path: Path, store: str, path: str, content_type: str) -> None:
        """Upload ``local_path`` to ``store/path`` with an explicit content type."""
        self.logger.debug(f"PUT {local_path} -> {store}/{path} ({content_type})")

        try:
            self._client.upload_file(
                str(local_path),
                store,
                path,
                ExtraArgs={'ContentType': content_type}
            )
        except (ClientError, BotoCoreError, OSError) as e:
            raise UploadError(f"Upload to {store}/{path} failed: {e}") from e
