"""Storage infrastructure."""

from avatar_compositor.infrastructure.storage.s3_blob_store import S3BlobStore
from avatar_compositor.infrastructure.storage.scratch_workspace import ScratchWorkspace

__all__ = ['S3BlobStore', 'ScratchWorkspace']
