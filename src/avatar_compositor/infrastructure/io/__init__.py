"""IO utilities package."""

from avatar_compositor.infrastructure.io.transfer import BlobTransfer

__all__ = ["BlobTransfer"]
