"""Configuration package."""

from avatar_compositor.infrastructure.config.loader import ConfigLoader, ServiceConfig

__all__ = ["ConfigLoader", "ServiceConfig"]
