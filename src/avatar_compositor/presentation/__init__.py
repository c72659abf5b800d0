"""Presentation layer: HTTP app and CLI."""
