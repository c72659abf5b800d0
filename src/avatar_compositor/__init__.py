"""Avatar overlay compositor: background + avatar + audio into one video."""

__version__ = "0.1.0"
