"""CLI command groups."""

__all__ = ["blobs", "config", "watermark"]

from . import blobs, config, watermark
