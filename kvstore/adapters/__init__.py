"""Adapter contract for KV-Store backends."""

from .base import KeyValueAdapter

__all__ = ["KeyValueAdapter"]
