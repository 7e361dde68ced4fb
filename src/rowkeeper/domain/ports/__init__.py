"""Domain port definitions for adapters."""

from __future__ import annotations

from .id_generation import IdGenerator
from .storage import StorageExecutor

__all__ = ["IdGenerator", "StorageExecutor"]
