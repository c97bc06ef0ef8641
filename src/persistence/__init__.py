"""Persistence subsystem exports."""

from persistence.fs_store import FsBlobStore
from persistence.manager import PersistenceManager
from persistence.sqlite_store import SqliteStore

__all__ = ["FsBlobStore", "PersistenceManager", "SqliteStore"]
