"""Persistence manager wiring the record store and the blob store."""

from __future__ import annotations

from pathlib import Path

from core.clock import Clock
from core.config import Settings
from persistence.fs_store import FsBlobStore
from persistence.sqlite_store import SqliteStore


class PersistenceManager:
    def __init__(
        self,
        settings: Settings,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._base_dir = Path(settings.data_dir)
        self._store = SqliteStore(settings.resolved_database_path)
        self._blobs = FsBlobStore(
            settings.blobs_dir,
            signing_secret=settings.signing_secret,
            public_base_url=settings.public_base_url,
            temp_bucket=settings.resolved_temp_bucket,
            clock=clock,
        )

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def store(self) -> SqliteStore:
        return self._store

    @property
    def blobs(self) -> FsBlobStore:
        return self._blobs


__all__ = ["PersistenceManager"]
