"""Service wiring from settings."""

from __future__ import annotations

from dataclasses import dataclass

from core.clock import Clock
from core.config import Settings
from persistence.fs_store import FsBlobStore
from persistence.manager import PersistenceManager
from persistence.sqlite_store import SqliteStore
from services.delivery import DeliveryService
from services.perusal_requests import PerusalRequestService
from services.uploads import ScriptUploadService


@dataclass(frozen=True)
class Services:
    records: SqliteStore
    blobs: FsBlobStore
    delivery: DeliveryService
    uploads: ScriptUploadService
    perusal_requests: PerusalRequestService


def build_services(settings: Settings, *, clock: Clock | None = None) -> Services:
    persistence = PersistenceManager(settings, clock=clock)
    records = persistence.store
    blobs = persistence.blobs
    return Services(
        records=records,
        blobs=blobs,
        delivery=DeliveryService(
            records, blobs, ttl_seconds=settings.download_url_ttl_seconds, clock=clock
        ),
        uploads=ScriptUploadService(
            records,
            blobs,
            scripts_bucket=settings.scripts_bucket,
            perusal_bucket=settings.perusal_bucket,
            perusal_max_pages=settings.perusal_max_pages,
            max_upload_bytes=settings.max_upload_bytes,
        ),
        perusal_requests=PerusalRequestService(
            records, ttl_days=settings.perusal_request_ttl_days, clock=clock
        ),
    )


__all__ = ["Services", "build_services"]
