"""Download delivery: gate, watermark, temporary upload, audit."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Literal

from core.clock import Clock, utcnow
from core.errors import DeliveryError, MalformedDocumentError, RecordStoreError, StorageError
from documents.watermark import (
    UNKNOWN_EMAIL,
    UNKNOWN_THEATER,
    LicenseInfo,
    license_watermark,
    perusal_watermark,
)
from persistence.contracts import BlobStore, RecordStore
from persistence.models import ProfileRecord
from services.entitlements import authorize_license_download, authorize_perusal_download

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class DeliveryRequest:
    kind: Literal["license", "perusal"]
    entitlement_id: str
    caller_id: str
    ip_address: str | None = None


@dataclass(frozen=True)
class DeliveryResult:
    download_url: str
    expires_in: int
    filename: str
    script_title: str


def delivery_filename(title: str, entitlement_id: str, label: str) -> str:
    """Filesystem-safe name unique to the entitlement."""
    safe_title = _UNSAFE_CHARS.sub("_", title) or "script"
    safe_id = _UNSAFE_CHARS.sub("_", entitlement_id)
    return f"{safe_title}_{label}_{safe_id}.pdf"


class DeliveryService:
    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        self._records = records
        self._blobs = blobs
        self._ttl = ttl_seconds
        self._clock = clock or utcnow

    def deliver(self, request: DeliveryRequest) -> DeliveryResult:
        if request.kind == "license":
            return self.deliver_license(request)
        if request.kind == "perusal":
            return self.deliver_perusal(request)
        raise ValueError(f"Unknown delivery kind: {request.kind}")

    def deliver_license(self, request: DeliveryRequest) -> DeliveryResult:
        now = self._clock()
        grant = authorize_license_download(
            self._records,
            license_id=request.entitlement_id,
            caller_id=request.caller_id,
            now=now,
        )
        license_record = grant.license
        filename = delivery_filename(grant.script.title, license_record.license_id, "licensed")

        try:
            source = self._blobs.get(grant.source_url)
            profile = self._load_profile(license_record.licensee_id)
            watermarked = license_watermark(
                source,
                LicenseInfo(
                    theater_name=(profile.company_name if profile else None) or UNKNOWN_THEATER,
                    licensee_email=profile.email if profile else None,
                    license_type=license_record.license_type,
                    license_id=license_record.license_id,
                    performance_dates=list(license_record.performance_dates),
                ),
            )
            url = self._blobs.put_temporary(
                watermarked, filename=filename, ttl_seconds=self._ttl
            )
        except (StorageError, MalformedDocumentError) as exc:
            logger.error(
                "Error processing script download for license %s: %s",
                license_record.license_id,
                exc,
                exc_info=True,
            )
            raise DeliveryError("Failed to process script for download") from exc

        self._audit(
            lambda: self._records.insert_download_log(
                downloaded_by=request.caller_id,
                ip_address=request.ip_address,
                license_id=license_record.license_id,
                downloaded_at=now,
            ),
            entitlement_id=license_record.license_id,
        )
        logger.info("Delivered licensed copy %s to %s", filename, request.caller_id)
        return DeliveryResult(
            download_url=url,
            expires_in=self._ttl,
            filename=filename,
            script_title=grant.script.title,
        )

    def deliver_perusal(self, request: DeliveryRequest) -> DeliveryResult:
        now = self._clock()
        grant = authorize_perusal_download(
            self._records,
            request_id=request.entitlement_id,
            caller_id=request.caller_id,
            now=now,
        )
        perusal = grant.request
        filename = delivery_filename(grant.script.title, perusal.request_id, "perusal")

        try:
            source = self._blobs.get(grant.source_url)
            profile = self._load_profile(request.caller_id)
            organization = (
                (profile.company_name if profile else None)
                or perusal.company_name
                or UNKNOWN_THEATER
            )
            email = (profile.email if profile else None) or UNKNOWN_EMAIL
            watermarked = perusal_watermark(source, organization, email)
            url = self._blobs.put_temporary(
                watermarked, filename=filename, ttl_seconds=self._ttl
            )
        except (StorageError, MalformedDocumentError) as exc:
            logger.error(
                "Error processing perusal download %s: %s",
                perusal.request_id,
                exc,
                exc_info=True,
            )
            raise DeliveryError("Failed to process perusal script") from exc

        self._audit(
            lambda: self._records.insert_download_log(
                downloaded_by=request.caller_id,
                ip_address=request.ip_address,
                perusal_request_id=perusal.request_id,
                downloaded_at=now,
            ),
            entitlement_id=perusal.request_id,
        )
        self._audit(
            lambda: self._records.increment_perusal_downloads(perusal.request_id, now),
            entitlement_id=perusal.request_id,
        )
        logger.info("Delivered perusal copy %s to %s", filename, request.caller_id)
        return DeliveryResult(
            download_url=url,
            expires_in=self._ttl,
            filename=filename,
            script_title=grant.script.title,
        )

    def _load_profile(self, profile_id: str) -> ProfileRecord | None:
        try:
            return self._records.get_profile(profile_id)
        except RecordStoreError as exc:
            logger.warning("Profile lookup failed for %s, using fallback label: %s", profile_id, exc)
            return None

    def _audit(self, write: Callable[[], object], *, entitlement_id: str) -> None:
        try:
            write()
        except RecordStoreError as exc:
            logger.error("Failed to record download for %s: %s", entitlement_id, exc)


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "DeliveryRequest",
    "DeliveryResult",
    "DeliveryService",
    "delivery_filename",
]
