"""Persistence protocol contracts."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from persistence.models import (
    DownloadLogRecord,
    LicenseRecord,
    PerusalRequestRecord,
    ProfileRecord,
    ScriptRecord,
    StoredObject,
)


class RecordStore(Protocol):
    """Data access for the delivery pipeline.

    Lookups return ``None`` when the record does not exist and raise
    ``RecordStoreError`` when the backend fails.
    """

    def get_profile(self, profile_id: str) -> ProfileRecord | None: ...

    def get_profile_by_token(self, token: str) -> ProfileRecord | None: ...

    def get_script(self, script_id: str) -> ScriptRecord | None: ...

    def update_script_files(
        self, script_id: str, *, file_url: str | None, perusal_url: str | None
    ) -> ScriptRecord: ...

    def get_license(self, license_id: str) -> LicenseRecord | None: ...

    def get_perusal_request(self, request_id: str) -> PerusalRequestRecord | None: ...

    def create_perusal_request(
        self,
        *,
        script_id: str,
        requester_id: str,
        company_name: str | None,
        purpose: str | None,
        status: str,
        expires_at: datetime,
    ) -> PerusalRequestRecord: ...

    def list_perusal_requests(
        self,
        *,
        requester_id: str,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PerusalRequestRecord], int]: ...

    def insert_download_log(
        self,
        *,
        downloaded_by: str,
        ip_address: str | None,
        license_id: str | None = None,
        perusal_request_id: str | None = None,
        downloaded_at: datetime | None = None,
    ) -> DownloadLogRecord: ...

    def increment_perusal_downloads(
        self, request_id: str, downloaded_at: datetime | None = None
    ) -> None: ...


class BlobStore(Protocol):
    def put(
        self,
        data: bytes,
        *,
        bucket: str,
        key_hint: str | None = None,
        content_type: str = "application/pdf",
        expires_in: int | None = None,
    ) -> StoredObject: ...

    def get(self, url: str) -> bytes: ...

    def delete(self, bucket: str, key: str) -> None: ...

    def presign(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str: ...

    def put_temporary(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str = "application/pdf",
        ttl_seconds: int = 3600,
    ) -> str: ...


__all__ = ["BlobStore", "RecordStore"]
