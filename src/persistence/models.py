"""Lightweight persistence records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

Role = Literal["playwright", "theater_company", "admin"]
LicenseStatus = Literal["pending", "active", "failed", "expired", "cancelled"]
PerusalStatus = Literal["pending", "approved", "rejected"]
ScriptStatus = Literal["draft", "under_review", "published", "rejected", "archived"]


@dataclass(frozen=True)
class ProfileRecord:
    profile_id: str
    email: str
    role: Role
    company_name: str | None
    first_name: str | None
    last_name: str | None
    created_at: datetime


@dataclass(frozen=True)
class ScriptRecord:
    script_id: str
    playwright_id: str
    title: str
    status: ScriptStatus
    file_url: str | None
    perusal_url: str | None
    created_at: datetime
    updated_at: datetime | None


@dataclass(frozen=True)
class LicenseRecord:
    license_id: str
    script_id: str
    licensee_id: str
    license_type: str
    status: LicenseStatus
    expires_at: datetime | None
    performance_dates: tuple[str, ...]
    created_at: datetime


@dataclass(frozen=True)
class PerusalRequestRecord:
    request_id: str
    script_id: str
    requester_id: str
    company_name: str | None
    purpose: str | None
    status: PerusalStatus
    expires_at: datetime
    download_count: int
    last_downloaded_at: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class DownloadLogRecord:
    log_id: str
    license_id: str | None
    perusal_request_id: str | None
    downloaded_by: str
    ip_address: str | None
    downloaded_at: datetime


@dataclass(frozen=True)
class StoredObject:
    url: str
    key: str
    bucket: str


__all__ = [
    "DownloadLogRecord",
    "LicenseRecord",
    "LicenseStatus",
    "PerusalRequestRecord",
    "PerusalStatus",
    "ProfileRecord",
    "Role",
    "ScriptRecord",
    "ScriptStatus",
    "StoredObject",
]
