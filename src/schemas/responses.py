"""External response schemas for the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from persistence.models import PerusalRequestRecord, ScriptRecord


class ErrorDetail(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class DownloadResponse(BaseModel):
    download_url: str
    expires_in: int
    script_title: str
    filename: str

    model_config = ConfigDict(extra="forbid")


class PerusalDownloadResponse(DownloadResponse):
    watermark_notice: str


class ScriptFiles(BaseModel):
    id: str
    file_url: str | None = None
    perusal_url: str | None = None

    @classmethod
    def from_record(cls, record: ScriptRecord) -> "ScriptFiles":
        return cls(id=record.script_id, file_url=record.file_url, perusal_url=record.perusal_url)


class ScriptUploadResponse(BaseModel):
    message: str
    script: ScriptFiles


class MessageResponse(BaseModel):
    message: str


class PerusalRequestCreated(BaseModel):
    request_id: str
    expires_at: datetime
    message: str


class PerusalRequestSummary(BaseModel):
    id: str
    script_id: str
    company_name: str | None = None
    purpose: str | None = None
    status: str
    expires_at: datetime
    download_count: int = 0
    last_downloaded_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: PerusalRequestRecord) -> "PerusalRequestSummary":
        return cls(
            id=record.request_id,
            script_id=record.script_id,
            company_name=record.company_name,
            purpose=record.purpose,
            status=record.status,
            expires_at=record.expires_at,
            download_count=record.download_count,
            last_downloaded_at=record.last_downloaded_at,
            created_at=record.created_at,
        )


class PerusalRequestList(BaseModel):
    requests: list[PerusalRequestSummary] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


__all__ = [
    "DownloadResponse",
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "PerusalDownloadResponse",
    "PerusalRequestCreated",
    "PerusalRequestList",
    "PerusalRequestSummary",
    "ScriptFiles",
    "ScriptUploadResponse",
]
