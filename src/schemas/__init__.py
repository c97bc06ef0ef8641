"""Schema package for HTTP request and response contracts."""

from .requests import PerusalRequestCreate
from .responses import (
    DownloadResponse,
    ErrorResponse,
    MessageResponse,
    PerusalDownloadResponse,
    PerusalRequestCreated,
    PerusalRequestList,
    PerusalRequestSummary,
    ScriptUploadResponse,
)

__all__ = [
    "DownloadResponse",
    "ErrorResponse",
    "MessageResponse",
    "PerusalDownloadResponse",
    "PerusalRequestCreate",
    "PerusalRequestCreated",
    "PerusalRequestList",
    "PerusalRequestSummary",
    "ScriptUploadResponse",
]
