"""Script file uploads: store the full script and its derived perusal copy."""

from __future__ import annotations

import logging
from pathlib import PurePath

from core.errors import (
    InvalidRequestError,
    MalformedDocumentError,
    NotFoundError,
    StorageError,
)
from documents.perusal import DEFAULT_MAX_PAGES, derive_perusal
from persistence.contracts import BlobStore, RecordStore
from persistence.fs_store import parse_object_url
from persistence.models import ScriptRecord

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class ScriptUploadService:
    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        *,
        scripts_bucket: str,
        perusal_bucket: str,
        perusal_max_pages: int = DEFAULT_MAX_PAGES,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self._records = records
        self._blobs = blobs
        self._scripts_bucket = scripts_bucket
        self._perusal_bucket = perusal_bucket
        self._perusal_max_pages = perusal_max_pages
        self._max_upload_bytes = max_upload_bytes

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def upload_script_file(
        self,
        script_id: str,
        caller_id: str,
        *,
        filename: str | None,
        content_type: str | None,
        data: bytes,
    ) -> ScriptRecord:
        script = self._owned_script(script_id, caller_id)
        self._validate_upload(filename, content_type, data)

        try:
            perusal_bytes = derive_perusal(data, self._perusal_max_pages)
        except MalformedDocumentError as exc:
            raise InvalidRequestError("Uploaded file is not a valid PDF") from exc

        self._delete_quietly(script.file_url)
        self._delete_quietly(script.perusal_url)

        folder = f"scripts/{script.playwright_id}"
        full = self._blobs.put(
            data,
            bucket=self._scripts_bucket,
            key_hint=f"{folder}/{script.script_id}-full.pdf",
            content_type=PDF_CONTENT_TYPE,
        )
        perusal = self._blobs.put(
            perusal_bytes,
            bucket=self._perusal_bucket,
            key_hint=f"{folder}/{script.script_id}-perusal.pdf",
            content_type=PDF_CONTENT_TYPE,
        )
        updated = self._records.update_script_files(
            script.script_id, file_url=full.url, perusal_url=perusal.url
        )
        logger.info("Stored script file and perusal copy for %s", script.script_id)
        return updated

    def delete_script_files(self, script_id: str, caller_id: str) -> None:
        script = self._owned_script(script_id, caller_id)
        for url in (script.file_url, script.perusal_url):
            if url:
                bucket, key = parse_object_url(url)
                self._blobs.delete(bucket, key)
        self._records.update_script_files(script.script_id, file_url=None, perusal_url=None)
        logger.info("Deleted script files for %s", script.script_id)

    def _owned_script(self, script_id: str, caller_id: str) -> ScriptRecord:
        script = self._records.get_script(script_id)
        if script is None or script.playwright_id != caller_id:
            raise NotFoundError("Script not found or access denied")
        return script

    def _validate_upload(
        self, filename: str | None, content_type: str | None, data: bytes
    ) -> None:
        if not data:
            raise InvalidRequestError("No file uploaded")
        suffix = PurePath(filename or "").suffix.lower()
        if suffix != ".pdf" or (content_type or "").lower() != PDF_CONTENT_TYPE:
            raise InvalidRequestError("Invalid file type. Only PDF files are allowed.")
        if len(data) > self._max_upload_bytes:
            raise InvalidRequestError("File too large")

    def _delete_quietly(self, url: str | None) -> None:
        if not url:
            return
        try:
            bucket, key = parse_object_url(url)
            self._blobs.delete(bucket, key)
        except StorageError as exc:
            logger.error("Error deleting old script file %s: %s", url, exc)


__all__ = ["DEFAULT_MAX_UPLOAD_BYTES", "PDF_CONTENT_TYPE", "ScriptUploadService"]
