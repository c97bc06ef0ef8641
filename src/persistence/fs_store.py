"""Filesystem blob store with signed, expiring download URLs."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timedelta
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import quote, unquote
from uuid import uuid4

from core.clock import Clock, as_utc, utcnow
from core.errors import BlobNotFoundError, StorageError
from persistence.hashing import sha256_bytes, sign_payload, signatures_match
from persistence.models import StoredObject

logger = logging.getLogger(__name__)

URL_SCHEME = "blob://"
_BUCKET_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class FsBlobStore:
    def __init__(
        self,
        base_dir: str | Path,
        *,
        signing_secret: str,
        public_base_url: str,
        temp_bucket: str = "temp",
        clock: Clock | None = None,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._objects_dir = self._base_dir / "objects"
        self._meta_dir = self._base_dir / "meta"
        self._objects_dir.mkdir(parents=True, exist_ok=True)
        self._meta_dir.mkdir(parents=True, exist_ok=True)
        self._secret = signing_secret
        self._public_base_url = public_base_url.rstrip("/")
        self._temp_bucket = temp_bucket
        self._clock = clock or utcnow

    @property
    def objects_dir(self) -> Path:
        return self._objects_dir

    @property
    def temp_bucket(self) -> str:
        return self._temp_bucket

    def put(
        self,
        data: bytes,
        *,
        bucket: str,
        key_hint: str | None = None,
        content_type: str = "application/pdf",
        expires_in: int | None = None,
    ) -> StoredObject:
        key = key_hint or uuid4().hex
        object_path, meta_path = self._paths(bucket, key)
        now = self._clock()
        metadata = {
            "content_type": content_type,
            "sha256": sha256_bytes(data),
            "bytes": len(data),
            "uploaded_at": now.isoformat(),
            "expires_at": (now + timedelta(seconds=expires_in)).isoformat()
            if expires_in is not None
            else None,
        }
        try:
            _atomic_write(object_path, data)
            _atomic_write(meta_path, json.dumps(metadata, sort_keys=True).encode("utf-8"))
        except OSError as exc:
            logger.error("Failed to write blob %s/%s: %s", bucket, key, exc)
            raise StorageError(f"Failed to store object {bucket}/{key}") from exc
        return StoredObject(url=object_url(bucket, key), key=key, bucket=bucket)

    def get(self, url: str) -> bytes:
        bucket, key = parse_object_url(url)
        data, _ = self.read(bucket, key)
        return data

    def read(self, bucket: str, key: str) -> tuple[bytes, dict[str, Any]]:
        """Return object bytes and metadata; expired objects read as missing."""
        object_path, meta_path = self._paths(bucket, key)
        metadata = self._load_metadata(meta_path)
        if not object_path.exists():
            raise BlobNotFoundError(f"Object not found: {bucket}/{key}")
        if metadata is not None and self._is_expired(metadata):
            raise BlobNotFoundError(f"Object expired: {bucket}/{key}")
        try:
            return object_path.read_bytes(), metadata or {}
        except OSError as exc:
            logger.error("Failed to read blob %s/%s: %s", bucket, key, exc)
            raise StorageError(f"Failed to read object {bucket}/{key}") from exc

    def delete(self, bucket: str, key: str) -> None:
        object_path, meta_path = self._paths(bucket, key)
        try:
            object_path.unlink(missing_ok=True)
            meta_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to delete blob %s/%s: %s", bucket, key, exc)
            raise StorageError(f"Failed to delete object {bucket}/{key}") from exc

    def presign(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        self._paths(bucket, key)
        expires = int(self._clock().timestamp()) + int(ttl_seconds)
        signature = sign_payload(self._secret, _signing_payload(bucket, key, expires))
        return (
            f"{self._public_base_url}/files/{bucket}/{quote(key, safe='/')}"
            f"?expires={expires}&signature={signature}"
        )

    def verify(self, bucket: str, key: str, *, expires: int, signature: str) -> bool:
        if expires < int(self._clock().timestamp()):
            return False
        expected = sign_payload(self._secret, _signing_payload(bucket, key, expires))
        return signatures_match(expected, signature)

    def put_temporary(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str = "application/pdf",
        ttl_seconds: int = 3600,
    ) -> str:
        key = f"temp/{uuid4()}/{filename}"
        stored = self.put(
            data,
            bucket=self._temp_bucket,
            key_hint=key,
            content_type=content_type,
            expires_in=ttl_seconds,
        )
        return self.presign(stored.bucket, stored.key, ttl_seconds)

    def prune_expired(self) -> int:
        """Delete every object whose expiry has elapsed; return the count."""
        removed = 0
        for meta_path in sorted(self._meta_dir.rglob("*.json")):
            metadata = self._load_metadata(meta_path)
            if metadata is None or not self._is_expired(metadata):
                continue
            relative = meta_path.relative_to(self._meta_dir).with_suffix("")
            bucket, _, key = relative.as_posix().partition("/")
            self.delete(bucket, key)
            removed += 1
        if removed:
            logger.info("Pruned %d expired blobs", removed)
        return removed

    def _paths(self, bucket: str, key: str) -> tuple[Path, Path]:
        if not _BUCKET_RE.match(bucket or ""):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        parts = PurePosixPath(key).parts if key else ()
        if (
            not parts
            or key.startswith("/")
            or "\\" in key
            or ".." in parts
        ):
            raise StorageError(f"Invalid object key: {key!r}")
        object_path = self._objects_dir / bucket / Path(*parts)
        meta_path = self._meta_dir / bucket / Path(*parts[:-1]) / f"{parts[-1]}.json"
        return object_path, meta_path

    def _load_metadata(self, meta_path: Path) -> dict[str, Any] | None:
        if not meta_path.exists():
            return None
        try:
            return json.loads(meta_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Unreadable object metadata: {meta_path.name}") from exc

    def _is_expired(self, metadata: dict[str, Any]) -> bool:
        raw = metadata.get("expires_at")
        if not raw:
            return False
        return as_utc(datetime.fromisoformat(raw)) <= self._clock()


def object_url(bucket: str, key: str) -> str:
    return f"{URL_SCHEME}{bucket}/{quote(key, safe='/')}"


def parse_object_url(url: str) -> tuple[str, str]:
    """Split a ``blob://bucket/key`` reference into bucket and key."""
    if not url or not url.startswith(URL_SCHEME):
        raise StorageError("Invalid object URL format")
    bucket, _, key = url[len(URL_SCHEME):].partition("/")
    if not bucket or not key:
        raise StorageError("Invalid object URL format")
    return bucket, unquote(key)


def _signing_payload(bucket: str, key: str, expires: int) -> str:
    return f"{bucket}/{key}:{expires}"


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


__all__ = ["FsBlobStore", "URL_SCHEME", "object_url", "parse_object_url"]
