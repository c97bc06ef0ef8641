"""SQLite-backed record store for scripts, entitlements and download logs."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable
from uuid import uuid4

from core.errors import RecordStoreError
from persistence.hashing import hash_token
from persistence.models import (
    DownloadLogRecord,
    LicenseRecord,
    PerusalRequestRecord,
    ProfileRecord,
    ScriptRecord,
)


_SCHEMA = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS profiles (
    profile_id TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    role TEXT NOT NULL,
    company_name TEXT,
    first_name TEXT,
    last_name TEXT,
    token_hash TEXT,
    created_at TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_profiles_token ON profiles(token_hash);

CREATE TABLE IF NOT EXISTS scripts (
    script_id TEXT PRIMARY KEY,
    playwright_id TEXT NOT NULL,
    title TEXT NOT NULL,
    status TEXT NOT NULL,
    file_url TEXT,
    perusal_url TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT,
    FOREIGN KEY(playwright_id) REFERENCES profiles(profile_id)
);

CREATE TABLE IF NOT EXISTS licenses (
    license_id TEXT PRIMARY KEY,
    script_id TEXT NOT NULL,
    licensee_id TEXT NOT NULL,
    license_type TEXT NOT NULL,
    status TEXT NOT NULL,
    expires_at TEXT,
    performance_dates_json TEXT,
    created_at TEXT NOT NULL,
    FOREIGN KEY(script_id) REFERENCES scripts(script_id),
    FOREIGN KEY(licensee_id) REFERENCES profiles(profile_id)
);
CREATE INDEX IF NOT EXISTS idx_licenses_licensee ON licenses(licensee_id);

CREATE TABLE IF NOT EXISTS perusal_requests (
    request_id TEXT PRIMARY KEY,
    script_id TEXT NOT NULL,
    requester_id TEXT NOT NULL,
    company_name TEXT,
    purpose TEXT,
    status TEXT NOT NULL,
    expires_at TEXT NOT NULL,
    download_count INTEGER NOT NULL DEFAULT 0,
    last_downloaded_at TEXT,
    created_at TEXT NOT NULL,
    FOREIGN KEY(script_id) REFERENCES scripts(script_id),
    FOREIGN KEY(requester_id) REFERENCES profiles(profile_id)
);
CREATE INDEX IF NOT EXISTS idx_perusal_requests_requester ON perusal_requests(requester_id);

CREATE TABLE IF NOT EXISTS download_logs (
    log_id TEXT PRIMARY KEY,
    license_id TEXT,
    perusal_request_id TEXT,
    downloaded_by TEXT NOT NULL,
    ip_address TEXT,
    downloaded_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_download_logs_license ON download_logs(license_id);
CREATE INDEX IF NOT EXISTS idx_download_logs_perusal ON download_logs(perusal_request_id);
"""


class SqliteStore:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        self._execute_script(_SCHEMA)

    # Profiles

    def create_profile(
        self,
        *,
        email: str,
        role: str,
        company_name: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        token: str | None = None,
    ) -> ProfileRecord:
        profile_id = _new_id("prof")
        created_at = _now_iso()
        self._execute(
            """
            INSERT INTO profiles (
                profile_id, email, role, company_name, first_name, last_name,
                token_hash, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile_id,
                email,
                role,
                company_name,
                first_name,
                last_name,
                hash_token(token) if token else None,
                created_at,
            ),
        )
        return ProfileRecord(
            profile_id=profile_id,
            email=email,
            role=role,
            company_name=company_name,
            first_name=first_name,
            last_name=last_name,
            created_at=_from_iso(created_at),
        )

    def get_profile(self, profile_id: str) -> ProfileRecord | None:
        row = self._fetch_one("SELECT * FROM profiles WHERE profile_id = ?", (profile_id,))
        return _row_to_profile(row) if row else None

    def get_profile_by_token(self, token: str) -> ProfileRecord | None:
        row = self._fetch_one(
            "SELECT * FROM profiles WHERE token_hash = ?", (hash_token(token),)
        )
        return _row_to_profile(row) if row else None

    # Scripts

    def create_script(
        self,
        *,
        playwright_id: str,
        title: str,
        status: str = "draft",
        file_url: str | None = None,
        perusal_url: str | None = None,
    ) -> ScriptRecord:
        script_id = _new_id("script")
        created_at = _now_iso()
        self._execute(
            """
            INSERT INTO scripts (
                script_id, playwright_id, title, status, file_url, perusal_url, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (script_id, playwright_id, title, status, file_url, perusal_url, created_at),
        )
        return ScriptRecord(
            script_id=script_id,
            playwright_id=playwright_id,
            title=title,
            status=status,
            file_url=file_url,
            perusal_url=perusal_url,
            created_at=_from_iso(created_at),
            updated_at=None,
        )

    def get_script(self, script_id: str) -> ScriptRecord | None:
        row = self._fetch_one("SELECT * FROM scripts WHERE script_id = ?", (script_id,))
        return _row_to_script(row) if row else None

    def update_script_files(
        self, script_id: str, *, file_url: str | None, perusal_url: str | None
    ) -> ScriptRecord:
        self._execute(
            "UPDATE scripts SET file_url = ?, perusal_url = ?, updated_at = ? WHERE script_id = ?",
            (file_url, perusal_url, _now_iso(), script_id),
        )
        script = self.get_script(script_id)
        if script is None:
            raise RecordStoreError(f"Script vanished during update: {script_id}")
        return script

    # Licenses

    def create_license(
        self,
        *,
        script_id: str,
        licensee_id: str,
        license_type: str,
        status: str = "pending",
        expires_at: datetime | None = None,
        performance_dates: Iterable[str] = (),
    ) -> LicenseRecord:
        license_id = _new_id("lic")
        created_at = _now_iso()
        dates = tuple(performance_dates)
        self._execute(
            """
            INSERT INTO licenses (
                license_id, script_id, licensee_id, license_type, status,
                expires_at, performance_dates_json, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                license_id,
                script_id,
                licensee_id,
                license_type,
                status,
                expires_at.isoformat() if expires_at else None,
                json.dumps(list(dates), ensure_ascii=False),
                created_at,
            ),
        )
        return LicenseRecord(
            license_id=license_id,
            script_id=script_id,
            licensee_id=licensee_id,
            license_type=license_type,
            status=status,
            expires_at=expires_at,
            performance_dates=dates,
            created_at=_from_iso(created_at),
        )

    def get_license(self, license_id: str) -> LicenseRecord | None:
        row = self._fetch_one("SELECT * FROM licenses WHERE license_id = ?", (license_id,))
        return _row_to_license(row) if row else None

    def update_license_status(self, license_id: str, status: str) -> None:
        self._execute(
            "UPDATE licenses SET status = ? WHERE license_id = ?",
            (status, license_id),
        )

    # Perusal requests

    def create_perusal_request(
        self,
        *,
        script_id: str,
        requester_id: str,
        company_name: str | None,
        purpose: str | None,
        status: str,
        expires_at: datetime,
    ) -> PerusalRequestRecord:
        request_id = _new_id("perusal")
        created_at = _now_iso()
        self._execute(
            """
            INSERT INTO perusal_requests (
                request_id, script_id, requester_id, company_name, purpose,
                status, expires_at, download_count, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?)
            """,
            (
                request_id,
                script_id,
                requester_id,
                company_name,
                purpose,
                status,
                expires_at.isoformat(),
                created_at,
            ),
        )
        return PerusalRequestRecord(
            request_id=request_id,
            script_id=script_id,
            requester_id=requester_id,
            company_name=company_name,
            purpose=purpose,
            status=status,
            expires_at=expires_at,
            download_count=0,
            last_downloaded_at=None,
            created_at=_from_iso(created_at),
        )

    def get_perusal_request(self, request_id: str) -> PerusalRequestRecord | None:
        row = self._fetch_one(
            "SELECT * FROM perusal_requests WHERE request_id = ?", (request_id,)
        )
        return _row_to_perusal(row) if row else None

    def list_perusal_requests(
        self,
        *,
        requester_id: str,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PerusalRequestRecord], int]:
        where = "requester_id = ?"
        params: list[object] = [requester_id]
        if status:
            where += " AND status = ?"
            params.append(status)
        total_row = self._fetch_one(
            f"SELECT COUNT(*) AS total FROM perusal_requests WHERE {where}", tuple(params)
        )
        rows = self._fetch_all(
            f"""
            SELECT * FROM perusal_requests
             WHERE {where}
             ORDER BY created_at DESC, rowid DESC
             LIMIT ? OFFSET ?
            """,
            (*params, limit, offset),
        )
        total = int(total_row["total"]) if total_row else 0
        return [_row_to_perusal(row) for row in rows], total

    def increment_perusal_downloads(
        self, request_id: str, downloaded_at: datetime | None = None
    ) -> None:
        # Approximate under concurrent downloads; not a billing counter.
        self._execute(
            """
            UPDATE perusal_requests
               SET download_count = download_count + 1,
                   last_downloaded_at = ?
             WHERE request_id = ?
            """,
            (downloaded_at.isoformat() if downloaded_at else _now_iso(), request_id),
        )

    # Download logs

    def insert_download_log(
        self,
        *,
        downloaded_by: str,
        ip_address: str | None,
        license_id: str | None = None,
        perusal_request_id: str | None = None,
        downloaded_at: datetime | None = None,
    ) -> DownloadLogRecord:
        log_id = _new_id("dl")
        downloaded_at = downloaded_at.isoformat() if downloaded_at else _now_iso()
        self._execute(
            """
            INSERT INTO download_logs (
                log_id, license_id, perusal_request_id, downloaded_by, ip_address, downloaded_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (log_id, license_id, perusal_request_id, downloaded_by, ip_address, downloaded_at),
        )
        return DownloadLogRecord(
            log_id=log_id,
            license_id=license_id,
            perusal_request_id=perusal_request_id,
            downloaded_by=downloaded_by,
            ip_address=ip_address,
            downloaded_at=_from_iso(downloaded_at),
        )

    def list_download_logs(
        self,
        *,
        license_id: str | None = None,
        perusal_request_id: str | None = None,
    ) -> list[DownloadLogRecord]:
        if license_id:
            rows = self._fetch_all(
                "SELECT * FROM download_logs WHERE license_id = ? ORDER BY downloaded_at",
                (license_id,),
            )
        elif perusal_request_id:
            rows = self._fetch_all(
                "SELECT * FROM download_logs WHERE perusal_request_id = ? ORDER BY downloaded_at",
                (perusal_request_id,),
            )
        else:
            rows = self._fetch_all("SELECT * FROM download_logs ORDER BY downloaded_at")
        return [_row_to_download_log(row) for row in rows]

    def _execute(self, query: str, params: tuple[object, ...] = ()) -> None:
        try:
            with self._connect() as conn:
                conn.execute(query, params)
                conn.commit()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Record store write failed: {exc}") from exc

    def _execute_script(self, script: str) -> None:
        try:
            with self._connect() as conn:
                conn.executescript(script)
                conn.commit()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Record store initialization failed: {exc}") from exc

    def _fetch_one(self, query: str, params: tuple[object, ...] = ()) -> sqlite3.Row | None:
        try:
            with self._connect() as conn:
                cur = conn.execute(query, params)
                return cur.fetchone()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Record store read failed: {exc}") from exc

    def _fetch_all(self, query: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        try:
            with self._connect() as conn:
                cur = conn.execute(query, params)
                return cur.fetchall()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Record store read failed: {exc}") from exc


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _optional_iso(value: str | None) -> datetime | None:
    return _from_iso(value) if value else None


def _row_to_profile(row: sqlite3.Row) -> ProfileRecord:
    return ProfileRecord(
        profile_id=row["profile_id"],
        email=row["email"],
        role=row["role"],
        company_name=row["company_name"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        created_at=_from_iso(row["created_at"]),
    )


def _row_to_script(row: sqlite3.Row) -> ScriptRecord:
    return ScriptRecord(
        script_id=row["script_id"],
        playwright_id=row["playwright_id"],
        title=row["title"],
        status=row["status"],
        file_url=row["file_url"],
        perusal_url=row["perusal_url"],
        created_at=_from_iso(row["created_at"]),
        updated_at=_optional_iso(row["updated_at"]),
    )


def _row_to_license(row: sqlite3.Row) -> LicenseRecord:
    dates: Any = json.loads(row["performance_dates_json"] or "[]")
    return LicenseRecord(
        license_id=row["license_id"],
        script_id=row["script_id"],
        licensee_id=row["licensee_id"],
        license_type=row["license_type"],
        status=row["status"],
        expires_at=_optional_iso(row["expires_at"]),
        performance_dates=tuple(str(item) for item in dates),
        created_at=_from_iso(row["created_at"]),
    )


def _row_to_perusal(row: sqlite3.Row) -> PerusalRequestRecord:
    return PerusalRequestRecord(
        request_id=row["request_id"],
        script_id=row["script_id"],
        requester_id=row["requester_id"],
        company_name=row["company_name"],
        purpose=row["purpose"],
        status=row["status"],
        expires_at=_from_iso(row["expires_at"]),
        download_count=int(row["download_count"] or 0),
        last_downloaded_at=_optional_iso(row["last_downloaded_at"]),
        created_at=_from_iso(row["created_at"]),
    )


def _row_to_download_log(row: sqlite3.Row) -> DownloadLogRecord:
    return DownloadLogRecord(
        log_id=row["log_id"],
        license_id=row["license_id"],
        perusal_request_id=row["perusal_request_id"],
        downloaded_by=row["downloaded_by"],
        ip_address=row["ip_address"],
        downloaded_at=_from_iso(row["downloaded_at"]),
    )


__all__ = ["SqliteStore"]
