from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Callable
from urllib.parse import parse_qs, unquote, urlsplit

import fitz  # PyMuPDF
import pytest

from core.config import Settings
from documents.pdf import open_pdf
from persistence.fs_store import FsBlobStore
from persistence.sqlite_store import SqliteStore

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
TEST_BASE_URL = "http://testserver"
TEST_SECRET = "test-signing-secret"


def build_pdf(pages: int = 3, *, label: str = "Scene", width: float = 612, height: float = 792) -> bytes:
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 120), f"{label} {number}", fontsize=14)
    data = doc.tobytes()
    doc.close()
    return data


def build_zero_page_pdf() -> bytes:
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [] /Count 0 >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref,
    )
    return bytes(out)


def page_texts(data: bytes) -> list[str]:
    """Return the extracted text of every page, whitespace-normalized."""
    with open_pdf(data) as doc:
        return [" ".join(page.get_text().split()) for page in doc]


def split_presigned(url: str) -> tuple[str, str, int, str]:
    """Return bucket, key, expires and signature from a presigned download URL."""
    parts = urlsplit(url)
    _, _, rest = parts.path.partition("/files/")
    bucket, _, key = rest.partition("/")
    query = parse_qs(parts.query)
    return bucket, unquote(key), int(query["expires"][0]), query["signature"][0]


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def zero_page_pdf() -> bytes:
    return build_zero_page_pdf()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        SCRIPTVAULT_DATA_DIR=str(tmp_path / "data"),
        SCRIPTVAULT_PUBLIC_BASE_URL=TEST_BASE_URL,
        SCRIPTVAULT_SIGNING_SECRET=TEST_SECRET,
        S3_BUCKET_TEMP="temp",
        MAX_UPLOAD_BYTES=2 * 1024 * 1024,
    )


@pytest.fixture
def store(tmp_path: Path) -> SqliteStore:
    return SqliteStore(tmp_path / "records.sqlite")


@pytest.fixture
def blobs(tmp_path: Path, clock) -> FsBlobStore:
    return FsBlobStore(
        tmp_path / "blobs",
        signing_secret=TEST_SECRET,
        public_base_url=TEST_BASE_URL,
        temp_bucket="temp",
        clock=clock,
    )


def seed_catalog(
    store: SqliteStore,
    *,
    file_url: str | None = "blob://scripts/scripts/pw/full.pdf",
    perusal_url: str | None = "blob://perusal/scripts/pw/perusal.pdf",
    status: str = "published",
) -> SimpleNamespace:
    """Create a playwright, two theater companies and one script."""
    playwright = store.create_profile(
        email="author@plays.test", role="playwright", first_name="Ada", token="tok-playwright"
    )
    theater = store.create_profile(
        email="box@globe.test",
        role="theater_company",
        company_name="Globe Players",
        token="tok-theater",
    )
    rival = store.create_profile(
        email="office@rival.test",
        role="theater_company",
        company_name="Rival Stage",
        token="tok-rival",
    )
    script = store.create_script(
        playwright_id=playwright.profile_id,
        title="The Long Night",
        status=status,
        file_url=file_url,
        perusal_url=perusal_url,
    )
    return SimpleNamespace(playwright=playwright, theater=theater, rival=rival, script=script)


@pytest.fixture
def api(settings: Settings, clock) -> SimpleNamespace:
    """API client over a throwaway data dir, with the service container exposed for seeding."""
    from fastapi.testclient import TestClient

    from api.main import create_app
    from services.container import build_services

    app = create_app(settings, clock=clock)
    services = build_services(settings, clock=clock)
    app.state.services = services
    return SimpleNamespace(app=app, client=TestClient(app), services=services)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
