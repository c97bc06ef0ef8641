from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from fastapi.testclient import TestClient

from api.main import create_app
from conftest import FIXED_NOW, bearer, build_pdf, page_texts, seed_catalog, split_presigned
from core.config import Settings
from documents.pdf import page_count
from services.container import build_services
from services.entitlements import transition_license


def test_upload_license_and_perusal_flow(tmp_path: Path) -> None:
    now = {"value": FIXED_NOW}

    def clock():
        return now["value"]

    settings = Settings(
        SCRIPTVAULT_DATA_DIR=str(tmp_path / "vault"),
        SCRIPTVAULT_PUBLIC_BASE_URL="http://testserver",
        SCRIPTVAULT_SIGNING_SECRET="integration-secret",
        S3_BUCKET_TEMP="temp",
        DOWNLOAD_URL_TTL_SECONDS=900,
        PERUSAL_MAX_PAGES=3,
    )
    app = create_app(settings, clock=clock)
    services = build_services(settings, clock=clock)
    app.state.services = services
    client = TestClient(app)
    records = services.records
    catalog = seed_catalog(records, file_url=None, perusal_url=None)
    script_id = catalog.script.script_id

    uploaded = client.post(
        f"/scripts/{script_id}/upload",
        files={"script": ("long-night.pdf", build_pdf(8), "application/pdf")},
        headers=bearer("tok-playwright"),
    )
    assert uploaded.status_code == 200

    # Perusal: request, download, and confirm the copy is both short and stamped.
    created = client.post(f"/scripts/{script_id}/perusal", json={}, headers=bearer("tok-theater"))
    request_id = created.json()["request_id"]
    perusal = client.get(f"/scripts/perusal/{request_id}/download", headers=bearer("tok-theater"))
    assert perusal.status_code == 200
    perusal_pdf = client.get(perusal.json()["download_url"]).content
    assert page_count(perusal_pdf) == 3
    assert all("Licensed to: Globe Players (box@globe.test)" in text for text in page_texts(perusal_pdf))

    # License: pending until payment clears, then downloadable in full.
    license_record = records.create_license(
        script_id=script_id,
        licensee_id=catalog.theater.profile_id,
        license_type="premium",
        expires_at=FIXED_NOW + timedelta(days=30),
        performance_dates=["2024-09-14"],
    )
    url = f"/licenses/{license_record.license_id}/download"
    assert client.get(url, headers=bearer("tok-theater")).status_code == 403

    records.update_license_status(
        license_record.license_id, transition_license(license_record.status, "payment_confirmed")
    )
    granted = client.get(url, headers=bearer("tok-theater"))
    assert granted.status_code == 200
    assert granted.json()["expires_in"] == 900
    licensed_pdf = client.get(granted.json()["download_url"]).content
    texts = page_texts(licensed_pdf)
    assert len(texts) == 8
    assert "License Type: PREMIUM" in texts[0]
    assert "Performance Dates: 2024-09-14" in texts[0]

    # The rival company learns nothing from the same id.
    assert client.get(url, headers=bearer("tok-rival")).status_code == 404

    # Links die with their objects once the TTL passes.
    bucket, key, _, _ = split_presigned(granted.json()["download_url"])
    now["value"] = FIXED_NOW + timedelta(seconds=901)
    assert client.get(granted.json()["download_url"]).status_code == 403
    assert services.blobs.prune_expired() == 2
    assert not (services.blobs.objects_dir / bucket / key).exists()

    # Thirty days later the license itself has lapsed.
    now["value"] = FIXED_NOW + timedelta(days=30)
    expired = client.get(url, headers=bearer("tok-theater"))
    assert expired.status_code == 403
    assert expired.json()["error"]["message"] == "License has expired"

    assert len(records.list_download_logs(license_id=license_record.license_id)) == 1
    assert records.get_perusal_request(request_id).download_count == 1
