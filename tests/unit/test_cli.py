from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from cli.app import app as root_app
from cli.commands import blobs as blobs_command
from cli.commands import config as config_command
from cli.commands import watermark as watermark_command
from conftest import build_pdf, page_texts
from core.config import get_settings
from documents.pdf import page_count
from scriptvault import __version__

runner = CliRunner()


def _write_source(tmp_path: Path, pages: int = 3) -> Path:
    source = tmp_path / "script.pdf"
    source.write_bytes(build_pdf(pages))
    return source


def test_version_flag() -> None:
    result = runner.invoke(root_app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_derive_perusal_command(tmp_path: Path) -> None:
    source = _write_source(tmp_path, pages=6)
    output = tmp_path / "out" / "perusal.pdf"

    result = runner.invoke(root_app, ["derive-perusal", str(source), str(output), "--max-pages", "2"])

    assert result.exit_code == 0, result.output
    assert page_count(output.read_bytes()) == 2
    assert "Kept 2 of 6 pages" in result.output


def test_watermark_license_command(tmp_path: Path) -> None:
    source = _write_source(tmp_path)
    output = tmp_path / "licensed.pdf"

    result = runner.invoke(
        watermark_command.app,
        [
            "license",
            str(source),
            str(output),
            "--theater",
            "Riverside Rep",
            "--license-id",
            "lic_42",
            "--date",
            "2024-07-01",
            "--date",
            "2024-07-02",
        ],
    )

    assert result.exit_code == 0, result.output
    texts = page_texts(output.read_bytes())
    assert "Licensed to: Riverside Rep" in texts[0]
    assert "Performance Dates: 2024-07-01, 2024-07-02" in texts[0]


def test_watermark_perusal_command(tmp_path: Path) -> None:
    source = _write_source(tmp_path, pages=2)
    output = tmp_path / "perusal.pdf"

    result = runner.invoke(
        watermark_command.app,
        ["perusal", str(source), str(output), "--organization", "Globe", "--email", "a@b.test"],
    )

    assert result.exit_code == 0, result.output
    assert all("Licensed to: Globe (a@b.test)" in text for text in page_texts(output.read_bytes()))


def test_watermark_custom_command(tmp_path: Path) -> None:
    source = _write_source(tmp_path, pages=2)
    output = tmp_path / "custom.pdf"

    result = runner.invoke(
        watermark_command.app,
        [
            "custom",
            str(source),
            str(output),
            "--text",
            "REVIEW DRAFT",
            "--position",
            "header",
            "--color",
            "1,0,0",
        ],
    )

    assert result.exit_code == 0, result.output
    assert all("REVIEW DRAFT" in text for text in page_texts(output.read_bytes()))


def test_watermark_custom_rejects_bad_color(tmp_path: Path) -> None:
    source = _write_source(tmp_path, pages=1)

    result = runner.invoke(
        watermark_command.app,
        ["custom", str(source), str(tmp_path / "x.pdf"), "--text", "X", "--color", "red"],
    )

    assert result.exit_code != 0


def test_watermark_reports_malformed_input(tmp_path: Path) -> None:
    source = tmp_path / "notes.pdf"
    source.write_bytes(b"just some notes")

    result = runner.invoke(
        watermark_command.app,
        ["perusal", str(source), str(tmp_path / "x.pdf"), "--organization", "G", "--email", "e"],
    )

    assert result.exit_code == 1
    assert not (tmp_path / "x.pdf").exists()


def test_config_show_redacts_secret(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SCRIPTVAULT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SCRIPTVAULT_SIGNING_SECRET", "super-secret")
    get_settings.cache_clear()
    try:
        result = runner.invoke(config_command.app, ["show"])
    finally:
        get_settings.cache_clear()

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["signing_secret"] == "***"
    assert payload["data_dir"] == str(tmp_path)


def test_blobs_prune_reports_count(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SCRIPTVAULT_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    try:
        result = runner.invoke(blobs_command.app, ["prune"])
    finally:
        get_settings.cache_clear()

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["removed"] == 0


def test_blobs_stats_counts_objects(monkeypatch, tmp_path: Path) -> None:
    from persistence.manager import PersistenceManager

    monkeypatch.setenv("SCRIPTVAULT_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    try:
        manager = PersistenceManager(get_settings())
        manager.blobs.put(b"12345", bucket="scripts", key_hint="a/one.pdf")
        manager.blobs.put(b"678", bucket="scripts", key_hint="b/two.pdf")
        result = runner.invoke(blobs_command.app, ["stats"])
    finally:
        get_settings.cache_clear()

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["scripts"] == {"objects": 2, "bytes": 8}


def test_config_diff_lists_overrides(monkeypatch) -> None:
    monkeypatch.setenv("PERUSAL_MAX_PAGES", "4")
    get_settings.cache_clear()
    try:
        result = runner.invoke(config_command.app, ["diff"])
    finally:
        get_settings.cache_clear()

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["perusal_max_pages"] == {"value": 4, "default": 10}
