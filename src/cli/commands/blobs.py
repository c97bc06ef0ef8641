"""Blob store maintenance commands."""

from __future__ import annotations

import typer

from core.config import get_settings
from persistence.manager import PersistenceManager
from .shared import emit_json

app = typer.Typer(
    help="Blob store maintenance",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
)


@app.command("prune", help="Delete objects whose expiry has elapsed")
def prune_blobs() -> None:
    manager = PersistenceManager(get_settings())
    removed = manager.blobs.prune_expired()
    emit_json({"removed": removed, "blobs_dir": str(manager.blobs.objects_dir)})


@app.command("stats", help="Count stored objects per bucket")
def blob_stats() -> None:
    manager = PersistenceManager(get_settings())
    objects_dir = manager.blobs.objects_dir
    payload: dict[str, dict[str, int]] = {}
    for bucket_dir in sorted(path for path in objects_dir.iterdir() if path.is_dir()):
        files = [
            path
            for path in bucket_dir.rglob("*")
            if path.is_file() and not path.name.startswith(".tmp-")
        ]
        payload[bucket_dir.name] = {
            "objects": len(files),
            "bytes": sum(path.stat().st_size for path in files),
        }
    emit_json(payload)
