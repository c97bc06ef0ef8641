"""Shared helpers for CLI subcommands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console

console = Console()


def emit_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def read_pdf(path: Path) -> bytes:
    if not path.exists():
        raise typer.BadParameter(f"PDF not found: {path}")
    return path.read_bytes()


def write_pdf(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    console.print(f"[green]Wrote[/green] {path} ({len(data)} bytes)")


def fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


__all__ = ["console", "emit_json", "fail", "read_pdf", "write_pdf"]
