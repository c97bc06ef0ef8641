"""Watermark commands operating on local PDF files."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import typer
from pydantic import ValidationError

from core.errors import MalformedDocumentError
from documents.watermark import (
    LicenseInfo,
    WatermarkOptions,
    license_watermark,
    perusal_watermark,
    watermark,
)
from .shared import fail, read_pdf, write_pdf

app = typer.Typer(
    help="Stamp PDF scripts",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
)


@app.command("license", help="Apply the licensed-copy watermark")
def license_command(
    input_path: Path = typer.Argument(..., dir_okay=False, metavar="INPUT"),
    output_path: Path = typer.Argument(..., dir_okay=False, metavar="OUTPUT"),
    theater: str = typer.Option(..., "--theater", help="Licensee theater name"),
    license_id: str = typer.Option(..., "--license-id", help="License identifier"),
    license_type: str = typer.Option("standard", "--license-type", help="License type"),
    email: str | None = typer.Option(None, "--email", help="Licensee contact email"),
    dates: list[str] | None = typer.Option(
        None, "--date", help="Performance date, repeatable"
    ),
) -> None:
    info = LicenseInfo(
        theater_name=theater,
        licensee_email=email,
        license_type=license_type,
        license_id=license_id,
        performance_dates=dates or [],
    )
    _run(input_path, output_path, lambda data: license_watermark(data, info))


@app.command("perusal", help="Apply the perusal-copy watermark")
def perusal_command(
    input_path: Path = typer.Argument(..., dir_okay=False, metavar="INPUT"),
    output_path: Path = typer.Argument(..., dir_okay=False, metavar="OUTPUT"),
    organization: str = typer.Option(..., "--organization", help="Requesting organization"),
    email: str = typer.Option(..., "--email", help="Requester email"),
) -> None:
    _run(input_path, output_path, lambda data: perusal_watermark(data, organization, email))


@app.command("custom", help="Apply an arbitrary text watermark")
def custom_command(
    input_path: Path = typer.Argument(..., dir_okay=False, metavar="INPUT"),
    output_path: Path = typer.Argument(..., dir_okay=False, metavar="OUTPUT"),
    text: str = typer.Option(..., "--text", help="Watermark text"),
    font_size: float = typer.Option(50, "--font-size", help="Font size in points"),
    opacity: float = typer.Option(0.3, "--opacity", help="Opacity between 0 and 1"),
    angle: float = typer.Option(45, "--angle", help="Rotation for diagonal placement"),
    position: str = typer.Option(
        "diagonal", "--position", help="diagonal|header|footer|center"
    ),
    color: str = typer.Option("0.5,0.5,0.5", "--color", help="RGB channels in 0..1"),
) -> None:
    try:
        options = WatermarkOptions(
            text=text,
            font_size=font_size,
            opacity=opacity,
            angle=angle,
            position=position,
            color=_parse_color(color),
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _run(input_path, output_path, lambda data: watermark(data, options))


def _parse_color(value: str) -> tuple[float, float, float]:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 3:
        raise typer.BadParameter("--color expects three comma-separated numbers")
    try:
        red, green, blue = (float(part) for part in parts)
    except ValueError as exc:
        raise typer.BadParameter(f"--color is not numeric: {value}") from exc
    return red, green, blue


def _run(
    input_path: Path, output_path: Path, transform: Callable[[bytes], bytes]
) -> None:
    data = read_pdf(input_path)
    try:
        result = transform(data)
    except MalformedDocumentError as exc:
        fail(str(exc))
    write_pdf(output_path, result)
