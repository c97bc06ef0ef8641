"""Configuration inspection commands."""

from __future__ import annotations

from typing import Any

import typer

from core.config import Settings, get_settings
from .shared import emit_json

_REDACTED = {"signing_secret"}

app = typer.Typer(
    help="Inspect configuration",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
)


@app.command("show", help="Show the effective configuration")
def show_config(
    json_out: bool = typer.Option(True, "--json/--no-json", help="Output JSON"),
) -> None:
    payload = get_settings().model_dump()
    for key in _REDACTED & payload.keys():
        payload[key] = "***"
    if json_out:
        emit_json(payload)
        return
    for key, value in payload.items():
        typer.echo(f"{key}={value}")


@app.command("diff", help="Show settings that differ from the defaults")
def diff_config() -> None:
    current = get_settings().model_dump()
    defaults = {name: field.default for name, field in Settings.model_fields.items()}
    diff: dict[str, dict[str, Any]] = {}
    for key, value in current.items():
        default = defaults.get(key)
        if value != default:
            shown = "***" if key in _REDACTED else value
            diff[key] = {"value": shown, "default": "***" if key in _REDACTED else default}
    emit_json(diff)
