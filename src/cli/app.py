"""Typer CLI entrypoint for scriptvault."""

from __future__ import annotations

import logging
import os
import shlex
import sys
from importlib import import_module
from pathlib import Path

import typer

from scriptvault import __version__

_SUBCOMMAND_SPECS: list[tuple[str, str, str]] = [
    ("watermark", "cli.commands.watermark", "Stamp PDF scripts"),
    ("blobs", "cli.commands.blobs", "Blob store maintenance"),
    ("config", "cli.commands.config", "Inspect configuration"),
]
_SUBCOMMAND_NAMES = {name for name, _, _ in _SUBCOMMAND_SPECS}
_SUBCOMMANDS_REGISTERED = False

app = typer.Typer(
    help="scriptvault command line tools\n\nWatermark scripts, derive perusal copies and maintain storage.\n",
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    add_completion=True,
)


@app.callback()
def root(
    ctx: typer.Context,
    version_flag: bool = typer.Option(
        False,
        "-v",
        "--version",
        help="Print the version and exit",
    ),
) -> None:
    from core.config import get_settings

    logging.basicConfig(level=get_settings().log_level.upper())
    if version_flag:
        typer.echo(__version__)
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("derive-perusal", help="Write a page-limited perusal copy of a script")
def derive_perusal_command(
    input_path: Path = typer.Argument(..., dir_okay=False, metavar="INPUT"),
    output_path: Path = typer.Argument(..., dir_okay=False, metavar="OUTPUT"),
    max_pages: int | None = typer.Option(
        None,
        "--max-pages",
        min=1,
        help="Pages to keep (default: PERUSAL_MAX_PAGES)",
    ),
) -> None:
    from cli.commands.shared import console, fail, read_pdf, write_pdf
    from core.config import get_settings
    from core.errors import MalformedDocumentError
    from documents.pdf import page_count
    from documents.perusal import derive_perusal

    limit = max_pages or get_settings().perusal_max_pages
    data = read_pdf(input_path)
    try:
        total = page_count(data)
        result = derive_perusal(data, limit)
    except MalformedDocumentError as exc:
        fail(str(exc))
    write_pdf(output_path, result)
    console.print(f"Kept {page_count(result)} of {total} pages")


@app.command(help="Run the HTTP API with uvicorn")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port, reload=reload)


def _parse_invoked_subcommand() -> str | None:
    completion_args = os.getenv("_TYPER_COMPLETE_ARGS")
    tokens: list[str]
    if completion_args:
        try:
            tokens = shlex.split(completion_args)
        except ValueError:
            tokens = completion_args.split()
        if tokens:
            tokens = tokens[1:]
    else:
        tokens = sys.argv[1:]

    for token in tokens:
        if token in _SUBCOMMAND_NAMES:
            return token
        if token.startswith("-"):
            continue
        break
    return None


def _register_subcommands(selected: str | None = None) -> None:
    global _SUBCOMMANDS_REGISTERED
    if _SUBCOMMANDS_REGISTERED:
        return

    if selected is None:
        selected = _parse_invoked_subcommand()
    for name, module_path, help_text in _SUBCOMMAND_SPECS:
        if selected in (name, "*"):
            module = import_module(module_path)
            app.add_typer(module.app, name=name)
            continue
        app.add_typer(
            typer.Typer(help=help_text, add_completion=False, no_args_is_help=True),
            name=name,
        )

    _SUBCOMMANDS_REGISTERED = True


def main() -> None:
    _register_subcommands()
    app()


__all__ = ["app", "main"]
