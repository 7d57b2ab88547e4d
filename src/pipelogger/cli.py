"""Typer CLI: run, status commands."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pipelogger import __version__

app = typer.Typer(
    name="pipelogger",
    help="Store, rotate and compress logs piped from a process.",
    no_args_is_help=True,
)
console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"pipelogger v{__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=_version_callback, is_eager=True
    ),
) -> None:
    """pipelogger - durable, rotating logs for piped output."""


@app.command()
def run(
    log_path: Path = typer.Argument(..., help="Active log file"),
    size: str = typer.Option(None, "--size", "-s", help="Rotate at this size, e.g. 10M"),
    interval: str = typer.Option(None, "--interval", "-i", help="Rotate after this age, e.g. 1h"),
    strict: bool = typer.Option(
        None, "--strict/--no-strict", help="Never let a rotated file exceed --size"
    ),
    count: int = typer.Option(None, "--count", "-c", help="Rotated files to keep"),
    compress: bool = typer.Option(None, "--compress/--no-compress", help="Compress rotated files"),
    codec: str = typer.Option(None, "--codec", help="Compression codec: xz or gzip"),
    tee: str = typer.Option(None, "--tee", help="Mirror lines to stdout or stderr"),
    naming: str = typer.Option(None, "--naming", help="Rotated names: timestamp or index"),
    truncate: bool = typer.Option(False, "--truncate", help="Truncate an existing log file"),
    create_dirs: bool = typer.Option(False, "--create-dirs", help="Create missing directories"),
    config_file: Path = typer.Option(None, "--config", help="YAML or JSON config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Log rotations and pruning"),
) -> None:
    """Read lines from stdin and write them to LOG_PATH."""
    from pipelogger.config import builder_from_config, load_config
    from pipelogger.errors import CompressionError, ConfigurationError, LoggerIOError
    from pipelogger.utils import deep_merge

    _setup_logging(verbose)

    if size is not None and interval is not None:
        console.print("[red]--size and --interval are mutually exclusive[/red]")
        raise typer.Exit(2)

    overrides: dict = {}
    if size is not None:
        overrides["rotate"] = {"method": "file_size", "size": size, "interval": None}
    elif interval is not None:
        overrides["rotate"] = {"method": "duration", "interval": interval, "size": None}
    if strict is not None:
        overrides.setdefault("rotate", {})["strict"] = strict
    for key, value in (
        ("count", count),
        ("compress", compress),
        ("codec", codec),
        ("tee", tee),
        ("naming", naming),
    ):
        if value is not None:
            overrides[key] = value
    if truncate:
        overrides["append"] = False
    if create_dirs:
        overrides["create_dirs"] = True

    try:
        config = load_config(config_file) if config_file else {}
        builder = builder_from_config(log_path, deep_merge(config, overrides))
        pipe_logger = builder.build()
    except ConfigurationError as exc:
        for e in exc.errors:
            console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(2)
    except LoggerIOError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    stdin = typer.get_binary_stream("stdin")
    rotations = 0
    with pipe_logger:
        for raw in stdin:
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            try:
                rotated = pipe_logger.write_line(line)
            except CompressionError as exc:
                console.print(f"[yellow]{exc}[/yellow]")
                rotations += 1
                continue
            except LoggerIOError as exc:
                console.print(f"[red]{exc}[/red]")
                raise typer.Exit(1)
            if rotated is not None:
                rotations += 1
                logging.getLogger(__name__).info("Rotated to %s", rotated)

    if pipe_logger.retention_errors:
        console.print(
            f"[yellow]{len(pipe_logger.retention_errors)} rotated file(s) could not be pruned[/yellow]"
        )
    if verbose:
        console.print(f"Done: {rotations} rotation(s), active file {log_path}")


@app.command()
def status(
    log_path: Path = typer.Argument(..., help="Active log file"),
    naming: str = typer.Option("timestamp", "--naming", help="Rotated names: timestamp or index"),
) -> None:
    """Show the active log file and its rotated files."""
    from pipelogger.compression import COMPRESSED_SUFFIXES
    from pipelogger.naming import Naming, get_scheme

    try:
        scheme = get_scheme(naming)
    except ValueError:
        console.print(f"[red]Unknown naming '{naming}'[/red]")
        raise typer.Exit(2)

    path = log_path.absolute()
    rotated = scheme.scan(path, COMPRESSED_SUFFIXES)

    out = Console()
    table = Table(title=f"Logs for {path.name}", show_lines=False)
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Compressed", width=10)

    if path.exists():
        table.add_row(f"{path.name} (active)", str(path.stat().st_size), "-")
    for f in reversed(rotated):
        table.add_row(f.path.name, str(f.path.stat().st_size), "yes" if f.compressed else "no")
    out.print(table)
    out.print(f"{len(rotated)} rotated file(s), naming: {Naming(naming).value}")
