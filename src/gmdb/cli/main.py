import asyncio
import json
from contextlib import ExitStack
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core import config as config_module
from ..core.config import Settings
from ..core.logging import log, setup_logging
from ..core.models import Kind, StreamStats
from ..obs.events import EventEmitter, new_run_id
from ..stream.assembler import BufferedValueStream
from ..stream.records import RowFramingError, decode_value, iter_rows
from ..stream.sources import aiter_file_chunks, iter_file_chunks

app = typer.Typer(add_completion=False, help="gmdb dataset dump CLI")


def _settings() -> Settings:
    return config_module.SETTINGS


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_file: Optional[str] = typer.Option(
        None, "--config", help="Config file (.gmdb.yaml auto-discovered)"
    ),
) -> None:
    """Load settings and configure logging before any command runs."""
    config_module.SETTINGS = Settings.load_config(config_file)
    settings = _settings()
    setup_logging(settings.LOG_FORMAT, settings.LOG_LEVEL)  # type: ignore[arg-type]

    # If no command was provided, show help
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _console() -> Console:
    return Console(color_system=None if _settings().NO_COLOR else "auto")


def _require_file(path: Path) -> None:
    if not path.is_file():
        typer.echo(f"❌ File not found: {path}", err=True)
        raise typer.Exit(1)


def _open_values(
    path: Path, chunk_size: Optional[int], decompress: Optional[str]
) -> BufferedValueStream:
    settings = _settings()
    try:
        chunks = iter_file_chunks(
            path,
            chunk_size if chunk_size is not None else settings.GMDB_CHUNK_SIZE,
            decompress if decompress is not None else settings.GMDB_DECOMPRESS,
        )
    except ValueError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1) from e
    return BufferedValueStream(chunks)


@app.command()
def version() -> None:
    from .. import __version__

    typer.echo(__version__)


@app.command()
def config(
    mask_secrets: bool = typer.Option(True, help="Mask secrets in output"),
) -> None:
    for k, v in _settings().model_dump().items():
        if mask_secrets and ("TOKEN" in k or "SECRET" in k):
            v = "***"
        typer.echo(f"{k}={v}")


@app.command()
def kinds() -> None:
    """List the known dataset dump tables."""
    table = Table(title="Dataset kinds")
    table.add_column("Kind")
    table.add_column("File")
    table.add_column("Columns", justify="right")
    for kind in Kind:
        table.add_row(kind.value, kind.file_name, str(kind.column_count))
    _console().print(table)


@app.command()
def values(
    path: Path = typer.Argument(..., help="Dump file (.tsv or .tsv.gz)"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Stop after N values"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Read size in bytes"),
    decompress: Optional[str] = typer.Option(None, "--decompress", help="auto|gzip|none"),
) -> None:
    """
    Print every field value of a dump, one per line.

    Tabs and newlines both end a value, so header names come out as values too.

    Example:
        gmdb values data/title.ratings.tsv.gz --limit 9
    """
    _require_file(path)
    stream = _open_values(path, chunk_size, decompress)
    for n, value in enumerate(stream):
        if limit is not None and n >= limit:
            break
        typer.echo(decode_value(value))


def _row_columns(kind: Optional[Kind], columns: Optional[int]) -> int:
    if kind is not None and columns is not None and columns != kind.column_count:
        typer.echo(
            f"❌ --columns {columns} conflicts with {kind.value} ({kind.column_count} columns)",
            err=True,
        )
        raise typer.Exit(1)
    if kind is not None:
        return kind.column_count
    if columns is None:
        typer.echo("❌ Pass --kind or --columns to frame rows", err=True)
        raise typer.Exit(1)
    if columns <= 0:
        typer.echo(f"❌ --columns must be positive, got {columns}", err=True)
        raise typer.Exit(1)
    return columns


@app.command()
def rows(
    path: Optional[Path] = typer.Argument(
        None, help="Dump file; defaults to GMDB_DATA_DIR/<kind file> when --kind is set"
    ),
    kind_name: Optional[str] = typer.Option(None, "--kind", help="Dataset kind, e.g. title.basics"),
    columns: Optional[int] = typer.Option(None, "--columns", help="Values per row"),
    header: bool = typer.Option(True, "--header/--no-header", help="First row holds column names"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Stop after N rows"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Read size in bytes"),
    decompress: Optional[str] = typer.Option(None, "--decompress", help="auto|gzip|none"),
) -> None:
    """
    Group values into rows and print them as NDJSON.

    With a header row each line is an object keyed by column name, otherwise
    an array. Field contents are passed through as text, untyped.

    Example:
        gmdb rows --kind title.crew --limit 5
        gmdb rows dump.tsv --columns 3 --no-header
    """
    kind: Optional[Kind] = None
    if kind_name is not None:
        try:
            kind = Kind.from_name(kind_name)
        except ValueError as e:
            typer.echo(f"❌ {e}", err=True)
            raise typer.Exit(1) from e

    width = _row_columns(kind, columns)

    if path is None:
        if kind is None:
            typer.echo("❌ Pass a PATH or --kind", err=True)
            raise typer.Exit(1)
        path = Path(_settings().GMDB_DATA_DIR) / kind.file_name
    _require_file(path)

    stream = _open_values(path, chunk_size, decompress)
    names: Optional[list[str]] = None
    emitted = 0
    try:
        for row in iter_rows(stream, width):
            decoded = [decode_value(v) for v in row]
            if header and names is None:
                names = decoded
                if kind is not None and tuple(names) != kind.columns:
                    log.warning(
                        "rows.header_mismatch",
                        kind=kind.value,
                        expected=list(kind.columns),
                        found=names,
                    )
                continue
            if limit is not None and emitted >= limit:
                break
            if names is not None:
                typer.echo(json.dumps(dict(zip(names, decoded)), ensure_ascii=False))
            else:
                typer.echo(json.dumps(decoded, ensure_ascii=False))
            emitted += 1
    except RowFramingError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1) from e


ProgressCallback = Callable[[int], None]


def _progress(every: int, emitter: Optional[EventEmitter]) -> Optional[ProgressCallback]:
    if emitter is None:
        return None

    def on_value(count: int) -> None:
        if count % every == 0:
            emitter.tick(processed=count)

    return on_value


async def _scan_async(
    path: Path, chunk_size: int, decompress: str, on_value: Optional[ProgressCallback]
) -> StreamStats:
    stream = BufferedValueStream(aiter_file_chunks(path, chunk_size, decompress))
    count = 0
    async for _ in stream:
        count += 1
        if on_value:
            on_value(count)
    return stream.stats


def _scan(
    path: Path,
    chunk_size: int,
    decompress: str,
    use_async: bool,
    on_value: Optional[ProgressCallback] = None,
) -> StreamStats:
    if use_async:
        return asyncio.run(_scan_async(path, chunk_size, decompress, on_value))
    stream = BufferedValueStream(iter_file_chunks(path, chunk_size, decompress))
    for count, _ in enumerate(stream, 1):
        if on_value:
            on_value(count)
    return stream.stats


@app.command()
def stats(
    path: Path = typer.Argument(..., help="Dump file (.tsv or .tsv.gz)"),
    as_json: bool = typer.Option(False, "--json", help="Print stats as JSON"),
    use_async: bool = typer.Option(False, "--async", help="Read through the asyncio source"),
    events: bool = typer.Option(False, "--events/--no-events", help="Write events.ndjson"),
    log_dir: Optional[str] = typer.Option(None, "--log-dir", help="Event log root"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Read size in bytes"),
    decompress: Optional[str] = typer.Option(None, "--decompress", help="auto|gzip|none"),
) -> None:
    """
    Scan a dump and report value counts.

    Example:
        gmdb stats data/name.basics.tsv.gz --events
    """
    _require_file(path)
    settings = _settings()
    size = chunk_size if chunk_size is not None else settings.GMDB_CHUNK_SIZE
    mode = decompress if decompress is not None else settings.GMDB_DECOMPRESS

    with ExitStack() as stack:
        emitter: Optional[EventEmitter] = None
        if events:
            emitter = stack.enter_context(
                EventEmitter(
                    run_id=new_run_id("stats"),
                    phase="stats",
                    component="assembler",
                    log_dir=log_dir or settings.GMDB_LOG_DIR,
                )
            )
            emitter.start(sourcefile=str(path), chunk_size=size)

        try:
            result = _scan(
                path, size, mode, use_async, _progress(settings.GMDB_PROGRESS_EVERY, emitter)
            )
        except Exception as e:
            if emitter:
                emitter.error(str(e), sourcefile=str(path))
            typer.echo(f"❌ Scan failed: {e}", err=True)
            raise typer.Exit(1) from e

        if emitter:
            emitter.complete(
                sourcefile=str(path),
                bytes=result.bytes,
                **result.model_dump(exclude={"bytes"}),
            )
            typer.echo(f"📁 Events written to: {emitter.events_path}", err=True)

    if as_json:
        typer.echo(result.model_dump_json())
        return

    table = Table(title=f"Value stats: {path.name}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for name, value in result.model_dump().items():
        table.add_row(name, str(value))
    _console().print(table)


if __name__ == "__main__":
    app()
