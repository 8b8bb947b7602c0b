"""Typer CLI application: global options and the dataset commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import yaml
from pydantic import ValidationError

from csvedit.engine.dispatcher import patch_typer_errors

patch_typer_errors()

import csvedit
from csvedit.contracts.common import (
    DatasetCorruptError,
    DatasetError,
    Target,
    WarningDetail,
)
from csvedit.contracts.requests import (
    CommandRequest,
    DisplayOp,
    InfoOp,
)
from csvedit.contracts.responses import ExecutionResult
from csvedit.engine.dispatcher import (
    envelope_for_exception,
    error_envelope,
    exit_code_for,
    print_response,
    success_envelope,
)
from csvedit.engine.executor import Executor
from csvedit.observe.events import EventEmitter, Timer
from csvedit.validation.policy import Policy

_MAIN_HELP = """\
Display, paginate, and edit comma-delimited text files.

**Global options** come before the command:

`csvedit -r data.csv display`  — print every row, column-aligned

`csvedit -r data.csv paginate 1 3`  — print rows 1 through 3

`csvedit -r data.csv -w out.csv delete 1`  — drop row 1 and save to out.csv

`csvedit -r data.csv -w out.csv modify -r 1 -c 1 -d yolo`  — replace one cell

`csvedit -r data.csv -w out.csv modify -r 1 -d a,b,c`  — replace a whole row

`csvedit -r data.csv info`  — row/column counts, ragged rows, fingerprint

Rows and columns are numbered from 1. Modified cells are written wrapped in
double quotes. Mutating commands and `info` print a JSON envelope:
`{"ok": bool, "command": "...", "result": {...}, "changes": [...], "errors": [...]}`

**Exit codes:** 0=success, 10=validation, 20=protection, 50=io, 90=internal
"""

_DATA_HELP = "Comma-separated replacement values (repeatable; values are not trimmed)"

COMMAND_PREFIX = "dataset"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(csvedit.__version__)
        raise typer.Exit()


app = typer.Typer(
    name="csvedit",
    help=_MAIN_HELP,
    no_args_is_help=True,
    rich_markup_mode="markdown",
)


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    read_path: Annotated[
        Optional[Path], typer.Option("--read-path", "-r", help="Path of the delimited file to load")
    ] = None,
    write_path: Annotated[
        Optional[Path], typer.Option("--write-path", "-w", help="Save the (possibly modified) rows here")
    ] = None,
    config: Annotated[
        Optional[Path], typer.Option("--config", help="Policy YAML (default: csvedit-policy.yaml next to the source)")
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Run the command but never write --write-path")
    ] = False,
    backup: Annotated[
        bool, typer.Option("--backup", help="Copy an existing --write-path to a timestamped .bak first")
    ] = False,
    events: Annotated[
        bool, typer.Option("--events", help="Emit NDJSON lifecycle events to stderr")
    ] = False,
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Print version and exit.", is_eager=True)
    ] = False,
) -> None:
    if version:
        _version_callback(True)
    ctx.obj = {
        "read_path": read_path,
        "write_path": write_path,
        "config": config,
        "dry_run": dry_run,
        "backup": backup,
        "events": events,
    }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _emit(envelope, code=None):
    print_response(envelope)
    raise typer.Exit(code if code is not None else exit_code_for(envelope))


def _target(settings: dict[str, Any], *, row: int | None = None, column: int | None = None) -> Target:
    read_path = settings.get("read_path")
    write_path = settings.get("write_path")
    return Target(
        file=str(read_path) if read_path else None,
        write_path=str(write_path) if write_path else None,
        row=row,
        column=column,
    )


def _load_policy(settings: dict[str, Any], command: str, target: Target) -> Policy:
    """Load the policy from --config or the source directory, or emit an error."""
    config = settings.get("config")
    try:
        if config is not None:
            return Policy.load(config)
        return Policy.load_from_dir(Path(settings["read_path"]).parent) or Policy()
    except OSError as e:
        _emit(error_envelope(command, "ERR_CONFIG_NOT_FOUND", f"Cannot read policy: {e}", target=target))
    except (yaml.YAMLError, ValueError) as e:
        _emit(error_envelope(command, "ERR_POLICY_INVALID", f"Cannot parse policy: {e}", target=target))


def _run(
    ctx: typer.Context,
    command: str,
    operation: dict[str, Any],
    *,
    target: Target,
) -> tuple[Executor, ExecutionResult, int]:
    """Build a request from global options + ``operation`` and execute it.

    Any failure is emitted as an error envelope and ends the process;
    nothing is saved unless the operation succeeded.
    """
    settings = ctx.obj or {}
    if settings.get("read_path") is None:
        _emit(error_envelope(command, "ERR_USAGE", "Missing option '--read-path' / '-r'.", target=target))

    with Timer() as t:
        policy = _load_policy(settings, command, target)
        executor = Executor(
            policy=policy,
            events=EventEmitter(enabled=settings.get("events") or policy.events),
        )
        try:
            request = CommandRequest(
                source_path=str(settings["read_path"]),
                destination_path=str(settings["write_path"]) if settings.get("write_path") else None,
                operation=operation,
                dry_run=settings.get("dry_run", False),
                backup=settings.get("backup", False),
            )
            result = executor.execute(request)
        except (DatasetError, DatasetCorruptError, OSError, ValidationError) as e:
            _emit(envelope_for_exception(command, e, target=target))

    return executor, result, t.elapsed_ms


def _ragged_warnings(executor: Executor) -> list[WarningDetail]:
    if executor.dataset is None:
        return []
    ragged = executor.dataset.ragged_rows()
    if not ragged:
        return []
    return [WarningDetail(
        code="RAGGED_ROWS",
        message=f"Rows {ragged} differ from the {executor.dataset.col_count}-column header",
    )]


def _split_values(data: list[str] | None) -> list[str]:
    values: list[str] = []
    for chunk in data or []:
        values.extend(chunk.split(","))
    return values


# ---------------------------------------------------------------------------
# csvedit version
# ---------------------------------------------------------------------------
@app.command()
def version():
    """Print the csvedit version as a JSON envelope.

    Example: `csvedit version`
    """
    env = success_envelope("version", {"version": csvedit.__version__})
    _emit(env)


# ---------------------------------------------------------------------------
# csvedit display
# ---------------------------------------------------------------------------
@app.command("display")
def display_cmd(ctx: typer.Context):
    """Print every row, each cell padded to its column's widest value.

    Cells are separated by `| `. Nothing is printed for an empty file.

    Example: `csvedit -r data.csv display`
    """
    _run(ctx, f"{COMMAND_PREFIX}.display", DisplayOp().model_dump(), target=_target(ctx.obj or {}))


# ---------------------------------------------------------------------------
# csvedit paginate
# ---------------------------------------------------------------------------
@app.command("paginate")
def paginate_cmd(
    ctx: typer.Context,
    start: Annotated[int, typer.Argument(help="First row to print (1-based)")],
    end: Annotated[int, typer.Argument(help="Last row to print, inclusive (clamped to the last row)")],
):
    """Print rows START through END, aligned to widths over the whole file.

    Prints nothing when START is 0, past the last row, or greater than END.

    Example: `csvedit -r data.csv paginate 1 3`
    """
    _run(
        ctx,
        f"{COMMAND_PREFIX}.paginate",
        {"kind": "paginate", "start": start, "end": end},
        target=_target(ctx.obj or {}),
    )


# ---------------------------------------------------------------------------
# csvedit delete
# ---------------------------------------------------------------------------
@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    row_index: Annotated[int, typer.Argument(help="Row to remove (1-based)")],
):
    """Delete one row. Mutating.

    Later rows shift up by one. Use `-w` to save the result.

    Example: `csvedit -r data.csv -w out.csv delete 1`
    """
    command = f"{COMMAND_PREFIX}.delete"
    target = _target(ctx.obj or {}, row=row_index)
    executor, result, elapsed = _run(
        ctx, command, {"kind": "delete", "row_index": row_index}, target=target
    )
    env = success_envelope(
        command,
        result.model_dump(),
        target=target,
        changes=executor.changes,
        warnings=_ragged_warnings(executor),
        duration_ms=elapsed,
    )
    _emit(env)


# ---------------------------------------------------------------------------
# csvedit modify
# ---------------------------------------------------------------------------
@app.command("modify")
def modify_cmd(
    ctx: typer.Context,
    row_index: Annotated[int, typer.Option("--row-index", "-r", help="Row to edit (1-based)")],
    col_index: Annotated[Optional[int], typer.Option("--col-index", "-c", help="Cell to edit (1-based); omit to replace the whole row")] = None,
    data: Annotated[Optional[list[str]], typer.Option("--data", "-d", help=_DATA_HELP)] = None,
):
    """Replace one cell or a whole row. Mutating.

    With `-c`, exactly one value replaces that cell. Without `-c`, the
    number of values must equal the row's current length. Every written
    value is wrapped in double quotes.

    Example: `csvedit -r data.csv -w out.csv modify -r 1 -c 1 -d yolo`

    Example: `csvedit -r data.csv -w out.csv modify -r 1 -d yolo,this,is`
    """
    command = f"{COMMAND_PREFIX}.modify"
    target = _target(ctx.obj or {}, row=row_index, column=col_index)
    operation = {
        "kind": "modify",
        "row_index": row_index,
        "col_index": col_index,
        "values": _split_values(data),
    }
    executor, result, elapsed = _run(ctx, command, operation, target=target)
    env = success_envelope(
        command,
        result.model_dump(),
        target=target,
        changes=executor.changes,
        warnings=_ragged_warnings(executor),
        duration_ms=elapsed,
    )
    _emit(env)


# ---------------------------------------------------------------------------
# csvedit info
# ---------------------------------------------------------------------------
@app.command("info")
def info_cmd(ctx: typer.Context):
    """Report row count, column count, ragged rows, and file fingerprint.

    The column count comes from the first row.

    Example: `csvedit -r data.csv info`
    """
    command = f"{COMMAND_PREFIX}.info"
    target = _target(ctx.obj or {})
    executor, _result, elapsed = _run(ctx, command, InfoOp().model_dump(), target=target)
    env = success_envelope(
        command,
        executor.dataset.meta().model_dump(),
        target=target,
        warnings=_ragged_warnings(executor),
        duration_ms=elapsed,
    )
    _emit(env)


# ---------------------------------------------------------------------------
# Entrypoint (for `python -m csvedit`)
# ---------------------------------------------------------------------------
def main() -> None:
    try:
        app()
    except SystemExit:
        raise
    except Exception as exc:
        # Unhandled exceptions still leave as a JSON error envelope.
        env = error_envelope("unknown", "ERR_INTERNAL", str(exc))
        print_response(env)
        raise SystemExit(90) from exc


if __name__ == "__main__":
    main()
