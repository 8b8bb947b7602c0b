"""Response envelope helpers, error code mapping, and exit codes."""

from __future__ import annotations

import sys
from typing import Any

import click
import orjson
from pydantic import ValidationError

from csvedit.contracts.common import (
    DatasetCorruptError,
    DatasetError,
    ErrorDetail,
    Metrics,
    ResponseEnvelope,
    Target,
)

# Exit code mapping
EXIT_CODES = {
    "success": 0,
    "validation": 10,
    "protection": 20,
    "io": 50,
    "internal": 90,
}

VALIDATION_CODE_MARKERS = (
    "INDEX_OUT_OF_BOUND",
    "LENGTH_MISMATCH",
    "RAGGED",
    "INVALID_ARGUMENT",
    "USAGE",
    "POLICY_INVALID",
)

PROTECTION_CODE_MARKERS = ("PROTECTED", "NOT_ALLOWED")


def success_envelope(
    command: str,
    result: Any,
    *,
    target: Target | None = None,
    changes: list | None = None,
    warnings: list | None = None,
    duration_ms: int = 0,
) -> ResponseEnvelope:
    return ResponseEnvelope(
        ok=True,
        command=command,
        target=target or Target(),
        result=result,
        changes=changes or [],
        warnings=warnings or [],
        metrics=Metrics(duration_ms=duration_ms),
    )


def error_envelope(
    command: str,
    code: str,
    message: str,
    *,
    target: Target | None = None,
    details: dict | None = None,
    duration_ms: int = 0,
) -> ResponseEnvelope:
    return ResponseEnvelope(
        ok=False,
        command=command,
        target=target or Target(),
        errors=[ErrorDetail(code=code, message=message, details=details)],
        metrics=Metrics(duration_ms=duration_ms),
    )


def error_code_for(exc: BaseException) -> str:
    """Map an exception raised while executing a request to an error code."""
    if isinstance(exc, DatasetError):
        return exc.code
    if isinstance(exc, ValidationError):
        return "ERR_INVALID_ARGUMENT"
    if isinstance(exc, FileNotFoundError):
        return "ERR_SOURCE_NOT_FOUND"
    if isinstance(exc, DatasetCorruptError):
        return "ERR_SOURCE_CORRUPT"
    if isinstance(exc, OSError):
        return "ERR_IO"
    return "ERR_INTERNAL"


def envelope_for_exception(
    command: str,
    exc: BaseException,
    *,
    target: Target | None = None,
    duration_ms: int = 0,
) -> ResponseEnvelope:
    """Build an error envelope that names the failure kind and its details."""
    details = exc.details if isinstance(exc, DatasetError) else None
    if isinstance(exc, ValidationError):
        details = {"errors": [err["msg"] for err in exc.errors()]}
    return error_envelope(
        command,
        error_code_for(exc),
        str(exc),
        target=target,
        details=details or None,
        duration_ms=duration_ms,
    )


def output_json(envelope: ResponseEnvelope) -> str:
    """Serialize envelope to JSON string using orjson."""
    data = envelope.model_dump(mode="json")
    return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()


def print_response(envelope: ResponseEnvelope) -> None:
    """Print response as JSON to stdout."""
    sys.stdout.write(output_json(envelope) + "\n")


def exit_code_for(envelope: ResponseEnvelope) -> int:
    """Determine exit code from envelope errors."""
    if envelope.ok:
        return EXIT_CODES["success"]
    if not envelope.errors:
        return EXIT_CODES["internal"]
    code = envelope.errors[0].code.upper()
    if any(marker in code for marker in PROTECTION_CODE_MARKERS):
        return EXIT_CODES["protection"]
    if any(marker in code for marker in VALIDATION_CODE_MARKERS):
        return EXIT_CODES["validation"]
    if code.startswith("ERR_IO") or code.endswith("NOT_FOUND") or "CORRUPT" in code:
        return EXIT_CODES["io"]
    return EXIT_CODES["internal"]


def patch_typer_errors() -> None:
    """Patch TyperGroup.invoke to emit JSON envelopes for CLI usage errors."""
    import typer.core

    _orig_invoke = typer.core.TyperGroup.invoke

    def _json_invoke(self, ctx):
        try:
            return _orig_invoke(self, ctx)
        except click.exceptions.UsageError as e:
            env = error_envelope("unknown", "ERR_USAGE", str(e.format_message()))
            print_response(env)
            raise SystemExit(exit_code_for(env)) from e

    typer.core.TyperGroup.invoke = _json_invoke
