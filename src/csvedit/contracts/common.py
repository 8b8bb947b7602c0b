"""Common Pydantic models and the dataset error taxonomy."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class DatasetCorruptError(Exception):
    """Raised when a source file cannot be decoded as text."""


class DatasetError(Exception):
    """Base class for failures raised by dataset operations and saves."""

    code = "ERR_DATASET"
    message = "Dataset operation failed"

    def __init__(self, detail: str | None = None, **details: Any) -> None:
        self.details = details
        text = f"{self.message}: {detail}" if detail else self.message
        super().__init__(text)


class RowIndexOutOfBoundError(DatasetError):
    code = "ERR_ROW_INDEX_OUT_OF_BOUND"
    message = "Row index out of bound"


class ColumnIndexOutOfBoundError(DatasetError):
    code = "ERR_COLUMN_INDEX_OUT_OF_BOUND"
    message = "Column index out of bound"


class ValueLengthMismatchError(DatasetError):
    code = "ERR_VALUE_LENGTH_MISMATCH"
    message = "Provided values length mismatch"


class ReplacementLengthMismatchError(DatasetError):
    code = "ERR_REPLACEMENT_LENGTH_MISMATCH"
    message = "Replacement values length mismatch"


class RaggedRowsError(DatasetError):
    code = "ERR_RAGGED_ROWS"
    message = "Rows do not match the header column count"


class DestinationWriteError(DatasetError):
    """Raised when the destination cannot be created or written."""

    code = "ERR_IO_DEST_WRITE"
    message = "Cannot write destination"


class DestinationNotFoundError(DestinationWriteError):
    code = "ERR_DEST_NOT_FOUND"
    message = "Destination directory not found"


class PolicyViolationError(DatasetError):
    """Raised when a request is blocked by the loaded policy."""

    code = "ERR_POLICY_VIOLATION"
    message = "Blocked by policy"

    def __init__(self, code: str, detail: str, **details: Any) -> None:
        self.code = code
        super().__init__(detail, **details)


class Target(BaseModel):
    """Identifies the dataset file and optional row/column for a command."""

    file: str | None = None
    write_path: str | None = None
    row: int | None = None
    column: int | None = None


class WarningDetail(BaseModel):
    """Structured warning."""

    code: str
    message: str
    path: str | None = None


class ErrorDetail(BaseModel):
    """Structured error."""

    code: str
    message: str
    details: dict[str, Any] | None = None


class Metrics(BaseModel):
    """Execution metrics."""

    duration_ms: int = 0


class ChangeRecord(BaseModel):
    """Describes a single change made by a mutating operation."""

    type: str
    target: str
    before: Any | None = None
    after: Any | None = None
    impact: dict[str, Any] | None = None
    warnings: list[WarningDetail] = Field(default_factory=list)


class ResponseEnvelope(BaseModel):
    """Standard response envelope returned by JSON-emitting commands."""

    ok: bool = True
    command: str = ""
    target: Target = Field(default_factory=Target)
    result: Any = None
    changes: list[ChangeRecord] = Field(default_factory=list)
    warnings: list[WarningDetail] = Field(default_factory=list)
    errors: list[ErrorDetail] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=Metrics)
