"""Pydantic models for requests, responses, and the error taxonomy."""

from csvedit.contracts.common import (
    ChangeRecord,
    ColumnIndexOutOfBoundError,
    DatasetCorruptError,
    DatasetError,
    DestinationNotFoundError,
    DestinationWriteError,
    ErrorDetail,
    Metrics,
    PolicyViolationError,
    RaggedRowsError,
    ReplacementLengthMismatchError,
    ResponseEnvelope,
    RowIndexOutOfBoundError,
    Target,
    ValueLengthMismatchError,
    WarningDetail,
)
from csvedit.contracts.requests import (
    CommandRequest,
    DeleteOp,
    DisplayOp,
    InfoOp,
    ModifyOp,
    PaginateOp,
)
from csvedit.contracts.responses import DatasetMeta, ExecutionResult

__all__ = [
    "ChangeRecord",
    "ColumnIndexOutOfBoundError",
    "CommandRequest",
    "DatasetCorruptError",
    "DatasetError",
    "DatasetMeta",
    "DeleteOp",
    "DestinationNotFoundError",
    "DestinationWriteError",
    "DisplayOp",
    "ErrorDetail",
    "ExecutionResult",
    "InfoOp",
    "Metrics",
    "ModifyOp",
    "PaginateOp",
    "PolicyViolationError",
    "RaggedRowsError",
    "ReplacementLengthMismatchError",
    "ResponseEnvelope",
    "RowIndexOutOfBoundError",
    "Target",
    "ValueLengthMismatchError",
    "WarningDetail",
]
