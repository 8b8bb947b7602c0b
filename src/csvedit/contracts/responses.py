"""Command-specific result models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DatasetMeta(BaseModel):
    """Metadata returned by ``info``."""

    path: str | None = None
    fingerprint: str | None = None
    row_count: int = 0
    col_count: int = 0
    ragged_rows: list[int] = Field(default_factory=list)


class ExecutionResult(BaseModel):
    """Outcome of running one request against a dataset."""

    operation: str
    dry_run: bool = False
    saved_path: str | None = None
    backup_path: str | None = None
    row_count: int = 0
    col_count: int = 0
