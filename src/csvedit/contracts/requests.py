"""Request models produced by the command line and consumed by the executor."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class DisplayOp(BaseModel):
    """Print every row."""

    kind: Literal["display"] = "display"


class PaginateOp(BaseModel):
    """Print rows ``start`` through ``end`` (1-based, inclusive)."""

    kind: Literal["paginate"] = "paginate"
    start: int = Field(ge=0)
    end: int = Field(ge=0)


class DeleteOp(BaseModel):
    """Remove a single row."""

    kind: Literal["delete"] = "delete"
    row_index: int = Field(ge=0)


class ModifyOp(BaseModel):
    """Replace one cell (``col_index`` set) or a whole row."""

    kind: Literal["modify"] = "modify"
    row_index: int = Field(ge=0)
    col_index: int | None = Field(default=None, ge=0)
    values: list[str] = Field(default_factory=list)


class InfoOp(BaseModel):
    """Report dataset metadata without touching rows."""

    kind: Literal["info"] = "info"


Operation = Annotated[
    Union[DisplayOp, PaginateOp, DeleteOp, ModifyOp, InfoOp],
    Field(discriminator="kind"),
]

MUTATING_KINDS = frozenset({"modify", "delete"})


class CommandRequest(BaseModel):
    """A fully parsed command: where to read, where to write, what to do."""

    source_path: str
    destination_path: str | None = None
    operation: Operation
    dry_run: bool = False
    backup: bool = False

    @property
    def mutating(self) -> bool:
        return self.operation.kind in MUTATING_KINDS
