"""Drive one CommandRequest: load, check policy, operate, optionally save."""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

from csvedit.contracts.common import (
    ChangeRecord,
    DestinationNotFoundError,
    DestinationWriteError,
    PolicyViolationError,
)
from csvedit.contracts.requests import (
    CommandRequest,
    DeleteOp,
    DisplayOp,
    InfoOp,
    ModifyOp,
    PaginateOp,
)
from csvedit.contracts.responses import ExecutionResult
from csvedit.engine.dataset import TableOperations, TabularDataset
from csvedit.io.fileops import backup as make_backup
from csvedit.observe.events import EventEmitter
from csvedit.validation.policy import Policy, check_request_policy


def enforce_policy(policy: Policy, request: CommandRequest) -> None:
    """Raise PolicyViolationError for the first error-severity violation."""
    for violation in check_request_policy(policy, request):
        if violation["severity"] == "error":
            raise PolicyViolationError(
                violation["code"],
                violation["message"],
                type=violation["type"],
            )


def apply_operation(
    table: TableOperations,
    request: CommandRequest,
    *,
    out: TextIO | None = None,
) -> list[ChangeRecord]:
    """Run the requested operation against ``table``. Returns any changes made."""
    op = request.operation
    if isinstance(op, DisplayOp):
        table.display(out)
    elif isinstance(op, PaginateOp):
        table.paginate(op.start, op.end, out)
    elif isinstance(op, ModifyOp):
        return [table.modify(op.row_index, op.col_index, op.values)]
    elif isinstance(op, DeleteOp):
        return [table.delete(op.row_index)]
    elif not isinstance(op, InfoOp):
        raise ValueError(f"Unsupported operation: {op.kind}")
    return []


class Executor:
    """Runs requests against freshly loaded datasets.

    Nothing is written unless the operation succeeded; a validation or
    policy failure propagates before the save step is reached.
    """

    def __init__(
        self,
        *,
        policy: Policy | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        self.policy = policy or Policy()
        self.events = events or EventEmitter(enabled=self.policy.events)
        self.dataset: TabularDataset | None = None
        self.changes: list[ChangeRecord] = []

    def load(self, request: CommandRequest) -> TabularDataset:
        dataset = TabularDataset.from_file(
            request.source_path, strict_columns=self.policy.strict_columns
        )
        self.events.emit("dataset.loaded", {
            "path": request.source_path,
            "rows": dataset.row_count,
            "cols": dataset.col_count,
        })
        return dataset

    def save(self, dataset: TabularDataset, request: CommandRequest) -> tuple[str | None, str | None]:
        """Persist to the destination. Returns (saved_path, backup_path)."""
        if request.destination_path is None or request.dry_run:
            return None, None
        destination = Path(request.destination_path)
        backup_path = None
        try:
            if (request.backup or self.policy.backup) and destination.is_file():
                backup_path = make_backup(destination)
                self.events.emit("dataset.backup", {"path": str(destination), "backup": backup_path})
            dataset.to_file(destination)
        except FileNotFoundError as e:
            raise DestinationNotFoundError(str(e), path=str(destination)) from e
        except OSError as e:
            raise DestinationWriteError(str(e), path=str(destination)) from e
        self.events.emit("dataset.saved", {"path": str(destination), "rows": dataset.row_count})
        return str(destination), backup_path

    def execute(self, request: CommandRequest, *, out: TextIO | None = None) -> ExecutionResult:
        enforce_policy(self.policy, request)
        dataset = self.load(request)
        self.dataset = dataset

        self.changes = apply_operation(dataset, request, out=out)
        self.events.emit("operation.applied", {
            "operation": request.operation.kind,
            "changes": len(self.changes),
        })

        saved_path, backup_path = self.save(dataset, request)
        return ExecutionResult(
            operation=request.operation.kind,
            dry_run=request.dry_run,
            saved_path=saved_path,
            backup_path=backup_path,
            row_count=dataset.row_count,
            col_count=dataset.col_count,
        )


def execute(
    request: CommandRequest,
    *,
    policy: Policy | None = None,
    out: TextIO | None = None,
) -> ExecutionResult:
    """Convenience wrapper: run ``request`` with a one-off Executor."""
    return Executor(policy=policy).execute(request, out=out)
