"""TabularDataset: the in-memory table and the operations defined over it."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Protocol, Sequence, TextIO, runtime_checkable

from csvedit.contracts.common import (
    ChangeRecord,
    ColumnIndexOutOfBoundError,
    DatasetCorruptError,
    RaggedRowsError,
    ReplacementLengthMismatchError,
    RowIndexOutOfBoundError,
    ValueLengthMismatchError,
)
from csvedit.contracts.responses import DatasetMeta
from csvedit.io.fileops import atomic_write_text, fingerprint, iter_lines

DELIMITER = ","
COLUMN_SEPARATOR = "| "
QUOTE = '"'


@runtime_checkable
class TableOperations(Protocol):
    """The capability set every command drives a dataset through."""

    def display(self, out: TextIO | None = None) -> None: ...

    def paginate(self, start: int, end: int, out: TextIO | None = None) -> None: ...

    def modify(
        self, row_index: int, col_index: int | None, values: Sequence[str]
    ) -> ChangeRecord: ...

    def delete(self, row_index: int) -> ChangeRecord: ...


def parse_line(line: str) -> list[str]:
    """Split one line on the delimiter and trim every cell."""
    return [cell.strip() for cell in line.split(DELIMITER)]


def quote(value: str) -> str:
    return f"{QUOTE}{value}{QUOTE}"


class TabularDataset:
    """Ordered rows of text cells loaded from a comma-delimited file.

    ``col_count`` is fixed from the first row at construction and is never
    re-validated; later rows may be longer or shorter. All public indices
    are 1-based.
    """

    def __init__(
        self,
        rows: Iterable[Sequence[str]] = (),
        *,
        source: str | Path | None = None,
    ) -> None:
        self.rows: list[list[str]] = [list(row) for row in rows]
        self.col_count: int = len(self.rows[0]) if self.rows else 0
        self.source = Path(source) if source is not None else None

    @classmethod
    def from_file(cls, path: str | Path, *, strict_columns: bool = False) -> "TabularDataset":
        """Load a dataset. Raises FileNotFoundError/OSError for unreadable paths."""
        try:
            rows = [parse_line(line) for line in iter_lines(path)]
        except UnicodeDecodeError as e:
            raise DatasetCorruptError(f"Cannot decode {path}: {e}") from e
        dataset = cls(rows, source=path)
        if strict_columns:
            ragged = dataset.ragged_rows()
            if ragged:
                raise RaggedRowsError(
                    f"expected {dataset.col_count} cells in rows {ragged}",
                    rows=ragged,
                    col_count=dataset.col_count,
                )
        return dataset

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"TabularDataset(rows={self.row_count}, cols={self.col_count})"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_text(self) -> str:
        return "".join(DELIMITER.join(row) + "\n" for row in self.rows)

    def to_file(self, path: str | Path) -> None:
        """Create or overwrite ``path`` with one comma-joined line per row."""
        atomic_write_text(path, self.to_text())

    def ragged_rows(self) -> list[int]:
        return [i for i, row in enumerate(self.rows, start=1) if len(row) != self.col_count]

    def meta(self) -> DatasetMeta:
        source_exists = self.source is not None and self.source.exists()
        return DatasetMeta(
            path=str(self.source) if self.source is not None else None,
            fingerprint=fingerprint(self.source) if source_exists else None,
            row_count=self.row_count,
            col_count=self.col_count,
            ragged_rows=self.ragged_rows(),
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def column_widths(self) -> list[int]:
        """Maximum cell length per column, across every row.

        Spans the longest row as well as ``col_count`` so ragged rows
        always have a width to pad against.
        """
        span = max([self.col_count, *(len(row) for row in self.rows)])
        widths = [0] * span
        for row in self.rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))
        return widths

    @staticmethod
    def format_row(row: Sequence[str], widths: Sequence[int]) -> str:
        return COLUMN_SEPARATOR.join(cell.ljust(widths[i]) for i, cell in enumerate(row))

    def render(self) -> list[str]:
        widths = self.column_widths()
        return [self.format_row(row, widths) for row in self.rows]

    def page(self, start: int, end: int) -> list[str]:
        """Formatted lines for rows ``start``..``end`` (1-based, inclusive).

        Widths come from the whole dataset, not just the page. An empty
        list is returned when ``start`` is below 1, past the last row, or after
        ``end``; ``end`` is clamped to the last row.
        """
        if start < 1 or start > self.row_count or start > end:
            return []
        end = min(end, self.row_count)
        widths = self.column_widths()
        return [self.format_row(row, widths) for row in self.rows[start - 1:end]]

    def display(self, out: TextIO | None = None) -> None:
        _write_lines(self.render(), out)

    def paginate(self, start: int, end: int, out: TextIO | None = None) -> None:
        _write_lines(self.page(start, end), out)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def _check_row(self, row_index: int) -> list[str]:
        if row_index < 1 or row_index > self.row_count:
            raise RowIndexOutOfBoundError(
                f"{row_index} not in [1, {self.row_count}]",
                row_index=row_index,
                row_count=self.row_count,
            )
        return self.rows[row_index - 1]

    def modify(
        self, row_index: int, col_index: int | None, values: Sequence[str]
    ) -> ChangeRecord:
        """Replace one cell or a whole row; replacement cells are double-quoted.

        Every check runs before anything is written, so a failed call leaves
        the dataset unchanged.
        """
        row = self._check_row(row_index)

        if col_index is not None and len(values) == 1:
            if col_index < 1 or col_index > len(row):
                raise ColumnIndexOutOfBoundError(
                    f"{col_index} not in [1, {len(row)}] for row {row_index}",
                    row_index=row_index,
                    col_index=col_index,
                    row_length=len(row),
                )
            before = row[col_index - 1]
            row[col_index - 1] = quote(values[0])
            return ChangeRecord(
                type="cell.modify",
                target=f"R{row_index}C{col_index}",
                before=before,
                after=row[col_index - 1],
                impact={"rows": 1, "cells": 1},
            )

        if col_index is None:
            if len(values) != len(row):
                raise ReplacementLengthMismatchError(
                    f"got {len(values)} values for a row of {len(row)} cells",
                    row_index=row_index,
                    expected=len(row),
                    actual=len(values),
                )
            before = list(row)
            self.rows[row_index - 1] = [quote(v) for v in values]
            return ChangeRecord(
                type="row.replace",
                target=f"R{row_index}",
                before=before,
                after=list(self.rows[row_index - 1]),
                impact={"rows": 1, "cells": len(values)},
            )

        raise ValueLengthMismatchError(
            f"a single-cell edit takes exactly 1 value, got {len(values)}",
            row_index=row_index,
            col_index=col_index,
            actual=len(values),
        )

    def delete(self, row_index: int) -> ChangeRecord:
        self._check_row(row_index)
        removed = self.rows.pop(row_index - 1)
        return ChangeRecord(
            type="row.delete",
            target=f"R{row_index}",
            before=removed,
            impact={"rows": 1, "cells": len(removed)},
        )


def _write_lines(lines: list[str], out: TextIO | None) -> None:
    stream = out or sys.stdout
    for line in lines:
        stream.write(line + "\n")
