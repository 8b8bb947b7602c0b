"""Tests for TabularDataset: load, save, render, modify, delete."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from csvedit.contracts.common import (
    ColumnIndexOutOfBoundError,
    DatasetCorruptError,
    RaggedRowsError,
    ReplacementLengthMismatchError,
    RowIndexOutOfBoundError,
    ValueLengthMismatchError,
)
from csvedit.engine.dataset import TableOperations, TabularDataset, parse_line


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------
def test_parse_line_trims_cells():
    assert parse_line(" a ,b,  c") == ["a", "b", "c"]
    assert parse_line("") == [""]
    assert parse_line("x,,y") == ["x", "", "y"]


def test_load(people_csv: Path):
    ds = TabularDataset.from_file(people_csv)
    assert ds.row_count == 4
    assert ds.col_count == 3
    assert ds.rows[0] == ["name", "age", "city"]
    assert ds.rows[2] == ["bo", "42", "Rio de Janeiro"]
    assert ds.source == people_csv


def test_load_crlf_and_bom(tmp_path: Path):
    path = tmp_path / "win.csv"
    path.write_bytes(b"\xef\xbb\xbfa,b\r\n1,2\r\n")
    ds = TabularDataset.from_file(path)
    assert ds.rows == [["a", "b"], ["1", "2"]]


def test_load_empty_file(empty_csv: Path):
    ds = TabularDataset.from_file(empty_csv)
    assert ds.row_count == 0
    assert ds.col_count == 0
    assert ds.render() == []


def test_load_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        TabularDataset.from_file(tmp_path / "nope.csv")


def test_load_undecodable(tmp_path: Path):
    path = tmp_path / "bin.csv"
    path.write_bytes(b"a,b\n\xff\xfe,\x80\n")
    with pytest.raises(DatasetCorruptError):
        TabularDataset.from_file(path)


def test_load_ragged_is_permissive(ragged_csv: Path):
    ds = TabularDataset.from_file(ragged_csv)
    assert ds.col_count == 3
    assert ds.row_count == 3
    assert ds.ragged_rows() == [2, 3]


def test_load_ragged_strict(ragged_csv: Path):
    with pytest.raises(RaggedRowsError) as exc:
        TabularDataset.from_file(ragged_csv, strict_columns=True)
    assert exc.value.details["rows"] == [2, 3]
    assert exc.value.code == "ERR_RAGGED_ROWS"


def test_constructor_copies_rows():
    source = [["a", "b"]]
    ds = TabularDataset(source)
    ds.modify(1, 1, ["z"])
    assert source == [["a", "b"]]


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------
def test_save_round_trip(people_csv: Path, tmp_path: Path):
    ds = TabularDataset.from_file(people_csv)
    out = tmp_path / "out.csv"
    ds.to_file(out)
    assert out.read_text() == "name,age,city\nalexander,7,Oslo\nbo,42,Rio de Janeiro\ncy,103,Lima\n"
    assert TabularDataset.from_file(out).rows == ds.rows


def test_save_overwrites(simple_csv: Path, tmp_path: Path):
    out = tmp_path / "out.csv"
    out.write_text("stale\ncontent\nhere\n")
    TabularDataset.from_file(simple_csv).to_file(out)
    assert out.read_text() == "a,b,c\n1,2,3\n"


def test_save_unwritable_leaves_no_file(simple_csv: Path, tmp_path: Path):
    out = tmp_path / "missing_dir" / "out.csv"
    with pytest.raises(OSError):
        TabularDataset.from_file(simple_csv).to_file(out)
    assert not out.exists()


def test_save_to_directory_fails(simple_csv: Path, tmp_path: Path):
    outdir = tmp_path / "outdir"
    outdir.mkdir()
    with pytest.raises(IsADirectoryError):
        TabularDataset.from_file(simple_csv).to_file(outdir)
    assert list(outdir.iterdir()) == []


def test_save_keeps_destination_mode(simple_csv: Path, tmp_path: Path):
    out = tmp_path / "out.csv"
    out.write_text("old\n")
    out.chmod(0o644)
    TabularDataset.from_file(simple_csv).to_file(out)
    assert out.stat().st_mode & 0o777 == 0o644
    assert out.read_text() == "a,b,c\n1,2,3\n"


def test_save_empty_dataset(tmp_path: Path):
    out = tmp_path / "out.csv"
    TabularDataset().to_file(out)
    assert out.read_text() == ""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def test_column_widths(people_csv: Path):
    ds = TabularDataset.from_file(people_csv)
    assert ds.column_widths() == [9, 3, 14]


def test_format_row_pads_and_joins():
    assert TabularDataset.format_row(["a", "bb"], [3, 2]) == "a  | bb"


def test_display(people_csv: Path):
    ds = TabularDataset.from_file(people_csv)
    buf = io.StringIO()
    ds.display(buf)
    lines = buf.getvalue().splitlines()
    assert lines[0] == "name     | age| " + "city".ljust(14)
    assert lines[1] == "alexander| 7  | " + "Oslo".ljust(14)
    assert lines[2] == "bo       | 42 | Rio de Janeiro"
    assert len(lines) == 4


def test_display_defaults_to_stdout(simple_csv: Path, capsys):
    TabularDataset.from_file(simple_csv).display()
    assert capsys.readouterr().out == "a| b| c\n1| 2| 3\n"


def test_display_ragged_does_not_crash(ragged_csv: Path):
    ds = TabularDataset.from_file(ragged_csv)
    assert ds.render() == ["a| b| c", "1| 2", "1| 2| 3| 4"]


def test_paginate_uses_whole_dataset_widths(tmp_path: Path):
    path = tmp_path / "w.csv"
    path.write_text("name,age\nalexander,7\n")
    ds = TabularDataset.from_file(path)
    buf = io.StringIO()
    ds.paginate(1, 1, buf)
    assert buf.getvalue() == "name     | age\n"


def test_page_clamps_end(people_csv: Path):
    ds = TabularDataset.from_file(people_csv)
    assert ds.page(3, 100) == ds.render()[2:]


@pytest.mark.parametrize("start,end", [(0, 2), (5, 9), (3, 2), (0, 0), (-1, 2), (-3, -1)])
def test_page_out_of_range_is_empty(people_csv: Path, start: int, end: int):
    ds = TabularDataset.from_file(people_csv)
    assert ds.page(start, end) == []
    buf = io.StringIO()
    ds.paginate(start, end, buf)
    assert buf.getvalue() == ""


# ---------------------------------------------------------------------------
# Modify
# ---------------------------------------------------------------------------
def test_modify_cell_quotes_value(simple_csv: Path):
    ds = TabularDataset.from_file(simple_csv)
    change = ds.modify(2, 2, ["X"])
    assert ds.rows[1] == ["1", '"X"', "3"]
    assert change.type == "cell.modify"
    assert change.target == "R2C2"
    assert change.before == "2"
    assert change.after == '"X"'


def test_modify_row_quotes_every_value(simple_csv: Path):
    ds = TabularDataset.from_file(simple_csv)
    change = ds.modify(1, None, ["yolo", "this", "is"])
    assert ds.rows[0] == ['"yolo"', '"this"', '"is"']
    assert ds.rows[1] == ["1", "2", "3"]
    assert change.type == "row.replace"
    assert change.before == ["a", "b", "c"]


def test_modify_row_uses_current_row_length(ragged_csv: Path):
    ds = TabularDataset.from_file(ragged_csv)
    ds.modify(2, None, ["x", "y"])
    assert ds.rows[1] == ['"x"', '"y"']
    with pytest.raises(ReplacementLengthMismatchError):
        ds.modify(3, None, ["x", "y", "z"])


@pytest.mark.parametrize("row_index", [0, 3, 99, -1, -2])
def test_modify_row_out_of_bound(simple_csv: Path, row_index: int):
    ds = TabularDataset.from_file(simple_csv)
    with pytest.raises(RowIndexOutOfBoundError) as exc:
        ds.modify(row_index, 1, ["X"])
    assert str(exc.value).startswith("Row index out of bound")
    assert ds.rows == [["a", "b", "c"], ["1", "2", "3"]]


@pytest.mark.parametrize("col_index", [0, 4, -1, -3])
def test_modify_column_out_of_bound(simple_csv: Path, col_index: int):
    ds = TabularDataset.from_file(simple_csv)
    with pytest.raises(ColumnIndexOutOfBoundError):
        ds.modify(1, col_index, ["X"])
    assert ds.rows[0] == ["a", "b", "c"]


def test_modify_column_bound_is_per_row(ragged_csv: Path):
    ds = TabularDataset.from_file(ragged_csv)
    with pytest.raises(ColumnIndexOutOfBoundError):
        ds.modify(2, 3, ["X"])
    ds.modify(3, 4, ["X"])
    assert ds.rows[2][3] == '"X"'


@pytest.mark.parametrize("values", [[], ["x", "y"]])
def test_modify_cell_value_length_mismatch(simple_csv: Path, values: list[str]):
    ds = TabularDataset.from_file(simple_csv)
    with pytest.raises(ValueLengthMismatchError):
        ds.modify(1, 1, values)
    assert ds.rows[0] == ["a", "b", "c"]


def test_modify_row_check_precedes_value_check(simple_csv: Path):
    ds = TabularDataset.from_file(simple_csv)
    with pytest.raises(RowIndexOutOfBoundError):
        ds.modify(5, 1, ["x", "y"])


def test_modify_replacement_length_mismatch(simple_csv: Path):
    ds = TabularDataset.from_file(simple_csv)
    with pytest.raises(ReplacementLengthMismatchError) as exc:
        ds.modify(1, None, ["x", "y"])
    assert exc.value.details == {"row_index": 1, "expected": 3, "actual": 2}
    assert ds.rows[0] == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------
def test_delete(people_csv: Path):
    ds = TabularDataset.from_file(people_csv)
    change = ds.delete(2)
    assert ds.row_count == 3
    assert [r[0] for r in ds.rows] == ["name", "bo", "cy"]
    assert change.type == "row.delete"
    assert change.before == ["alexander", "7", "Oslo"]


@pytest.mark.parametrize("row_index", [0, 3, -1, -2])
def test_delete_out_of_bound(simple_csv: Path, row_index: int):
    ds = TabularDataset.from_file(simple_csv)
    with pytest.raises(RowIndexOutOfBoundError):
        ds.delete(row_index)
    assert ds.rows == [["a", "b", "c"], ["1", "2", "3"]]


def test_delete_keeps_col_count(simple_csv: Path):
    ds = TabularDataset.from_file(simple_csv)
    ds.delete(1)
    ds.delete(1)
    assert ds.row_count == 0
    assert ds.col_count == 3


def test_modify_then_delete_scenario(simple_csv: Path, tmp_path: Path):
    ds = TabularDataset.from_file(simple_csv)
    ds.modify(2, 2, ["X"])
    ds.delete(1)
    assert ds.rows == [["1", '"X"', "3"]]
    out = tmp_path / "out.csv"
    ds.to_file(out)
    assert out.read_text() == '1,"X",3\n'


# ---------------------------------------------------------------------------
# Protocol & metadata
# ---------------------------------------------------------------------------
def test_dataset_satisfies_table_operations():
    assert isinstance(TabularDataset(), TableOperations)


def test_meta(ragged_csv: Path):
    meta = TabularDataset.from_file(ragged_csv).meta()
    assert meta.path == str(ragged_csv)
    assert meta.fingerprint.startswith("sha256:")
    assert meta.row_count == 3
    assert meta.col_count == 3
    assert meta.ragged_rows == [2, 3]


def test_meta_without_source():
    meta = TabularDataset([["a"]]).meta()
    assert meta.path is None
    assert meta.fingerprint is None
