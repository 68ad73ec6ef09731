import io
from decimal import Decimal

import pytest

from dialectcsv import (
    ColumnSpec,
    CsvConfig,
    CsvReader,
    CsvStateError,
    FieldType,
    Headers,
    ParseError,
    RowIterationError,
    Schema,
    WarningKind,
    reader,
)


def read_rows(text, config=None, **kwargs):
    return CsvReader(io.StringIO(text), config, **kwargs).read_all()


def test_header_row_and_name_access():
    rows = read_rows("id,name\n1,Alice\n2,Bob\n", CsvConfig(has_header=True))
    assert [r["name"] for r in rows] == ["Alice", "Bob"]
    assert rows[0].headers.names == ("id", "name")


def test_headers_are_synthesized_without_header_row():
    r = CsvReader(io.StringIO("1,2,3\n4,5,6\n"))
    assert r.headers.names == ("col0", "col1", "col2")
    assert [row.values for row in r] == [("1", "2", "3"), ("4", "5", "6")]


def test_caller_headers_win_over_header_row():
    rows = read_rows("a,b\n1,2\n", CsvConfig(has_header=False), headers=["x", "y"])
    assert rows[0].to_dict() == {"x": "a", "y": "b"}


def test_empty_input():
    r = CsvReader(io.StringIO(""), CsvConfig(has_header=True))
    assert r.read_row() is None
    assert r.headers is None
    assert r.read_row() is None


def test_blank_lines_before_header_are_skipped():
    r = CsvReader(io.StringIO("\n\nid\n1\n"), CsvConfig(has_header=True, skip_empty_lines=False))
    assert r.headers.names == ("id",)
    assert r.read_row()["id"] == "1"


def test_short_and_long_rows_are_padded_and_truncated_with_warnings():
    seen = []
    text = "a,b,c\n1,2\n1,2,3\n1,2,3,4\n"
    r = CsvReader(io.StringIO(text), CsvConfig(has_header=True), on_warning=seen.append)
    rows = r.read_all()
    assert [row.values for row in rows] == [("1", "2", ""), ("1", "2", "3"), ("1", "2", "3")]
    assert [(w.line, w.kind) for w in r.warnings] == [
        (2, WarningKind.TOO_FEW_FIELDS),
        (4, WarningKind.TOO_MANY_FIELDS),
    ]
    assert r.last_warning.kind is WarningKind.TOO_MANY_FIELDS
    assert seen == r.warnings
    assert "line 4 has 4 fields, expected 3" in r.last_warning.message


def test_warning_line_is_record_start_line():
    text = 'a,b\n"multi\nline"\n'
    r = CsvReader(io.StringIO(text), CsvConfig(has_header=True))
    row = r.read_row()
    assert row.values == ("multi\nline", "")
    assert r.last_warning.line == 2


def test_warnings_are_logged(caplog):
    with caplog.at_level("WARNING", logger="dialectcsv"):
        read_rows("a,b\n1\n", CsvConfig(has_header=True))
    assert "expected 2" in caplog.text


def test_ragged_rows_without_uniform_rule_get_their_own_headers():
    r = CsvReader(io.StringIO("1,2\n3\n4,5,6\n"))
    rows = r.read_all()
    assert [len(row) for row in rows] == [2, 1, 3]
    assert rows[2].headers.names == ("col0", "col1", "col2")
    assert r.warnings == []


def test_require_uniform_field_count_without_header():
    r = CsvReader(io.StringIO("1,2\n3\n"), CsvConfig(require_uniform_field_count=True))
    rows = r.read_all()
    assert rows[1].values == ("3", "")
    assert r.last_warning.kind is WarningKind.TOO_FEW_FIELDS


def test_empty_lines_skipped_by_default():
    rows = read_rows("a,b\n\n1,2\n\n", CsvConfig(has_header=True))
    assert [row.values for row in rows] == [("1", "2")]


def test_empty_lines_kept_as_blank_rows():
    r = CsvReader(io.StringIO("a,b\n\n1,2\n"), CsvConfig(has_header=True, skip_empty_lines=False))
    rows = r.read_all()
    assert [row.values for row in rows] == [("", ""), ("1", "2")]
    assert r.warnings == []


def test_parse_errors_propagate():
    with pytest.raises(ParseError):
        read_rows('a\n"open\n', CsvConfig(has_header=True))


def test_excel_round_trip_data():
    text = 'id,name\r\n1,"Smith, John"\r\n2, "Bob" \r\n'
    rows = read_rows(text, CsvConfig.excel_defaults())
    assert [r["name"] for r in rows] == ["Smith, John", "Bob"]


class _FailingSource(io.StringIO):
    def read(self, size=-1):
        raise OSError("disk went away")


def test_io_failures_surface_as_row_iteration_error():
    r = CsvReader(_FailingSource(), headers=["a"])
    with pytest.raises(RowIterationError) as exc:
        next(iter(r))
    assert isinstance(exc.value.__cause__, OSError)


def test_typed_rows():
    schema = Schema((ColumnSpec("id", FieldType.INT), ColumnSpec("price", FieldType.DECIMAL)))
    r = CsvReader(io.StringIO("id,price\n1,2.5\nx,3\n"), CsvConfig(has_header=True))
    typed = list(r.typed_rows(schema))
    assert [f.value for f in typed[0]] == [1, Decimal("2.50")]
    assert not typed[1][0].valid
    assert typed[1][1].valid


def test_close_is_idempotent_and_blocks_reads():
    src = io.StringIO("a\n")
    with CsvReader(src) as r:
        pass
    assert src.closed
    r.close()
    with pytest.raises(CsvStateError):
        r.read_row()


def test_keep_source_open():
    src = io.StringIO("a\n")
    CsvReader(src, close_source=False).close()
    assert not src.closed


def test_reader_factory_and_from_path(tmp_path):
    path = tmp_path / "data.csv"
    path.write_bytes(b"\xef\xbb\xbfid,name\r\n1,Ann\r\n")
    with CsvReader.from_path(path, CsvConfig.excel_defaults()) as r:
        assert r.headers.names == ("id", "name")
        assert r.read_row()["name"] == "Ann"

    r = reader(io.StringIO("x\n"), headers=Headers(["only"]))
    assert r.read_row()["only"] == "x"


def test_padded_rows_share_reader_headers():
    r = CsvReader(io.StringIO("a,b,c\n1\n\n"), CsvConfig(has_header=True, skip_empty_lines=False))
    short, blank = r.read_all()
    assert short.headers is r.headers
    assert short.values == ("1", "", "")
    assert blank.headers is r.headers
    assert blank.values == ("", "", "")


def test_unresolved_headers_raise_state_error(monkeypatch):
    r = CsvReader(io.StringIO("a\n1\n"), CsvConfig(has_header=True))
    monkeypatch.setattr(r, "_resolve_headers", lambda: None)
    with pytest.raises(CsvStateError) as exc:
        r.read_row()
    assert "Headers could not be resolved" in str(exc.value)
