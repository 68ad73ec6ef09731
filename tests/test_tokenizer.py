import io

import pytest

from dialectcsv import EXCEL, JSON_CSV, RFC4180, TSV, Dialect, ParseError, Tokenizer, parse_text


def test_simple_records():
    assert parse_text("a,b,c\n1,2,3\n") == [["a", "b", "c"], ["1", "2", "3"]]


def test_empty_input_is_end_of_stream():
    t = Tokenizer(io.StringIO(""))
    assert t.read_row() is None
    assert t.read_row() is None


def test_final_record_without_newline():
    assert parse_text("a,b\n1,2") == [["a", "b"], ["1", "2"]]


def test_trailing_delimiter_adds_empty_field():
    assert parse_text("a,\n") == [["a", ""]]


@pytest.mark.parametrize("text", ["a,b\r\nc,d\r\n", "a,b\nc,d\n", "a,b\rc,d\r", "a,b\nc,d"])
def test_newlines_are_normalized_outside_quotes(text):
    assert parse_text(text) == [["a", "b"], ["c", "d"]]


def test_line_breaks_inside_quotes_are_kept_verbatim():
    assert parse_text('"a\r\nb",c\n') == [["a\r\nb", "c"]]


def test_doubled_quote_and_delimiter_inside_quotes():
    assert parse_text('"He said ""hi""","x,y"\n') == [['He said "hi"', "x,y"]]


def test_quoted_empty_field():
    assert parse_text('"",b\n') == [["", "b"]]


def test_blank_line_yields_single_empty_field():
    t = Tokenizer(io.StringIO("a\n\nb\n"))
    assert t.read_row() == ["a"]
    assert not t.blank_line
    assert t.read_row() == [""]
    assert t.blank_line
    assert t.read_row() == ["b"]
    assert t.read_row() is None


def test_record_line_tracks_multiline_records():
    t = Tokenizer(io.StringIO('a\n"x\ny"\nb\n'))
    t.read_row()
    assert t.record_line == 1
    assert t.read_row() == ["x\ny"]
    assert t.record_line == 2
    t.read_row()
    assert t.record_line == 4


def test_unterminated_quote_is_an_error():
    with pytest.raises(ParseError) as exc:
        parse_text('a,"bc\n')
    assert "Unexpected end of input inside quoted field" in str(exc.value)
    assert exc.value.line == 2


def test_strict_dialect_rejects_garbage_after_closing_quote():
    with pytest.raises(ParseError) as exc:
        parse_text('"ab"c,d\n', RFC4180)
    assert "after closing quote" in str(exc.value)
    assert exc.value.line == 1
    assert exc.value.column == 5
    assert "[line 1, col 5]" in str(exc.value)


def test_strict_dialect_rejects_quote_in_unquoted_field():
    with pytest.raises(ParseError) as exc:
        parse_text('ab"c\n', RFC4180)
    assert "Unexpected quote in unquoted field" in str(exc.value)


def test_lenient_dialect_keeps_stray_quotes_as_text():
    assert parse_text('ab"c,d\r\n', EXCEL) == [['ab"c', "d"]]
    assert parse_text('"ab"c,d\r\n', EXCEL) == [["abc", "d"]]


def test_excel_skips_whitespace_around_quotes():
    assert parse_text('  "a" ,b\r\n', EXCEL) == [["a", "b"]]
    # Whitespace before an unquoted value is content.
    assert parse_text("  a,b\r\n", EXCEL) == [["  a", "b"]]


def test_escape_character():
    assert parse_text(r'"a\"b",c\,d' + "\n", JSON_CSV) == [['a"b', "c,d"]]
    assert parse_text("x\\\\y\n", JSON_CSV) == [["x\\y"]]


def test_tsv_has_no_quoting():
    assert parse_text('"a"\tb\n', TSV) == [['"a"', "b"]]


def test_trim_unquoted_fields():
    d = Dialect(trim_unquoted_fields=True)
    assert parse_text(' a ,"  b  "\n', d) == [["a", "  b  "]]


def test_small_buffer_gives_same_result():
    text = '"x""y",z\r\n1,2\r\n'
    t = Tokenizer(io.StringIO(text), buffer_size=1)
    assert list(t) == [['x"y', "z"], ["1", "2"]]


@pytest.mark.parametrize("dialect", [RFC4180, EXCEL], ids=lambda d: d.name)
@pytest.mark.parametrize("text", ["a\r\nb\r\nc", "a\nb\nc", "a\rb\rc"])
def test_single_field_rows_under_every_newline_style(dialect, text):
    assert parse_text(text, dialect) == [["a"], ["b"], ["c"]]
