import pytest

from dialectcsv import (
    EXCEL,
    EXCEL_SEMICOLON,
    JSON_CSV,
    RFC4180,
    TSV,
    ConfigError,
    CsvConfig,
    Dialect,
    get_dialect,
    list_dialects,
)


def test_presets_match_their_table():
    assert (RFC4180.delimiter, RFC4180.quote_char, RFC4180.newline) == (",", '"', "\n")
    assert EXCEL.newline == "\r\n"
    assert EXCEL.skip_whitespace_around_quotes
    assert EXCEL_SEMICOLON.delimiter == ";"
    assert EXCEL_SEMICOLON.newline == "\r\n"
    assert TSV.delimiter == "\t" and TSV.quote_char is None
    assert JSON_CSV.escape_char == "\\"
    assert JSON_CSV.allow_unbalanced_quotes and JSON_CSV.allow_unescaped_quotes


def test_lenient_flag():
    assert not RFC4180.lenient
    assert EXCEL.lenient
    assert JSON_CSV.lenient
    assert Dialect(allow_unbalanced_quotes=True).lenient


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"newline": ""}, "newline must be a non-empty string"),
        ({"delimiter": ",,"}, "delimiter must be a single character"),
        ({"delimiter": "\n"}, "delimiter must not be CR or LF"),
        ({"quote_char": "\r"}, "quote_char must not be CR or LF"),
        ({"delimiter": '"'}, "delimiter and quote_char must differ"),
        ({"escape_char": ","}, "delimiter and escape_char must differ"),
        ({"escape_char": '"'}, "quote_char and escape_char must differ"),
    ],
)
def test_invalid_dialects_are_rejected(kwargs, message):
    with pytest.raises(ConfigError) as exc:
        Dialect(**kwargs)
    assert message in str(exc.value)


def test_copy_with_modification_revalidates():
    d = RFC4180.with_delimiter(";")
    assert d.delimiter == ";" and RFC4180.delimiter == ","
    assert RFC4180.with_newline("\r\n").newline == "\r\n"
    assert RFC4180.with_always_quote(True).always_quote
    assert RFC4180.with_quote_char(None).quote_char is None
    with pytest.raises(ConfigError):
        RFC4180.with_delimiter('"')


def test_dialects_are_hashable_values():
    assert Dialect(name="rfc4180") == RFC4180
    assert len({RFC4180, Dialect(name="rfc4180"), EXCEL}) == 2


@pytest.mark.parametrize("name", ["excel", "EXCEL", "excel-semicolon", "Excel_Semicolon", " tsv "])
def test_get_dialect_normalizes_names(name):
    assert get_dialect(name).name == name.strip().lower().replace("-", "_")


def test_get_dialect_unknown():
    with pytest.raises(ConfigError) as exc:
        get_dialect("pipes")
    assert "Unknown dialect" in str(exc.value)


def test_list_dialects():
    assert set(list_dialects()) == {"rfc4180", "rfc4180_windows", "excel", "excel_semicolon", "tsv", "json_csv"}


def test_config_defaults_and_validation():
    c = CsvConfig()
    assert c.dialect is RFC4180
    assert c.skip_empty_lines and c.write_bom
    assert not c.uniform_field_count
    assert CsvConfig(has_header=True).uniform_field_count
    assert CsvConfig(require_uniform_field_count=True).uniform_field_count

    with pytest.raises(ConfigError):
        CsvConfig(read_buffer_size=0)
    with pytest.raises(ConfigError) as exc:
        CsvConfig(charset="no-such-charset")
    assert "Unknown charset" in str(exc.value)
    with pytest.raises(ConfigError):
        CsvConfig(dialect="excel")


def test_config_helpers():
    c = CsvConfig.excel_defaults()
    assert c.dialect is EXCEL and c.has_header
    assert c.with_dialect(TSV).dialect is TSV
    assert CsvConfig().with_header().has_header
