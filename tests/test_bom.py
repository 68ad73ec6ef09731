import codecs
import io

import pytest

from dialectcsv import CsvConfig, CsvReader, detect_bom, open_text


@pytest.mark.parametrize(
    "payload, charset",
    [
        (codecs.BOM_UTF8 + "a,b".encode("utf-8"), "utf-8"),
        (codecs.BOM_UTF16_LE + "a,b".encode("utf-16-le"), "utf-16-le"),
        (codecs.BOM_UTF16_BE + "a,b".encode("utf-16-be"), "utf-16-be"),
        (codecs.BOM_UTF32_LE + "a,b".encode("utf-32-le"), "utf-32-le"),
        (codecs.BOM_UTF32_BE + "a,b".encode("utf-32-be"), "utf-32-be"),
    ],
)
def test_detect_bom(payload, charset):
    detected = detect_bom(io.BytesIO(payload), "utf-8")
    assert detected.charset == charset
    assert detected.stream.read().decode(charset) == "a,b"


def test_no_bom_keeps_requested_charset():
    detected = detect_bom(io.BytesIO(b"a,b"), "utf-8")
    assert detected.charset == "utf-8"
    assert detected.bom is None
    assert detected.stream.read() == b"a,b"


def test_non_unicode_charsets_are_not_inspected():
    payload = codecs.BOM_UTF8 + b"x"
    detected = detect_bom(io.BytesIO(payload), "latin-1")
    assert detected.charset == "latin-1"
    assert detected.stream.read() == payload


def test_open_text_and_reader_on_utf16_file(tmp_path):
    path = tmp_path / "wide.csv"
    path.write_bytes(codecs.BOM_UTF16_LE + "id,name\n1,Zoë\n".encode("utf-16-le"))
    with open_text(path) as f:
        assert f.read() == "id,name\n1,Zoë\n"
    with CsvReader.from_path(path, CsvConfig(has_header=True)) as r:
        assert r.read_row()["name"] == "Zoë"
