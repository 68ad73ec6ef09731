"""
Byte-order-mark detection for file access.

Only Unicode charsets are inspected; a detected BOM is consumed and may
override the requested charset (a UTF-16 BOM on a file opened as UTF-8 wins).
"""

from __future__ import annotations

import codecs
import io
import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Optional, TextIO, Tuple, Union

from .errors import ConfigError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

# Longest first: the UTF-32-LE BOM starts with the UTF-16-LE one.
_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
)

# Encoding a BOM must be written with when the config charset is generic.
_BOM_FOR = {
    "utf-8": codecs.BOM_UTF8,
    "utf-16-be": codecs.BOM_UTF16_BE,
    "utf-16-le": codecs.BOM_UTF16_LE,
    "utf-32-be": codecs.BOM_UTF32_BE,
    "utf-32-le": codecs.BOM_UTF32_LE,
}

# Codecs that write a BOM of their own, and the BOM-less codec to write with instead.
_BOMLESS = {
    "utf-16": "utf-16-le",
    "utf-32": "utf-32-le",
    "utf-8-sig": "utf-8",
}


def canonical_charset(charset: str) -> str:
    try:
        return codecs.lookup(charset).name
    except LookupError:
        raise ConfigError(f"Unknown charset: {charset!r}") from None


def is_unicode(charset: str) -> bool:
    return canonical_charset(charset).startswith("utf")


@dataclass
class DetectedStream:
    stream: BinaryIO     # positioned after the BOM, if any
    charset: str         # charset to decode with
    bom: Optional[bytes] = None


def detect_bom(binary: BinaryIO, charset: str = "utf-8") -> DetectedStream:
    """
    Peek at the first bytes of ``binary`` and strip a BOM when present.

    The returned stream is buffered; read from it, not from ``binary``.
    """
    stream = binary if isinstance(binary, io.BufferedReader) else io.BufferedReader(binary)  # type: ignore[arg-type]
    if not is_unicode(charset):
        return DetectedStream(stream, charset)

    head = stream.peek(4)[:4]
    for bom, name in _BOMS:
        if head.startswith(bom):
            stream.read(len(bom))
            logger.debug("Detected %s BOM", name)
            return DetectedStream(stream, name, bom)
    # A plain "utf-16"/"utf-32" codec would look for its own BOM; keep the caller's choice.
    return DetectedStream(stream, charset)


def open_text(path: PathLike, charset: str = "utf-8") -> TextIO:
    """Open ``path`` for reading as text, honouring a leading BOM."""
    raw = open(path, "rb")
    try:
        detected = detect_bom(raw, charset)
    except BaseException:
        raw.close()
        raise
    return io.TextIOWrapper(detected.stream, encoding=detected.charset, newline="")


def _bomless(charset: str) -> str:
    """Fixed-endianness codec that never writes a BOM on its own."""
    return _BOMLESS.get(canonical_charset(charset), charset)


def bom_for(charset: str) -> Optional[bytes]:
    """BOM bytes to write for ``charset``, or None for non-Unicode charsets."""
    return _BOM_FOR.get(canonical_charset(_bomless(charset)))


def open_sink(path: PathLike, charset: str = "utf-8", *, write_bom: bool = True) -> TextIO:
    """
    Open ``path`` for writing as text, prefixed with a BOM when requested.

    Codecs that emit their own BOM ("utf-16", "utf-32", "utf-8-sig") are
    swapped for their little-endian or plain counterpart, so ``write_bom``
    alone decides whether the file starts with one.
    """
    encoding = _bomless(charset)
    raw = open(path, "wb")
    try:
        if write_bom:
            bom = bom_for(encoding)
            if bom is not None:
                raw.write(bom)
                logger.debug("Wrote %s BOM", canonical_charset(encoding))
    except BaseException:
        raw.close()
        raise
    return io.TextIOWrapper(raw, encoding=encoding, newline="")


__all__ = ["DetectedStream", "detect_bom", "open_text", "open_sink", "bom_for", "is_unicode"]
