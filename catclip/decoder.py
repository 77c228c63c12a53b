"""Byte-to-text decoding with BOM detection and a null-byte binary heuristic."""

from __future__ import annotations

import codecs
from typing import List, Optional, Tuple

from .config import ExtractionConfig
from .errors import BinaryFile, FileTooLarge, PermissionDenied
from .logging_utils import get_logger
from .models import FileReference

_LOGGER = get_logger(__name__)

BINARY_CHECK_SIZE = 8192

# UTF-32LE must precede UTF-16LE: FF FE 00 00 starts with FF FE.
BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

NULL_BYTE_ENCODINGS: Tuple[str, ...] = ("utf-16-le", "utf-16-be")
FALLBACK_ENCODINGS: Tuple[str, ...] = ("utf-8", "latin-1", "mac-roman", "cp1252")


def _try_decode(data: bytes, encoding: str) -> Optional[str]:
    try:
        return data.decode(encoding)
    except UnicodeDecodeError:
        return None


def detect_boms(data: bytes) -> List[Tuple[bytes, str]]:
    """Every BOM matching the head of ``data``, in priority order."""
    head = data[:4]
    return [(bom, encoding) for bom, encoding in BOMS if head.startswith(bom)]


def decode_text(data: bytes, name: str = "<stdin>") -> str:
    """Decode raw file bytes into text or raise ``BinaryFile``.

    Order: byte-order marker, then the null-byte scan over the first 8 KiB
    (only BOM-less UTF-16 may contain NULs), then UTF-8, Latin-1, Mac Roman
    and CP1252.
    """
    if not data:
        return ""

    for bom, encoding in detect_boms(data):
        text = _try_decode(data[len(bom):], encoding)
        if text is not None:
            _LOGGER.debug("Decoded %s with BOM encoding %s", name, encoding)
            return text

    if b"\x00" in data[:BINARY_CHECK_SIZE]:
        for encoding in NULL_BYTE_ENCODINGS:
            text = _try_decode(data, encoding)
            if text is not None:
                _LOGGER.debug("Decoded %s as BOM-less %s", name, encoding)
                return text
        raise BinaryFile(name)

    for encoding in FALLBACK_ENCODINGS:
        text = _try_decode(data, encoding)
        if text is not None:
            _LOGGER.debug("Decoded %s with encoding %s", name, encoding)
            return text

    raise BinaryFile(name)


def read_text_file(ref: FileReference, config: ExtractionConfig) -> str:
    """Read at most the input ceiling from ``ref`` and decode it."""
    limit = config.max_input_bytes
    try:
        with ref.resolved_path.open("rb") as f:
            data = f.read(limit + 1)
    except PermissionError as exc:
        raise PermissionDenied(ref.path) from exc

    # the file may have grown since it was validated
    if len(data) > limit:
        raise FileTooLarge(ref.path, len(data))

    return decode_text(data, ref.display_name)


__all__ = ["BINARY_CHECK_SIZE", "decode_text", "detect_boms", "read_text_file"]
