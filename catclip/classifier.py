"""Validate a file reference and decide which extraction strategy handles it."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional, Tuple, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

from .config import ExtractionConfig
from .errors import FileNotFound, FileTooLarge, IsDirectory, NotLocalFile, PermissionDenied
from .logging_utils import get_logger
from .models import ContentCategory, FileReference

_LOGGER = get_logger(__name__)

PathInput = Union[str, "os.PathLike[str]"]
MimeSniffer = Callable[[Path], Optional[str]]

PDF_EXTENSIONS = frozenset({"pdf"})
IMAGE_EXTENSIONS = frozenset(
    {"png", "jpg", "jpeg", "tiff", "tif", "gif", "bmp", "webp", "heic", "heif"}
)

PDF_MIME_TYPES = frozenset({"application/pdf", "application/x-pdf"})
IMAGE_MIME_TYPES = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/tiff",
        "image/gif",
        "image/bmp",
        "image/x-ms-bmp",
        "image/webp",
        "image/heic",
        "image/heif",
    }
)
TEXT_MIME_TYPES = frozenset(
    {
        "application/json",
        "application/xml",
        "application/javascript",
        "application/x-sh",
        "application/x-shellscript",
        "inode/x-empty",
    }
)


def sniff_mime(path: Path) -> Optional[str]:
    """Return the libmagic MIME type of ``path``, or None when unavailable."""
    try:
        import magic
    except ImportError:
        _LOGGER.debug("libmagic not available, using extension table")
        return None
    try:
        return magic.from_file(str(path), mime=True)
    except (OSError, magic.MagicException) as exc:
        _LOGGER.debug("Signature lookup failed for %s: %s", path.name, exc)
        return None


def category_from_mime(mime: Optional[str]) -> Optional[ContentCategory]:
    if not mime:
        return None
    mime = mime.split(";", 1)[0].strip().lower()
    if mime in PDF_MIME_TYPES:
        return ContentCategory.PAGINATED_DOCUMENT
    if mime in IMAGE_MIME_TYPES:
        return ContentCategory.IMAGE
    if mime.startswith("text/") or mime in TEXT_MIME_TYPES:
        return ContentCategory.TEXT
    return None


def category_from_extension(path: Path) -> ContentCategory:
    ext = path.suffix.lower().lstrip(".")
    if ext in PDF_EXTENSIONS:
        return ContentCategory.PAGINATED_DOCUMENT
    if ext in IMAGE_EXTENSIONS:
        return ContentCategory.IMAGE
    return ContentCategory.TEXT


def to_local_path(reference: PathInput) -> Path:
    """Turn a path or ``file://`` URI into an absolute local path."""
    if isinstance(reference, os.PathLike):
        return Path(os.path.abspath(os.fspath(reference)))

    text = str(reference)
    if "://" in text or text.lower().startswith("file:"):
        parts = urlsplit(text)
        scheme = parts.scheme.lower()
        # single letters are Windows drive letters, not schemes
        if len(scheme) > 1:
            if scheme != "file" or parts.netloc not in ("", "localhost"):
                raise NotLocalFile(text)
            text = url2pathname(parts.path)
    return Path(os.path.abspath(text))


def validate(reference: PathInput, config: ExtractionConfig) -> FileReference:
    path = to_local_path(reference)

    if not os.path.lexists(path):
        raise FileNotFound(path)
    if path.is_symlink() and not path.exists():
        # dangling link: the final target is gone
        raise FileNotFound(path)
    if path.is_dir():
        raise IsDirectory(path)
    if not os.access(path, os.R_OK):
        raise PermissionDenied(path)

    try:
        size = path.stat().st_size
    except PermissionError as exc:
        raise PermissionDenied(path) from exc
    except FileNotFoundError as exc:
        raise FileNotFound(path) from exc

    if size > config.max_input_bytes:
        raise FileTooLarge(path, size)

    return FileReference(path=path, resolved_path=path.resolve(), size=size)


def classify(
    reference: PathInput,
    config: ExtractionConfig,
    sniff: MimeSniffer = sniff_mime,
) -> Tuple[FileReference, ContentCategory]:
    """Validate ``reference`` and return it with its content category.

    The signature (MIME type) wins when it maps to a known category; the
    extension table keeps the decision total when it does not.
    """
    ref = validate(reference, config)

    mime = sniff(ref.resolved_path)
    category = category_from_mime(mime)
    source = "signature"
    if category is None:
        category = category_from_extension(ref.path)
        source = "extension"

    _LOGGER.info(
        "Classified %s as %s (%s, mime=%s, %d bytes)",
        ref.display_name,
        category.value,
        source,
        mime or "-",
        ref.size,
    )
    return ref, category


__all__ = [
    "IMAGE_EXTENSIONS",
    "category_from_extension",
    "category_from_mime",
    "classify",
    "sniff_mime",
    "to_local_path",
    "validate",
]
