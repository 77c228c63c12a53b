"""Typed failures raised by the extraction pipeline and the clipboard sink."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathArg = Union[str, Path, None]

DISPLAY_LIMIT = 100


def _name(path: PathArg) -> str:
    if path is None:
        return ""
    return Path(path).name or str(path)


def _mb(size: int) -> int:
    return size // 1024 // 1024


class CatclipError(Exception):
    """Base class for every fatal condition surfaced to callers."""

    def __init__(self, message: str, path: PathArg = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        return self.message


# -- input validation -------------------------------------------------------


class InputError(CatclipError):
    pass


class FileNotFound(InputError):
    def __init__(self, path: PathArg) -> None:
        super().__init__(f"File not found: {_name(path)}", path)


class IsDirectory(InputError):
    def __init__(self, path: PathArg) -> None:
        super().__init__(f"Cannot copy directory: {_name(path)}", path)


class PermissionDenied(InputError):
    def __init__(self, path: PathArg) -> None:
        super().__init__(f"Permission denied: {_name(path)}", path)


class NotLocalFile(InputError):
    def __init__(self, reference: str) -> None:
        super().__init__(f"Not a local file: {reference}")
        self.reference = reference


class FileTooLarge(InputError):
    def __init__(self, path: PathArg, size: int) -> None:
        super().__init__(f"File too large ({_mb(size)}MB): {_name(path)}", path)
        self.size = size


# -- decoding -----------------------------------------------------------------


class BinaryFile(CatclipError):
    def __init__(self, path: PathArg) -> None:
        super().__init__(f"Binary file: {_name(path)}", path)


# -- document level extraction ----------------------------------------------------


class ExtractionFailed(CatclipError):
    """Document-level failure; ``reason`` is the short cause without the file name."""

    def __init__(self, path: PathArg, reason: str, message: Optional[str] = None) -> None:
        super().__init__(message or reason, path)
        self.reason = reason


class ImageTooLarge(ExtractionFailed):
    def __init__(self, path: PathArg, width: int, height: int) -> None:
        mpx = (width * height) // 1_000_000
        super().__init__(
            path, "image too large", f"Image too large ({mpx}MP): {_name(path)}"
        )
        self.width = width
        self.height = height


class RecognitionTimeout(ExtractionFailed):
    def __init__(self, path: PathArg = None, timeout_s: Optional[float] = None) -> None:
        super().__init__(path, "recognition timed out", f"OCR timed out: {_name(path)}")
        self.timeout_s = timeout_s


# -- output delivery ------------------------------------------------------------


class OutputError(CatclipError):
    pass


class OutputTooLarge(OutputError):
    def __init__(self, size: int) -> None:
        super().__init__(f"Output too large ({_mb(size)}MB) for clipboard")
        self.size = size


class ClipboardWriteError(OutputError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Clipboard error: {detail}")


class ClipboardContextError(OutputError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} must be called from the clipboard owner thread")


def truncate_message(message: str, limit: int = DISPLAY_LIMIT) -> str:
    """Cap a message for notifications and terminal display."""
    if len(message) <= limit:
        return message
    return message[: limit - 3] + "..."


__all__ = [
    "BinaryFile",
    "CatclipError",
    "ClipboardContextError",
    "ClipboardWriteError",
    "ExtractionFailed",
    "FileNotFound",
    "FileTooLarge",
    "ImageTooLarge",
    "InputError",
    "IsDirectory",
    "NotLocalFile",
    "OutputError",
    "OutputTooLarge",
    "PermissionDenied",
    "RecognitionTimeout",
    "truncate_message",
]
