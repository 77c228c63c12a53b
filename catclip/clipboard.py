"""Clipboard delivery through a single owning thread."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Protocol, Tuple, TypeVar

import pyperclip

from .config import MIB
from .errors import CatclipError, ClipboardContextError, ClipboardWriteError, OutputTooLarge
from .logging_utils import get_logger

_LOGGER = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_OUTPUT_BYTES = 100 * MIB


class ClipboardBackend(Protocol):
    def copy(self, text: str) -> None: ...

    def paste(self) -> str: ...


class PyperclipBackend:
    """System clipboard via pyperclip."""

    def copy(self, text: str) -> None:
        pyperclip.copy(text)

    def paste(self) -> str:
        return pyperclip.paste()


class MemoryBackend:
    """In-process clipboard for tests and headless runs."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.writes = 0

    def copy(self, text: str) -> None:
        self.text = text
        self.writes += 1

    def paste(self) -> str:
        return self.text


class ClipboardSink:
    """Serializes every clipboard access onto one dedicated thread.

    ``write_sync`` may only run on that thread; ``write_async`` and ``copy``
    are safe from anywhere and marshal the write onto it. The output ceiling
    is enforced before the backend is touched.
    """

    def __init__(
        self,
        backend: Optional[ClipboardBackend] = None,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self.backend = backend if backend is not None else PyperclipBackend()
        self.max_output_bytes = max_output_bytes
        self._owner_ident: Optional[int] = None
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="catclip-clipboard",
            initializer=self._bind_owner,
        )

    def _bind_owner(self) -> None:
        self._owner_ident = threading.get_ident()

    def __enter__(self) -> "ClipboardSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def on_owner_thread(self) -> bool:
        return self._owner_ident is not None and threading.get_ident() == self._owner_ident

    def call_on_owner(self, fn: Callable[..., T], *args) -> "Future[T]":
        """Schedule ``fn(*args)`` on the owning thread."""
        return self._executor.submit(fn, *args)

    def check_size(self, text: str) -> int:
        size = len(text.encode("utf-8"))
        if size > self.max_output_bytes:
            _LOGGER.error(
                "[CLIP] Output too large: %d bytes (cap %d)", size, self.max_output_bytes
            )
            raise OutputTooLarge(size)
        return size

    def _write(self, text: str, size: int) -> Tuple[bool, Optional[str]]:
        """Backend write on the owning thread; the size is already checked."""
        try:
            self.backend.copy(text)
        except (pyperclip.PyperclipException, OSError) as exc:
            detail = str(exc) or exc.__class__.__name__
            _LOGGER.error("[CLIP] Clipboard write failed: %s", detail)
            return False, detail
        _LOGGER.debug("[CLIP] Wrote %d bytes", size)
        return True, None

    def _write_flag(self, text: str, size: int) -> bool:
        return self._write(text, size)[0]

    def write_sync(self, text: str) -> bool:
        if not self.on_owner_thread():
            raise ClipboardContextError("write_sync")
        return self._write_flag(text, self.check_size(text))

    def write_async(
        self, text: str, completion: Optional[Callable[[bool], None]] = None
    ) -> "Future[bool]":
        size = self.check_size(text)
        future = self._executor.submit(self._write_flag, text, size)
        if completion is not None:

            def _done(f: "Future[bool]") -> None:
                ok = not f.cancelled() and f.exception() is None and bool(f.result())
                completion(ok)

            future.add_done_callback(_done)
        return future

    def copy(self, text: str) -> int:
        """Write ``text`` and wait for it; returns the UTF-8 byte count.

        Any backend failure surfaces as ``ClipboardWriteError``.
        """
        size = self.check_size(text)
        try:
            ok, detail = self._executor.submit(self._write, text, size).result()
        except CatclipError:
            raise
        except Exception as exc:
            _LOGGER.error("[CLIP] Clipboard write failed: %s", exc)
            raise ClipboardWriteError(str(exc) or exc.__class__.__name__) from exc
        if not ok:
            raise ClipboardWriteError(detail or "write failed")
        return size

    def _read(self) -> Optional[str]:
        try:
            return self.backend.paste()
        except (pyperclip.PyperclipException, OSError) as exc:
            _LOGGER.error("[CLIP] Clipboard read failed: %s", exc)
            return None

    def read_text(self) -> Optional[str]:
        if self.on_owner_thread():
            return self._read()
        return self._executor.submit(self._read).result()


__all__ = [
    "ClipboardBackend",
    "ClipboardSink",
    "MemoryBackend",
    "PyperclipBackend",
]
