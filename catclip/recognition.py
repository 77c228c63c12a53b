"""Bounded, timed text recognition over images and rendered document pages."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, List, Optional, TypeVar

from .config import ExtractionConfig
from .documents import DocumentOpener, PageAccessError, PageRenderError, PdfDocument
from .errors import ExtractionFailed, RecognitionTimeout
from .imaging import load_image
from .logging_utils import get_logger
from .models import ExtractionResult, FileReference, PageWarning, WarningReason
from .ocr import PaddleTextRecognizer, TextRecognizer

_LOGGER = get_logger(__name__)

T = TypeVar("T")

PAGE_SEPARATOR = "══════════ Page {} ══════════"


def run_with_deadline(
    fn: Callable[[], T],
    timeout_s: float,
    *,
    path=None,
    thread_name: str = "catclip-ocr",
) -> T:
    """Run ``fn`` on a fresh daemon thread and wait at most ``timeout_s`` for it.

    On expiry ``RecognitionTimeout`` is raised and the worker is left running;
    whatever it eventually produces is stored in its own future, which nothing
    reads any more.
    """
    future: "Future[T]" = Future()

    def _runner() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn()
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    worker = threading.Thread(target=_runner, name=thread_name, daemon=True)
    worker.start()
    try:
        return future.result(timeout=timeout_s)
    except FutureTimeout as exc:
        if future.done():
            # fn itself raised TimeoutError, or finished right at the deadline
            return future.result()
        raise RecognitionTimeout(path, timeout_s) from exc


class _Accumulator:
    """Per-call output buffer; only the orchestrating thread touches it."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.warnings: List[PageWarning] = []

    def add_unit(self, unit_index: int, lines: List[str]) -> None:
        if unit_index > 1 and self.lines:
            self.lines.extend(["", PAGE_SEPARATOR.format(unit_index), ""])
        self.lines.extend(lines)

    def fail(self, unit_index: int, reason: WarningReason) -> None:
        self.warnings.append(PageWarning(unit_index, reason))

    def text(self) -> str:
        return "\n".join(self.lines).strip()


def format_warnings(
    warnings: List[PageWarning], processed: Optional[int] = None, total: Optional[int] = None
) -> str:
    """Trailing warning block for failed units and, when given, truncation."""
    block = ""
    if warnings:
        pages = ", ".join(str(w.page_index) for w in warnings)
        block += f"\n\n[Warning: Failed to process pages: {pages}]"
    if processed is not None and total is not None and total > processed:
        block += f"\n\n[Warning: Document truncated. Processed {processed} of {total} pages]"
    return block


class RecognitionEngine:
    """Runs the text recognizer over one image or the pages of one document.

    Each unit is recognized under ``config.recognition_timeout_s``. Failures of
    a single unit are recorded as ``PageWarning`` entries; only an entirely
    empty output is fatal.
    """

    def __init__(
        self,
        config: ExtractionConfig,
        recognizer: Optional[TextRecognizer] = None,
        open_document: Optional[DocumentOpener] = None,
    ) -> None:
        self.config = config
        self._recognizer = recognizer
        self._open_document = open_document or PdfDocument.open

    @property
    def recognizer(self) -> TextRecognizer:
        if self._recognizer is None:
            self._recognizer = PaddleTextRecognizer.from_config(self.config)
        return self._recognizer

    def _recognize(self, image, ref: FileReference, unit_index: int) -> List[str]:
        """Recognize ``image`` under the deadline; the worker owns and closes it."""
        recognizer = self.recognizer

        def _work() -> List[str]:
            try:
                return recognizer.recognize(image)
            finally:
                image.close()

        return run_with_deadline(
            _work,
            self.config.recognition_timeout_s,
            path=ref.path,
            thread_name=f"catclip-ocr-{ref.display_name}-{unit_index}",
        )

    def _run_unit(self, acc: _Accumulator, ref: FileReference, unit_index: int, image) -> None:
        try:
            lines = self._recognize(image, ref, unit_index)
        except RecognitionTimeout:
            _LOGGER.error(
                "[OCR] Recognition timed out for %s unit %d after %.0fs",
                ref.display_name,
                unit_index,
                self.config.recognition_timeout_s,
            )
            acc.fail(unit_index, WarningReason.RECOGNITION_TIMED_OUT)
            return
        except Exception as exc:
            _LOGGER.error(
                "[OCR] Recognition failed for %s unit %d: %s", ref.display_name, unit_index, exc
            )
            acc.fail(unit_index, WarningReason.RECOGNITION_FAILED)
            return
        acc.add_unit(unit_index, list(lines))

    def recognize_image(self, ref: FileReference) -> ExtractionResult:
        """Recognize a single raster image (one unit)."""
        image = load_image(ref, self.config.max_image_pixels)
        acc = _Accumulator()
        self._run_unit(acc, ref, 1, image)

        text = acc.text()
        if not text:
            if any(w.reason is WarningReason.RECOGNITION_TIMED_OUT for w in acc.warnings):
                raise RecognitionTimeout(ref.path, self.config.recognition_timeout_s)
            raise ExtractionFailed(
                ref.path, "no text recognized", f"No text recognized in {ref.display_name}"
            )
        return ExtractionResult(
            text=text + format_warnings(acc.warnings), warnings=tuple(acc.warnings)
        )

    def recognize_document(self, ref: FileReference) -> ExtractionResult:
        """Render and recognize pages ``1..min(page_count, max_pages)`` in order."""
        cfg = self.config
        with self._open_document(ref) as doc:
            total = doc.page_count
            if total == 0:
                raise ExtractionFailed(
                    ref.path, "no pages", f"PDF has no pages: {ref.display_name}"
                )
            limit = min(total, cfg.max_pages)
            if total > cfg.max_pages:
                _LOGGER.info(
                    "[PDF] %s has %d pages, limiting to %d", ref.display_name, total, limit
                )

            acc = _Accumulator()
            for page_num in range(1, limit + 1):
                try:
                    image = doc.render_page(
                        page_num, dpi=cfg.render_dpi, max_pixels=cfg.max_image_pixels
                    )
                except PageAccessError as exc:
                    _LOGGER.error("[PDF] %s: %s", ref.display_name, exc)
                    acc.fail(page_num, WarningReason.ACCESS_FAILED)
                    continue
                except PageRenderError as exc:
                    _LOGGER.error("[PDF] %s: %s", ref.display_name, exc)
                    acc.fail(page_num, WarningReason.RENDER_FAILED)
                    continue
                self._run_unit(acc, ref, page_num, image)

        text = acc.text()
        if not text:
            raise ExtractionFailed(
                ref.path, "no text recognized", f"No text recognized in {ref.display_name}"
            )
        if acc.warnings:
            _LOGGER.error(
                "[OCR] Failed to process %d pages of %s", len(acc.warnings), ref.display_name
            )
        return ExtractionResult(
            text=text + format_warnings(acc.warnings, limit, total),
            warnings=tuple(acc.warnings),
            truncated=total > limit,
        )


__all__ = [
    "PAGE_SEPARATOR",
    "RecognitionEngine",
    "format_warnings",
    "run_with_deadline",
]
