"""Embedded-text extraction for paginated documents, escalating to recognition."""

from __future__ import annotations

from typing import List, Optional

from .config import ExtractionConfig
from .documents import DocumentOpener, PageAccessError, PdfDocument
from .errors import ExtractionFailed
from .logging_utils import get_logger
from .models import ExtractionResult, FileReference, PageWarning, WarningReason
from .recognition import RecognitionEngine, format_warnings

_LOGGER = get_logger(__name__)


class DocumentTextExtractor:
    def __init__(
        self,
        config: ExtractionConfig,
        engine: RecognitionEngine,
        open_document: Optional[DocumentOpener] = None,
    ) -> None:
        self.config = config
        self.engine = engine
        self._open_document = open_document or PdfDocument.open

    def extract(self, ref: FileReference) -> ExtractionResult:
        """Return the document's embedded text, or its recognized text if it has none.

        Pages are joined with a single newline. A page whose text layer cannot
        be read contributes nothing and is reported as ``ACCESS_FAILED``.
        """
        parts: List[str] = []
        warnings: List[PageWarning] = []

        with self._open_document(ref) as doc:
            total = doc.page_count
            if total == 0:
                raise ExtractionFailed(
                    ref.path, "no pages", f"PDF has no pages: {ref.display_name}"
                )
            for page_num in range(1, total + 1):
                try:
                    parts.append(doc.page_text(page_num))
                except PageAccessError as exc:
                    _LOGGER.error("[PDF] %s: %s", ref.display_name, exc)
                    warnings.append(PageWarning(page_num, WarningReason.ACCESS_FAILED))

        text = "\n".join(parts)
        if not text.strip():
            _LOGGER.info(
                "[PDF] No embedded text in %s, falling back to OCR", ref.display_name
            )
            return self.engine.recognize_document(ref)

        _LOGGER.info("[PDF] Extracted embedded text from %s (%d chars)", ref.display_name, len(text))
        return ExtractionResult(
            text=text + format_warnings(warnings), warnings=tuple(warnings)
        )


__all__ = ["DocumentTextExtractor"]
