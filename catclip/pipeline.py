"""Single entry point: file reference in, text (with warnings) out."""

from __future__ import annotations

from typing import Optional

from .classifier import MimeSniffer, PathInput, classify, sniff_mime
from .config import ExtractionConfig, load_config
from .decoder import read_text_file
from .documents import DocumentOpener, PdfDocument
from .extractor import DocumentTextExtractor
from .logging_utils import get_logger
from .models import ContentCategory, ExtractionResult
from .ocr import TextRecognizer
from .recognition import RecognitionEngine

_LOGGER = get_logger(__name__)


class ExtractionPipeline:
    """Classify a file and route it to the matching extraction strategy.

    The pipeline holds configuration and collaborators only; no state is
    carried from one ``extract`` call to the next.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        recognizer: Optional[TextRecognizer] = None,
        sniff: MimeSniffer = sniff_mime,
        open_document: Optional[DocumentOpener] = None,
    ) -> None:
        self.config = config or load_config()
        self._sniff = sniff
        opener = open_document or PdfDocument.open
        self.engine = RecognitionEngine(self.config, recognizer, opener)
        self.documents = DocumentTextExtractor(self.config, self.engine, opener)

    def extract(self, reference: PathInput) -> ExtractionResult:
        ref, category = classify(reference, self.config, sniff=self._sniff)

        if category is ContentCategory.TEXT:
            return ExtractionResult(text=read_text_file(ref, self.config))
        elif category is ContentCategory.PAGINATED_DOCUMENT:
            return self.documents.extract(ref)
        elif category is ContentCategory.IMAGE:
            _LOGGER.info("[OCR] Recognizing image %s", ref.display_name)
            return self.engine.recognize_image(ref)
        raise ValueError(f"Unhandled content category: {category!r}")


def extract_file(
    reference: PathInput,
    config: Optional[ExtractionConfig] = None,
    recognizer: Optional[TextRecognizer] = None,
) -> ExtractionResult:
    return ExtractionPipeline(config, recognizer).extract(reference)


__all__ = ["ExtractionPipeline", "extract_file"]
