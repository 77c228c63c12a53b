"""Copy file contents to the clipboard: text decoding, PDF text extraction and OCR."""

from .clipboard import ClipboardSink
from .config import ExtractionConfig, load_config
from .errors import CatclipError
from .models import ContentCategory, ExtractionResult, PageWarning, WarningReason
from .pipeline import ExtractionPipeline, extract_file

__version__ = "0.3.0"

__all__ = [
    "CatclipError",
    "ClipboardSink",
    "ContentCategory",
    "ExtractionConfig",
    "ExtractionPipeline",
    "ExtractionResult",
    "PageWarning",
    "WarningReason",
    "extract_file",
    "load_config",
]
