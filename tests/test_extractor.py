from unittest.mock import MagicMock

import pytest

from catclip.documents import PageAccessError
from catclip.errors import ExtractionFailed
from catclip.extractor import DocumentTextExtractor
from catclip.models import ExtractionResult, FileReference, PageWarning, WarningReason
from catclip.recognition import RecognitionEngine
from helpers import FakeRecognizer, make_scanned_pdf, make_text_pdf


def _ref(path):
    return FileReference(path=path, resolved_path=path.resolve(), size=path.stat().st_size)


class _TextDocument:
    def __init__(self, pages):
        self.pages = pages

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return None

    @property
    def page_count(self):
        return len(self.pages)

    def page_text(self, page_num):
        text = self.pages[page_num - 1]
        if isinstance(text, Exception):
            raise text
        return text


def test_embedded_text_never_reaches_recognition(tmp_path, config):
    path = make_text_pdf(tmp_path / "report.pdf", ["Quarterly report", "Page two body"])
    recognizer = FakeRecognizer()
    extractor = DocumentTextExtractor(config, RecognitionEngine(config, recognizer))
    result = extractor.extract(_ref(path))
    assert "Quarterly report" in result.text
    assert "Page two body" in result.text
    assert result.text.index("Quarterly report") < result.text.index("Page two body")
    assert recognizer.calls == 0
    assert result.warnings == ()


def test_scanned_document_escalates_to_recognition(tmp_path, config):
    path = make_scanned_pdf(tmp_path / "scan.pdf", [(80, 80), (80, 80)])
    recognizer = FakeRecognizer([["first"], ["second"]])
    extractor = DocumentTextExtractor(config, RecognitionEngine(config, recognizer))
    result = extractor.extract(_ref(path))
    assert recognizer.calls == 2
    assert result.text.startswith("first\n\n")
    assert result.text.endswith("\n\nsecond")


def test_pages_joined_with_single_newline(tmp_path, config):
    document = _TextDocument(["a\n", "b"])
    extractor = DocumentTextExtractor(
        config, MagicMock(spec=RecognitionEngine), open_document=lambda _ref: document
    )
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF")
    assert extractor.extract(_ref(path)).text == "a\n\nb"


def test_unreadable_page_is_reported(tmp_path, config):
    document = _TextDocument(["one", PageAccessError("bad text layer"), "three"])
    extractor = DocumentTextExtractor(
        config, MagicMock(spec=RecognitionEngine), open_document=lambda _ref: document
    )
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF")
    result = extractor.extract(_ref(path))
    assert result.text == "one\nthree\n\n[Warning: Failed to process pages: 2]"
    assert result.warnings == (PageWarning(2, WarningReason.ACCESS_FAILED),)


def test_whitespace_only_text_escalates(tmp_path, config):
    document = _TextDocument([" \n", "\t"])
    engine = MagicMock(spec=RecognitionEngine)
    engine.recognize_document.return_value = ExtractionResult(text="ocr text")
    extractor = DocumentTextExtractor(config, engine, open_document=lambda _ref: document)
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF")
    ref = _ref(path)
    assert extractor.extract(ref).text == "ocr text"
    engine.recognize_document.assert_called_once_with(ref)


def test_zero_pages(tmp_path, config):
    path = tmp_path / "empty.pdf"
    path.write_bytes(b"%PDF")
    extractor = DocumentTextExtractor(
        config, MagicMock(spec=RecognitionEngine), open_document=lambda _ref: _TextDocument([])
    )
    with pytest.raises(ExtractionFailed) as excinfo:
        extractor.extract(_ref(path))
    assert str(excinfo.value) == "PDF has no pages: empty.pdf"
