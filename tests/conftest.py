import pytest

from catclip.clipboard import ClipboardSink, MemoryBackend
from catclip.config import MIB, ExtractionConfig
from helpers import FakeRecognizer


@pytest.fixture
def config():
    return ExtractionConfig(
        max_input_bytes=2 * MIB,
        max_output_bytes=1 * MIB,
        render_dpi=72,
        max_pages=5,
        max_image_pixels=4_000_000,
        recognition_timeout_s=2.0,
    )


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def sink(memory_backend):
    s = ClipboardSink(memory_backend, max_output_bytes=1 * MIB)
    yield s
    s.close()
