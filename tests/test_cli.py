import io
import json

import pytest

from catclip import cli
from catclip.clipboard import ClipboardSink, MemoryBackend
from catclip.pipeline import ExtractionPipeline
from helpers import FakeRecognizer, make_scanned_pdf, no_sniff


@pytest.fixture
def pipeline(config):
    return ExtractionPipeline(config, FakeRecognizer(default=["ocr line"]), sniff=no_sniff)


def _run(argv, pipeline, sink):
    return cli.main(argv, pipeline=pipeline, sink=sink)


def test_copies_single_file(tmp_path, pipeline, sink, memory_backend, capsys):
    path = tmp_path / "hello.txt"
    path.write_text("hello", encoding="utf-8")
    assert _run([str(path)], pipeline, sink) == 0
    assert memory_backend.text == "hello"
    assert f"Copied 5 bytes from {path} to clipboard" in capsys.readouterr().err


def test_joins_multiple_files(tmp_path, pipeline, sink, memory_backend, capsys):
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    first.write_text("one", encoding="utf-8")
    second.write_text("two", encoding="utf-8")
    assert _run([str(first), str(second)], pipeline, sink) == 0
    assert memory_backend.text == "one\ntwo"
    assert "Copied 7 bytes from 2 files to clipboard" in capsys.readouterr().err


def test_reads_stdin(monkeypatch, pipeline, sink, memory_backend, capsys):
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO("piped ü".encode("utf-8"))))
    assert _run(["-"], pipeline, sink) == 0
    assert memory_backend.text == "piped ü"
    assert "from stdin to clipboard" in capsys.readouterr().err


def test_quiet_suppresses_summary(tmp_path, pipeline, sink, capsys):
    path = tmp_path / "hello.txt"
    path.write_text("hello", encoding="utf-8")
    assert _run(["-q", str(path)], pipeline, sink) == 0
    assert capsys.readouterr().err == ""


def test_error_exit_status(tmp_path, pipeline, sink, memory_backend, capsys):
    assert _run([str(tmp_path / "nope.txt")], pipeline, sink) == 1
    assert "Error: File not found: nope.txt" in capsys.readouterr().err
    assert memory_backend.writes == 0


def test_error_message_is_capped(tmp_path, pipeline, sink, capsys):
    name = "n" * 150 + ".txt"
    assert _run([str(tmp_path / name)], pipeline, sink) == 1
    line = capsys.readouterr().err.strip().splitlines()[-1]
    assert line.startswith("Error: File not found: ")
    assert len(line) == len("Error: ") + 100


def test_json_payload_with_warnings(tmp_path, config, sink, capsys):
    path = make_scanned_pdf(tmp_path / "scan.pdf", [(40, 40)] * 3)
    pipeline = ExtractionPipeline(
        config, FakeRecognizer([["p1"], RuntimeError("boom"), ["p3"]]), sniff=no_sniff
    )
    assert _run(["--json", "-q", str(path)], pipeline, sink) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["success"] is True
    assert payload["warnings"] == [
        {"file": str(path), "page": 2, "reason": "recognition_failed"}
    ]
    assert payload["truncated"] is False
    assert payload["text"].endswith("[Warning: Failed to process pages: 2]")


def test_json_failure(tmp_path, pipeline, sink, capsys):
    assert _run(["--json", str(tmp_path / "gone.txt")], pipeline, sink) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"success": False, "error": "File not found: gone.txt"}


def test_no_clipboard_prints_text(tmp_path, pipeline, capsys):
    path = tmp_path / "hello.txt"
    path.write_text("hello", encoding="utf-8")
    backend = MemoryBackend()
    with ClipboardSink(backend) as unused:
        assert _run(["--no-clipboard", str(path)], pipeline, unused) == 0
    assert capsys.readouterr().out == "hello\n"
    assert backend.writes == 0


def test_output_ceiling(tmp_path, pipeline, capsys):
    path = tmp_path / "hello.txt"
    path.write_text("hello world", encoding="utf-8")
    backend = MemoryBackend()
    with ClipboardSink(backend, max_output_bytes=4) as small:
        assert _run([str(path)], pipeline, small) == 1
    assert "Output too large" in capsys.readouterr().err
    assert backend.writes == 0


def test_requires_a_file(capsys):
    with pytest.raises(SystemExit):
        cli.main([])


def test_malformed_environment_falls_back(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("CATCLIP_OCR_PROFILE", "turbo")
    monkeypatch.setenv("CATCLIP_MAX_PAGES", "inf")
    monkeypatch.setenv("CATCLIP_MAX_INPUT_MB", "inf")
    monkeypatch.setenv("CATCLIP_RENDER_DPI", "0")
    path = tmp_path / "hello.txt"
    path.write_text("hello", encoding="utf-8")
    assert cli.main(["--no-clipboard", str(path)]) == 0
    assert capsys.readouterr().out == "hello\n"


class _CrashingBackend(MemoryBackend):
    def copy(self, text):
        raise RuntimeError("display went away")


def test_backend_crash_reports_clipboard_error(tmp_path, pipeline, capsys):
    path = tmp_path / "hello.txt"
    path.write_text("hello", encoding="utf-8")
    with ClipboardSink(_CrashingBackend()) as broken:
        assert _run([str(path)], pipeline, broken) == 1
    assert "Error: Clipboard error: display went away" in capsys.readouterr().err
