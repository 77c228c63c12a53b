import threading
from pathlib import Path
from typing import List, Sequence

from PIL import Image, ImageDraw

from catclip.ocr import TextRecognizer


class FakeRecognizer(TextRecognizer):
    """
    PaddleOCR の代わりに台本どおりの行を返すフェイク認識器。

    script の各要素は 1 回の recognize 呼び出しに対応する:
    - 文字列のリスト: その行を返す
    - 例外インスタンス: raise する
    - threading.Event: セットされるまでブロックし、その後 "late result" を返す
    """

    name = "fake"

    def __init__(self, script=None, default: Sequence[str] = ("recognized text",)) -> None:
        self.script = list(script or [])
        self.default = list(default)
        self.calls = 0
        self.sizes: List[tuple] = []

    def recognize(self, image):
        self.calls += 1
        self.sizes.append(image.size)
        step = self.script.pop(0) if self.script else self.default
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, threading.Event):
            step.wait(5)
            return ["late result"]
        return list(step)


def no_sniff(_path):
    return None


def make_image(path: Path, size=(40, 20), text: str = "", fmt: str = "PNG") -> Path:
    img = Image.new("RGB", size, color=(255, 255, 255))
    if text:
        ImageDraw.Draw(img).text((2, 2), text, fill=(0, 0, 0))
    img.save(path, format=fmt)
    return path


def make_scanned_pdf(path: Path, sizes: Sequence[tuple]) -> Path:
    """Image-only PDF (no text layer); at 72 dpi one pixel is one point."""
    pages = [Image.new("RGB", size, color=(255, 255, 255)) for size in sizes]
    pages[0].save(path, "PDF", save_all=True, append_images=pages[1:], resolution=72.0)
    return path


def make_text_pdf(path: Path, pages: Sequence[str]) -> Path:
    """Minimal PDF with a Helvetica text layer, one line per page."""
    n = len(pages)
    page_ids = [4 + 2 * i for i in range(n)]
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        ("<< /Type /Pages /Kids [%s] /Count %d >>"
         % (" ".join(f"{pid} 0 R" for pid in page_ids), n)).encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for pid, text in zip(page_ids, pages):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                "/Resources << /Font << /F1 3 0 R >> >> /Contents %d 0 R >>" % (pid + 1)
            ).encode()
        )
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref,
    )
    path.write_bytes(bytes(out))
    return path
