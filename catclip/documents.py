"""Paginated document access (PDF via pypdfium2): embedded text and page rendering."""

from __future__ import annotations

from typing import Callable

import pypdfium2 as pdfium
import pypdfium2.raw as pdfium_c
from PIL import Image

from .errors import ExtractionFailed
from .logging_utils import get_logger
from .models import FileReference

_LOGGER = get_logger(__name__)

POINTS_PER_INCH = 72.0
WHITE = (255, 255, 255, 255)


class PageAccessError(Exception):
    """A single page could not be loaded or its text layer read."""


class PageRenderError(Exception):
    """A single page could not be rasterized within the pixel cap."""


def _is_password_error(exc: Exception) -> bool:
    code = getattr(exc, "err_code", None)
    if code is not None and code == pdfium_c.FPDF_ERR_PASSWORD:
        return True
    return "password" in str(exc).lower()


def rendered_size(width_pt: float, height_pt: float, dpi: int) -> tuple[int, int]:
    scale = dpi / POINTS_PER_INCH
    return int(width_pt * scale), int(height_pt * scale)


class PdfDocument:
    """Thin wrapper over ``pypdfium2.PdfDocument`` with 1-indexed page access."""

    def __init__(self, pdf: "pdfium.PdfDocument", ref: FileReference) -> None:
        self._pdf = pdf
        self.ref = ref

    @classmethod
    def open(cls, ref: FileReference) -> "PdfDocument":
        try:
            pdf = pdfium.PdfDocument(str(ref.resolved_path))
        except pdfium.PdfiumError as exc:
            if _is_password_error(exc):
                raise ExtractionFailed(
                    ref.path,
                    "password-protected",
                    f"PDF is password-protected: {ref.display_name}",
                ) from exc
            raise ExtractionFailed(
                ref.path, "cannot open", f"Could not open PDF: {ref.display_name}"
            ) from exc
        except OSError as exc:
            raise ExtractionFailed(
                ref.path, "cannot open", f"Could not open PDF: {ref.display_name}"
            ) from exc
        doc = cls(pdf, ref)
        _LOGGER.info("[PDF] %s has %d pages", ref.display_name, doc.page_count)
        return doc

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._pdf.close()

    @property
    def page_count(self) -> int:
        return len(self._pdf)

    def _get_page(self, page_num: int):
        if page_num < 1 or page_num > self.page_count:
            raise PageAccessError(f"Page out of range: {page_num} (1..{self.page_count})")
        try:
            return self._pdf[page_num - 1]
        except pdfium.PdfiumError as exc:
            raise PageAccessError(f"Could not load page {page_num}: {exc}") from exc

    def page_text(self, page_num: int) -> str:
        """Embedded text of one page with line endings normalised to ``\\n``."""
        page = self._get_page(page_num)
        try:
            textpage = page.get_textpage()
            try:
                text = textpage.get_text_range()
            finally:
                textpage.close()
        except pdfium.PdfiumError as exc:
            raise PageAccessError(f"Could not read text of page {page_num}: {exc}") from exc
        finally:
            page.close()
        return text.replace("\r\n", "\n").replace("\r", "\n")

    def render_page(self, page_num: int, *, dpi: int, max_pixels: int) -> Image.Image:
        """Rasterize one page on a white background.

        The pixel budget is checked against the page box before any bitmap is
        allocated. Raises ``PageAccessError`` or ``PageRenderError``.
        """
        page = self._get_page(page_num)
        try:
            width_pt, height_pt = page.get_size()
            width, height = rendered_size(width_pt, height_pt, dpi)
            if width <= 0 or height <= 0:
                raise PageRenderError(f"Page {page_num} has an empty media box")
            if width * height > max_pixels:
                raise PageRenderError(
                    f"Page {page_num} too large: {width}x{height} "
                    f"({width * height} pixels, cap {max_pixels})"
                )
            try:
                bitmap = page.render(scale=dpi / POINTS_PER_INCH, fill_color=WHITE)
                # convert copies out of the pdfium-owned buffer
                return bitmap.to_pil().convert("RGB")
            except (pdfium.PdfiumError, MemoryError, ValueError, OSError) as exc:
                raise PageRenderError(f"Could not render page {page_num}: {exc}") from exc
        finally:
            page.close()


DocumentOpener = Callable[[FileReference], PdfDocument]


__all__ = [
    "DocumentOpener",
    "PageAccessError",
    "PageRenderError",
    "PdfDocument",
    "rendered_size",
]
