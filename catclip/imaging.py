"""Bounded image loading for recognition."""

from __future__ import annotations

from PIL import Image, UnidentifiedImageError

from .errors import ExtractionFailed, ImageTooLarge
from .logging_utils import get_logger
from .models import FileReference

_LOGGER = get_logger(__name__)


def load_image(ref: FileReference, max_pixels: int) -> Image.Image:
    """Load ``ref`` as RGB, rejecting it before decoding if it exceeds ``max_pixels``.

    Only the header is parsed by ``Image.open``; pixel data is decoded by
    ``convert`` once the dimensions have been accepted.
    """
    try:
        img = Image.open(ref.resolved_path)
    except Image.DecompressionBombError as exc:
        raise ExtractionFailed(
            ref.path, "image too large", f"Image too large: {ref.display_name}"
        ) from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise ExtractionFailed(
            ref.path, "could not load image", f"Could not load image: {ref.display_name}"
        ) from exc

    with img:
        width, height = img.size
        if width * height > max_pixels:
            _LOGGER.error(
                "[OCR] Image %s too large: %dx%d (%d pixels, cap %d)",
                ref.display_name,
                width,
                height,
                width * height,
                max_pixels,
            )
            raise ImageTooLarge(ref.path, width, height)
        try:
            return img.convert("RGB")
        except (OSError, ValueError) as exc:
            raise ExtractionFailed(
                ref.path,
                "could not convert image",
                f"Could not convert image: {ref.display_name}",
            ) from exc
