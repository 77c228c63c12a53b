"""Text recognizers: the PaddleOCR backend and the interface the engine calls.

Performance notes:
- One engine per recognizer instance; models load on first use, not at import
- The accuracy profile (server det/rec models, text-line orientation) is the default
- ``paddleocr`` is an optional extra; importing this module never requires it
"""

from __future__ import annotations

import abc
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from PIL import Image

from .config import ExtractionConfig
from .logging_utils import get_logger

_LOGGER = get_logger(__name__)


@dataclass
class OcrResult:
    """Recognized lines in reading order with their per-line scores."""

    texts: List[str]
    scores: List[Optional[float]]

    @property
    def lines(self) -> List[str]:
        return [t for t in (s.strip() for s in self.texts) if t]

    @property
    def mean_confidence(self) -> Optional[float]:
        vals = [v for v in self.scores if isinstance(v, (int, float))]
        if not vals:
            return None
        return float(sum(vals) / len(vals))

    @property
    def min_confidence(self) -> Optional[float]:
        vals = [v for v in self.scores if isinstance(v, (int, float))]
        if not vals:
            return None
        return float(min(vals))


class TextRecognizer(abc.ABC):
    """Turns one RGB image into text lines in reading order.

    Implementations may raise any exception; the recognition engine turns it
    into a per-unit warning.
    """

    name: str = "abstract"

    @abc.abstractmethod
    def recognize(self, image: Image.Image) -> List[str]:
        raise NotImplementedError


def build_ocr_kwargs(lang: str = "en", profile: str = "server") -> Dict[str, Any]:
    """PaddleOCR constructor kwargs for the given language and model profile."""
    if profile not in ("server", "mobile"):
        raise ValueError(f"Unknown OCR profile: {profile!r}")
    kwargs: Dict[str, Any] = {
        "lang": lang,
        "text_detection_model_name": f"PP-OCRv5_{profile}_det",
        "text_recognition_model_name": f"PP-OCRv5_{profile}_rec",
        "use_textline_orientation": True,
        "use_doc_orientation_classify": False,
        "use_doc_unwarping": False,
    }
    _LOGGER.info(
        "[BOOT] OCR profile=%s det=%s rec=%s lang=%s",
        profile,
        kwargs["text_detection_model_name"],
        kwargs["text_recognition_model_name"],
        lang,
    )
    return kwargs


class PaddleTextRecognizer(TextRecognizer):
    """PaddleOCR-backed recognizer, loaded lazily on the first ``recognize``."""

    name = "paddleocr"

    def __init__(self, lang: str = "en", profile: str = "server") -> None:
        self.lang = lang
        self.profile = profile
        self._engine = None
        self._lock = threading.Lock()
        self.last_perf: Optional[Dict[str, float]] = None

    @classmethod
    def from_config(cls, config: ExtractionConfig) -> "PaddleTextRecognizer":
        return cls(lang=config.ocr_lang, profile=config.ocr_profile)

    def _create_engine(self):
        from paddleocr import PaddleOCR

        kwargs = build_ocr_kwargs(self.lang, self.profile)
        try:
            return PaddleOCR(**kwargs)
        except (TypeError, ValueError):
            # older releases reject the model-name keywords
            _LOGGER.warning("[BOOT] PaddleOCR rejected full kwargs; retrying with lang only")
            try:
                return PaddleOCR(lang=self.lang, use_textline_orientation=True)
            except (TypeError, ValueError):
                return PaddleOCR(use_angle_cls=True, lang=self.lang)

    def _get_engine(self):
        # a timed-out unit may still hold the engine; callers serialize here
        with self._lock:
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

    def recognize(self, image: Image.Image) -> List[str]:
        t0 = time.perf_counter()
        np_image = np.array(image.convert("RGB"))
        t1 = time.perf_counter()

        engine = self._get_engine()
        with self._lock:
            raw_result = engine.predict(np_image)
        t2 = time.perf_counter()

        result = normalize_result(raw_result)
        t3 = time.perf_counter()

        self.last_perf = {
            "preproc_ms": (t1 - t0) * 1000.0,
            "infer_ms": (t2 - t1) * 1000.0,
            "postproc_ms": (t3 - t2) * 1000.0,
            "total_ms": (t3 - t0) * 1000.0,
        }
        _LOGGER.debug(
            "[PERF] preproc=%.1fms infer=%.1fms postproc=%.1fms total=%.1fms",
            self.last_perf["preproc_ms"],
            self.last_perf["infer_ms"],
            self.last_perf["postproc_ms"],
            self.last_perf["total_ms"],
        )
        _LOGGER.debug(
            "[OCR] n_fragments=%d mean_conf=%s min_conf=%s",
            len(result.texts),
            f"{result.mean_confidence:.2f}" if result.mean_confidence is not None else "-",
            f"{result.min_confidence:.2f}" if result.min_confidence is not None else "-",
        )
        return result.lines


def normalize_result(raw: Any) -> OcrResult:
    """Flatten PaddleOCR output (3.x dict pages or 2.x box/text pairs)."""
    texts: List[str] = []
    scores: List[Optional[float]] = []

    if not isinstance(raw, Sequence) or not raw:
        return OcrResult(texts=texts, scores=scores)

    for page in raw:
        if page is None:
            continue
        if _is_mapping(page):
            page_texts = [str(t) for t in (page.get("rec_texts") or [])]
            page_scores = [_safe_float(v) for v in (page.get("rec_scores") or [])]
            if len(page_scores) < len(page_texts):
                page_scores.extend([None] * (len(page_texts) - len(page_scores)))
            texts.extend(page_texts)
            scores.extend(page_scores[: len(page_texts)])
        elif isinstance(page, Sequence):
            for item in page:
                try:
                    text, score = item[1]
                except (IndexError, TypeError, ValueError):
                    continue
                texts.append(str(text))
                scores.append(_safe_float(score))

    return OcrResult(texts=texts, scores=scores)


def _is_mapping(value: Any) -> bool:
    # PaddleOCR 3.x returns OCRResult objects that behave like dicts
    return isinstance(value, dict) or (hasattr(value, "get") and hasattr(value, "keys"))


def _safe_float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "OcrResult",
    "PaddleTextRecognizer",
    "TextRecognizer",
    "build_ocr_kwargs",
    "normalize_result",
]
