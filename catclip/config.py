from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

MIB = 1024 * 1024

OCR_PROFILES = ("server", "mobile")


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    v = env.get(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    """Positive finite float from ``env[name]``, else ``default``."""
    v = env.get(name)
    if v is None:
        return default
    try:
        value = float(v)
    except ValueError:
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return value


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Positive integer from ``env[name]``, else ``default``."""
    result = int(_env_float(env, name, float(default)))
    return result if result > 0 else default


def _env_mib(env: Mapping[str, str], name: str, default_bytes: int) -> int:
    """Byte count from a megabyte value in ``env[name]``, else ``default_bytes``."""
    try:
        result = int(_env_float(env, name, default_bytes / MIB) * MIB)
    except OverflowError:
        return default_bytes
    return result if result > 0 else default_bytes


def _env_profile(env: Mapping[str, str], name: str, default: str) -> str:
    profile = _env_str(env, name, default).lower()
    return profile if profile in OCR_PROFILES else default


@dataclass(frozen=True)
class ExtractionConfig:
    # input / output ceilings
    max_input_bytes: int = 50 * MIB
    max_output_bytes: int = 100 * MIB
    # recognition caps
    render_dpi: int = 150
    max_pages: int = 100
    max_image_pixels: int = 50_000_000
    recognition_timeout_s: float = 60.0
    # recognizer
    ocr_lang: str = "en"
    ocr_profile: str = "server"

    def __post_init__(self) -> None:
        for name in (
            "max_input_bytes",
            "max_output_bytes",
            "render_dpi",
            "max_pages",
            "max_image_pixels",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be a positive integer")
        if self.recognition_timeout_s <= 0:
            raise ValueError("recognition_timeout_s must be positive")
        if self.ocr_profile not in OCR_PROFILES:
            raise ValueError(f"Unknown OCR profile: {self.ocr_profile!r}")


def load_config(environ: Optional[Mapping[str, str]] = None) -> ExtractionConfig:
    """Read the configuration once from CATCLIP_* variables.

    Malformed, non-finite and non-positive values fall back to the defaults,
    as does an unknown OCR profile. The returned value is passed explicitly to
    every component that needs it.
    """
    env = os.environ if environ is None else environ
    defaults = ExtractionConfig()
    return ExtractionConfig(
        max_input_bytes=_env_mib(env, "CATCLIP_MAX_INPUT_MB", defaults.max_input_bytes),
        max_output_bytes=_env_mib(env, "CATCLIP_MAX_OUTPUT_MB", defaults.max_output_bytes),
        render_dpi=_env_int(env, "CATCLIP_RENDER_DPI", defaults.render_dpi),
        max_pages=_env_int(env, "CATCLIP_MAX_PAGES", defaults.max_pages),
        max_image_pixels=_env_int(env, "CATCLIP_MAX_IMAGE_PIXELS", defaults.max_image_pixels),
        recognition_timeout_s=_env_float(
            env, "CATCLIP_OCR_TIMEOUT", defaults.recognition_timeout_s
        ),
        ocr_lang=_env_str(env, "CATCLIP_OCR_LANG", defaults.ocr_lang),
        ocr_profile=_env_profile(env, "CATCLIP_OCR_PROFILE", defaults.ocr_profile),
    )


__all__ = ["MIB", "ExtractionConfig", "load_config"]
