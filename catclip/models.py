from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Tuple


class ContentCategory(str, Enum):
    """Routing decision produced once per file by the classifier."""

    TEXT = "text"
    PAGINATED_DOCUMENT = "paginated_document"
    IMAGE = "image"


class WarningReason(str, Enum):
    ACCESS_FAILED = "access_failed"
    RENDER_FAILED = "render_failed"
    RECOGNITION_FAILED = "recognition_failed"
    RECOGNITION_TIMED_OUT = "recognition_timed_out"


@dataclass(frozen=True)
class FileReference:
    """A validated local file: requested path, symlink-free path and byte length."""

    path: Path
    resolved_path: Path
    size: int

    @property
    def display_name(self) -> str:
        return self.path.name or str(self.path)


@dataclass(frozen=True)
class PageWarning:
    page_index: int  # 1-indexed
    reason: WarningReason

    def __post_init__(self) -> None:
        if self.page_index < 1:
            raise ValueError("page_index must be 1-indexed")


@dataclass(frozen=True)
class ExtractionResult:
    """Final text plus the recoverable per-unit failures seen while producing it."""

    text: str
    warnings: Tuple[PageWarning, ...] = ()
    truncated: bool = False

    @property
    def failed_pages(self) -> List[int]:
        return [w.page_index for w in self.warnings]

    @property
    def ok(self) -> bool:
        return not self.warnings and not self.truncated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "warnings": [
                {"page": w.page_index, "reason": w.reason.value} for w in self.warnings
            ],
            "truncated": self.truncated,
        }


__all__ = [
    "ContentCategory",
    "ExtractionResult",
    "FileReference",
    "PageWarning",
    "WarningReason",
]
