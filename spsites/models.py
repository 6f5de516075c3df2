from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ExtractionResult:
    original: str
    site_collection: Optional[str]
    is_error: bool = False
    error_reason: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def display_value(self) -> str:
        """Best-effort string for display; the echo on malformed URLs, else the input."""
        return self.site_collection or self.original

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UniqueEntry:
    site_collection: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Summary:
    results: List[ExtractionResult] = field(default_factory=list)
    unique: List[UniqueEntry] = field(default_factory=list)
    unique_input_count: int = 0
    cancelled: bool = False

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if r.is_error)

    @property
    def valid_count(self) -> int:
        return self.total - self.error_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "unique": [u.to_dict() for u in self.unique],
            "unique_input_count": self.unique_input_count,
            "total": self.total,
            "valid_count": self.valid_count,
            "error_count": self.error_count,
            "cancelled": self.cancelled,
        }
