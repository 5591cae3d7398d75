"""Data structures for learnings and the candidates they are built from."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any


class Confidence(str, Enum):
    """How certain an extracted learning is."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Category(str, Enum):
    """Kind of signal a learning was extracted from.

    Members are declared in dominance order: when one exchange matches several
    categories the earliest member wins.
    """

    CORRECTION = "correction"
    APPROVED_PATTERN = "approved_pattern"
    OBSERVATION = "observation"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def confidence(self) -> Confidence:
        return CONFIDENCE_BY_CATEGORY[self]

    @property
    def rank(self) -> int:
        """Lower rank dominates."""
        return list(Category).index(self)

    @classmethod
    def from_label(cls, label: str) -> Category:
        wanted = " ".join(label.split()).lower()
        for category, text in _CATEGORY_LABELS.items():
            if text.lower() == wanted:
                return category
        raise ValueError(f"Unknown category label: {label!r}")


_CATEGORY_LABELS = {
    Category.CORRECTION: "Correction",
    Category.APPROVED_PATTERN: "Approved Pattern",
    Category.OBSERVATION: "Observation",
}

CONFIDENCE_BY_CATEGORY: dict[Category, Confidence] = {
    Category.CORRECTION: Confidence.HIGH,
    Category.APPROVED_PATTERN: Confidence.MEDIUM,
    Category.OBSERVATION: Confidence.LOW,
}


@dataclass(frozen=True)
class LearningEntry:
    """A persisted learning. Never mutated once appended to the store."""

    title: str
    date: date
    confidence: Confidence
    context: str
    body: str
    category: Category = Category.OBSERVATION

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["confidence"] = self.confidence.value
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearningEntry:
        return cls(
            title=data["title"],
            date=date.fromisoformat(data["date"]),
            confidence=Confidence(data["confidence"]),
            context=data["context"],
            body=data["body"],
            category=Category(data.get("category", Category.OBSERVATION.value)),
        )


@dataclass
class Candidate:
    """An extracted learning awaiting deduplication and formatting."""

    category: Category
    evidence_span: tuple[int, int]  # first and last transcript turn index
    draft_title: str
    draft_context: str
    draft_body: str
    known_title: str | None = None  # exact title already in the store snapshot

    @property
    def confidence(self) -> Confidence:
        return self.category.confidence


__all__ = [
    "CONFIDENCE_BY_CATEGORY",
    "Candidate",
    "Category",
    "Confidence",
    "LearningEntry",
]
