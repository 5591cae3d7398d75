"""Learning entries, their persistent store and dedup similarity scorers."""

from __future__ import annotations

from .models import CONFIDENCE_BY_CATEGORY, Candidate, Category, Confidence, LearningEntry
from .similarity import Signature, TfidfCosineSimilarity, get_similarity, token_overlap
from .store import ENTRY_SEPARATOR, MemoryStore, parse_entries, serialize_entry

__all__ = [
    "CONFIDENCE_BY_CATEGORY",
    "Candidate",
    "Category",
    "Confidence",
    "ENTRY_SEPARATOR",
    "LearningEntry",
    "MemoryStore",
    "Signature",
    "TfidfCosineSimilarity",
    "get_similarity",
    "parse_entries",
    "serialize_entry",
    "token_overlap",
]
