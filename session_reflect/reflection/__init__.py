"""Transcript reflection pipeline: extract, deduplicate, format, append."""

from __future__ import annotations

from .classifiers import (
    ApprovalClassifier,
    CorrectionClassifier,
    Exchange,
    ObservationClassifier,
    RuleBasedClassifier,
    Signal,
    TurnClassifier,
)
from .deduplicator import DedupResult, Deduplicator, DuplicateMatch, build_signature
from .extractor import SignalExtractor, iter_exchanges
from .formatter import EntryFormatter
from .session import NOTHING_NEW, ReflectionReport, ReflectionSession, SkippedItem
from .transcript import Transcript, Turn

__all__ = [
    "ApprovalClassifier",
    "CorrectionClassifier",
    "DedupResult",
    "Deduplicator",
    "DuplicateMatch",
    "EntryFormatter",
    "Exchange",
    "NOTHING_NEW",
    "ObservationClassifier",
    "ReflectionReport",
    "ReflectionSession",
    "RuleBasedClassifier",
    "Signal",
    "SignalExtractor",
    "SkippedItem",
    "Transcript",
    "Turn",
    "TurnClassifier",
    "build_signature",
    "iter_exchanges",
]
