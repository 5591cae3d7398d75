"""Public package interface for session-reflect."""

from __future__ import annotations

from importlib import metadata as _metadata

try:  # pragma: no cover - metadata is missing when running from a source tree
    __version__ = _metadata.version("session-reflect")
except _metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"

from .core import Settings, configure_logging, get_logger, load_settings
from .errors import (
    ReflectionError,
    StoreReadError,
    StoreWriteError,
    TranscriptError,
    ValidationError,
)
from .memory import Candidate, Category, Confidence, LearningEntry, MemoryStore
from .reflection import (
    Deduplicator,
    EntryFormatter,
    ReflectionReport,
    ReflectionSession,
    SignalExtractor,
    Transcript,
    Turn,
)

__all__ = [
    "Candidate",
    "Category",
    "Confidence",
    "Deduplicator",
    "EntryFormatter",
    "LearningEntry",
    "MemoryStore",
    "ReflectionError",
    "ReflectionReport",
    "ReflectionSession",
    "Settings",
    "SignalExtractor",
    "StoreReadError",
    "StoreWriteError",
    "TranscriptError",
    "Transcript",
    "Turn",
    "ValidationError",
    "__version__",
    "configure_logging",
    "get_logger",
    "load_settings",
]
