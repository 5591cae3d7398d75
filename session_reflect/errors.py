"""Exception hierarchy for reflection runs."""

from __future__ import annotations

from pathlib import Path


class ReflectionError(Exception):
    """Base exception for reflection errors."""

    pass


class StoreReadError(ReflectionError):
    """The learnings store exists but cannot be read or parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            f"Cannot read learnings store {self.path}: {reason}. "
            "Inspect the file manually and fix or move the damaged block."
        )


class StoreWriteError(ReflectionError):
    """Appending an entry to the learnings store failed."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to append to learnings store {self.path}: {reason}")


class ValidationError(ReflectionError):
    """A candidate cannot be turned into a well-formed entry.

    Recoverable: the caller may re-summarize the candidate and try again.
    """

    def __init__(self, title: str, reason: str):
        self.title = title
        self.reason = reason
        super().__init__(f"Invalid entry '{title}': {reason}")


class TranscriptError(ReflectionError, ValueError):
    """Transcript records are malformed."""

    pass


__all__ = [
    "ReflectionError",
    "StoreReadError",
    "StoreWriteError",
    "TranscriptError",
    "ValidationError",
]
