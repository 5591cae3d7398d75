"""Reflection Session - one end-to-end pass over a transcript."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from session_reflect.core.utils.logger import get_correlation_id, set_correlation_id
from session_reflect.errors import StoreWriteError, ValidationError
from session_reflect.memory.similarity import get_similarity
from session_reflect.memory.store import MemoryStore

from .deduplicator import Deduplicator
from .extractor import SignalExtractor
from .formatter import EntryFormatter

if TYPE_CHECKING:
    from session_reflect.core.utils.config import Settings
    from session_reflect.memory.models import LearningEntry

    from .deduplicator import DuplicateMatch
    from .transcript import Transcript

logger = logging.getLogger(__name__)

NOTHING_NEW = "Nothing new found."


@dataclass(frozen=True)
class SkippedItem:
    """A candidate that was not appended, with the reason."""

    title: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "reason": self.reason}


@dataclass
class ReflectionReport:
    """Outcome of a reflection run."""

    run_id: str = ""
    entries: list[LearningEntry] = field(default_factory=list)
    duplicates: list[DuplicateMatch] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)
    failed: list[SkippedItem] = field(default_factory=list)
    dry_run: bool = False

    @property
    def new_count(self) -> int:
        return len(self.entries)

    @property
    def duplicates_suppressed(self) -> int:
        return len(self.duplicates)

    @property
    def message(self) -> str:
        if not self.entries:
            return NOTHING_NEW
        noun = "learning" if self.new_count == 1 else "learnings"
        verb = "would be added" if self.dry_run else "added"
        return f"{self.new_count} new {noun} {verb}."

    def summary(self) -> dict[str, Any]:
        """Return the compact run summary."""
        return {
            "new_count": self.new_count,
            "entries": [
                {"title": entry.title, "confidence": entry.confidence.value} for entry in self.entries
            ],
            "duplicates_suppressed": self.duplicates_suppressed,
        }

    def to_dict(self) -> dict[str, Any]:
        data = self.summary()
        data.update(
            {
                "run_id": self.run_id,
                "dry_run": self.dry_run,
                "message": self.message,
                "duplicates": [match.to_dict() for match in self.duplicates],
                "skipped": [item.to_dict() for item in self.skipped],
                "failed": [item.to_dict() for item in self.failed],
            }
        )
        return data

    def render(self) -> str:
        lines = [self.message]
        for entry in self.entries:
            lines.append(f"  + [{entry.confidence.value}] {entry.title}")
        if self.duplicates:
            lines.append(f"Duplicates suppressed: {self.duplicates_suppressed}")
            for match in self.duplicates:
                lines.append(
                    f"  = {match.candidate.draft_title} "
                    f"(matches '{match.matched_title}', {match.similarity:.2f})"
                )
        for label, items in (("Skipped", self.skipped), ("Failed", self.failed)):
            if items:
                lines.append(f"{label}: {len(items)}")
                lines.extend(f"  ! {item.title}: {item.reason}" for item in items)
        return "\n".join(lines)


class ReflectionSession:
    """Load the store, extract, deduplicate, format and append.

    The store is read once before extraction. A ``StoreReadError`` therefore
    aborts the run before anything is written; a write failure only affects the
    entry being appended.
    """

    def __init__(
        self,
        store: MemoryStore,
        *,
        extractor: SignalExtractor | None = None,
        deduplicator: Deduplicator | None = None,
        formatter: EntryFormatter | None = None,
    ):
        self.store = store
        self.extractor = extractor or SignalExtractor()
        self.deduplicator = deduplicator or Deduplicator()
        self.formatter = formatter or EntryFormatter()

    @classmethod
    def from_settings(cls, settings: Settings, store: MemoryStore | None = None) -> ReflectionSession:
        if store is None:
            store = MemoryStore(settings.store_path)
        return cls(
            store,
            deduplicator=Deduplicator(
                get_similarity(settings.similarity_method),
                threshold=settings.similarity_threshold,
            ),
            formatter=EntryFormatter(max_sentences=settings.max_body_sentences),
        )

    def run(self, transcript: Transcript, *, dry_run: bool = False) -> ReflectionReport:
        """Reflect on ``transcript`` and append what is new.

        With ``dry_run`` the pipeline runs fully but nothing is appended.
        """
        report = ReflectionReport(run_id=uuid4().hex[:12], dry_run=dry_run)
        previous_id = get_correlation_id()
        set_correlation_id(report.run_id)
        try:
            self._run(transcript, report)
        finally:
            set_correlation_id(previous_id)
        return report

    def _run(self, transcript: Transcript, report: ReflectionReport) -> None:
        existing = self.store.load_all()
        logger.info(
            "Reflecting on %d turns against %d stored learnings in %s",
            len(transcript),
            len(existing),
            self.store.path,
        )

        candidates = list(self.extractor.scan(transcript, existing))
        logger.debug("Extracted %d candidate(s)", len(candidates))

        result = self.deduplicator.filter(candidates, existing)
        report.duplicates.extend(result.duplicates)

        for candidate in result.accepted:
            try:
                entry = self.formatter.format(candidate)
            except ValidationError as exc:
                logger.warning("Skipping candidate '%s': %s", candidate.draft_title, exc.reason)
                report.skipped.append(SkippedItem(candidate.draft_title, exc.reason))
                continue

            if not report.dry_run:
                try:
                    self.store.append(entry)
                except StoreWriteError as exc:
                    logger.error("Could not store '%s': %s", entry.title, exc.reason)
                    report.failed.append(SkippedItem(entry.title, exc.reason))
                    continue
            report.entries.append(entry)

        logger.info(
            "Reflection finished: %d new, %d duplicate(s), %d skipped, %d failed",
            report.new_count,
            report.duplicates_suppressed,
            len(report.skipped),
            len(report.failed),
        )


__all__ = ["NOTHING_NEW", "ReflectionReport", "ReflectionSession", "SkippedItem"]
