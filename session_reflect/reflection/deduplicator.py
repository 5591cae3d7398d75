"""Deduplicator - drops candidates that restate an existing learning."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from session_reflect.core.utils.keywords import STOPWORDS, content_tokens, split_sentences, tokenize
from session_reflect.memory.similarity import Signature, SimilarityFunction, token_overlap

from .phrases import find_instruction

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from session_reflect.memory.models import Candidate, LearningEntry

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.6
SOURCE_STORE = "store"
SOURCE_RUN = "run"

_LEADING_MARKERS = frozenset({"always", "never", "first"}) | STOPWORDS
_OBJECT_TOKENS = 3


def key_phrase_tokens(body: str) -> list[str]:
    """Key verb and object of the body's first instruction sentence."""
    sentences = split_sentences(body)
    if not sentences:
        return []
    index = find_instruction(sentences)
    sentence = sentences[index if index is not None else 0]

    tokens = tokenize(sentence)
    while tokens and tokens[0] in _LEADING_MARKERS:
        tokens = tokens[1:]
    if not tokens:
        return []
    verb = tokens[0]
    objects = content_tokens(" ".join(tokens[1:]))[:_OBJECT_TOKENS]
    return [verb, *objects]


def build_signature(title: str, body: str) -> Signature:
    """Dedup signature: title tokens plus the body's key verb and object."""
    tokens = frozenset(content_tokens(title)) | frozenset(key_phrase_tokens(body))
    return Signature(tokens=tokens, text=f"{title} {body}".strip())


@dataclass(frozen=True)
class DuplicateMatch:
    """A dropped candidate and the learning it duplicates."""

    candidate: Candidate
    matched_title: str
    similarity: float
    source: str = SOURCE_STORE

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.candidate.draft_title,
            "duplicate_of": self.matched_title,
            "similarity": round(self.similarity, 3),
            "source": self.source,
        }


@dataclass
class DedupResult:
    accepted: list[Candidate] = field(default_factory=list)
    duplicates: list[DuplicateMatch] = field(default_factory=list)


class Deduplicator:
    """Filters candidates against stored entries and earlier accepted candidates.

    A candidate is a duplicate when its similarity to any reference signature
    is at or above ``threshold``. When several references match, the highest
    score wins and ties keep the earliest reference.
    """

    def __init__(
        self,
        similarity: SimilarityFunction | None = None,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        self.similarity = similarity or token_overlap
        self.threshold = threshold

    def filter(
        self, candidates: Iterable[Candidate], existing: Sequence[LearningEntry] = ()
    ) -> DedupResult:
        """Split ``candidates`` into accepted ones and reported duplicates, order preserved."""
        candidates = list(candidates)
        references: list[tuple[str, Signature, str]] = [
            (entry.title, build_signature(entry.title, entry.body), SOURCE_STORE)
            for entry in existing
        ]
        stored_titles = {entry.title for entry in existing}
        signatures = [
            build_signature(candidate.draft_title, candidate.draft_body) for candidate in candidates
        ]
        self._prepare([signature for _, signature, _ in references] + signatures)

        result = DedupResult()
        for candidate, signature in zip(candidates, signatures):
            if candidate.known_title is not None and candidate.known_title in stored_titles:
                match = DuplicateMatch(candidate, candidate.known_title, 1.0, SOURCE_STORE)
            else:
                match = self._best_match(candidate, signature, references)

            if match is not None:
                logger.debug(
                    "Dropping '%s': duplicate of '%s' (%s, similarity %.2f)",
                    candidate.draft_title,
                    match.matched_title,
                    match.source,
                    match.similarity,
                )
                result.duplicates.append(match)
                continue

            result.accepted.append(candidate)
            references.append((candidate.draft_title, signature, SOURCE_RUN))

        return result

    def _best_match(
        self,
        candidate: Candidate,
        signature: Signature,
        references: list[tuple[str, Signature, str]],
    ) -> DuplicateMatch | None:
        best: DuplicateMatch | None = None
        for title, reference, source in references:
            score = self.similarity(signature, reference)
            if score < self.threshold:
                continue
            if best is None or score > best.similarity:
                best = DuplicateMatch(candidate, title, score, source)
        return best

    def _prepare(self, corpus: list[Signature]) -> None:
        fit = getattr(self.similarity, "fit", None)
        if callable(fit):
            fit(corpus)


__all__ = [
    "DEFAULT_THRESHOLD",
    "DedupResult",
    "Deduplicator",
    "DuplicateMatch",
    "build_signature",
    "key_phrase_tokens",
]
