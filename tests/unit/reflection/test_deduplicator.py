"""Tests for candidate deduplication."""

from __future__ import annotations

from datetime import date

import pytest

from session_reflect.memory.models import Candidate, Category, Confidence, LearningEntry
from session_reflect.memory.similarity import TfidfCosineSimilarity
from session_reflect.reflection.deduplicator import (
    DEFAULT_THRESHOLD,
    Deduplicator,
    build_signature,
    key_phrase_tokens,
)


def candidate(title: str, body: str | None = None, **kwargs) -> Candidate:
    return Candidate(
        category=kwargs.pop("category", Category.CORRECTION),
        evidence_span=(0, 1),
        draft_title=title,
        draft_context="When indenting code.",
        draft_body=body or f"{title}. The user asked for it.",
        **kwargs,
    )


def entry(title: str, body: str | None = None) -> LearningEntry:
    return LearningEntry(
        title=title,
        date=date(2026, 10, 1),
        confidence=Confidence.HIGH,
        context="When indenting code.",
        body=body or f"{title}. The user asked for it.",
        category=Category.CORRECTION,
    )


class TestSignature:
    def test_key_phrase_skips_leading_markers(self):
        assert key_phrase_tokens("The build broke. Always run the linter locally.") == [
            "run",
            "linter",
            "locally",
        ]

    def test_key_phrase_of_empty_body(self):
        assert key_phrase_tokens("") == []

    def test_signature_combines_title_and_key_phrase(self):
        signature = build_signature("Use spaces instead of tabs", "Prefer spaces for indentation.")

        assert signature.tokens == frozenset({"use", "spaces", "tabs", "prefer", "indentation"})

    def test_same_learning_same_signature(self):
        title = "Use approach B instead of approach A"
        body = "Use approach B instead of approach A. The user rejected approach A."

        assert build_signature(title, body).tokens == build_signature(title, body).tokens


class TestDeduplicator:
    def test_default_threshold(self):
        assert Deduplicator().threshold == DEFAULT_THRESHOLD == 0.6

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            Deduplicator(threshold=1.2)

    def test_no_existing_entries_accepts_everything(self):
        result = Deduplicator().filter([candidate("Use spaces instead of tabs")])

        assert [c.draft_title for c in result.accepted] == ["Use spaces instead of tabs"]
        assert result.duplicates == []

    def test_rephrased_learning_is_a_duplicate(self):
        existing = [entry("Use spaces instead of tabs")]

        result = Deduplicator().filter([candidate("Use spaces rather than tabs")], existing)

        assert result.accepted == []
        (match,) = result.duplicates
        assert match.matched_title == "Use spaces instead of tabs"
        assert match.source == "store"
        assert match.similarity == 1.0

    def test_unrelated_learning_is_accepted(self):
        existing = [entry("Use spaces instead of tabs")]

        result = Deduplicator().filter([candidate("Add retries to the HTTP fetcher")], existing)

        assert len(result.accepted) == 1
        assert result.duplicates == []

    @pytest.mark.parametrize("score, duplicate", [(0.6, True), (0.59, False), (4 / 7, False), (0.61, True)])
    def test_threshold_is_inclusive(self, score, duplicate):
        deduplicator = Deduplicator(similarity=lambda a, b: score)

        result = deduplicator.filter([candidate("Use spaces instead of tabs")], [entry("Anything")])

        assert bool(result.duplicates) is duplicate
        assert bool(result.accepted) is not duplicate

    def test_candidates_checked_against_earlier_accepted_ones(self):
        deduplicator = Deduplicator(similarity=lambda a, b: 1.0)

        result = deduplicator.filter([candidate("First"), candidate("Second")])

        assert [c.draft_title for c in result.accepted] == ["First"]
        (match,) = result.duplicates
        assert match.matched_title == "First"
        assert match.source == "run"

    def test_single_candidate_is_never_compared_with_itself(self):
        calls = []

        def recording(a, b):
            calls.append((a, b))
            return 1.0

        result = Deduplicator(similarity=recording).filter([candidate("Only one")])

        assert calls == []
        assert len(result.accepted) == 1

    def test_highest_score_wins_and_ties_keep_earliest(self):
        scores = {"Low": 0.7, "High A": 0.9, "High B": 0.9}

        def by_reference(a, b):
            return next(score for title, score in scores.items() if b.text.startswith(f"{title} "))

        existing = [entry("Low"), entry("High A"), entry("High B")]

        result = Deduplicator(similarity=by_reference).filter([candidate("New")], existing)

        assert result.duplicates[0].matched_title == "High A"

    def test_known_title_short_circuits_scoring(self):
        existing = [entry("Use spaces instead of tabs")]
        hinted = candidate("Use spaces instead of tabs", known_title="Use spaces instead of tabs")

        result = Deduplicator(similarity=lambda a, b: 0.0).filter([hinted], existing)

        assert result.duplicates[0].similarity == 1.0
        assert result.duplicates[0].to_dict() == {
            "title": "Use spaces instead of tabs",
            "duplicate_of": "Use spaces instead of tabs",
            "similarity": 1.0,
            "source": "store",
        }

    def test_order_is_preserved(self):
        titles = ["Add retries to the fetcher", "Use spaces instead of tabs", "Pin the numpy version"]

        result = Deduplicator().filter([candidate(title) for title in titles])

        assert [c.draft_title for c in result.accepted] == titles

    def test_tfidf_scorer_is_fitted_on_the_batch(self):
        scorer = TfidfCosineSimilarity()
        existing = [entry("Use spaces instead of tabs")]

        result = Deduplicator(similarity=scorer).filter([candidate("Use spaces instead of tabs")], existing)

        assert scorer._vectorizer is not None
        assert len(result.duplicates) == 1
