"""Tests for dedup similarity scorers."""

from __future__ import annotations

import pytest

from session_reflect.memory.similarity import (
    Signature,
    TfidfCosineSimilarity,
    get_similarity,
    token_overlap,
)


def sig(*tokens: str) -> Signature:
    return Signature(tokens=frozenset(tokens))


class TestTokenOverlap:
    def test_identical_sets(self):
        assert token_overlap(sig("use", "spaces"), sig("use", "spaces")) == 1.0

    def test_three_of_five_is_exactly_point_six(self):
        assert token_overlap(sig("a", "b", "c", "d"), sig("a", "b", "c", "e")) == 0.6

    def test_four_of_seven(self):
        score = token_overlap(sig("a", "b", "c", "d", "e"), sig("a", "b", "c", "d", "f", "g"))
        assert score == pytest.approx(4 / 7)

    def test_empty_signature_scores_zero(self):
        assert token_overlap(sig(), sig("a")) == 0.0
        assert not sig()


class TestTfidfCosineSimilarity:
    def test_identical_and_disjoint(self):
        scorer = TfidfCosineSimilarity().fit([sig("use", "spaces"), sig("retry", "fetcher")])

        assert scorer(sig("use", "spaces"), sig("use", "spaces")) == 1.0
        assert scorer(sig("use", "spaces"), sig("retry", "fetcher")) == 0.0

    def test_partial_overlap_is_between_bounds(self):
        scorer = TfidfCosineSimilarity()
        score = scorer(sig("use", "spaces", "indent"), sig("use", "spaces", "tabs"))

        assert 0.0 < score < 1.0

    def test_unknown_tokens_after_fit(self):
        scorer = TfidfCosineSimilarity().fit([sig("alpha", "beta")])

        assert scorer(sig("gamma"), sig("delta")) == 0.0

    def test_empty_corpus_resets_vocabulary(self):
        scorer = TfidfCosineSimilarity().fit([])

        assert scorer(sig("use", "spaces"), sig("use", "tabs")) > 0.0


def test_get_similarity():
    assert get_similarity("token_overlap") is token_overlap
    assert isinstance(get_similarity("tfidf"), TfidfCosineSimilarity)
    with pytest.raises(ValueError, match="Unknown similarity method"):
        get_similarity("embeddings")
