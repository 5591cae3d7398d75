"""Similarity scorers for dedup signatures.

Every scorer is a callable ``(a, b) -> float`` in ``[0, 1]`` so the
deduplicator's control flow does not depend on how similarity is measured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signature:
    """Normalized token set of a learning plus the text it was built from."""

    tokens: frozenset[str]
    text: str = ""

    def __bool__(self) -> bool:
        return bool(self.tokens)


SimilarityFunction = Callable[[Signature, Signature], float]


def token_overlap(a: Signature, b: Signature) -> float:
    """Jaccard ratio of the two token sets; 0.0 when either is empty."""
    if not a.tokens or not b.tokens:
        return 0.0
    return len(a.tokens & b.tokens) / len(a.tokens | b.tokens)


class TfidfCosineSimilarity:
    """Cosine similarity of TF-IDF vectors over the signature tokens.

    Document frequencies come from the corpus passed to ``fit``; without a
    corpus each comparison is vectorized on its own pair.
    """

    def __init__(self) -> None:
        self._vectorizer: TfidfVectorizer | None = None

    @staticmethod
    def _document(signature: Signature) -> str:
        return " ".join(sorted(signature.tokens))

    def fit(self, corpus: list[Signature]) -> TfidfCosineSimilarity:
        documents = [self._document(signature) for signature in corpus if signature]
        if not documents:
            self._vectorizer = None
            return self
        self._vectorizer = TfidfVectorizer(token_pattern=r"\S+")
        self._vectorizer.fit(documents)
        logger.debug("Fitted TF-IDF vocabulary on %d signatures", len(documents))
        return self

    def __call__(self, a: Signature, b: Signature) -> float:
        if not a.tokens or not b.tokens:
            return 0.0
        if a.tokens == b.tokens:
            return 1.0
        documents = [self._document(a), self._document(b)]
        vectorizer = self._vectorizer
        if vectorizer is None:
            vectorizer = TfidfVectorizer(token_pattern=r"\S+").fit(documents)
        matrix = vectorizer.transform(documents)
        if matrix.nnz == 0:
            return 0.0
        score = cosine_similarity(matrix[0], matrix[1])[0][0]
        return float(np.clip(score, 0.0, 1.0))


def get_similarity(method: str) -> SimilarityFunction:
    """Return the scorer registered under ``method``."""
    if method == "token_overlap":
        return token_overlap
    if method == "tfidf":
        return TfidfCosineSimilarity()
    raise ValueError(f"Unknown similarity method: {method}")


__all__ = [
    "Signature",
    "SimilarityFunction",
    "TfidfCosineSimilarity",
    "get_similarity",
    "token_overlap",
]
