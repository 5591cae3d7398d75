"""Utility functions for tokenizing transcript text and extracting keywords."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+(?:['_][a-z0-9]+)*")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")

STOPWORDS = frozenset(
    {
        "a",
        "an",
        "the",
        "and",
        "or",
        "but",
        "nor",
        "so",
        "if",
        "then",
        "than",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "with",
        "by",
        "from",
        "into",
        "onto",
        "about",
        "as",
        "via",
        "this",
        "that",
        "these",
        "those",
        "it",
        "its",
        "is",
        "are",
        "was",
        "were",
        "be",
        "been",
        "being",
        "am",
        "do",
        "does",
        "did",
        "dont",
        "doesnt",
        "didnt",
        "not",
        "no",
        "i",
        "im",
        "ill",
        "ive",
        "me",
        "my",
        "we",
        "our",
        "you",
        "your",
        "youre",
        "he",
        "she",
        "they",
        "them",
        "their",
        "there",
        "here",
        "what",
        "which",
        "who",
        "when",
        "where",
        "how",
        "why",
        "will",
        "would",
        "can",
        "could",
        "should",
        "shall",
        "may",
        "might",
        "must",
        "have",
        "has",
        "had",
        "just",
        "also",
        "please",
        "ok",
        "okay",
        "instead",
        "rather",
        "now",
        "very",
        "really",
        "some",
        "any",
        "all",
        "more",
        "most",
        "other",
        "such",
        "only",
        "own",
        "same",
        "too",
        "again",
        "let",
        "lets",
        "thats",
        "whats",
        "yes",
        "yeah",
    }
)


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def tokenize(text: str) -> list[str]:
    """Lowercase ``text`` and return its word tokens with punctuation stripped.

    Apostrophes are folded away so ``don't`` and ``dont`` produce the same token.
    """
    if not text:
        return []
    return [token.replace("'", "") for token in _TOKEN_PATTERN.findall(text.lower().replace("’", "'"))]


def content_tokens(text: str, *, extra_stopwords: Iterable[str] | None = None) -> list[str]:
    """Return the tokens of ``text`` that are not stop-words, in order of appearance."""
    stops = STOPWORDS
    if extra_stopwords:
        stops = stops | {word.lower() for word in extra_stopwords}
    return [token for token in tokenize(text) if token not in stops]


def extract_keywords(
    text: str,
    *,
    limit: int = 10,
    extra_stopwords: Iterable[str] | None = None,
) -> list[str]:
    """Return up to ``limit`` distinct content keywords from *text*."""
    keywords: list[str] = []
    seen: set[str] = set()

    for token in content_tokens(text, extra_stopwords=extra_stopwords):
        if token in seen:
            continue
        keywords.append(token)
        seen.add(token)
        if len(keywords) >= limit:
            break

    return keywords


def split_sentences(text: str) -> list[str]:
    """Split prose into sentences on terminal punctuation followed by whitespace."""
    normalized = normalize_whitespace(text)
    if not normalized:
        return []
    return [part.strip() for part in _SENTENCE_BOUNDARY.split(normalized) if part.strip()]


__all__ = [
    "STOPWORDS",
    "content_tokens",
    "extract_keywords",
    "normalize_whitespace",
    "split_sentences",
    "tokenize",
]
