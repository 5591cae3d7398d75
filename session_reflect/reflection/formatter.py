"""Entry Formatter - turns an accepted candidate into a storable entry."""

from __future__ import annotations

import re
from datetime import date
from typing import TYPE_CHECKING, Callable

from session_reflect.core.utils.keywords import normalize_whitespace, split_sentences
from session_reflect.errors import ValidationError
from session_reflect.memory.models import CONFIDENCE_BY_CATEGORY, LearningEntry

from .phrases import find_instruction

if TYPE_CHECKING:
    from session_reflect.memory.models import Candidate

DEFAULT_MAX_SENTENCES = 3

_TITLE_TRAILER = re.compile(r"[\s.;:,]+$")
_TERMINAL = (".", "!", "?")


class EntryFormatter:
    """Pure mapping from ``Candidate`` to ``LearningEntry``.

    Confidence comes from the fixed category table. The body keeps its leading
    sentences up to ``max_sentences``; a body whose instruction sentence would
    be cut, or that has none, is rejected with ``ValidationError``.
    """

    def __init__(
        self,
        max_sentences: int = DEFAULT_MAX_SENTENCES,
        today: Callable[[], date] = date.today,
    ):
        if max_sentences < 1:
            raise ValueError(f"max_sentences must be positive, got {max_sentences}")
        self.max_sentences = max_sentences
        self.today = today

    def format(self, candidate: Candidate) -> LearningEntry:
        title = _TITLE_TRAILER.sub("", normalize_whitespace(candidate.draft_title))
        if not title:
            raise ValidationError(candidate.draft_title, "title is empty")

        return LearningEntry(
            title=title,
            date=self.today(),
            confidence=CONFIDENCE_BY_CATEGORY[candidate.category],
            context=self._format_context(title, candidate.draft_context),
            body=self._format_body(title, candidate.draft_body),
            category=candidate.category,
        )

    @staticmethod
    def _format_context(title: str, draft: str) -> str:
        sentences = split_sentences(draft)
        if not sentences:
            raise ValidationError(title, "context is empty")
        context = sentences[0]
        if not context.endswith(_TERMINAL):
            context = f"{context}."
        return context

    def _format_body(self, title: str, draft: str) -> str:
        sentences = split_sentences(draft)
        if not sentences:
            raise ValidationError(title, "body is empty")

        instruction = find_instruction(sentences)
        if instruction is None:
            raise ValidationError(title, "body has no actionable instruction")
        if instruction >= self.max_sentences:
            raise ValidationError(
                title,
                f"instruction is sentence {instruction + 1}; body cannot be cut to "
                f"{self.max_sentences} sentences without losing it",
            )

        body = " ".join(sentences[: self.max_sentences])
        if body.strip() == "---" or body.startswith("## "):
            raise ValidationError(title, "body would break the store block format")
        return body


__all__ = ["DEFAULT_MAX_SENTENCES", "EntryFormatter"]
