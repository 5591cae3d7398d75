"""Rule-based classifiers that turn one exchange into a learning signal.

An exchange is the window anchored on a user turn: the assistant turn right
before it (the action being judged), the user turn itself, and the assistant
turn right after it (used only as acknowledgment evidence).

Classifiers are conservative: an exchange that does not clearly
match a pattern produces no signal.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from session_reflect.core.utils.keywords import extract_keywords, normalize_whitespace, split_sentences
from session_reflect.memory.models import Category

from .phrases import (
    KNOWN_VERBS,
    base_form,
    capitalize_first,
    clip_words,
    gerund,
    starts_with_verb,
    summarize_action,
    to_imperative,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .transcript import Turn

logger = logging.getLogger(__name__)

# Phrase terminator shared by negation and redirect captures.
_END = r"(?=\s*(?:[,.;:!?]|\bbut\b|\binstead\b|\brather\b|\bbecause\b|\band\s+(?:use|do|try)\b|$))"
_VERB = (
    r"(?:use|try|do|prefer|switch to|go with|stick with|stick to|call|run|keep|put|write|"
    r"pick|choose|rely on|add|set|make)"
)

_NEGATION = re.compile(
    r"\b(?:don't|dont|do not|never|stop|avoid|quit|no need to|instead of|rather than)\s+"
    rf"(?P<avoid>.+?){_END}",
    re.IGNORECASE,
)
_NEGATION_IGNORED = frozenset(
    {"worry", "worries", "know", "think", "mind", "care", "bother", "apologize", "apologise", "forget"}
)
_WRONG = re.compile(
    r"\b(?:that's|thats|that is|this is|it's|its)\s+(?:wrong|incorrect|not right|not correct|"
    r"not what i (?:asked|wanted|meant))\b|\bwrong approach\b",
    re.IGNORECASE,
)
_LEADING_NO = re.compile(r"^\s*(?:no|nope)\b(?!\s+(?:problem|worries|need))(?:[\s,.!]|$)", re.IGNORECASE)

_REDIRECTS = (
    re.compile(rf"\b(?P<verb>{_VERB})\s+(?P<prefer>[^,.;!?]+?)\s+instead\b", re.IGNORECASE),
    re.compile(
        rf"\binstead\b(?!\s+of\b)[\s,:]*(?:please\s+)?(?:(?P<verb>{_VERB})\s+)?(?P<prefer>.+?){_END}",
        re.IGNORECASE,
    ),
    re.compile(
        rf"\b(?:you should|should|please|just)\s+(?P<verb>{_VERB})\s+(?P<prefer>.+?){_END}",
        re.IGNORECASE,
    ),
    re.compile(rf"\b(?:should|it needs to) be\s+(?P<prefer>.+?){_END}", re.IGNORECASE),
    re.compile(
        rf"\brather\b(?!\s+than\b)[\s,]*(?:(?P<verb>{_VERB})\s+)?(?P<prefer>.+?){_END}",
        re.IGNORECASE,
    ),
    re.compile(
        rf"\b(?P<verb>use|switch to|go with|stick with|stick to|prefer)\s+(?P<prefer>.+?){_END}",
        re.IGNORECASE,
    ),
)
_ACKNOWLEDGMENT = re.compile(
    r"\b(?:switching to|switched to|i'll switch to|i'll use|i will use|i'll go with|going with|"
    rf"moving to|using)\s+(?P<prefer>.+?){_END}",
    re.IGNORECASE,
)

_AFFIRMATION = re.compile(
    r"\b(?:perfect|exactly|excellent|great|awesome|nice|love it|looks good|lgtm|well done|"
    r"good job|nailed it|that works|that worked|works great|works perfectly|that's right|"
    r"that is right|that's it|spot on|brilliant)\b",
    re.IGNORECASE,
)
_NEGATED_AFFIRMATION = re.compile(
    r"\b(?:not|isn't|wasn't|doesn't|hardly|no longer)\s+(?:\w+\s+)?"
    r"(?:perfect|great|nice|good|right|work|working|it)\b",
    re.IGNORECASE,
)

_FACT_PATTERNS = (
    re.compile(r"\b(?:it\s+)?turns out\b", re.IGNORECASE),
    re.compile(r"\b(?:found|discovered|noticed|realized|realised|learned) that\b", re.IGNORECASE),
    re.compile(r"\bapparently\b", re.IGNORECASE),
    re.compile(r"\b(?:note that|fyi|heads up)\b", re.IGNORECASE),
    re.compile(r"\bthe (?:issue|problem|bug|root cause) (?:was|is)\b", re.IGNORECASE),
    re.compile(r"\bcaused by\b", re.IGNORECASE),
    re.compile(r"\brequires?\b", re.IGNORECASE),
    re.compile(r"\bonly works\b", re.IGNORECASE),
    re.compile(r"\b(?:doesn't|does not|cannot|can't|won't|will not) (?:support|handle|accept|work)\b", re.IGNORECASE),
    re.compile(r"\bfails? (?:when|if|with|because|on)\b", re.IGNORECASE),
    re.compile(r"\bworkaround\b", re.IGNORECASE),
)
_FACT_LEAD_IN = re.compile(
    r"^(?:(?:it\s+)?turns out(?:\s+that)?,?\s*|(?:i|we)\s+(?:found|discovered|noticed|realized|realised|learned)"
    r"(?:\s+that)?\s*|apparently,?\s*|note that\s*|fyi,?\s*|heads up,?\s*)",
    re.IGNORECASE,
)
_SUCCESS = re.compile(
    r"\b(?:works now|now works|is working|are working|tests? pass(?:es|ed)?|passed|succeeded|"
    r"ran successfully|completed successfully)\b",
    re.IGNORECASE,
)
_QUOTES = str.maketrans({"’": "'", "‘": "'", "“": '"', "”": '"'})


def _plain(text: str) -> str:
    return normalize_whitespace(text.translate(_QUOTES))


def _strip_lead_verb(phrase: str) -> str:
    words = phrase.split()
    if len(words) > 1 and base_form(words[0]) in KNOWN_VERBS:
        words = words[1:]
        if words and words[0].lower() in {"to", "with", "on"}:
            words = words[1:]
    return " ".join(words) or phrase


# Verbs that only introduce the rejected thing; the object alone names it.
_GENERIC_VERBS = frozenset(
    {"use", "try", "do", "go", "pick", "choose", "prefer", "switch", "stick", "rely"}
)


def _avoided_activity(phrase: str) -> str:
    """Phrase the rejected action so it reads after "instead of".

    Generic verbs and the past-tense verbs of an assistant summary are dropped;
    any other leading verb becomes a gerund ("commit to main" -> "committing to main").
    """
    head, _, rest = phrase.partition(" ")
    base = base_form(head)
    if not rest or base not in KNOWN_VERBS or head.lower().endswith("ing"):
        return phrase
    if base in _GENERIC_VERBS or base != head.lower():
        return _strip_lead_verb(phrase)
    return f"{gerund(base)} {rest}"


def _lower_first(text: str) -> str:
    if len(text) > 1 and text[1].isupper():
        return text
    return text[:1].lower() + text[1:]


def _join_keywords(keywords: Sequence[str]) -> str:
    if len(keywords) <= 1:
        return "".join(keywords)
    return f"{', '.join(keywords[:-1])} and {keywords[-1]}"


def has_negation_cue(text: str) -> bool:
    text = _plain(text)
    return bool(_WRONG.search(text) or _LEADING_NO.search(text) or _find_negation_phrase(text))


def has_affirmation_cue(text: str) -> bool:
    text = _plain(text)
    return bool(_AFFIRMATION.search(text)) and not _NEGATED_AFFIRMATION.search(text)


def _find_negation_phrase(text: str) -> re.Match[str] | None:
    for match in _NEGATION.finditer(text):
        first = match.group("avoid").split()[0].lower()
        if first in _NEGATION_IGNORED:
            continue
        return match
    return None


@dataclass(frozen=True)
class Signal:
    """Classifier output for one exchange.

    ``complete`` is False for a correction cue that still lacks its redirect;
    ``cue`` then carries the rejected phrase.
    """

    category: Category
    span: tuple[int, int]
    title: str = ""
    context: str = ""
    body: str = ""
    complete: bool = True
    cue: str = ""
    source: str = ""


@dataclass(frozen=True)
class Exchange:
    """Assistant action, user response and assistant acknowledgment."""

    user: Turn | None = None
    user_index: int | None = None
    prior: Turn | None = None
    prior_index: int | None = None
    reply: Turn | None = None
    reply_index: int | None = None
    pending: Signal | None = None

    @property
    def span(self) -> tuple[int, int]:
        indices = [index for index in (self.prior_index, self.user_index) if index is not None]
        return (min(indices), max(indices))


class TurnClassifier(ABC):
    """Classifies an exchange into at most one signal."""

    name = "classifier"

    def reset(self) -> None:
        """Clear any state carried between exchanges of one scan."""

    @abstractmethod
    def classify(self, exchange: Exchange) -> Signal | None:
        """Return a signal for ``exchange`` or ``None`` when nothing matches."""


@dataclass(frozen=True)
class _Redirect:
    prefer: str
    verb: str | None


class CorrectionClassifier(TurnClassifier):
    """User rejects the assistant's approach and names the one to use instead."""

    name = "correction"

    def classify(self, exchange: Exchange) -> Signal | None:
        if exchange.user is None:
            return None
        text = _plain(exchange.user.text)
        negation = self._find_negation(text, exchange)

        if negation is None:
            pending = exchange.pending
            if pending is None:
                return None
            redirect = self._find_redirect(text, None)
            if redirect is None:
                return None
            span = (pending.span[0], exchange.span[1])
            return self._build(pending.cue, redirect, span, None)

        avoid, avoid_span = negation
        span = exchange.span
        redirect = self._find_redirect(text, avoid_span)
        if redirect is None and exchange.reply is not None:
            redirect = self._find_acknowledgment(exchange.reply.text)
            if redirect is not None:
                span = (span[0], exchange.reply_index)
        if redirect is None:
            return Signal(Category.CORRECTION, span, complete=False, cue=avoid, source=self.name)
        return self._build(avoid, redirect, span, exchange.prior)

    def _find_negation(self, text: str, exchange: Exchange) -> tuple[str, tuple[int, int]] | None:
        match = _find_negation_phrase(text)
        if match:
            return clip_words(match.group("avoid"), 8), match.span("avoid")

        cue = _WRONG.search(text) or _LEADING_NO.search(text)
        if cue is None:
            return None
        action = summarize_action(exchange.prior.text, max_words=8) if exchange.prior else ""
        return (_lower_first(action) if action else "the previous approach"), cue.span()

    @staticmethod
    def _find_redirect(text: str, avoid_span: tuple[int, int] | None) -> _Redirect | None:
        for pattern in _REDIRECTS:
            for match in pattern.finditer(text):
                start, end = match.span("prefer")
                if avoid_span and start < avoid_span[1] and end > avoid_span[0]:
                    continue
                prefer = clip_words(match.group("prefer"), 8)
                if not prefer:
                    continue
                verb = match.groupdict().get("verb")
                return _Redirect(prefer=prefer, verb=verb.lower() if verb else None)
        return None

    @staticmethod
    def _find_acknowledgment(text: str) -> _Redirect | None:
        match = _ACKNOWLEDGMENT.search(_plain(text))
        if not match:
            return None
        prefer = clip_words(match.group("prefer"), 8)
        return _Redirect(prefer=prefer, verb=None) if prefer else None

    def _build(
        self, avoid: str, redirect: _Redirect, span: tuple[int, int], attempt_turn: Turn | None
    ) -> Signal:
        if redirect.verb:
            action = f"{redirect.verb} {redirect.prefer}"
        elif starts_with_verb(redirect.prefer):
            action = redirect.prefer
        else:
            action = f"use {redirect.prefer}"
        action = to_imperative(action)
        prefer_obj = _strip_lead_verb(redirect.prefer)
        avoid_obj = _avoided_activity(avoid)

        title = f"{action} instead of {avoid_obj}"
        sentences = [f"{title}.", f"The user rejected {avoid_obj} and asked for {prefer_obj}."]
        if attempt_turn is not None:
            attempt = summarize_action(attempt_turn.text, max_words=10)
            if attempt:
                sentences.append(f"The rejected attempt was: {_lower_first(attempt)}.")
        return Signal(
            Category.CORRECTION,
            span,
            title=title,
            context=f"When choosing between {prefer_obj} and {avoid_obj}.",
            body=" ".join(sentences),
            source=self.name,
        )


class ApprovalClassifier(TurnClassifier):
    """User explicitly praises the action the assistant just completed."""

    name = "approval"
    min_action_keywords = 2

    def classify(self, exchange: Exchange) -> Signal | None:
        if exchange.user is None or exchange.prior is None:
            return None
        text = _plain(exchange.user.text)
        match = _AFFIRMATION.search(text)
        if match is None or _NEGATED_AFFIRMATION.search(text) or text.endswith("?"):
            return None

        action = summarize_action(exchange.prior.text, max_words=10)
        keywords = extract_keywords(action)
        if len(keywords) < self.min_action_keywords:
            logger.debug("Approval at turn %s ignored: action too vague", exchange.user_index)
            return None

        title = to_imperative(action)
        return Signal(
            Category.APPROVED_PATTERN,
            exchange.span,
            title=title,
            context=f"When doing similar work involving {_join_keywords(keywords[:3])}.",
            body=(
                f"Repeat this approach: {_lower_first(title)}. "
                f'The user approved it explicitly ("{match.group(0).lower()}").'
            ),
            source=self.name,
        )


@dataclass
class _SuccessRecord:
    keywords: frozenset[str]
    count: int = 1
    reported: bool = False


class ObservationClassifier(TurnClassifier):
    """Technical facts and friction stated without user sentiment.

    Also reports an assistant success that recurs without praise, which is
    tracked across the exchanges of one scan.
    """

    name = "observation"
    min_keywords = 2
    repeat_threshold = 2
    repeat_similarity = 0.5

    def __init__(self) -> None:
        self._successes: list[_SuccessRecord] = []

    def reset(self) -> None:
        self._successes = []

    def classify(self, exchange: Exchange) -> Signal | None:
        user_sentiment = exchange.user is not None and (
            has_affirmation_cue(exchange.user.text) or has_negation_cue(exchange.user.text)
        )

        sources: list[Turn] = []
        if exchange.prior is not None:
            sources.append(exchange.prior)
        if exchange.user is not None and not user_sentiment:
            sources.append(exchange.user)

        for turn in sources:
            fact = self._find_fact(turn.text)
            if fact:
                keywords = extract_keywords(fact)
                title = capitalize_first(clip_words(fact, 10))
                return Signal(
                    Category.OBSERVATION,
                    exchange.span,
                    title=title,
                    context=f"When working with {_join_keywords(keywords[:3])}.",
                    body=(
                        f"Keep in mind that {_lower_first(fact)}. "
                        f"Check this before relying on {keywords[0]} again."
                    ),
                    source=self.name,
                )

        if exchange.prior is not None and not user_sentiment:
            return self._track_success(exchange)
        return None

    def _find_fact(self, text: str) -> str | None:
        for sentence in split_sentences(_plain(text)):
            if not any(pattern.search(sentence) for pattern in _FACT_PATTERNS):
                continue
            fact = clip_words(_FACT_LEAD_IN.sub("", sentence), 20)
            if len(extract_keywords(fact)) >= self.min_keywords:
                return fact
        return None

    def _track_success(self, exchange: Exchange) -> Signal | None:
        text = _plain(exchange.prior.text)
        if not _SUCCESS.search(text):
            return None
        action = summarize_action(text, max_words=10)
        key = frozenset(extract_keywords(action, limit=6))
        if len(key) < self.min_keywords:
            return None

        for record in self._successes:
            overlap = len(key & record.keywords) / len(key | record.keywords)
            if overlap < self.repeat_similarity:
                continue
            record.count += 1
            if record.count < self.repeat_threshold or record.reported:
                return None
            record.reported = True
            keywords = extract_keywords(action)
            title = to_imperative(action)
            return Signal(
                Category.OBSERVATION,
                exchange.span,
                title=title,
                context=f"When working with {_join_keywords(keywords[:3])}.",
                body=(
                    f"Repeat this approach: {_lower_first(title)}. "
                    f"It succeeded {record.count} times in one session without needing correction."
                ),
                source=self.name,
            )

        self._successes.append(_SuccessRecord(keywords=key))
        return None


class RuleBasedClassifier(TurnClassifier):
    """Runs every classifier and keeps the dominant signal.

    Dominance follows ``Category`` order: a correction outranks an approval,
    which outranks an observation, so one exchange is never counted twice.
    All classifiers see every exchange so stateful ones stay consistent.
    """

    name = "rule_based"

    def __init__(self, classifiers: Sequence[TurnClassifier] | None = None):
        self.classifiers = list(classifiers) if classifiers is not None else [
            CorrectionClassifier(),
            ApprovalClassifier(),
            ObservationClassifier(),
        ]

    def reset(self) -> None:
        for classifier in self.classifiers:
            classifier.reset()

    def classify(self, exchange: Exchange) -> Signal | None:
        signals = [classifier.classify(exchange) for classifier in self.classifiers]
        matched = [signal for signal in signals if signal is not None]
        if not matched:
            return None
        if len(matched) > 1:
            logger.debug(
                "Exchange %s matched %s; keeping the dominant category",
                exchange.span,
                ", ".join(signal.category.value for signal in matched),
            )
        return min(matched, key=lambda signal: signal.category.rank)


__all__ = [
    "ApprovalClassifier",
    "CorrectionClassifier",
    "Exchange",
    "ObservationClassifier",
    "RuleBasedClassifier",
    "Signal",
    "TurnClassifier",
    "has_affirmation_cue",
    "has_negation_cue",
]
