"""Signal Extractor - scans a transcript for candidate learnings."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from session_reflect.memory.models import Candidate, Category

from .classifiers import Exchange, RuleBasedClassifier, Signal, TurnClassifier

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from session_reflect.memory.models import LearningEntry

    from .transcript import Transcript

logger = logging.getLogger(__name__)


def iter_exchanges(transcript: Transcript) -> Iterator[Exchange]:
    """Split a transcript into exchanges, in order.

    Each user turn anchors one exchange. An assistant turn that is not followed
    by a user turn forms an exchange of its own, so every assistant turn is the
    judged action of at most one exchange.
    """
    turns = transcript.turns
    count = len(turns)
    for index, turn in enumerate(turns):
        if turn.is_user:
            has_prior = index > 0 and turns[index - 1].is_assistant
            has_reply = index + 1 < count and turns[index + 1].is_assistant
            yield Exchange(
                user=turn,
                user_index=index,
                prior=turns[index - 1] if has_prior else None,
                prior_index=index - 1 if has_prior else None,
                reply=turns[index + 1] if has_reply else None,
                reply_index=index + 1 if has_reply else None,
            )
        elif index + 1 == count or not turns[index + 1].is_user:
            yield Exchange(prior=turn, prior_index=index)


class SignalExtractor:
    """Produces candidates from a transcript using a pluggable classifier.

    Scanning keeps two pending cues:

    * a correction cue without a redirect ("no, that's wrong") waits for the
      next user turn; if that turn names what to do instead, one correction
      spanning both exchanges is produced, otherwise the cue is dropped.
    * an approval waits one exchange; if that exchange turns out to be a
      correction the approval is withdrawn.
    """

    def __init__(self, classifier: TurnClassifier | None = None):
        self.classifier = classifier or RuleBasedClassifier()

    def scan(
        self, transcript: Transcript, existing: Iterable[LearningEntry] = ()
    ) -> Iterator[Candidate]:
        """Yield candidates ordered by the turn that completes their evidence.

        ``existing`` only annotates candidates whose title is already stored;
        filtering is left to the deduplicator. Every call starts from fresh
        state, so scanning the same transcript twice yields the same result.
        """
        known_titles = {entry.title.strip().lower(): entry.title for entry in existing}
        self.classifier.reset()

        pending_correction: Signal | None = None
        pending_approval: Signal | None = None

        for exchange in iter_exchanges(transcript):
            if exchange.user is not None and pending_correction is not None:
                exchange = replace(exchange, pending=pending_correction)
                pending_correction = None

            signal = self.classifier.classify(exchange)

            if pending_approval is not None:
                if signal is not None and signal.category is Category.CORRECTION:
                    logger.debug("Approval '%s' withdrawn by a later correction", pending_approval.title)
                else:
                    yield self._to_candidate(pending_approval, known_titles)
                pending_approval = None

            if signal is None:
                continue
            if signal.category is Category.CORRECTION and not signal.complete:
                pending_correction = signal
            elif signal.category is Category.APPROVED_PATTERN:
                pending_approval = signal
            else:
                yield self._to_candidate(signal, known_titles)

        if pending_approval is not None:
            yield self._to_candidate(pending_approval, known_titles)
        if pending_correction is not None:
            logger.debug(
                "Correction cue at turns %s never received a redirect; ignoring it",
                pending_correction.span,
            )

    @staticmethod
    def _to_candidate(signal: Signal, known_titles: dict[str, str]) -> Candidate:
        logger.debug(
            "%s classifier produced '%s' from turns %s", signal.source or "Unnamed", signal.title, signal.span
        )
        return Candidate(
            category=signal.category,
            evidence_span=signal.span,
            draft_title=signal.title,
            draft_context=signal.context,
            draft_body=signal.body,
            known_title=known_titles.get(signal.title.strip().lower()),
        )


__all__ = ["SignalExtractor", "iter_exchanges"]
