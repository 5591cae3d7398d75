"""Tests for the rule-based exchange classifiers."""

from __future__ import annotations

from session_reflect.memory.models import Category
from session_reflect.reflection.classifiers import (
    ApprovalClassifier,
    CorrectionClassifier,
    Exchange,
    ObservationClassifier,
    RuleBasedClassifier,
    Signal,
    TurnClassifier,
    has_affirmation_cue,
    has_negation_cue,
)
from session_reflect.reflection.transcript import Turn


def exchange(user: str | None, prior: str | None = None, reply: str | None = None) -> Exchange:
    """Exchange laid out as prior (0), user (1), reply (2)."""
    return Exchange(
        user=Turn("user", user) if user is not None else None,
        user_index=1 if user is not None else None,
        prior=Turn("assistant", prior) if prior is not None else None,
        prior_index=0 if prior is not None else None,
        reply=Turn("assistant", reply) if reply is not None else None,
        reply_index=2 if reply is not None else None,
    )


class TestCues:
    def test_negation_cues(self):
        assert has_negation_cue("Don't use tabs.")
        assert has_negation_cue("No, that's wrong.")
        assert has_negation_cue("That is not what I asked for")

    def test_polite_phrases_are_not_negations(self):
        assert not has_negation_cue("No worries, carry on.")
        assert not has_negation_cue("Don't worry about the formatting.")
        assert not has_negation_cue("Nothing else for now.")

    def test_affirmation_cues(self):
        assert has_affirmation_cue("Perfect, thanks!")
        assert has_affirmation_cue("looks good to me")
        assert not has_affirmation_cue("That's not great.")
        assert not has_affirmation_cue("Run the tests.")


class TestCorrectionClassifier:
    def test_negation_with_redirect(self):
        signal = CorrectionClassifier().classify(
            exchange("don't use approach A, use approach B instead")
        )

        assert signal is not None
        assert signal.category is Category.CORRECTION
        assert signal.complete
        assert signal.title == "Use approach B instead of approach A"
        assert signal.context == "When choosing between approach B and approach A."
        assert signal.body == (
            "Use approach B instead of approach A. "
            "The user rejected approach A and asked for approach B."
        )
        assert signal.span == (1, 1)

    def test_rejected_attempt_is_described(self):
        signal = CorrectionClassifier().classify(
            exchange(
                "Don't use tabs, use spaces instead.",
                prior="I indented the module with tabs.",
            )
        )

        assert signal.title == "Use spaces instead of tabs"
        assert signal.body.endswith("The rejected attempt was: indented the module with tabs.")
        assert signal.span == (0, 1)

    def test_rejected_verb_is_kept(self):
        signal = CorrectionClassifier().classify(
            exchange("Never commit directly to main, use feature branches instead.")
        )

        assert signal.title == "Use feature branches instead of committing directly to main"
        assert signal.context == "When choosing between feature branches and committing directly to main."

    def test_acknowledgment_supplies_redirect(self):
        signal = CorrectionClassifier().classify(
            exchange(
                "Don't use print statements.",
                prior="I added print statements for debugging.",
                reply="Understood, switching to the logging module.",
            )
        )

        assert signal is not None
        assert signal.complete
        assert signal.title == "Use the logging module instead of print statements"
        assert signal.span == (0, 2)

    def test_negation_without_redirect_is_incomplete(self):
        signal = CorrectionClassifier().classify(
            exchange("No, that's wrong.", prior="I wrote the config loader with pickle.")
        )

        assert signal is not None
        assert signal.complete is False
        assert signal.cue == "wrote the config loader with pickle"

    def test_pending_cue_completed_by_redirect(self):
        pending = Signal(Category.CORRECTION, (0, 1), complete=False, cue="wrote the config loader with pickle")
        current = Exchange(
            user=Turn("user", "Use JSON for the config files."),
            user_index=3,
            prior=Turn("assistant", "Sorry, what should I use?"),
            prior_index=2,
            pending=pending,
        )

        signal = CorrectionClassifier().classify(current)

        assert signal.complete
        assert signal.span == (0, 3)
        assert signal.title == "Use JSON for the config files instead of the config loader with pickle"

    def test_plain_request_is_not_a_correction(self):
        assert CorrectionClassifier().classify(exchange("Use JSON for the config files.")) is None


class TestApprovalClassifier:
    def test_praise_after_concrete_action(self):
        signal = ApprovalClassifier().classify(
            exchange("Perfect, that works.", prior="I added exponential backoff retries to the HTTP fetcher.")
        )

        assert signal is not None
        assert signal.category is Category.APPROVED_PATTERN
        assert signal.title == "Add exponential backoff retries to the HTTP fetcher"
        assert signal.body == (
            "Repeat this approach: add exponential backoff retries to the HTTP fetcher. "
            'The user approved it explicitly ("perfect").'
        )

    def test_vague_action_is_ignored(self):
        assert ApprovalClassifier().classify(exchange("Great!", prior="Done.")) is None

    def test_questions_and_negated_praise_are_ignored(self):
        prior = "I added exponential backoff retries to the HTTP fetcher."
        assert ApprovalClassifier().classify(exchange("Is that really great?", prior=prior)) is None
        assert ApprovalClassifier().classify(exchange("That's not great.", prior=prior)) is None

    def test_needs_an_assistant_action(self):
        assert ApprovalClassifier().classify(exchange("Perfect!")) is None


class TestObservationClassifier:
    def test_fact_in_assistant_turn(self):
        signal = ObservationClassifier().classify(
            exchange(None, prior="It turns out the linker requires libssl version 3 on this host.")
        )

        assert signal is not None
        assert signal.category is Category.OBSERVATION
        assert signal.title == "The linker requires libssl version 3 on this host"
        assert signal.body.startswith("Keep in mind that the linker requires libssl version 3 on this host.")

    def test_user_fact_ignored_when_user_expresses_sentiment(self):
        classifier = ObservationClassifier()

        assert classifier.classify(exchange("Perfect, the API requires an auth token anyway.")) is None
        assert classifier.classify(exchange("FYI the API requires an auth token for uploads.")) is not None

    def test_repeated_success_reported_once(self):
        classifier = ObservationClassifier()
        first = classifier.classify(exchange(None, prior="I ran the migration script and the tests pass."))
        second = classifier.classify(
            exchange(None, prior="I ran the migration script against staging and the tests pass.")
        )
        third = classifier.classify(exchange(None, prior="I ran the migration script and the tests pass."))

        assert first is None
        assert second is not None
        assert "succeeded 2 times" in second.body
        assert third is None

    def test_reset_forgets_successes(self):
        classifier = ObservationClassifier()
        classifier.classify(exchange(None, prior="I ran the migration script and the tests pass."))
        classifier.reset()

        assert classifier.classify(exchange(None, prior="I ran the migration script and the tests pass.")) is None


class TestRuleBasedClassifier:
    def test_correction_dominates_praise(self):
        signal = RuleBasedClassifier().classify(
            exchange("Perfect, but don't use tabs, use spaces instead.", prior="I indented the file with tabs.")
        )

        assert signal.category is Category.CORRECTION
        assert signal.title == "Use spaces instead of tabs"

    def test_praise_dominates_observation(self):
        signal = RuleBasedClassifier().classify(
            exchange(
                "Looks good!",
                prior="I found that the parser requires a trailing newline, so I added one to the fixtures.",
            )
        )

        assert signal.category is Category.APPROVED_PATTERN

    def test_custom_classifiers_are_pluggable(self):
        class AlwaysObserve(TurnClassifier):
            name = "always"

            def classify(self, exchange):
                return Signal(Category.OBSERVATION, exchange.span, title="Stub", source=self.name)

        signal = RuleBasedClassifier([AlwaysObserve()]).classify(exchange("hello"))

        assert signal.title == "Stub"
        assert signal.source == "always"

    def test_ambiguous_exchange_yields_nothing(self):
        assert RuleBasedClassifier().classify(exchange("Can you also update the README?")) is None
