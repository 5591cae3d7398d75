"""Tests for phrase helpers used to build titles and bodies."""

from __future__ import annotations

import pytest

from session_reflect.reflection.phrases import (
    base_form,
    clip_words,
    find_instruction,
    gerund,
    is_instruction,
    summarize_action,
    to_imperative,
)


@pytest.mark.parametrize(
    "word, expected",
    [
        ("added", "add"),
        ("using", "use"),
        ("tries", "try"),
        ("stopped", "stop"),
        ("running", "run"),
        ("wrote", "write"),
        ("Switched", "switch"),
        ("approach", "approach"),
    ],
)
def test_base_form(word, expected):
    assert base_form(word) == expected


def test_to_imperative_rewrites_leading_verb():
    assert to_imperative("added retries to the fetcher") == "Add retries to the fetcher"
    assert to_imperative("the cache") == "The cache"


@pytest.mark.parametrize(
    "verb, expected",
    [
        ("commit", "committing"),
        ("run", "running"),
        ("push", "pushing"),
        ("edit", "editing"),
        ("write", "writing"),
        ("fix", "fixing"),
        ("tie", "tying"),
    ],
)
def test_gerund(verb, expected):
    assert gerund(verb) == expected


def test_clip_words_drops_trailing_punctuation():
    assert clip_words("one two three, four five", 3) == "one two three"


class TestSummarizeAction:
    def test_strips_first_person_lead_in(self):
        assert summarize_action("Sure! I've added a retry wrapper to the client.") == (
            "added a retry wrapper to the client"
        )

    def test_skips_bare_acknowledgments(self):
        assert summarize_action("Done. Let me run the tests now.") == "run the tests now"

    def test_nothing_to_summarize(self):
        assert summarize_action("Thanks!") == ""


class TestInstructions:
    @pytest.mark.parametrize(
        "sentence",
        [
            "Use spaces instead of tabs.",
            "Always run the linter first.",
            "Don't commit generated files.",
            "Tests should mock the network.",
        ],
    )
    def test_instructions(self, sentence):
        assert is_instruction(sentence)

    @pytest.mark.parametrize("sentence", ["The user was happy.", "It worked on the second try.", ""])
    def test_non_instructions(self, sentence):
        assert not is_instruction(sentence)

    def test_find_instruction_returns_first_index(self):
        assert find_instruction(["The build was slow.", "It took an hour.", "Use a mirror."]) == 2
        assert find_instruction(["The build was slow."]) is None
