"""Phrase-level helpers shared by the classifiers, the formatter and dedup.

Everything here is templated field-filling over the transcript's own words:
verbs are normalized to their base form so titles and bodies read as
instructions, and long phrases are clipped to a fixed number of words.
"""

from __future__ import annotations

import re

from session_reflect.core.utils.keywords import normalize_whitespace, split_sentences, tokenize

# Verbs that may open an instruction sentence.
KNOWN_VERBS = frozenset(
    {
        "add",
        "apply",
        "ask",
        "avoid",
        "build",
        "call",
        "change",
        "check",
        "choose",
        "clean",
        "clear",
        "commit",
        "configure",
        "convert",
        "copy",
        "create",
        "default",
        "delete",
        "deploy",
        "disable",
        "document",
        "drop",
        "enable",
        "ensure",
        "exclude",
        "expect",
        "export",
        "extract",
        "favor",
        "favour",
        "fix",
        "follow",
        "format",
        "go",
        "group",
        "handle",
        "import",
        "include",
        "inline",
        "install",
        "keep",
        "limit",
        "load",
        "log",
        "make",
        "merge",
        "mock",
        "move",
        "name",
        "pass",
        "pick",
        "pin",
        "prefer",
        "put",
        "read",
        "rebuild",
        "refactor",
        "reload",
        "remove",
        "rename",
        "repeat",
        "replace",
        "restart",
        "retry",
        "return",
        "reuse",
        "revert",
        "rewrite",
        "rely",
        "run",
        "save",
        "set",
        "skip",
        "sort",
        "split",
        "start",
        "stick",
        "stop",
        "store",
        "switch",
        "test",
        "treat",
        "try",
        "update",
        "upgrade",
        "use",
        "validate",
        "verify",
        "wait",
        "watch",
        "wrap",
        "write",
    }
)

# Leading adverbs that keep a sentence imperative ("Always run ...", "Never commit ...").
_INSTRUCTION_MARKERS = frozenset({"always", "never", "please", "dont", "do", "not", "first", "just"})
_MODAL_MARKERS = frozenset({"should", "must"})

# Two-syllable verbs stressed on the last syllable double their final consonant.
_DOUBLED_FINAL = frozenset(
    {"admit", "commit", "control", "forget", "omit", "permit", "prefer", "refer", "submit"}
)
_VOWEL_GROUP = re.compile(r"[aeiou]+")

_ACTION_LEAD_IN = re.compile(
    r"^(?:(?:sure|ok|okay|done|alright|great|right|got it)[,!.:]?\s+)*"
    r"(?:(?:now|next|then|first)[,]?\s+)?"
    r"(?:i(?:'ve| have)?|i'll|i will|i'm going to|i am going to|let me|let's|we(?:'ve| have)?|we'll)\s+",
    re.IGNORECASE,
)
_SHORT_ACK = re.compile(
    r"^(?:sure|ok|okay|done|alright|got it|will do|thanks|thank you|sorry)\b[^a-z0-9]*$", re.IGNORECASE
)
_TRAILING_PUNCT = re.compile(r"[\s,.;:!?]+$")
_IRREGULAR_PAST = {
    "built": "build",
    "chose": "choose",
    "kept": "keep",
    "made": "make",
    "ran": "run",
    "went": "go",
    "wrote": "write",
}


def clip_words(text: str, limit: int) -> str:
    """Return at most ``limit`` words of ``text`` with trailing punctuation removed."""
    words = normalize_whitespace(text).split(" ")
    return _TRAILING_PUNCT.sub("", " ".join(words[:limit]))


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


def base_form(word: str) -> str:
    """Map an inflected verb (``added``, ``using``, ``tries``) to its base form.

    Only forms whose base is in ``KNOWN_VERBS`` are rewritten; anything else is
    returned unchanged.
    """
    lower = word.lower()
    if lower in KNOWN_VERBS:
        return lower
    if lower in _IRREGULAR_PAST:
        return _IRREGULAR_PAST[lower]

    candidates: list[str] = []
    if lower.endswith("ied") or lower.endswith("ies"):
        candidates.append(lower[:-3] + "y")
    if lower.endswith("ing"):
        stem = lower[:-3]
        candidates.extend([stem, stem + "e"])
        if len(stem) > 2 and stem[-1] == stem[-2]:
            candidates.append(stem[:-1])
    if lower.endswith("ed"):
        candidates.extend([lower[:-2], lower[:-1]])
        if len(lower) > 4 and lower[-3] == lower[-4]:
            candidates.append(lower[:-3])
    if lower.endswith("es"):
        candidates.append(lower[:-2])
    if lower.endswith("s"):
        candidates.append(lower[:-1])

    for candidate in candidates:
        if candidate in KNOWN_VERBS:
            return candidate
    return word


def gerund(verb: str) -> str:
    """Return the ``-ing`` form of a base-form verb (``commit`` -> ``committing``)."""
    lower = verb.lower()
    if lower.endswith("ie"):
        return lower[:-2] + "ying"
    if len(lower) > 2 and lower.endswith("e") and not lower.endswith(("ee", "ye", "oe")):
        return lower[:-1] + "ing"
    if (
        len(lower) >= 3
        and lower[-1] not in "aeiouwxy"
        and lower[-2] in "aeiou"
        and lower[-3] not in "aeiou"
        and (len(_VOWEL_GROUP.findall(lower)) == 1 or lower in _DOUBLED_FINAL)
    ):
        return lower + lower[-1] + "ing"
    return lower + "ing"


def starts_with_verb(phrase: str) -> bool:
    tokens = tokenize(phrase)
    return bool(tokens) and base_form(tokens[0]) in KNOWN_VERBS


def to_imperative(phrase: str) -> str:
    """Rewrite the leading verb of ``phrase`` to its base form and capitalize it."""
    phrase = normalize_whitespace(phrase)
    if not phrase:
        return phrase
    head, _, rest = phrase.partition(" ")
    base = base_form(head)
    if base != head:
        phrase = f"{base} {rest}".strip()
    return capitalize_first(phrase)


def summarize_action(text: str, *, max_words: int = 12) -> str:
    """Describe what an assistant turn did, as a short verb phrase.

    Skips bare acknowledgments ("Sure.", "Done!") and strips first-person
    lead-ins such as "I've" or "Let me".
    """
    for sentence in split_sentences(text):
        if _SHORT_ACK.match(sentence):
            continue
        stripped = _ACTION_LEAD_IN.sub("", sentence)
        clipped = clip_words(stripped, max_words)
        if clipped:
            return clipped
    return ""


def is_instruction(sentence: str) -> bool:
    """True when ``sentence`` reads as an imperative instruction."""
    tokens = tokenize(sentence)
    while tokens and tokens[0] in _INSTRUCTION_MARKERS:
        tokens = tokens[1:]
    if not tokens:
        return False
    if tokens[0] in KNOWN_VERBS:
        return True
    return any(token in _MODAL_MARKERS for token in tokens)


def find_instruction(sentences: list[str]) -> int | None:
    """Index of the first instruction sentence, or ``None``."""
    for index, sentence in enumerate(sentences):
        if is_instruction(sentence):
            return index
    return None


__all__ = [
    "KNOWN_VERBS",
    "base_form",
    "capitalize_first",
    "clip_words",
    "find_instruction",
    "gerund",
    "is_instruction",
    "starts_with_verb",
    "summarize_action",
    "to_imperative",
]
