"""Read-only transcript model supplied by the host session."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from session_reflect.errors import TranscriptError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

USER = "user"
ASSISTANT = "assistant"
ROLES = (USER, ASSISTANT)


@dataclass(frozen=True)
class Turn:
    """One message in the conversation."""

    role: str
    text: str

    @property
    def is_user(self) -> bool:
        return self.role == USER

    @property
    def is_assistant(self) -> bool:
        return self.role == ASSISTANT


@dataclass(frozen=True)
class Transcript:
    """Ordered, immutable sequence of turns."""

    turns: tuple[Turn, ...] = ()

    def __len__(self) -> int:
        return len(self.turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)

    def __getitem__(self, index: int) -> Turn:
        return self.turns[index]

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> Transcript:
        """Build a transcript from ``{"role": ..., "text": ...}`` records.

        ``content`` is accepted as an alias for ``text``.
        """
        turns: list[Turn] = []
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise TranscriptError(f"Turn {index} is not an object: {record!r}")
            role = str(record.get("role", "")).strip().lower()
            if role not in ROLES:
                raise TranscriptError(
                    f"Turn {index} has unsupported role {record.get('role')!r} "
                    f"(expected one of: {', '.join(ROLES)})"
                )
            text = record.get("text", record.get("content"))
            if not isinstance(text, str):
                raise TranscriptError(f"Turn {index} has no text")
            turns.append(Turn(role=role, text=text))
        return cls(turns=tuple(turns))

    @classmethod
    def load(cls, path: Path | str) -> Transcript:
        """Load a transcript from JSON (array or ``{"turns": [...]}``) or JSON Lines."""
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TranscriptError(f"Cannot read transcript {path}: {exc}") from exc

        if not raw.strip():
            return cls()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            data = _parse_json_lines(raw, path)

        if isinstance(data, dict):
            # A one-line JSON Lines file parses as a single turn object.
            data = [data] if "turns" not in data and "role" in data else data.get("turns")
        if not isinstance(data, list):
            raise TranscriptError(f"Transcript {path} must contain a list of turns")
        return cls.from_records(data)

    def to_records(self) -> list[dict[str, str]]:
        return [{"role": turn.role, "text": turn.text} for turn in self.turns]


def _parse_json_lines(raw: str, path: Path) -> list[Any]:
    records = []
    for line_number, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise TranscriptError(f"Transcript {path} line {line_number} is not valid JSON: {exc}") from exc
    return records


__all__ = ["ASSISTANT", "ROLES", "USER", "Transcript", "Turn"]
