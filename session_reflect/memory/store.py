"""Memory Store - append-only Markdown log of learnings.

Each entry is a fixed block::

    ## Correction: Use approach B instead of approach A
    **Date:** 2026-10-18
    **Confidence:** HIGH
    **Context:** When choosing an approach for this task.

    Use approach B instead of approach A. ...

    ---

Readers never lock: appends rewrite the file through a temp file and an atomic
rename, so a reader sees either the previous or the new content.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

from session_reflect.errors import StoreReadError, StoreWriteError

from .models import Category, Confidence, LearningEntry

if TYPE_CHECKING:
    from collections.abc import Iterator

try:
    import fcntl
except ImportError:  # pragma: no cover - Windows has no flock
    fcntl = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

ENTRY_SEPARATOR = "---"

_HEADER = re.compile(r"^##\s+(?P<label>[^:\n]+?)\s*:\s*(?P<title>.+?)\s*$", re.MULTILINE)
_FIELD = re.compile(r"^\*\*(?P<key>Date|Confidence|Context):\*\*\s*(?P<value>.*?)\s*$", re.IGNORECASE)
_SEPARATOR_LINE = re.compile(r"^[ \t]*---[ \t]*$", re.MULTILINE)


def serialize_entry(entry: LearningEntry) -> str:
    """Render ``entry`` as a store block, terminated by the separator line."""
    return (
        f"## {entry.category.label}: {entry.title}\n"
        f"**Date:** {entry.date.isoformat()}\n"
        f"**Confidence:** {entry.confidence.value}\n"
        f"**Context:** {entry.context}\n"
        "\n"
        f"{entry.body}\n"
        "\n"
        f"{ENTRY_SEPARATOR}\n"
    )


def _parse_block(block: str) -> LearningEntry:
    lines = block.strip().splitlines()
    header = _HEADER.match(lines[0].strip())
    if not header:
        raise ValueError("missing '## <Category>: <Title>' header")

    category = Category.from_label(header.group("label"))

    fields: dict[str, str] = {}
    body_lines: list[str] = []
    for line in lines[1:]:
        stripped = line.strip()
        match = _FIELD.match(stripped)
        if match and not body_lines:
            fields[match.group("key").lower()] = match.group("value")
        elif stripped or body_lines:
            body_lines.append(stripped)

    missing = [key for key in ("date", "confidence", "context") if not fields.get(key)]
    if missing:
        raise ValueError(f"missing field(s): {', '.join(missing)}")

    try:
        created = date.fromisoformat(fields["date"])
    except ValueError as exc:
        raise ValueError(f"invalid date {fields['date']!r}") from exc

    try:
        confidence = Confidence(fields["confidence"].upper())
    except ValueError as exc:
        raise ValueError(f"invalid confidence {fields['confidence']!r}") from exc

    body = " ".join(line for line in body_lines if line)
    if not body:
        raise ValueError("empty body")

    return LearningEntry(
        title=header.group("title"),
        date=created,
        confidence=confidence,
        context=fields["context"],
        body=body,
        category=category,
    )


def parse_entries(text: str) -> list[LearningEntry]:
    """Parse store text into entries, in file order.

    Free text before the first ``## `` header is ignored, as is a missing
    separator after the last block. Raises ``ValueError`` on a malformed block.
    """
    text = text.replace("\r\n", "\n")
    first_header = _HEADER.search(text)
    if not first_header:
        return []

    entries: list[LearningEntry] = []
    for index, block in enumerate(_SEPARATOR_LINE.split(text[first_header.start() :]), start=1):
        if not block.strip():
            continue
        try:
            entries.append(_parse_block(block))
        except ValueError as exc:
            first_line = block.strip().splitlines()[0]
            raise ValueError(f"block {index} ({first_line[:60]!r}): {exc}") from exc
    return entries


class MemoryStore:
    """Append-only store of learnings backed by a Markdown file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"MemoryStore(path={str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.exists()

    def load_all(self) -> list[LearningEntry]:
        """Return every stored entry in append order.

        A missing file is an empty store. Raises ``StoreReadError`` when the
        file cannot be read or contains a malformed block.
        """
        if not self.path.exists():
            logger.debug("Learnings store %s does not exist yet; treating as empty", self.path)
            return []

        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreReadError(self.path, str(exc)) from exc

        try:
            entries = parse_entries(text)
        except ValueError as exc:
            raise StoreReadError(self.path, str(exc)) from exc

        logger.debug("Loaded %d entries from %s", len(entries), self.path)
        return entries

    def append(self, entry: LearningEntry) -> None:
        """Append ``entry``; all-or-nothing. Raises ``StoreWriteError`` on failure."""
        block = serialize_entry(entry)
        try:
            with self._exclusive():
                existing = self.path.read_text(encoding="utf-8") if self.path.exists() else ""
                self._write_atomic(self._join(existing, block))
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreWriteError(self.path, str(exc)) from exc

        logger.debug("Appended entry '%s' to %s", entry.title, self.path)

    @staticmethod
    def _join(existing: str, block: str) -> str:
        trimmed = existing.rstrip()
        if not trimmed:
            return block
        if _HEADER.search(trimmed) and not trimmed.endswith(ENTRY_SEPARATOR):
            # Close a hand-edited final block so the new one stays separate.
            trimmed = f"{trimmed}\n\n{ENTRY_SEPARATOR}"
        return f"{trimmed}\n\n{block}"

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Serialize writers within the process and across processes."""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lock_path = self.path.with_name(f"{self.path.name}.lock")
            with lock_path.open("a") as handle:
                if fcntl is not None:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    if fcntl is not None:
                        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def _write_atomic(self, content: str) -> None:
        temp_path = self.path.with_name(f".{self.path.name}.{uuid4().hex}.tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise


__all__ = ["ENTRY_SEPARATOR", "MemoryStore", "parse_entries", "serialize_entry"]
