"""Shared pytest fixtures for session-reflect tests."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from session_reflect.core.utils import config as config_module
from session_reflect.core.utils.config import ENV_PREFIX
from session_reflect.core.utils.logger import set_correlation_id
from session_reflect.reflection.transcript import Transcript


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep user config files, SESSION_REFLECT_* variables and log handlers out of tests."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", ())
    monkeypatch.chdir(tmp_path)

    yield

    logger = logging.getLogger("session_reflect")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    set_correlation_id(None)


@pytest.fixture
def make_transcript():
    """Build a transcript from ``(role, text)`` pairs."""

    def _make(*turns: tuple[str, str]) -> Transcript:
        return Transcript.from_records({"role": role, "text": text} for role, text in turns)

    return _make


@pytest.fixture
def scenario_transcript(make_transcript) -> Transcript:
    return make_transcript(
        ("user", "don't use approach A, use approach B instead"),
        ("assistant", "ok, switching to B"),
    )


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "memory" / "LEARNINGS.md"
