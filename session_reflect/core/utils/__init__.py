"""Shared utilities: configuration, logging and text helpers."""

from __future__ import annotations

from .config import CONFIG_FILENAMES, Settings, find_config_in_parents, load_settings
from .keywords import (
    content_tokens,
    extract_keywords,
    normalize_whitespace,
    split_sentences,
    tokenize,
)
from .logger import configure_logging, get_correlation_id, get_logger, set_correlation_id

__all__ = [
    "CONFIG_FILENAMES",
    "Settings",
    "configure_logging",
    "content_tokens",
    "extract_keywords",
    "find_config_in_parents",
    "get_correlation_id",
    "get_logger",
    "load_settings",
    "normalize_whitespace",
    "set_correlation_id",
    "split_sentences",
    "tokenize",
]
