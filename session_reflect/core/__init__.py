"""Core infrastructure primitives for session-reflect."""

from __future__ import annotations

from .utils import (
    CONFIG_FILENAMES,
    Settings,
    configure_logging,
    content_tokens,
    extract_keywords,
    find_config_in_parents,
    get_correlation_id,
    get_logger,
    load_settings,
    normalize_whitespace,
    set_correlation_id,
    split_sentences,
    tokenize,
)

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
