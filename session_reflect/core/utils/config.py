"""Configuration loading utilities for reflection runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib


CONFIG_FILENAMES: tuple[str, ...] = (".session-reflect.toml", "session-reflect.toml")
DEFAULT_CONFIG_PATHS = (Path.home() / ".config" / "session-reflect" / "config.toml",)
ENV_PREFIX = "SESSION_REFLECT_"
SIMILARITY_METHODS = ("token_overlap", "tfidf")


def find_config_in_parents(
    start_path: Path, config_name: str | Sequence[str] = ".session-reflect.toml"
) -> Path | None:
    """Search parent directories starting from ``start_path`` for configuration files."""

    if isinstance(config_name, str):
        candidate_names: tuple[str, ...] = (config_name,)
    else:
        candidate_names = tuple(config_name)

    current = start_path.resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in candidate_names:
            candidate = current / name
            if candidate.is_file():
                return candidate.resolve()
        if current.parent == current:
            break
        current = current.parent
    return None


@dataclass
class Settings:
    """Runtime configuration for reflection runs."""

    store_path: Path = Path(".session-reflect/LEARNINGS.md")
    similarity_threshold: float = 0.6
    similarity_method: str = "token_overlap"
    max_body_sentences: int = 3
    log_level: str = "INFO"
    structured_logging: bool = False

    def validate(self) -> None:
        """Raise ``ValueError`` when a setting is out of range."""
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be within [0, 1], got {self.similarity_threshold}"
            )
        if self.similarity_method not in SIMILARITY_METHODS:
            raise ValueError(
                f"Unknown similarity_method '{self.similarity_method}' "
                f"(expected one of: {', '.join(SIMILARITY_METHODS)})"
            )
        if self.max_body_sentences < 1:
            raise ValueError(
                f"max_body_sentences must be positive, got {self.max_body_sentences}"
            )


def _cast_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {"1", "true", "on", "yes", "y"}
    return bool(value)


def _load_from_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    return {k.replace("-", "_"): v for k, v in data.items()}


def _load_from_env(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    env: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        field = key[len(prefix) :].lower()
        if field == "structured_logging":
            env[field] = _cast_bool(value)
        elif field == "max_body_sentences":
            env[field] = int(value)
        elif field == "similarity_threshold":
            env[field] = float(value)
        elif field == "store_path":
            env[field] = Path(value)
        else:
            env[field] = value
    return env


def load_settings(explicit_path: Path | None = None) -> Settings:
    """Load configuration, merging file and environment sources."""

    file_data: dict[str, Any] = {}
    if explicit_path:
        file_data.update(_load_from_file(explicit_path))
    else:
        search_paths = []
        cwd = Path.cwd()
        project_config = find_config_in_parents(cwd, CONFIG_FILENAMES)
        if project_config:
            search_paths.append(project_config)
        search_paths.extend(DEFAULT_CONFIG_PATHS)
        for candidate in search_paths:
            file_data = _load_from_file(candidate)
            if file_data:
                break

    env_data = _load_from_env()
    merged: dict[str, Any] = {**file_data, **env_data}

    if "store_path" in merged and isinstance(merged["store_path"], str):
        merged["store_path"] = Path(merged["store_path"]).expanduser()
    if "similarity_threshold" in merged:
        merged["similarity_threshold"] = float(merged["similarity_threshold"])
    if "structured_logging" in merged:
        merged["structured_logging"] = _cast_bool(merged["structured_logging"])

    known_fields = set(Settings.__dataclass_fields__)
    init_kwargs = {key: value for key, value in merged.items() if key in known_fields}
    settings = Settings(**init_kwargs)
    settings.validate()
    return settings


__all__ = ["CONFIG_FILENAMES", "SIMILARITY_METHODS", "Settings", "find_config_in_parents", "load_settings"]
