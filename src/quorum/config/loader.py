"""Layered TOML configuration.

Each source contributes one layer; layers are merged lowest priority
first:

    defaults < user file < ./quorum.toml < $QUORUM_CONFIG < explicit path
             < $QUORUM_LOG_LEVEL < programmatic overrides

User file is ``$XDG_CONFIG_HOME/quorum/config.toml`` (``~/.config`` when
unset). Tables merge key by key; arrays such as ``participants`` are
replaced wholesale.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from quorum.core.errors import ConfigError

from .schema import QuorumConfig

ENV_CONFIG = "QUORUM_CONFIG"
ENV_LOG_LEVEL = "QUORUM_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class ConfigLayer:
    """One source of settings and where it came from."""

    source: str
    data: dict[str, Any]


def user_config_path() -> Path:
    root = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(root) / "quorum" / "config.toml"


def _file_layer(path: Path, source: str) -> ConfigLayer:
    try:
        raw = path.read_bytes()
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e
    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    return ConfigLayer(source=source, data=data)


def config_layers(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> list[ConfigLayer]:
    """Collect every present layer in merge order."""
    layers: list[ConfigLayer] = []

    for candidate, source in (
        (user_config_path(), "user"),
        (Path.cwd() / "quorum.toml", "project"),
    ):
        if candidate.is_file():
            layers.append(_file_layer(candidate, source))

    env_path = os.environ.get(ENV_CONFIG)
    if env_path:
        if not Path(env_path).is_file():
            msg = f"{ENV_CONFIG} points to non-existent file: {env_path}"
            raise ConfigError(msg)
        layers.append(_file_layer(Path(env_path), ENV_CONFIG))

    if path is not None:
        explicit = Path(path)
        if not explicit.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        layers.append(_file_layer(explicit, "explicit"))

    level = os.environ.get(ENV_LOG_LEVEL)
    if level:
        layers.append(ConfigLayer(ENV_LOG_LEVEL, {"logging": {"level": level.upper()}}))

    if overrides:
        layers.append(ConfigLayer("overrides", overrides))
    return layers


def merge_tables(low: dict[str, Any], high: dict[str, Any]) -> dict[str, Any]:
    """Merge *high* over *low* without mutating either."""
    out = dict(low)
    for key, value in high.items():
        current = out.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            out[key] = merge_tables(current, value)
        else:
            out[key] = value
    return out


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> QuorumConfig:
    """Load, merge and validate configuration.

    Raises:
        ConfigError: Unreadable or invalid TOML, a missing file, schema
            validation failure, or duplicate participant ids.
    """
    merged: dict[str, Any] = {}
    for layer in config_layers(path, overrides):
        merged = merge_tables(merged, layer.data)

    try:
        config = QuorumConfig.model_validate(merged)
    except ValidationError as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e

    seen: set[str] = set()
    duplicates: set[str] = set()
    for participant in config.participants:
        if participant.id in seen:
            duplicates.add(participant.id)
        seen.add(participant.id)
    if duplicates:
        msg = f"Duplicate participant ids: {', '.join(sorted(duplicates))}"
        raise ConfigError(msg)
    return config
