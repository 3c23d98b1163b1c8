"""Configuration system with YAML loading and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from localtts.core.constants import (
    CONFIG_DIR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_QUALITY,
    DEFAULT_TEMP_DIR,
    ENGINE_AUTO,
    ENGINE_NAMES,
    QUALITY_TIERS,
)
from localtts.core.exceptions import ConfigError

# Environment variable -> dotted config key
ENV_OVERRIDES = {
    "TTS_OUTPUT_DIR": "output_dir",
    "TTS_TEMP_DIR": "temp_dir",
    "TTS_DEFAULT_ENGINE": "default_engine",
    "TTS_DEFAULT_QUALITY": "default_quality",
    "PYTHON_EXECUTABLE": "python_executable",
    "TTS_LOG_LEVEL": "logging.level",
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def apply_env_overrides(data: dict, environ: Mapping[str, str]) -> dict:
    """Overlay the TTS_* environment variables onto raw config data."""
    for env_name, key in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if not value:
            continue
        override: dict[str, Any] = {}
        node = override
        *parents, leaf = key.split(".")
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
        data = deep_merge(data, override)
    return data


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


@dataclass
class PlaybackConfig:
    # Player argv prefix; the file path is appended. None = autodetect.
    command: Optional[list[str]] = None


@dataclass
class AppConfig:
    output_dir: str = str(DEFAULT_OUTPUT_DIR)
    temp_dir: str = str(DEFAULT_TEMP_DIR)
    default_engine: str = ENGINE_AUTO
    default_quality: str = DEFAULT_QUALITY
    python_executable: Optional[str] = None
    engines: dict = field(default_factory=dict)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    logging: dict = field(default_factory=dict)

    def engine_settings(self, name: str) -> dict:
        """Settings block for one engine (empty dict if unset)."""
        return self.engines.get(name) or {}

    def engine_enabled(self, name: str) -> bool:
        return bool(self.engine_settings(name).get("enabled", True))

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """Load defaults, apply user YAML overlay, then environment."""
        config_data: dict = {}

        default_path = CONFIG_DIR / "default.yaml"
        if default_path.exists():
            config_data = _read_yaml(default_path)

        # Apply user override
        if config_path:
            user_path = Path(config_path)
            if not user_path.exists():
                raise ConfigError(f"User config not found: {user_path}")
            config_data = deep_merge(config_data, _read_yaml(user_path))

        config_data = apply_env_overrides(
            config_data, os.environ if environ is None else environ
        )
        return cls._from_dict(config_data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "AppConfig":
        playback_data = data.get("playback") or {}

        default_engine = data.get("default_engine") or ENGINE_AUTO
        if default_engine not in (ENGINE_AUTO, *ENGINE_NAMES):
            raise ConfigError(f"Unknown default engine: {default_engine}")

        default_quality = data.get("default_quality") or DEFAULT_QUALITY
        if default_quality not in QUALITY_TIERS:
            raise ConfigError(f"Unknown default quality: {default_quality}")

        command = playback_data.get("command")
        if isinstance(command, str):
            command = command.split()

        return cls(
            output_dir=str(Path(data.get("output_dir") or DEFAULT_OUTPUT_DIR).expanduser()),
            temp_dir=str(Path(data.get("temp_dir") or DEFAULT_TEMP_DIR).expanduser()),
            default_engine=default_engine,
            default_quality=default_quality,
            python_executable=data.get("python_executable") or None,
            engines=data.get("engines") or {},
            playback=PlaybackConfig(command=command or None),
            logging=data.get("logging") or {},
        )
