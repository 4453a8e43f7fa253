"""Configuration loader for crondesk."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cron.validation import DANGEROUS_PATTERNS

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


@dataclass
class DescriptionConfig:
    locale: str = "en"


@dataclass
class SafetyConfig:
    blocked_commands: list[str] = field(
        default_factory=lambda: list(DANGEROUS_PATTERNS)
    )


@dataclass
class SchedulerConfig:
    # External job scheduler that stores jobs and computes run times
    base_url: str = "http://127.0.0.1:8766"
    timeout: float = 10.0
    next_runs_count: int = 5


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    """Application configuration."""

    description: DescriptionConfig = field(default_factory=DescriptionConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _accepts(default: Any, value: Any) -> bool:
    """Check a loaded value against the type of the field's default."""
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, float):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool)
    if isinstance(default, list):
        return isinstance(value, list) and all(isinstance(v, str) for v in value)
    return isinstance(value, type(default))


def _dict_to_dataclass(cls: type, data: dict[str, Any]) -> Any:
    """Convert a dict to a dataclass, ignoring unknown fields.

    Values whose type does not match the field default are dropped with a
    warning, so the default stays in effect.
    """
    if not isinstance(data, dict) or not data:
        return cls()
    defaults = cls()
    filtered = {}
    for name in cls.__dataclass_fields__:
        if name not in data:
            continue
        value = data[name]
        if not _accepts(getattr(defaults, name), value):
            logger.warning(
                "Ignoring %s.%s=%r: expected %s",
                cls.__name__, name, value, type(getattr(defaults, name)).__name__,
            )
            continue
        filtered[name] = value
    return cls(**filtered)


def load_config(path: Path | None = None) -> Config:
    """Load configuration from YAML file.

    Falls back to defaults if config file doesn't exist.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        logger.warning(
            "Config file not found at %s. Using defaults. "
            "Copy config.example.yaml to config.yaml to customize.",
            config_path,
        )
        return Config()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    return Config(
        description=_dict_to_dataclass(DescriptionConfig, raw.get("description", {})),
        safety=_dict_to_dataclass(SafetyConfig, raw.get("safety", {})),
        scheduler=_dict_to_dataclass(SchedulerConfig, raw.get("scheduler", {})),
        server=_dict_to_dataclass(ServerConfig, raw.get("server", {})),
        logging=_dict_to_dataclass(LoggingConfig, raw.get("logging", {})),
    )


# Singleton config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance, loading it on first access."""
    global _config
    if _config is None:
        _config = load_config()
    return _config

