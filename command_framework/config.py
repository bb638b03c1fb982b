"""Configuration management for command_framework.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a Config object. Property getters provide safe access with
defaults for the parser prefix and the logging subsystem.

Example settings.yaml::

    prefix: "!"
    log_dir: ~/.local/state/command_framework
    logging:
      level: INFO
      subsystem_levels:
        parser: DEBUG
      max_file_size_mb: 10
      backup_count: 5
      input_max_length: 200

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("command_framework.config")

DEFAULT_PREFIX = "!"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Config:
    """Central configuration manager.

    Loads settings.yaml and .env from the config directory. Nothing is
    mutated after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``COMMAND_FRAMEWORK_CONFIG_DIR`` or ``<cwd>/config``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            env_dir = os.environ.get("COMMAND_FRAMEWORK_CONFIG_DIR")
            config_dir = Path(env_dir) if env_dir else Path.cwd() / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if not filepath.exists():
            return {}
        with open(filepath, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Cannot parse {filepath}: {e}", setting_name=filename
                ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{filepath} must contain a mapping, got {type(data).__name__}",
                setting_name=filename,
            )
        return data

    def validate(self):
        """Validate settings at startup.

        Raises ConfigurationError for values the parser cannot use and
        logs warnings for values that are merely suspicious.
        """
        prefix = self.prefix
        if not isinstance(prefix, str):
            raise ConfigurationError(
                f"prefix must be a string, got {type(prefix).__name__}",
                setting_name="prefix",
            )
        if prefix == "":
            logger.warning("empty_prefix", msg="Every input line will be treated as a command")
        elif prefix != prefix.strip():
            logger.warning("prefix_has_whitespace", prefix=prefix)

        if str(self.logging_level).upper() not in _LOG_LEVELS:
            logger.error(
                "config_invalid_value",
                key="logging.level",
                value=self.logging_level,
                valid=sorted(_LOG_LEVELS),
            )

        max_length = self.log_input_max_length
        if not isinstance(max_length, int) or max_length < 1:
            logger.error(
                "config_invalid_value",
                key="logging.input_max_length",
                value=max_length,
                valid=">= 1",
            )

    @property
    def prefix(self) -> str:
        """Command prefix. Env var COMMAND_PREFIX takes precedence."""
        env_prefix = os.environ.get("COMMAND_PREFIX")
        if env_prefix is not None:
            return env_prefix
        return self.settings.get("prefix", DEFAULT_PREFIX)

    @property
    def log_dir(self) -> Optional[Path]:
        """Log directory path. None means console-only logging."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return None

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"parser": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)

    @property
    def log_input_max_length(self) -> int:
        """Longest raw input line written to logs before truncation (default 200)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("input_max_length", 200)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the global config so the next get_config() reloads it."""
    global _config
    _config = None
