"""Configuration loading and management."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from weaver.constants import (
    API_MODES,
    DEFAULT_API_MODE,
    DEFAULT_MAX_READ_MB,
    DEFAULT_MAX_TURNS,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_URL,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TASK_LOG_LIMIT,
    WORKSPACE_DIR,
)
from weaver.errors import ConfigurationError


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# Keys accepted from .weaver/config.json
_FILE_KEYS = {
    "ollama_url": str,
    "ollama_model": str,
    "api_mode": str,
    "max_turns": int,
    "request_timeout": float,
    "probe_timeout": float,
    "task_log_limit": int,
    "enforce_read_before_write": _to_bool,
    "max_read_mb": int,
}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return _to_bool(value)


def _env_number(name: str, cast: type, default):
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


@dataclass
class Config:
    """Weaver configuration.

    Loads from .env and optionally .weaver/config.json
    """

    # Model endpoint
    ollama_url: Optional[str] = DEFAULT_OLLAMA_URL
    ollama_model: Optional[str] = DEFAULT_MODEL
    api_mode: str = DEFAULT_API_MODE

    # Timeouts
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT

    # Agent loop
    max_turns: int = DEFAULT_MAX_TURNS
    task_log_limit: int = DEFAULT_TASK_LOG_LIMIT
    enforce_read_before_write: bool = True

    # File limits
    max_read_mb: int = DEFAULT_MAX_READ_MB

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> "Config":
        """Load configuration from environment and project-specific config.

        Args:
            project_root: Project root directory (for .weaver/config.json)

        Returns:
            Config instance
        """
        load_dotenv()

        config = cls(
            ollama_url=os.getenv("WEAVER_OLLAMA_URL", DEFAULT_OLLAMA_URL),
            ollama_model=os.getenv("WEAVER_MODEL", DEFAULT_MODEL),
            api_mode=os.getenv("WEAVER_API_MODE", DEFAULT_API_MODE).lower(),
            request_timeout=_env_number("WEAVER_REQUEST_TIMEOUT", float, DEFAULT_REQUEST_TIMEOUT),
            probe_timeout=_env_number("WEAVER_PROBE_TIMEOUT", float, DEFAULT_PROBE_TIMEOUT),
            max_turns=_env_number("WEAVER_MAX_TURNS", int, DEFAULT_MAX_TURNS),
            task_log_limit=_env_number("WEAVER_TASK_LOG_LIMIT", int, DEFAULT_TASK_LOG_LIMIT),
            enforce_read_before_write=_env_bool("WEAVER_ENFORCE_READ_BEFORE_WRITE", True),
            max_read_mb=_env_number("WEAVER_MAX_READ_MB", int, DEFAULT_MAX_READ_MB),
        )

        if project_root:
            config_path = project_root / WORKSPACE_DIR / "config.json"
            if config_path.exists():
                try:
                    with open(config_path) as f:
                        config.apply_overrides(json.load(f))
                except (json.JSONDecodeError, IOError, TypeError, ValueError):
                    pass  # Ignore invalid config

        return config

    def apply_overrides(self, overrides: dict) -> None:
        """Apply known keys from a config dict, coercing to the field type.

        Nothing is applied unless every value coerces.

        Raises:
            ValueError, TypeError: A value has the wrong type
        """
        coerced = {
            key: cast(overrides[key])
            for key, cast in _FILE_KEYS.items()
            if key in overrides and overrides[key] is not None
        }
        for key, value in coerced.items():
            setattr(self, key, value)

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.ollama_url:
            errors.append("Ollama URL is not configured. Set WEAVER_OLLAMA_URL")
        elif not self.ollama_url.startswith(("http://", "https://")):
            errors.append("Invalid URL format. It must start with http:// or https://")

        if not self.ollama_model:
            errors.append("Ollama model is not configured. Set WEAVER_MODEL")

        if self.api_mode not in API_MODES:
            errors.append(f"api_mode must be one of: {', '.join(API_MODES)}")

        if self.max_turns <= 0:
            errors.append("max_turns must be positive")

        if self.request_timeout <= 0 or self.probe_timeout <= 0:
            errors.append("timeouts must be positive")

        if self.task_log_limit <= 0:
            errors.append("task_log_limit must be positive")

        if self.max_read_mb <= 0:
            errors.append("max_read_mb must be positive")

        return errors

    def to_dict(self) -> dict:
        """Convert config to dictionary (for logging/display)."""
        return {
            "ollama_url": self.ollama_url,
            "ollama_model": self.ollama_model,
            "api_mode": self.api_mode,
            "request_timeout": self.request_timeout,
            "probe_timeout": self.probe_timeout,
            "max_turns": self.max_turns,
            "task_log_limit": self.task_log_limit,
            "enforce_read_before_write": self.enforce_read_before_write,
            "max_read_mb": self.max_read_mb,
        }
