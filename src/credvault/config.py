"""
Settings for the key envelope bootstrap.

Values come from the environment, optionally seeded from a ``.env`` file:

    CREDVAULT_KEY_FILE = path to the envelope file (default: secret.key)
    CREDVAULT_LOG_LEVEL = logging level name (default: INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

DEFAULT_KEY_FILE = "secret.key"
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class VaultSettings:
    """Validated bootstrap settings."""

    key_file: Path
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def log_level_value(self) -> int:
        """Numeric logging level."""
        return getattr(logging, self.log_level)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> VaultSettings:
        """
        Load settings from the environment.

        Args:
            env_file: Optional ``.env`` file; when omitted, the nearest
                ``.env`` at or above the working directory is used.
                Existing environment variables win.

        Returns:
            Populated VaultSettings

        Raises:
            ConfigError: If the key file path is empty or the log level unknown
        """
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))

        key_file = os.environ.get("CREDVAULT_KEY_FILE", DEFAULT_KEY_FILE).strip()
        if not key_file:
            raise ConfigError("CREDVAULT_KEY_FILE must not be empty")

        log_level = os.environ.get("CREDVAULT_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ConfigError(f"Unsupported CREDVAULT_LOG_LEVEL: {log_level}")

        return cls(key_file=Path(key_file).expanduser(), log_level=log_level)
