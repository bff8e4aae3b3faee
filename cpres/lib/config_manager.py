"""Configuration manager with hierarchy: .env → environment → defaults.

Usage:
    from cpres.lib.config_manager import get_config_manager

    level = get_config_manager().get("CPRES_LOG_LEVEL")

Bundle components never read this directly; they receive a BundleConfig
built by BundleConfig.from_settings() at the edge (CLI, factories).
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from cpres.lib.defaults import get_default

logger = logging.getLogger(__name__)


def _find_git_root(start_path: Optional[Path] = None) -> Path:
    """Walk up directory tree to find .git/ folder."""
    current = start_path or Path.cwd()
    current = current.resolve()

    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent

    raise FileNotFoundError("No .git directory found in any parent directory")


def _coerce_type(value: str, default: Any) -> Any:
    """Coerce string value to match the type of the default.

    Args:
        value: String value from env
        default: Default value (determines target type)

    Returns:
        Value coerced to appropriate type
    """
    if default is None:
        return value

    if isinstance(default, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError:
            return default
    if isinstance(default, float):
        try:
            return float(value)
        except ValueError:
            return default
    return value


class ConfigManager:
    """Resolves configuration values from .env, the environment and defaults."""

    def __init__(self, env_file: Optional[Path] = None):
        """Initialize the config manager and load .env.

        Args:
            env_file: Explicit .env path (default: git root, then cwd)
        """
        self._env_loaded = False
        self._load_env(env_file)

    def _load_env(self, env_file: Optional[Path] = None) -> None:
        """Load .env file without overriding variables already set."""
        if self._env_loaded:
            return

        if env_file is None:
            try:
                env_file = _find_git_root() / ".env"
            except FileNotFoundError:
                env_file = Path.cwd() / ".env"

        if env_file.exists():
            load_dotenv(dotenv_path=env_file, override=False)
            logger.debug(f"Loaded .env from {env_file}")
        else:
            logger.debug(f"No .env file found at {env_file}")

        self._env_loaded = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value (.env / environment → defaults).

        Args:
            key: Configuration key
            default: Override default (uses DEFAULTS if not provided)

        Returns:
            Configuration value
        """
        env_value = os.getenv(key)
        if env_value is not None:
            default_val = default if default is not None else get_default(key)
            return _coerce_type(env_value, default_val)

        if default is not None:
            return default
        return get_default(key)


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the config manager, creating it on first use."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
