"""Configuration management for chatcmd.

Loads ``settings.yaml`` and ``.env`` from the config directory into a
Config object whose properties supply safe defaults. Environment
variables take precedence over settings.yaml where noted.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import List, Optional

import structlog
import yaml
from dotenv import load_dotenv

logger = structlog.get_logger("chatcmd.config")

DEFAULT_PREFIX = "!"


class Config:
    """Central configuration manager for chatcmd.

    Read-only after __init__, so a single instance can be shared
    between threads.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                logger.error("settings_invalid_type", file=filename, type=type(data).__name__)
                return {}
            return data
        return {}

    def validate(self):
        """Validate settings at startup.

        Logs warnings/errors but does not raise. A bad namespace
        surfaces later as a ConfigurationError from Registry.build().
        """
        if not self.namespaces:
            logger.warning("no_namespaces_configured", msg="Every key will be unmatched")
        if not self.command_prefix:
            logger.warning("empty_command_prefix", msg="Every message will be treated as a command")
        for name in self.settings.get("disabled_modules", []) or []:
            if not isinstance(name, str):
                logger.error("config_invalid_value", key="disabled_modules", value=name)

    # --- Routing ---

    @property
    def command_prefix(self) -> str:
        """Trigger prefix. Env var CHATCMD_PREFIX takes precedence."""
        env = os.environ.get("CHATCMD_PREFIX")
        if env is not None:
            return env
        prefix = self.settings.get("command_prefix", DEFAULT_PREFIX)
        if not isinstance(prefix, str):
            logger.error("command_prefix_invalid_type", type=type(prefix).__name__)
            return DEFAULT_PREFIX
        return prefix

    @property
    def namespaces(self) -> List[str]:
        """Dotted module paths to scan for command modules.

        Env var CHATCMD_NAMESPACES (comma-separated) takes precedence.
        """
        env = os.environ.get("CHATCMD_NAMESPACES")
        if env:
            return [ns.strip() for ns in env.split(",") if ns.strip()]
        namespaces = self.settings.get("namespaces", [])
        if isinstance(namespaces, str):
            return [namespaces]
        if not isinstance(namespaces, list):
            logger.error("namespaces_invalid_type", type=type(namespaces).__name__)
            return []
        valid = [ns for ns in namespaces if isinstance(ns, str) and ns.strip()]
        if len(valid) != len(namespaces):
            logger.error("namespaces_invalid_entries", dropped=len(namespaces) - len(valid))
        return valid

    @property
    def disabled_modules(self) -> List[str]:
        """Module class names to leave out of the registry."""
        names = self.settings.get("disabled_modules", []) or []
        if not isinstance(names, list):
            logger.error("disabled_modules_invalid_type", type=type(names).__name__)
            return []
        return [n for n in names if isinstance(n, str)]

    # --- Logging ---

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return self.config_dir.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"resolver": "DEBUG"}."""
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


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
