#!/usr/bin/env python3
"""Configuration loader for the roomchat server.

This module provides a centralized configuration management system for the server.
It handles loading, merging, and validating configurations from multiple sources, with
support for default values and runtime updates.

Key Features:
- Hierarchical configuration management (section -> key)
- Default configuration values
- JSON file-based configuration
- Environment variable overrides (a .env file is honoured)
- Deep merging of configuration updates
- Configuration validation
"""
import os
import json
import copy
import logging
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .path_config import get_config_dir

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "file": "chat_server.log"
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
        "cors_origins": "*",
        "static_dir": None
    },
    "chat": {
        "general_room_id": "room-general",
        "max_message_length": 500,
        "max_user_length": 50,
        "rate_limit_window_ms": 1000,
        "rate_limit_max_messages": 5,
        "escape_room_messages": False,
        "enforce_unique_names": False
    }
}

# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "HOST": ("server", "host", str),
    "PORT": ("server", "port", int),
    "LOG_LEVEL": ("logging", "level", str),
    "STATIC_DIR": ("server", "static_dir", str),
}

POSITIVE_CHAT_KEYS = (
    "max_message_length",
    "max_user_length",
    "rate_limit_window_ms",
    "rate_limit_max_messages",
)

class ConfigManager:
    def __init__(self, config_dir: Optional[str] = None, load_env: bool = True):
        """Initialize the configuration manager."""
        self._config_dir = config_dir
        self._config: Dict[str, Any] = {}
        self._load_defaults()
        self._load_config_files()
        if load_env:
            self._load_env_overrides()

    @property
    def config_dir(self) -> str:
        return self._config_dir or get_config_dir()

    def _load_defaults(self) -> None:
        """Load default configuration values."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

    def _load_config_files(self) -> None:
        """Load configuration from JSON files in the config directory."""
        config_files = [
            "server_config.json",
        ]

        for filename in config_files:
            filepath = os.path.join(self.config_dir, filename)
            if not os.path.exists(filepath):
                continue
            try:
                with open(filepath, 'r') as f:
                    file_config = json.load(f)
                self._validate_config(filename, file_config)
                # Merge configuration recursively
                self._merge_config(self._config, file_config)
            except (OSError, ValueError) as e:
                logger.error(f"Error loading config file {filename}: {e}")

    def _load_env_overrides(self) -> None:
        """Apply HOST/PORT/LOG_LEVEL/STATIC_DIR from the environment or a .env file."""
        load_dotenv()
        for var, (section, key, convert) in ENV_OVERRIDES.items():
            raw = os.environ.get(var)
            if raw is None or raw == "":
                continue
            try:
                self.set(section, key, convert(raw))
            except ValueError:
                logger.error(f"Ignoring invalid value for {var}: {raw!r}")

    def _merge_config(self, base: Dict, update: Dict) -> None:
        """
        Recursively merge two configuration dictionaries.
        Args:
            base: Base configuration dictionary
            update: Dictionary with updates to merge
        """
        for key, value in update.items():
            if (
                key in base and
                isinstance(base[key], dict) and
                isinstance(value, dict)
            ):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _validate_config(self, filename: str, config: Dict[str, Any]) -> None:
        """Validate configuration based on the filename."""
        if not isinstance(config, dict):
            raise ValueError(f"{filename} must contain a JSON object")
        if "server" in config:
            self._validate_server_config(config["server"])
        if "chat" in config:
            self._validate_chat_config(config["chat"])

    def _validate_server_config(self, config: Dict[str, Any]) -> None:
        """Validate server configuration"""
        if not isinstance(config, dict):
            raise ValueError("'server' section must be an object")
        port = config.get("port", DEFAULT_CONFIG["server"]["port"])
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("Server port must be an integer")
        if not (0 < port < 65536):
            raise ValueError("Server port must be between 1 and 65535")

    def _validate_chat_config(self, config: Dict[str, Any]) -> None:
        """Validate chat limits"""
        if not isinstance(config, dict):
            raise ValueError("'chat' section must be an object")
        for key in POSITIVE_CHAT_KEYS:
            if key not in config:
                continue
            value = config[key]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"chat.{key} must be a positive integer")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Args:
            section: Configuration section
            key: Configuration key
            default: Default value if not found
        Returns:
            Configuration value or default
        """
        try:
            return self._config[section][key]
        except KeyError:
            return default

    def set(self, section: str, key: str, value: Any) -> None:
        """
        Set a configuration value.
        Args:
            section: Configuration section
            key: Configuration key
            value: Value to set
        """
        if section not in self._config:
            self._config[section] = {}
        self._config[section][key] = value

    @property
    def config(self) -> Dict[str, Any]:
        """Get the complete configuration dictionary."""
        return copy.deepcopy(self._config)

# Create a global configuration instance
config = ConfigManager()
