"""
Configuration Manager - Handle relay settings persistence
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent

ALLOWED_MODELS = ["claude-sonnet-4-6", "claude-opus-4-6", "claude-haiku-4-5"]
DEFAULT_MODEL = "claude-sonnet-4-6"


class ConfigManager:
    """Manage configuration persistence"""

    _instance = None
    _config_file = None

    def __init__(self):
        try:
            # 1. environment variable
            config_dir = os.environ.get("WPS_RELAY_CONFIG_DIR")

            # 2. home directory ~/.wps_relay
            if not config_dir:
                config_dir = os.path.expanduser("~/.wps_relay")

            config_path = Path(config_dir)
            try:
                config_path.mkdir(parents=True, exist_ok=True)
                self._config_file = config_path / "config.json"
            except OSError as e:
                logger.warning("Cannot write to %s: %s", config_dir, e)
                self._config_file = None

            # 3. fall back to the temp dir
            if not self._config_file:
                tmp_dir = Path(tempfile.gettempdir()) / "wps_relay"
                tmp_dir.mkdir(parents=True, exist_ok=True)
                self._config_file = tmp_dir / "config.json"
                logger.info("Using temporary config path: %s", self._config_file)

        except OSError as e:
            logger.error("Cannot prepare config directory: %s", e)
            self._config_file = Path(tempfile.gettempdir()) / "wps_relay_config_fallback.json"

        self._config = self._load_config()

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file, layered over the defaults"""
        config = self._default_config()
        if self._config_file.exists():
            try:
                with open(self._config_file, encoding="utf-8") as f:
                    stored = json.load(f)
                config = merge_config(config, stored)
            except (json.JSONDecodeError, OSError) as e:
                logger.error("Error loading config: %s", e)

        claude_path = os.environ.get("CLAUDE_PATH")
        if claude_path:
            config["cli"]["path"] = claude_path
        return config

    def _default_config(self) -> dict[str, Any]:
        """Get default configuration"""
        return {
            "server": {"host": "127.0.0.1", "port": 3003},
            "cli": {
                "path": "claude",
                "defaultModel": DEFAULT_MODEL,
                "allowedModels": list(ALLOWED_MODELS),
                "defaultMaxTurns": 5,
                "askMaxTurns": 1,
            },
            "stream": {"keepaliveSeconds": 5},
            "bridge": {
                "resultTtlSeconds": 60,
                "clientPollSeconds": 0.3,
                "clientTimeoutSeconds": 30,
            },
            "skillsDir": str(BACKEND_DIR / "skills"),
            "commandsDir": str(BACKEND_DIR / "commands"),
            "memoryFile": str(Path(os.path.expanduser("~/.wps_relay")) / "memory.json"),
            "corsOrigins": [
                "http://127.0.0.1:3003",
                "http://localhost:3003",
                "http://127.0.0.1:5175",
                "http://localhost:5175",
            ],
            "logLevel": "INFO",
        }

    def get_config(self) -> dict[str, Any]:
        """Get current configuration"""
        # Reload config from file to ensure we have the latest
        self._config = self._load_config()
        return copy.deepcopy(self._config)

    def save_config(self, config: dict[str, Any]):
        """Save configuration to file"""
        self._config = merge_config(self._config, config)

        self._config_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self._config_file, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}")


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested dicts are merged one level deep"""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged
