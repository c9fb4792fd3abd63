"""Configuration management for Task Track."""

import copy
import logging
import secrets
from pathlib import Path
from typing import Any, Optional

import jsonschema  # type: ignore[import-untyped]
import yaml  # type: ignore[import-untyped]

from tasktrack.core.models import UserContext

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "general": {
            "data_dir": "~/.tasktrack/data",
            "week_start": "sunday",
            "date_format": "%Y-%m-%d",
            "time_format": "%H:%M",
        },
        "user": {
            "id": "local-user",
            "email": None,
            "display_name": None,
        },
        "display": {
            "show_seconds": True,
        },
        "logging": {
            "level": "WARNING",
            "file": None,
        },
        "api": {
            "enabled": False,
            "host": "localhost",
            "port": 8000,
            "authentication": {
                "enabled": True,
                "token_expiry_hours": 24,
                "secret_key": None,
            },
            "cors": {
                "enabled": True,
                "origins": ["http://localhost:3000", "http://localhost:5173"],
            },
            "advanced": {
                "log_level": "info",
                "access_log": True,
            },
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "general": {
                "type": "object",
                "properties": {
                    "data_dir": {"type": "string"},
                    "week_start": {"type": "string", "enum": ["monday", "sunday"]},
                    "date_format": {"type": "string"},
                    "time_format": {"type": "string"},
                },
            },
            "user": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "email": {"type": ["string", "null"]},
                    "display_name": {"type": ["string", "null"]},
                },
            },
            "display": {
                "type": "object",
                "properties": {
                    "show_seconds": {"type": "boolean"},
                },
            },
            "logging": {
                "type": "object",
                "properties": {
                    "level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                    "file": {"type": ["string", "null"]},
                },
            },
            "api": {
                "type": "object",
                "properties": {
                    "enabled": {"type": "boolean"},
                    "host": {"type": "string"},
                    "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                    "authentication": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "token_expiry_hours": {
                                "type": "integer",
                                "minimum": 1,
                                "maximum": 8760,
                            },
                            "secret_key": {"type": ["string", "null"]},
                        },
                    },
                    "cors": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "origins": {
                                "type": "array",
                                "items": {"type": "string"},
                            },
                        },
                    },
                    "advanced": {
                        "type": "object",
                        "properties": {
                            "log_level": {"type": "string"},
                            "access_log": {"type": "boolean"},
                        },
                    },
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Load the config file, creating it from defaults when missing.

        Args:
            config_path: Path to config file. Defaults to ~/.tasktrack/config.yml

        Raises:
            ValueError: If an existing file is invalid. The file is moved to
                ``config.yml.backup`` and defaults are written first.
        """
        if config_path is None:
            config_path = Path.home() / ".tasktrack" / "config.yml"
        self.config_path = Path(config_path)
        self._config: dict[str, Any] = copy.deepcopy(self.DEFAULT_CONFIG)

        if not self.config_path.exists():
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            self._quarantine(ValueError("Invalid configuration: top level must be a mapping"))
        self._deep_merge(self._config, loaded)

        try:
            self.validate()
        except ValueError as e:
            self._quarantine(e)

    def _quarantine(self, error: ValueError) -> None:
        """Move an invalid file aside, write defaults and raise."""
        backup_path = self.config_path.with_suffix(".yml.backup")
        self.config_path.replace(backup_path)
        self.reset()
        logger.error(f"Invalid config moved to {backup_path}: {error}")
        raise ValueError(
            f"Config validation failed, backed up to {backup_path}. "
            f"Using defaults. Error: {error}"
        ) from error

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
        """Merge override into base in place, section by section."""
        for key, value in override.items():
            current = base.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                ConfigManager._deep_merge(current, value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'general.week_start')
            default: Returned when the key is missing or set to null

        Example:
            >>> config.get('general.week_start')
            'sunday'
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a value and save; an invalid value leaves the config unchanged.

        Raises:
            ValueError: If the result fails validation
        """
        *sections, leaf = key.split(".")
        snapshot = copy.deepcopy(self._config)

        node = self._config
        for part in sections:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise ValueError(f"Invalid configuration: '{part}' is not a section")
            node = child
        node[leaf] = value

        try:
            self.validate()
        except ValueError:
            self._config = snapshot
            raise
        self.save()

    def validate(self) -> bool:
        """Validate configuration against the schema.

        Raises:
            ValueError: If configuration is invalid
        """
        try:
            jsonschema.validate(instance=self._config, schema=self.CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}") from e
        return True

    def save(self) -> None:
        """Write the configuration file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self._config, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def get_all_keys(self) -> list[str]:
        """All leaf keys in dot notation, in file order."""

        def walk(section: dict[str, Any], prefix: str) -> list[str]:
            keys: list[str] = []
            for name, value in section.items():
                if isinstance(value, dict):
                    keys.extend(walk(value, f"{prefix}{name}."))
                else:
                    keys.append(f"{prefix}{name}")
            return keys

        return walk(self._config, "")

    def data_dir(self) -> Path:
        """Resolved data directory."""
        return Path(self.get("general.data_dir", "~/.tasktrack/data")).expanduser()

    def default_user(self) -> UserContext:
        """User context for the configured local user."""
        return UserContext(
            user_id=self.get("user.id", "local-user"),
            email=self.get("user.email"),
            display_name=self.get("user.display_name"),
        )

    def ensure_api_secret_key(self) -> str:
        """Return the API signing key, generating and saving one on first use."""
        secret_key: Optional[str] = self.get("api.authentication.secret_key")
        if not secret_key:
            secret_key = secrets.token_urlsafe(32)
            self.set("api.authentication.secret_key", secret_key)
        return secret_key
