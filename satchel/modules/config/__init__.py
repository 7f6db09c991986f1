"""
Config Module - Black Box Interface

Purpose: Single source of server, storage and session settings
Interface: get_config(), ConfigModule.get()
Hidden: Environment variable names, defaults, type coercion

Session values are kept raw here (durations like "14 days" stay strings);
satchel.config.provider turns them into a typed SessionConfig.
"""

import os
from typing import Any, Callable, Dict, Optional, Tuple


def _port(value: str) -> int:
    # K8s service links look like tcp://10.0.0.5:6379
    return int(value.rsplit(":", 1)[-1]) if value.startswith("tcp://") else int(value)


def _flag(value: str) -> bool:
    return value.lower() == "true"


# key: (environment variable, default, parser)
ENVIRONMENT: Dict[str, Tuple[str, Optional[str], Callable[[str], Any]]] = {
    "redis_host": ("REDIS_HOST", "localhost", str),
    "redis_port": ("REDIS_PORT", "6379", _port),
    "redis_db": ("REDIS_DB", "0", int),
    "redis_password": ("REDIS_PASSWORD", None, str),
    "host": ("API_HOST", "0.0.0.0", str),
    "port": ("API_PORT", "8080", int),
    "log_level": ("LOG_LEVEL", "INFO", str.upper),
    "debug": ("DEBUG", "false", _flag),
    "session_expiration": ("SESSION_EXPIRATION", None, str.strip),
    "session_auto_start": ("SESSION_AUTO_START", "smart", str.lower),
    "session_save_path": ("SESSION_SAVE_PATH", "satchel:session", str),
    "session_max_lifetime": ("SESSION_MAX_LIFETIME", "10800", str.strip),
    "session_cookie_name": ("SESSION_COOKIE_NAME", "satchel_sid", str),
    "session_visit_cookie_name": ("SESSION_VISIT_COOKIE_NAME", "satchel_visit", str),
    "session_cookie_path": ("SESSION_COOKIE_PATH", "/", str),
    "session_cookie_domain": ("SESSION_COOKIE_DOMAIN", None, str),
    "session_cookie_samesite": ("SESSION_COOKIE_SAMESITE", "lax", str.lower),
    "session_cookie_secure": ("SESSION_COOKIE_SECURE", "false", _flag),
    "session_cookie_httponly": ("SESSION_COOKIE_HTTPONLY", "true", _flag),
}

# Keys that must resolve to a value (set to an empty string counts as missing)
REQUIRED_CONFIG_KEYS = {
    "redis_host",
    "redis_port",
    "redis_db",
    "host",
    "port",
    "log_level",
    "session_auto_start",
    "session_save_path",
    "session_max_lifetime",
    "session_cookie_name",
    "session_visit_cookie_name",
    "session_cookie_path",
    "session_cookie_samesite",
}


class ConfigModule:
    """Configuration management module."""

    def __init__(self):
        self._config = self._load_from_env()
        self._validate_required_keys()

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present.

        Raises:
            ValueError: If required keys are missing
        """
        missing = sorted(key for key in REQUIRED_CONFIG_KEYS if self._config.get(key) is None)
        if missing:
            names = ", ".join(f"{key} ({ENVIRONMENT[key][0]})" for key in missing)
            raise ValueError(f"Missing required configuration keys: {names}.")

    def _load_from_env(self) -> Dict[str, Any]:
        config = {}
        for key, (variable, default, parse) in ENVIRONMENT.items():
            raw = os.getenv(variable, default)
            config[key] = parse(raw) if raw not in (None, "") else None
        return config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        value = self._config.get(key)
        return default if value is None else value


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule"]
