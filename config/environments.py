"""
Environment configuration management.
"""

import os
from pathlib import Path
from typing import Any, Dict


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _default_data_dir() -> Path:
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "elastic-explorer"


def build_config() -> Dict[str, Any]:
    """
    Build the configuration from environment variables.

    Returns:
        Configuration dictionary with storage, http, keychain, history and
        logging sections
    """
    data_dir = Path(os.getenv("EXPLORER_DATA_DIR") or _default_data_dir())

    return {
        "name": "default",
        "storage": {
            "data_dir": data_dir,
            "db_path": Path(os.getenv("EXPLORER_DB_PATH") or data_dir / "elastic-explorer.db"),
            "key_path": Path(os.getenv("EXPLORER_KEY_PATH") or data_dir / "db.key"),
        },
        "http": {
            "timeout_ms": int(os.getenv("EXPLORER_HTTP_TIMEOUT", "30000")),
            "max_retries": int(os.getenv("EXPLORER_HTTP_RETRIES", "2")),
            "backoff_seconds": float(os.getenv("EXPLORER_HTTP_BACKOFF", "0.5")),
        },
        "keychain": {
            "enabled": _bool_env("EXPLORER_KEYCHAIN_ENABLED", True),
            "service": os.getenv("EXPLORER_KEYCHAIN_SERVICE", "elastic-explorer"),
        },
        "history": {
            "keep_last": int(os.getenv("EXPLORER_HISTORY_KEEP", "200")),
            "prune_interval_seconds": float(os.getenv("EXPLORER_HISTORY_PRUNE_INTERVAL", "300")),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO").upper(),
        },
    }


# Single environment configuration - reads directly from env vars
DEFAULT_CONFIG = build_config()


def get_current_environment() -> str:
    """
    Get the current environment name.

    Returns:
        Always returns 'default' since we use a single environment
    """
    return "default"


def get_environment_config() -> Dict[str, Any]:
    """
    Get the configuration resolved from the environment at import time.

    Returns:
        Configuration dictionary with storage, http, keychain, history and logging sections
    """
    return DEFAULT_CONFIG


def get_storage_config() -> Dict[str, Any]:
    return get_environment_config()["storage"]


def get_http_config() -> Dict[str, Any]:
    return get_environment_config()["http"]


def get_keychain_config() -> Dict[str, Any]:
    return get_environment_config()["keychain"]


def get_history_config() -> Dict[str, Any]:
    return get_environment_config()["history"]


def get_logging_config() -> Dict[str, Any]:
    return get_environment_config()["logging"]
