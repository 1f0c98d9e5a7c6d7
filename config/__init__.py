"""
Configuration management for the elastic-explorer core.
"""

from .capabilities import CAPABILITY_TABLE, VersionRange, find_version_range, get_capabilities
from .environments import (
    get_current_environment,
    get_environment_config,
    get_history_config,
    get_http_config,
    get_keychain_config,
    get_logging_config,
    get_storage_config,
)

__all__ = [
    "CAPABILITY_TABLE",
    "VersionRange",
    "find_version_range",
    "get_capabilities",
    "get_current_environment",
    "get_environment_config",
    "get_history_config",
    "get_http_config",
    "get_keychain_config",
    "get_logging_config",
    "get_storage_config",
]
