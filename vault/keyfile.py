"""
Process-wide key material for the encrypted-column fallback.

The key is 32 random bytes stored hex-encoded in a 0600 file outside the
database. It is created once by ``init_key`` and only ever read afterwards.
Losing the file forfeits every secret encrypted with it.
"""

import logging
import os
import secrets
import stat
from pathlib import Path
from typing import Optional, Union

from config.environments import get_storage_config
from explorer_types.errors import SecretUnavailable


logger = logging.getLogger(__name__)

KEY_SIZE = 32

_cached_key: Optional[bytes] = None


def default_key_path() -> Path:
    return Path(get_storage_config()["key_path"])


def init_key(key_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Create the key file if it does not exist yet.

    Args:
        key_path: Key file location (defaults to the configured one)

    Returns:
        Path of the key file
    """
    path = Path(key_path) if key_path is not None else default_key_path()
    if path.exists():
        return path

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, stat.S_IRUSR | stat.S_IWUSR)
    except FileExistsError:
        return path
    with os.fdopen(fd, "w") as f:
        f.write(secrets.token_bytes(KEY_SIZE).hex())
    path.chmod(stat.S_IRUSR | stat.S_IWUSR)
    logger.info("Generated new encryption key at %s", path)
    return path


def load_key(key_path: Optional[Union[str, Path]] = None) -> bytes:
    """
    Read and validate the key file. Never creates one.

    Raises:
        SecretUnavailable: If the file is missing, unreadable or not a 32-byte hex key
    """
    path = Path(key_path) if key_path is not None else default_key_path()
    try:
        content = path.read_text().strip()
    except FileNotFoundError as e:
        raise SecretUnavailable(f"Encryption key not found at {path}") from e
    except OSError as e:
        raise SecretUnavailable(f"Encryption key at {path} is unreadable") from e

    try:
        key = bytes.fromhex(content)
    except ValueError as e:
        raise SecretUnavailable(f"Encryption key at {path} is corrupt") from e
    if len(key) != KEY_SIZE:
        raise SecretUnavailable(f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def get_key(key_path: Optional[Union[str, Path]] = None) -> bytes:
    """Load the key once and cache it for the process lifetime."""
    global _cached_key
    if _cached_key is None:
        _cached_key = load_key(key_path)
    return _cached_key


def reset_key_cache() -> None:
    """Clear the cached key (for testing)."""
    global _cached_key
    _cached_key = None
