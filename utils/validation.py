"""
Input validation utilities.
"""

import re
from typing import Any, Optional
from urllib.parse import urlsplit


CONSOLE_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD")

_INDEX_INVALID = re.compile(r'[\\/?"<>|\s,#:]')


def validate_index_pattern(pattern: str) -> None:
    """
    Validate an Elasticsearch index pattern.

    Args:
        pattern: Index pattern to validate (wildcards and comma lists allowed)

    Raises:
        ValueError: If pattern is invalid
    """
    if not pattern:
        raise ValueError("Index pattern cannot be empty")

    for part in pattern.split(","):
        part = part.strip()
        if not part:
            raise ValueError("Index pattern contains an empty element")
        name = part[1:] if part.startswith("-") else part
        invalid_chars = re.findall(r'[\\/?"<>|\s#:]', name)
        if invalid_chars:
            raise ValueError(f"Invalid characters in index pattern: {invalid_chars}")


def validate_index_name(name: str) -> None:
    """
    Validate a concrete index name, as required by destructive operations.

    Args:
        name: Index name

    Raises:
        ValueError: If name is empty, a wildcard, ``_all`` or otherwise invalid
    """
    if not name:
        raise ValueError("Index name cannot be empty")
    if name in ("_all", ".", ".."):
        raise ValueError(f"Index name not allowed: {name}")
    if "*" in name:
        raise ValueError("Index name cannot contain wildcards")
    if name.startswith(("-", "_", "+")):
        raise ValueError("Index name cannot start with '-', '_' or '+'")
    invalid_chars = _INDEX_INVALID.findall(name)
    if invalid_chars:
        raise ValueError(f"Invalid characters in index name: {invalid_chars}")


def validate_endpoint_url(url: str) -> str:
    """
    Validate an endpoint URL and return it without a trailing slash.

    Args:
        url: URL such as ``https://es.example:9200``

    Returns:
        Normalized URL

    Raises:
        ValueError: If scheme is not http/https, host is missing or port is invalid
    """
    if not url:
        raise ValueError("Endpoint URL cannot be empty")
    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https"):
        raise ValueError(f"Endpoint URL must use http or https: {url}")
    if not parts.hostname:
        raise ValueError(f"Endpoint URL has no host: {url}")
    try:
        parts.port
    except ValueError as e:
        raise ValueError(f"Endpoint URL has an invalid port: {url}") from e
    if parts.query or parts.fragment:
        raise ValueError(f"Endpoint URL cannot carry a query or fragment: {url}")
    return url.strip().rstrip("/")


def validate_console_method(method: str) -> str:
    """Return the upper-cased method, or raise ValueError if the console does not allow it."""
    normalized = (method or "").strip().upper()
    if normalized not in CONSOLE_METHODS:
        raise ValueError(f"Unsupported method: {method}")
    return normalized


def validate_size(size: int, max_size: int = 10000) -> int:
    """
    Validate and clamp size parameter.

    Args:
        size: Requested size
        max_size: Maximum allowed size

    Returns:
        Valid size value
    """
    return clamp_value(size, min_value=0, max_value=max_size)


def validate_document_id(doc_id: Optional[str]) -> str:
    if doc_id is None or str(doc_id) == "":
        raise ValueError("Document id cannot be empty")
    return str(doc_id)


def clamp_value(value: Any, min_value: Any, max_value: Any) -> Any:
    """
    Clamp a value between min and max.

    Args:
        value: Value to clamp
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Clamped value
    """
    return max(min_value, min(value, max_value))
