"""
Response parsing utilities for Elasticsearch.

Every helper here maps a missing or null field to UNKNOWN instead of a
default value.
"""

import re
from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable, List, Optional

from explorer_types.errors import (
    AuthenticationFailed,
    ClusterRequestFailed,
    MalformedResponse,
    ResourceNotFound,
)
from explorer_types.primitives import UNKNOWN, RawResponse, is_known


_SIZE_UNITS = {
    "b": 1,
    "kb": 1024,
    "mb": 1024 ** 2,
    "gb": 1024 ** 3,
    "tb": 1024 ** 4,
    "pb": 1024 ** 5,
}
_SIZE_PATTERN = re.compile(r"^\s*([0-9]+(?:\.[0-9]+)?)\s*([a-z]*)\s*$")


# ========== STATUS & BODY ==========

def error_details(response: RawResponse) -> Dict[str, Optional[str]]:
    """Extract ``error.type`` and ``error.reason`` from an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return {"type": None, "reason": response.text[:200] or None}
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return {"type": error.get("type"), "reason": error.get("reason")}
    if isinstance(error, str):
        return {"type": None, "reason": error}
    return {"type": None, "reason": None}


def expect_ok(
    response: RawResponse,
    kind: Optional[str] = None,
    name: Optional[str] = None,
) -> RawResponse:
    """
    Classify a non-2xx response.

    Args:
        response: Response to check
        kind: Resource kind reported by ResourceNotFound on 404
        name: Resource name reported by ResourceNotFound on 404

    Returns:
        The response itself when the status is 2xx

    Raises:
        AuthenticationFailed: On 401/403
        ResourceNotFound: On 404 when ``kind`` is given
        ClusterRequestFailed: On any other non-2xx status
    """
    if response.ok:
        return response
    if response.status in (401, 403):
        details = error_details(response)
        raise AuthenticationFailed(
            f"Cluster rejected credentials ({response.status}): {details['reason'] or 'no reason given'}",
            status=response.status,
        )
    if response.status == 404 and kind:
        raise ResourceNotFound(kind, name or "")
    details = error_details(response)
    raise ClusterRequestFailed(response.status, details["type"], details["reason"])


def decode_json(response: RawResponse, expected: Optional[type] = dict) -> Any:
    """
    Decode a JSON body and check its top-level type.

    Raises:
        MalformedResponse: If the body is not JSON or not of the expected type
    """
    try:
        body = response.json()
    except ValueError as e:
        raise MalformedResponse(f"Response is not valid JSON: {response.text[:120]!r}") from e
    if expected is not None and not isinstance(body, expected):
        raise MalformedResponse(
            f"Expected a JSON {expected.__name__}, got {type(body).__name__}"
        )
    return body


def parse_ok_json(response: RawResponse, expected: Optional[type] = dict, **not_found: str) -> Any:
    """``expect_ok`` followed by ``decode_json``."""
    expect_ok(response, **not_found)
    return decode_json(response, expected)


# ========== FIELD ACCESS ==========

def dig(data: Any, *path: str) -> Any:
    """
    Walk nested dicts.

    Args:
        data: Root object
        path: Keys to follow

    Returns:
        The value, or UNKNOWN if any key is missing or the value is null
    """
    current = data
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return UNKNOWN
        current = current[key]
    return UNKNOWN if current is None else current


def first_known(*values: Any) -> Any:
    """Return the first value that is not UNKNOWN (used for renamed fields)."""
    for value in values:
        if is_known(value):
            return value
    return UNKNOWN


def as_int(value: Any) -> Any:
    """
    Convert a number or numeric string to int.

    Raises:
        MalformedResponse: If the value is present but not numeric
    """
    if value is UNKNOWN or value is None:
        return UNKNOWN
    if isinstance(value, bool):
        raise MalformedResponse(f"Expected a number, got boolean {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped in ("", "-"):
            return UNKNOWN
        try:
            return int(stripped)
        except ValueError:
            try:
                return int(float(stripped))
            except ValueError as e:
                raise MalformedResponse(f"Expected a number, got {value!r}") from e
    raise MalformedResponse(f"Expected a number, got {type(value).__name__}")


def as_float(value: Any) -> Any:
    if value is UNKNOWN or value is None:
        return UNKNOWN
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Expected a number, got {value!r}") from e


def as_str(value: Any) -> Any:
    if value is UNKNOWN or value is None:
        return UNKNOWN
    return str(value)


def as_bool(value: Any) -> Any:
    if value is UNKNOWN or value is None:
        return UNKNOWN
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise MalformedResponse(f"Expected a boolean, got {value!r}")


def as_bytes(value: Any) -> Any:
    """
    Parse a byte count, accepting raw integers or sizes like ``"1.2gb"``.

    Returns:
        Integer byte count or UNKNOWN
    """
    if value is UNKNOWN or value is None:
        return UNKNOWN
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    text = str(value).strip().lower()
    if text in ("", "-"):
        return UNKNOWN
    match = _SIZE_PATTERN.match(text)
    if not match or match.group(2) not in _SIZE_UNITS and match.group(2) != "":
        raise MalformedResponse(f"Unrecognized size value: {value!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS.get(unit or "b", 1))


def percent(used: Any, total: Any) -> Any:
    """Integer percentage, or UNKNOWN when either side is unknown or total is zero."""
    if not is_known(used) or not is_known(total) or total <= 0:
        return UNKNOWN
    return int(used * 100 // total)


def string_list(value: Any) -> Any:
    if value is UNKNOWN or value is None:
        return UNKNOWN
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    raise MalformedResponse(f"Expected a list of strings, got {type(value).__name__}")


# ========== HITS & PATTERNS ==========

def parse_hits(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Extract hits from search response.

    Args:
        response: Elasticsearch response

    Returns:
        List of hit documents
    """
    hits = response.get("hits", {})
    if not isinstance(hits, dict):
        raise MalformedResponse("Search response 'hits' is not an object")
    return hits.get("hits", [])


def matches_pattern(name: str, pattern: str) -> bool:
    """
    Match an index name against a comma-separated wildcard pattern.

    ``*`` and empty patterns match everything; ``-name`` elements exclude.
    """
    if not pattern or pattern in ("*", "_all"):
        return True
    included = False
    for part in (p.strip() for p in pattern.split(",")):
        if not part:
            continue
        if part.startswith("-"):
            if fnmatchcase(name, part[1:]):
                return False
        elif fnmatchcase(name, part):
            included = True
    return included


def group_by(items: Iterable[Any], key) -> Dict[str, List[Any]]:
    grouped: Dict[str, List[Any]] = {}
    for item in items:
        grouped.setdefault(key(item), []).append(item)
    return grouped
