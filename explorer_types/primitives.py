"""
Primitive layer type definitions.

Transport-level shapes shared by the executor, the probe and the
compatibility client, plus the UNKNOWN sentinel used by every normalized DTO.
"""

import json
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, TypeVar, Union


class _Unknown:
    """Marker for a field the serving cluster version does not report."""

    _instance: Optional["_Unknown"] = None

    def __new__(cls) -> "_Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        raise TypeError("UNKNOWN has no truth value; compare with 'is UNKNOWN'")


UNKNOWN = _Unknown()

T = TypeVar("T")
Maybe = Union[T, _Unknown]


def is_known(value: Any) -> bool:
    """Return True unless value is the UNKNOWN sentinel."""
    return value is not UNKNOWN


def serialize(value: Any) -> Any:
    """Convert DTOs into JSON-compatible structures; UNKNOWN becomes ``"unknown"``."""
    if value is UNKNOWN:
        return "unknown"
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: serialize(getattr(value, f.name)) for f in fields(value) if not f.name.startswith("_")}
    if isinstance(value, dict):
        return {str(k): serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [serialize(v) for v in value]
        return sorted(items) if isinstance(value, (set, frozenset)) else items
    if isinstance(value, bytes):
        return value.hex()
    return value


class TrustPolicy(str, Enum):
    """TLS certificate validation mode for a single call."""
    STRICT = "strict"
    INSECURE = "insecure"


@dataclass(frozen=True)
class BasicCredentials:
    """Resolved Basic-Auth credentials; built right before a call, never stored."""
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Request:
    """One outbound REST call, relative to the endpoint base URL."""
    method: str
    path: str
    body: Any = None
    params: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return serialize(self)


@dataclass
class RawResponse:
    """Structured result of a call, whatever its HTTP status."""
    status: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_json(self) -> bool:
        content_type = self.headers.get("content-type", "")
        if "json" in content_type:
            return True
        stripped = self.text.lstrip()
        return stripped.startswith("{") or stripped.startswith("[")

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.text) if self.text else None


@dataclass
class ElasticQuery:
    """Search request body for ``_search``."""
    index_pattern: str
    query: Dict[str, Any] = field(default_factory=lambda: {"match_all": {}})
    size: int = 20
    from_: int = 0
    sort: Optional[List[Dict[str, Any]]] = None
    source: Union[bool, List[str]] = True
    track_total_hits: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to an Elasticsearch query dict."""
        body: Dict[str, Any] = {
            "query": self.query,
            "size": self.size,
            "from": self.from_,
        }

        if self.sort:
            body["sort"] = self.sort
        if self.source is not True:
            body["_source"] = self.source
        if self.track_total_hits is not None:
            body["track_total_hits"] = self.track_total_hits

        return body
