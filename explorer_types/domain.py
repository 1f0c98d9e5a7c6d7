"""
Domain layer type definitions.

Endpoints, the secret record union, version profiles and console history.
"""

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union
from urllib.parse import urlsplit

from .errors import SecretUnavailable
from .primitives import Maybe, TrustPolicy, serialize


NONCE_SIZE = 12
KEYCHAIN_TAG = "keychain:"
ENCRYPTED_TAG = "aesgcm:"


# ========== SECRETS ==========

@dataclass(frozen=True)
class KeychainSecret:
    """Secret held by the OS keychain under ``keychain_id``."""
    keychain_id: str


@dataclass(frozen=True)
class EncryptedSecret:
    """Secret encrypted with the local key; ``blob`` is ciphertext plus GCM tag."""
    blob: bytes = field(repr=False)
    nonce: bytes = field(repr=False)


@dataclass(frozen=True)
class UnreadableSecret:
    """A stored column value that could not be decoded; kept as-is so the row stays usable."""
    value: str = field(repr=False)
    reason: str


SecretRecord = Union[KeychainSecret, EncryptedSecret, UnreadableSecret]


def encode_secret_record(record: Optional[SecretRecord]) -> Optional[str]:
    """
    Serialize a secret record for the ``endpoints.password_encrypted`` column.

    Args:
        record: Record to serialize, or None for "no password"

    Returns:
        Tagged column value, or None
    """
    if record is None:
        return None
    if isinstance(record, KeychainSecret):
        return KEYCHAIN_TAG + record.keychain_id
    if isinstance(record, EncryptedSecret):
        payload = base64.b64encode(record.nonce + record.blob).decode("ascii")
        return ENCRYPTED_TAG + payload
    if isinstance(record, UnreadableSecret):
        return record.value
    raise TypeError(f"Unsupported secret record: {type(record).__name__}")


def decode_secret_record(value: Optional[str]) -> Optional[SecretRecord]:
    """
    Parse a ``password_encrypted`` column value.

    Untagged values are read as base64 ``nonce || ciphertext``, the format
    written by earlier releases.

    Raises:
        SecretUnavailable: If the value cannot be decoded
    """
    if value is None or value == "":
        return None
    if value.startswith(KEYCHAIN_TAG):
        keychain_id = value[len(KEYCHAIN_TAG):]
        if not keychain_id:
            raise SecretUnavailable("Keychain reference is empty")
        return KeychainSecret(keychain_id=keychain_id)

    payload = value[len(ENCRYPTED_TAG):] if value.startswith(ENCRYPTED_TAG) else value
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SecretUnavailable("Stored secret is not valid base64") from e
    if len(raw) <= NONCE_SIZE:
        raise SecretUnavailable("Stored secret is too short")
    return EncryptedSecret(blob=raw[NONCE_SIZE:], nonce=raw[:NONCE_SIZE])


def load_secret_record(value: Optional[str]) -> Optional[SecretRecord]:
    """Like decode_secret_record, but an undecodable value becomes an UnreadableSecret."""
    try:
        return decode_secret_record(value)
    except SecretUnavailable as e:
        return UnreadableSecret(value=value, reason=str(e))


# ========== ENDPOINTS ==========

@dataclass(frozen=True)
class EndpointIdentity:
    """A persisted connection descriptor for one cluster."""
    id: int
    name: str
    url: str
    insecure: bool = False
    username: Optional[str] = None
    secret: Optional[SecretRecord] = None

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    @property
    def trust_policy(self) -> TrustPolicy:
        """Insecure trust only ever applies to https endpoints."""
        if self.insecure and urlsplit(self.url).scheme == "https":
            return TrustPolicy.INSECURE
        return TrustPolicy.STRICT

    @property
    def cache_key(self) -> tuple:
        return (self.id, self.base_url, self.insecure, self.username)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "insecure": self.insecure,
            "username": self.username,
            "has_password": self.secret is not None,
            "secret_backend": _secret_backend(self.secret),
        }


def _secret_backend(record: Optional[SecretRecord]) -> Optional[str]:
    if isinstance(record, KeychainSecret):
        return "keychain"
    if isinstance(record, EncryptedSecret):
        return "encrypted"
    if isinstance(record, UnreadableSecret):
        return "unreadable"
    return None


# ========== VERSION PROFILE ==========

class Capability(str, Enum):
    """API features whose availability depends on the cluster version."""
    SQL = "sql"
    COMPOSABLE_TEMPLATES = "composable_templates"
    TYPED_MAPPINGS = "typed_mappings"
    CAT_JSON = "cat_json"
    DELETE_BY_QUERY = "delete_by_query"
    NODE_ROLES = "node_roles"
    TOTAL_HITS_OBJECT = "total_hits_object"
    TYPELESS_DOCUMENTS = "typeless_documents"


@dataclass(frozen=True)
class VersionProfile:
    """Cluster version and the capability flags derived from it."""
    major: int
    minor: int
    patch: Maybe[int]
    number: str
    capabilities: FrozenSet[Capability] = frozenset()

    def supports(self, *capabilities: Capability) -> bool:
        return all(c in self.capabilities for c in capabilities)

    @property
    def has_sql(self) -> bool:
        return Capability.SQL in self.capabilities

    @property
    def has_composable_templates(self) -> bool:
        return Capability.COMPOSABLE_TEMPLATES in self.capabilities

    @property
    def has_typed_mappings(self) -> bool:
        return Capability.TYPED_MAPPINGS in self.capabilities

    def to_dict(self) -> Dict[str, Any]:
        data = serialize(self)
        data.update(
            has_sql=self.has_sql,
            has_composable_templates=self.has_composable_templates,
            has_typed_mappings=self.has_typed_mappings,
        )
        return data


# ========== CONSOLE HISTORY ==========

@dataclass(frozen=True)
class ConsoleHistoryEntry:
    """One request issued through the dev console."""
    endpoint_id: int
    method: str
    path: str
    body: Optional[str] = None
    response_status: Optional[int] = None
    response_body: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = serialize(self)
        if self.created_at is not None:
            data["created_at"] = self.created_at.isoformat()
        return data


@dataclass(frozen=True)
class ConsoleResult:
    """Response of a dev console request, as shown to the operator."""
    status: int
    body: str
    is_json: bool
    history_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return serialize(self)
