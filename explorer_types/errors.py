"""
Error taxonomy surfaced by the explorer core.

Callers catch these instead of transport or library exceptions. The original
cause is always chained with ``raise ... from``.
"""

from typing import Any, Optional


class ExplorerError(Exception):
    """Base class for every error the core raises on purpose."""


class SecretUnavailable(ExplorerError):
    """A stored credential cannot be recovered (keychain entry gone, key lost or corrupt)."""


class AuthenticationFailed(ExplorerError):
    """The cluster rejected the supplied credentials (HTTP 401/403)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UnsupportedOperation(ExplorerError):
    """The operation has no code path for the cluster's version profile."""

    def __init__(self, operation: str, version: Optional[str] = None, reason: Optional[str] = None):
        detail = f"Operation '{operation}' is not supported"
        if version:
            detail += f" on Elasticsearch {version}"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)
        self.operation = operation
        self.version = version


class EndpointUnreachable(ExplorerError):
    """The endpoint could not be reached after retries, or the call timed out."""


class MalformedResponse(ExplorerError):
    """The cluster answered with a body that does not have the expected shape."""


class VersionUnrecognized(ExplorerError):
    """The cluster's version string matches no known capability range."""

    def __init__(self, version: Any, reason: Optional[str] = None):
        detail = f"Unrecognized Elasticsearch version: {version!r}"
        if reason:
            detail += f" ({reason})"
        super().__init__(detail)
        self.version = version


class ResourceNotFound(ExplorerError):
    """A named index, node or document does not exist on the cluster."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} not found: {name}")
        self.kind = kind
        self.name = name


class ClusterRequestFailed(ExplorerError):
    """The cluster returned a non-2xx status that is not otherwise classified."""

    def __init__(self, status: int, error_type: Optional[str] = None, reason: Optional[str] = None):
        detail = f"Elasticsearch error ({status})"
        if error_type:
            detail += f" {error_type}"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)
        self.status = status
        self.error_type = error_type
        self.reason = reason
