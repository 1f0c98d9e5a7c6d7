"""
Capability dispatch tables.

Each logical operation owns an ordered tuple of routes. A route pairs a
predicate over the VersionProfile with a request builder and a response
parser; the first route whose predicate holds serves the call.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from explorer_types.domain import Capability, VersionProfile
from explorer_types.errors import UnsupportedOperation
from explorer_types.primitives import Request


Predicate = Callable[[VersionProfile], bool]
Builder = Callable[..., List[Request]]
Parser = Callable[..., Any]


def requires(*capabilities: Capability) -> Predicate:
    """Predicate holding when the profile has every given capability."""
    def predicate(profile: VersionProfile) -> bool:
        return profile.supports(*capabilities)
    predicate.__name__ = "requires_" + "_".join(c.value for c in capabilities)
    return predicate


def lacks(*capabilities: Capability) -> Predicate:
    """Predicate holding when the profile has none of the given capabilities."""
    def predicate(profile: VersionProfile) -> bool:
        return not any(c in profile.capabilities for c in capabilities)
    predicate.__name__ = "lacks_" + "_".join(c.value for c in capabilities)
    return predicate


def always(profile: VersionProfile) -> bool:
    return True


@dataclass(frozen=True)
class Route:
    """One version-specific code path of an operation."""
    name: str
    predicate: Predicate
    build: Builder
    parse: Parser


@dataclass(frozen=True)
class Operation:
    """A logical operation and its ordered routes."""
    name: str
    routes: Tuple[Route, ...]
    unsupported_reason: Optional[str] = None

    def select(self, profile: VersionProfile) -> Route:
        """
        Pick the first route whose predicate holds for the profile.

        Raises:
            UnsupportedOperation: If no route matches
        """
        for route in self.routes:
            if route.predicate(profile):
                return route
        raise UnsupportedOperation(self.name, profile.number, self.unsupported_reason)


def single(method: str, path: str, body: Any = None, **params: Any) -> List[Request]:
    """Shorthand for a builder result made of one request."""
    return [Request(method=method, path=path, body=body, params=params or None)]
