"""
Cluster version detection and the per-endpoint profile cache.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from config.capabilities import VersionRange, find_version_range
from explorer_types.domain import EndpointIdentity, VersionProfile
from explorer_types.errors import MalformedResponse, VersionUnrecognized
from explorer_types.primitives import UNKNOWN, BasicCredentials, Request
from utils.connection import RequestExecutor
from utils.response_parser import dig, parse_ok_json


logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(\d+))?")

NON_ELASTICSEARCH_DISTRIBUTIONS = {"opensearch"}


def parse_version(number: str) -> Tuple[int, int, object]:
    """
    Parse a version string like ``"7.17.3"`` or ``"8.0.0-SNAPSHOT"``.

    Args:
        number: Free-form version string

    Returns:
        Tuple of (major, minor, patch); patch is UNKNOWN when absent

    Raises:
        VersionUnrecognized: If the string has no leading ``major.minor``
    """
    if not isinstance(number, str):
        raise VersionUnrecognized(number, "not a string")
    match = VERSION_PATTERN.match(number)
    if not match:
        raise VersionUnrecognized(number, "expected major.minor[.patch]")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch) if patch is not None else UNKNOWN


def build_profile(number: str, table: Optional[List[VersionRange]] = None) -> VersionProfile:
    """
    Map a version string onto the capability table.

    Raises:
        VersionUnrecognized: If the string is unparsable or no range covers it
    """
    major, minor, patch = parse_version(number)
    entry = find_version_range(major, minor, table)
    if entry is None:
        raise VersionUnrecognized(number, f"no capability range covers {major}.{minor}")
    return VersionProfile(
        major=major,
        minor=minor,
        patch=patch,
        number=number,
        capabilities=entry.capabilities,
    )


class VersionProbe:
    """
    Detects VersionProfiles with one ``GET /`` per endpoint identity.

    Cached profiles live for the process lifetime; ``invalidate`` drops them
    when an endpoint is edited or re-tested.
    """

    def __init__(self, executor: RequestExecutor, table: Optional[List[VersionRange]] = None):
        self.executor = executor
        self.table = table
        self._cache: Dict[tuple, VersionProfile] = {}

    def cached(self, endpoint: EndpointIdentity) -> Optional[VersionProfile]:
        return self._cache.get(endpoint.cache_key)

    async def detect(
        self,
        endpoint: EndpointIdentity,
        credentials: Optional[BasicCredentials] = None,
        refresh: bool = False,
    ) -> VersionProfile:
        """
        Return the endpoint's VersionProfile, probing the cluster if needed.

        Args:
            endpoint: Endpoint to probe
            credentials: Resolved credentials for the call
            refresh: Ignore any cached profile

        Returns:
            VersionProfile

        Raises:
            AuthenticationFailed: If the cluster rejects the credentials
            EndpointUnreachable: If the endpoint cannot be reached
            MalformedResponse: If the root response has no version number
            VersionUnrecognized: If the version maps to no capability range
        """
        if not refresh:
            profile = self._cache.get(endpoint.cache_key)
            if profile is not None:
                return profile

        response = await self.executor.execute(
            endpoint.base_url,
            Request("GET", "/"),
            auth=credentials,
            trust_policy=endpoint.trust_policy,
        )
        body = parse_ok_json(response)

        distribution = dig(body, "version", "distribution")
        if isinstance(distribution, str) and distribution.lower() in NON_ELASTICSEARCH_DISTRIBUTIONS:
            raise VersionUnrecognized(dig(body, "version", "number"), f"{distribution} is not Elasticsearch")

        number = dig(body, "version", "number")
        if number is UNKNOWN:
            raise MalformedResponse("Root response has no version.number")

        profile = build_profile(number, self.table)
        self._cache[endpoint.cache_key] = profile
        logger.info(
            "Endpoint %s runs Elasticsearch %s (%s)",
            endpoint.id, number, ", ".join(sorted(c.value for c in profile.capabilities)),
        )
        return profile

    def invalidate(self, endpoint_id: int) -> int:
        """
        Drop every cached profile of an endpoint.

        Returns:
            Number of cache entries removed
        """
        stale = [key for key in self._cache if key[0] == endpoint_id]
        for key in stale:
            self._cache.pop(key, None)
        if stale:
            logger.debug("Invalidated %d cached profile(s) for endpoint %s", len(stale), endpoint_id)
        return len(stale)

    def clear(self) -> None:
        self._cache.clear()
