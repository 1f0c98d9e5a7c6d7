"""
Version capability registry.

Maps an Elasticsearch ``(major, minor)`` version to the API capabilities the
compatibility client may rely on. Ranges are half-open and checked in order;
the first match wins. Edit this table, not the call sites, when a cutoff
turns out to be wrong.
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from explorer_types.domain import Capability


Version = Tuple[int, int]


@dataclass(frozen=True)
class VersionRange:
    """Capabilities for versions ``low <= v < high``."""
    low: Version
    high: Version
    capabilities: FrozenSet[Capability]
    label: str = ""

    def contains(self, version: Version) -> bool:
        return self.low <= version < self.high


_PRE_5 = frozenset({
    Capability.TYPED_MAPPINGS,
})

_5_TO_6 = frozenset({
    Capability.TYPED_MAPPINGS,
    Capability.CAT_JSON,
    Capability.DELETE_BY_QUERY,
    Capability.NODE_ROLES,
})

# 7.0 drops mapping types, reports hits.total as an object and ships _sql
_7_EARLY = frozenset({
    Capability.SQL,
    Capability.CAT_JSON,
    Capability.DELETE_BY_QUERY,
    Capability.NODE_ROLES,
    Capability.TOTAL_HITS_OBJECT,
    Capability.TYPELESS_DOCUMENTS,
})

# 7.8 adds _index_template and _component_template
_7_8_PLUS = _7_EARLY | {Capability.COMPOSABLE_TEMPLATES}


CAPABILITY_TABLE: List[VersionRange] = [
    VersionRange((3, 0), (5, 0), _PRE_5, "3.x-4.x"),
    VersionRange((5, 0), (7, 0), _5_TO_6, "5.x-6.x"),
    VersionRange((7, 0), (7, 8), _7_EARLY, "7.0-7.7"),
    VersionRange((7, 8), (8, 0), _7_8_PLUS, "7.8-7.x"),
    VersionRange((8, 0), (9, 0), _7_8_PLUS, "8.x"),
]


def find_version_range(
    major: int,
    minor: int,
    table: Optional[List[VersionRange]] = None,
) -> Optional[VersionRange]:
    """
    Find the first range containing ``(major, minor)``.

    Args:
        major: Major version
        minor: Minor version
        table: Alternative table (defaults to CAPABILITY_TABLE)

    Returns:
        Matching VersionRange or None if no range covers the version
    """
    for entry in table if table is not None else CAPABILITY_TABLE:
        if entry.contains((major, minor)):
            return entry
    return None


def get_capabilities(major: int, minor: int) -> Optional[FrozenSet[Capability]]:
    entry = find_version_range(major, minor)
    return entry.capabilities if entry else None
