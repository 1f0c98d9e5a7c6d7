"""
Shard map: every shard of the matching indices, grouped by node.
"""

from typing import Any, Dict, List

from explorer_types.cluster import ShardInfo, ShardMap
from explorer_types.domain import Capability, VersionProfile
from explorer_types.errors import MalformedResponse
from explorer_types.primitives import UNKNOWN, RawResponse, Request
from tools.dispatch import Operation, Route, lacks, requires
from utils.response_parser import (
    as_bytes,
    as_int,
    as_str,
    dig,
    group_by,
    matches_pattern,
    parse_ok_json,
)


CAT_SHARD_COLUMNS = "index,shard,prirep,state,docs,store,node,unassigned.reason"
UNASSIGNED_NODE = "UNASSIGNED"


def _reason(state: str, value: Any) -> Any:
    """Reason for unassigned shards only; assigned shards have none."""
    if state != "UNASSIGNED":
        return None
    return as_str(value)


def _node_name(value: Any) -> Any:
    """Cat reports relocating shards as ``source -> ip id target``; keep the source."""
    if not isinstance(value, str) or not value:
        return None
    return value.split(" -> ")[0].strip()


def _shard_number(value: Any) -> int:
    number = as_int(value)
    if number is UNKNOWN:
        raise MalformedResponse(f"Shard row has no shard number: {value!r}")
    return number


def summarize_shards(pattern: str, shards: List[ShardInfo]) -> ShardMap:
    """Group shards by node and count them by role and state."""
    shards = sorted(shards, key=lambda s: (s.index, s.shard, not s.primary))
    states = [s.state for s in shards]
    by_node = group_by(shards, lambda s: s.node or UNASSIGNED_NODE)
    return ShardMap(
        pattern=pattern,
        shards=shards,
        by_node=dict(sorted(by_node.items())),
        total=len(shards),
        primary=sum(1 for s in shards if s.primary),
        replica=sum(1 for s in shards if not s.primary),
        started=states.count("STARTED"),
        relocating=states.count("RELOCATING"),
        initializing=states.count("INITIALIZING"),
        unassigned=states.count("UNASSIGNED"),
    )


# ========== CAT ROUTE ==========

def build_list_shards_cat(profile: VersionProfile, pattern: str) -> List[Request]:
    return [
        Request(
            "GET",
            "_cat/shards",
            params={"format": "json", "bytes": "b", "h": CAT_SHARD_COLUMNS},
        )
    ]


def parse_list_shards_cat(profile: VersionProfile, responses: List[RawResponse], pattern: str) -> ShardMap:
    rows = parse_ok_json(responses[0], expected=list)
    shards = []
    for row in rows:
        index = row.get("index")
        if not index or not matches_pattern(index, pattern):
            continue
        state = str(row.get("state") or "UNKNOWN")
        shards.append(ShardInfo(
            index=index,
            shard=_shard_number(row.get("shard")),
            primary=row.get("prirep") == "p",
            state=state,
            docs=as_int(dig(row, "docs")),
            store_bytes=as_bytes(dig(row, "store")),
            node=_node_name(row.get("node")),
            unassigned_reason=_reason(state, dig(row, "unassigned.reason")),
        ))
    return summarize_shards(pattern, shards)


# ========== ROUTING TABLE ROUTE ==========

def build_list_shards_legacy(profile: VersionProfile, pattern: str) -> List[Request]:
    return [
        Request("GET", "_cluster/state/routing_table"),
        Request("GET", "_nodes"),
    ]


def _node_names(nodes_body: Dict[str, Any]) -> Dict[str, str]:
    nodes = nodes_body.get("nodes", {})
    return {node_id: (info or {}).get("name", node_id) for node_id, info in nodes.items()}


def parse_list_shards_legacy(profile: VersionProfile, responses: List[RawResponse], pattern: str) -> ShardMap:
    """Routing table entries carry no doc or store figures; those stay UNKNOWN."""
    state_body = parse_ok_json(responses[0])
    names = _node_names(parse_ok_json(responses[1]))
    indices = dig(state_body, "routing_table", "indices")
    if indices is UNKNOWN:
        raise MalformedResponse("Cluster state has no routing_table.indices")

    shards = []
    for index, table in indices.items():
        if not matches_pattern(index, pattern):
            continue
        groups = dig(table, "shards")
        if not isinstance(groups, dict):
            continue
        for copies in groups.values():
            for copy in copies:
                state = str(copy.get("state") or "UNKNOWN")
                node_id = copy.get("node")
                shards.append(ShardInfo(
                    index=index,
                    shard=_shard_number(copy.get("shard")),
                    primary=bool(copy.get("primary")),
                    state=state,
                    docs=UNKNOWN,
                    store_bytes=UNKNOWN,
                    node=names.get(node_id, node_id) if node_id else None,
                    unassigned_reason=_reason(state, dig(copy, "unassigned_info", "reason")),
                ))
    return summarize_shards(pattern, shards)


LIST_SHARDS = Operation(
    name="list_shards",
    routes=(
        Route("cat", requires(Capability.CAT_JSON), build_list_shards_cat, parse_list_shards_cat),
        Route("routing-table", lacks(Capability.CAT_JSON), build_list_shards_legacy, parse_list_shards_legacy),
    ),
)
