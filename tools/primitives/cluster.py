"""
Cluster-level operations: health and statistics.
"""

from typing import Any, Dict, List

from explorer_types.cluster import ClusterHealth, ClusterSnapshot
from explorer_types.domain import Capability, VersionProfile
from explorer_types.primitives import UNKNOWN, RawResponse, Request, is_known
from tools.dispatch import Operation, Route, always, lacks, requires, single
from utils.response_parser import as_bool, as_float, as_int, as_str, dig, parse_ok_json, string_list


def build_cluster_health(profile: VersionProfile) -> List[Request]:
    return single("GET", "_cluster/health")


def parse_cluster_health(profile: VersionProfile, responses: List[RawResponse]) -> ClusterHealth:
    body = parse_ok_json(responses[0])
    return ClusterHealth(
        cluster_name=as_str(dig(body, "cluster_name")),
        status=as_str(dig(body, "status")),
        timed_out=as_bool(dig(body, "timed_out")),
        number_of_nodes=as_int(dig(body, "number_of_nodes")),
        number_of_data_nodes=as_int(dig(body, "number_of_data_nodes")),
        active_primary_shards=as_int(dig(body, "active_primary_shards")),
        active_shards=as_int(dig(body, "active_shards")),
        relocating_shards=as_int(dig(body, "relocating_shards")),
        initializing_shards=as_int(dig(body, "initializing_shards")),
        unassigned_shards=as_int(dig(body, "unassigned_shards")),
        active_shards_percent=as_float(dig(body, "active_shards_percent_as_number")),
    )


CLUSTER_HEALTH = Operation(
    name="cluster_health",
    routes=(
        Route("health", always, build_cluster_health, parse_cluster_health),
    ),
)


def build_cluster_stats(profile: VersionProfile) -> List[Request]:
    return single("GET", "_cluster/stats")


def _sum_known(*values: Any) -> Any:
    """Sum of the values, UNKNOWN if all of them are unknown."""
    known = [v for v in values if is_known(v)]
    return sum(known) if known else UNKNOWN


def _snapshot(profile: VersionProfile, body: Dict[str, Any], nodes_data: Any, nodes_master: Any) -> ClusterSnapshot:
    return ClusterSnapshot(
        cluster_name=as_str(dig(body, "cluster_name")),
        status=as_str(dig(body, "status")),
        nodes_total=as_int(dig(body, "nodes", "count", "total")),
        nodes_data=nodes_data,
        nodes_master=nodes_master,
        indices_count=as_int(dig(body, "indices", "count")),
        documents_count=as_int(dig(body, "indices", "docs", "count")),
        store_size_bytes=as_int(dig(body, "indices", "store", "size_in_bytes")),
        heap_used_bytes=as_int(dig(body, "nodes", "jvm", "mem", "heap_used_in_bytes")),
        heap_max_bytes=as_int(dig(body, "nodes", "jvm", "mem", "heap_max_in_bytes")),
        node_versions=string_list(dig(body, "nodes", "versions")),
        version=profile.number,
    )


def parse_cluster_stats(profile: VersionProfile, responses: List[RawResponse]) -> ClusterSnapshot:
    body = parse_ok_json(responses[0])
    return _snapshot(
        profile,
        body,
        nodes_data=as_int(dig(body, "nodes", "count", "data")),
        nodes_master=as_int(dig(body, "nodes", "count", "master")),
    )


def parse_legacy_cluster_stats(profile: VersionProfile, responses: List[RawResponse]) -> ClusterSnapshot:
    """Pre-5.x clusters count ``master_only``, ``data_only`` and ``master_data`` separately."""
    body = parse_ok_json(responses[0])
    counts = dig(body, "nodes", "count")
    master_data = as_int(dig(counts, "master_data"))
    return _snapshot(
        profile,
        body,
        nodes_data=_sum_known(as_int(dig(counts, "data_only")), master_data),
        nodes_master=_sum_known(as_int(dig(counts, "master_only")), master_data),
    )


CLUSTER_STATS = Operation(
    name="cluster_stats",
    routes=(
        Route("node-roles", requires(Capability.NODE_ROLES), build_cluster_stats, parse_cluster_stats),
        Route("legacy", lacks(Capability.NODE_ROLES), build_cluster_stats, parse_legacy_cluster_stats),
    ),
)
