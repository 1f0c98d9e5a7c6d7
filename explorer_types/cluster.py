"""
Normalized, version-independent DTOs returned by the compatibility client.

Any field a given cluster version does not report is UNKNOWN, never a
zero-like default.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .primitives import UNKNOWN, Maybe, serialize


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return serialize(self)


# ========== CLUSTER ==========

@dataclass
class ClusterHealth(_Serializable):
    cluster_name: Maybe[str]
    status: Maybe[str]
    timed_out: Maybe[bool]
    number_of_nodes: Maybe[int]
    number_of_data_nodes: Maybe[int]
    active_primary_shards: Maybe[int]
    active_shards: Maybe[int]
    relocating_shards: Maybe[int]
    initializing_shards: Maybe[int]
    unassigned_shards: Maybe[int]
    active_shards_percent: Maybe[float] = UNKNOWN


@dataclass
class ClusterSnapshot(_Serializable):
    """Cluster-wide statistics, normalized across versions."""
    cluster_name: Maybe[str]
    status: Maybe[str]
    nodes_total: Maybe[int]
    nodes_data: Maybe[int]
    nodes_master: Maybe[int]
    indices_count: Maybe[int]
    documents_count: Maybe[int]
    store_size_bytes: Maybe[int]
    heap_used_bytes: Maybe[int]
    heap_max_bytes: Maybe[int]
    node_versions: Maybe[List[str]]
    version: str = ""


# ========== NODES ==========

@dataclass
class NodeInfo(_Serializable):
    """Node summary used by overview listings."""
    id: str
    name: Maybe[str]
    roles: Maybe[List[str]]
    is_master: Maybe[bool]
    ip: Maybe[str]
    version: Maybe[str]
    cpu_percent: Maybe[int]
    heap_percent: Maybe[int]
    ram_percent: Maybe[int]
    disk_percent: Maybe[int]


@dataclass
class NodeDetail(_Serializable):
    id: str
    name: Maybe[str]
    roles: Maybe[List[str]]
    ip: Maybe[str]
    version: Maybe[str]
    os_name: Maybe[str]
    os_arch: Maybe[str]
    jvm_version: Maybe[str]
    cpu_percent: Maybe[int]
    heap_percent: Maybe[int]
    heap_used_bytes: Maybe[int]
    heap_max_bytes: Maybe[int]
    ram_percent: Maybe[int]
    ram_used_bytes: Maybe[int]
    ram_total_bytes: Maybe[int]
    disk_percent: Maybe[int]
    disk_used_bytes: Maybe[int]
    disk_total_bytes: Maybe[int]
    docs_count: Maybe[int]
    docs_deleted: Maybe[int]
    store_size_bytes: Maybe[int]


# ========== INDICES ==========

@dataclass
class IndexInfo(_Serializable):
    index: str
    health: Maybe[str]
    status: Maybe[str]
    uuid: Maybe[str]
    primary_shards: Maybe[int]
    replicas: Maybe[int]
    docs_count: Maybe[int]
    docs_deleted: Maybe[int]
    store_size_bytes: Maybe[int]
    primary_store_size_bytes: Maybe[int]
    aliases: List[str] = field(default_factory=list)

    @property
    def is_internal(self) -> bool:
        return self.index.startswith(".")


@dataclass
class IndexStatsSummary(_Serializable):
    """Primary and total statistics from ``<index>/_stats``."""
    docs_count: Maybe[int]
    docs_deleted: Maybe[int]
    store_size_bytes: Maybe[int]
    primary_store_size_bytes: Maybe[int]
    segments_count: Maybe[int]
    segments_memory_bytes: Maybe[int]
    search_query_total: Maybe[int]
    search_query_time_ms: Maybe[int]
    indexing_total: Maybe[int]
    indexing_time_ms: Maybe[int]


@dataclass
class IndexDetail(_Serializable):
    info: IndexInfo
    settings: Dict[str, Any]
    mappings: Dict[str, Any]
    mapping_types: Maybe[List[str]]
    stats: IndexStatsSummary


@dataclass
class ShardInfo(_Serializable):
    index: str
    shard: int
    primary: bool
    state: str
    docs: Maybe[int]
    store_bytes: Maybe[int]
    node: Optional[str]
    unassigned_reason: Maybe[Optional[str]]


@dataclass
class ShardMap(_Serializable):
    """Shards matching a pattern, grouped by node, with state counts."""
    pattern: str
    shards: List[ShardInfo]
    by_node: Dict[str, List[ShardInfo]]
    total: int
    primary: int
    replica: int
    started: int
    relocating: int
    initializing: int
    unassigned: int


# ========== SEARCH ==========

@dataclass
class SearchHit(_Serializable):
    index: str
    id: str
    score: Optional[float]
    source: Maybe[Dict[str, Any]]
    doc_type: Maybe[str] = UNKNOWN


@dataclass
class SearchResult(_Serializable):
    took: Maybe[int]
    timed_out: Maybe[bool]
    total: Maybe[int]
    total_relation: Maybe[str]
    hits: List[SearchHit]
    aggregations: Optional[Dict[str, Any]] = None


@dataclass
class SqlColumn(_Serializable):
    name: str
    type: Maybe[str]


@dataclass
class SqlResult(_Serializable):
    columns: List[SqlColumn]
    rows: List[List[Any]]
    cursor: Optional[str] = None


# ========== TEMPLATES ==========

@dataclass
class TemplateInfo(_Serializable):
    """Index template, legacy or composable; absent concepts are UNKNOWN."""
    name: str
    index_patterns: Maybe[List[str]]
    order: Maybe[int]
    priority: Maybe[int]
    version: Maybe[int]
    composed_of: Maybe[List[str]]
    settings: Dict[str, Any]
    mappings: Dict[str, Any]
    aliases: Dict[str, Any]
    data_stream: Maybe[bool]
    source: str


@dataclass
class ComponentTemplateInfo(_Serializable):
    name: str
    version: Maybe[int]
    settings: Dict[str, Any]
    mappings: Dict[str, Any]
    aliases: Dict[str, Any]
    meta: Maybe[Dict[str, Any]]


@dataclass
class TemplateListing(_Serializable):
    templates: List[TemplateInfo]
    component_templates: Maybe[List[ComponentTemplateInfo]]
    served_by: str
    version: str


# ========== DESTRUCTIVE OPERATIONS ==========

@dataclass
class DocumentOutcome(_Serializable):
    index: str
    id: str
    deleted: Maybe[bool]
    status: Maybe[int] = UNKNOWN


@dataclass
class DestructiveResult(_Serializable):
    """
    Effect of a destructive operation.

    With ``dry_run`` the counts describe what would happen and nothing was
    applied. Without it, ``acknowledged`` reports the cluster's answer and
    counts the cluster does not return stay UNKNOWN.
    """
    operation: str
    targets: List[str]
    dry_run: bool
    applied: bool
    affected_indices: Maybe[int]
    affected_documents: Maybe[int]
    acknowledged: Maybe[bool] = UNKNOWN
    outcomes: List[DocumentOutcome] = field(default_factory=list)


@dataclass
class IndexActionResult(_Serializable):
    operation: str
    index: str
    acknowledged: Maybe[bool]


@dataclass
class ConnectionTestResult(_Serializable):
    success: bool
    message: str
    version: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
