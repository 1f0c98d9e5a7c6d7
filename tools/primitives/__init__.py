"""
Dispatch tables for every Elasticsearch operation the client exposes.
"""

from .cluster import CLUSTER_HEALTH, CLUSTER_STATS
from .nodes import LIST_NODES, NODE_DETAIL
from .indices import (
    LIST_INDICES,
    INDEX_DETAIL,
    DELETE_INDEX,
    DELETE_INDEX_PREVIEW,
    CLOSE_INDEX,
    CLOSE_INDEX_PREVIEW,
    OPEN_INDEX,
    REFRESH_INDEX,
)
from .shards import LIST_SHARDS
from .search import SEARCH, SEARCH_SQL
from .templates import LIST_INDEX_TEMPLATES, LIST_COMPONENT_TEMPLATES
from .documents import DELETE_DOCUMENTS, DELETE_DOCUMENTS_PREVIEW

__all__ = [
    # Cluster
    "CLUSTER_HEALTH",
    "CLUSTER_STATS",
    # Nodes
    "LIST_NODES",
    "NODE_DETAIL",
    # Indices
    "LIST_INDICES",
    "INDEX_DETAIL",
    "DELETE_INDEX",
    "DELETE_INDEX_PREVIEW",
    "CLOSE_INDEX",
    "CLOSE_INDEX_PREVIEW",
    "OPEN_INDEX",
    "REFRESH_INDEX",
    # Shards
    "LIST_SHARDS",
    # Search
    "SEARCH",
    "SEARCH_SQL",
    # Templates
    "LIST_INDEX_TEMPLATES",
    "LIST_COMPONENT_TEMPLATES",
    # Documents
    "DELETE_DOCUMENTS",
    "DELETE_DOCUMENTS_PREVIEW",
]
