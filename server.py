"""
FastMCP server for elastic-explorer.

Exposes the version-adaptive Elasticsearch client and its endpoint and
console flows as tools:
- Endpoints: list, register, update, remove, test, version profile
- Cluster: health, stats, nodes, node detail
- Indices: list, detail, delete, close, open, refresh, document delete
- Shards, search, SQL, templates
- Dev console: execute, history

Tool functions stay plain coroutines so they can be called directly; they
are registered with the server at the bottom of this module.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

# Load environment variables before configuration is read
load_dotenv()

from config import get_current_environment, get_logging_config
from explorer_types.domain import EndpointIdentity
from explorer_types.errors import ExplorerError
from tools.client import CompatibilityClient
from tools.context import get_explorer


logging.basicConfig(
    level=get_logging_config()["level"],
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = FastMCP("elastic-explorer")


def _error(e: Exception) -> Dict[str, Any]:
    return {
        "error": True,
        "kind": type(e).__name__,
        "message": str(e),
    }


def _payload(result: Any) -> Any:
    if isinstance(result, list):
        return [_payload(item) for item in result]
    if hasattr(result, "to_dict"):
        return result.to_dict()
    return result


async def _on_endpoint(
    endpoint_id: int,
    call: Callable[[CompatibilityClient, EndpointIdentity], Awaitable[Any]],
) -> Any:
    """Load an endpoint, run one client call and serialize the outcome."""
    explorer = get_explorer()
    try:
        endpoint = await explorer.endpoints.get(endpoint_id)
        return _payload(await call(explorer.client, endpoint))
    except (ExplorerError, ValueError) as e:
        logger.info("Tool call on endpoint %s failed: %s", endpoint_id, e)
        return _error(e)


# ========== HEALTH TOOL ==========

async def health() -> Dict[str, Any]:
    """
    Report configured endpoints and the versions probed so far.
    """
    explorer = get_explorer()
    try:
        endpoints = await explorer.endpoints.list()
    except ExplorerError as e:
        return _error(e)

    summary = []
    for endpoint in endpoints:
        profile = explorer.probe.cached(endpoint)
        summary.append({
            "id": endpoint.id,
            "name": endpoint.name,
            "url": endpoint.url,
            "version": profile.number if profile else None,
        })
    return {
        "environment": get_current_environment(),
        "endpoints": summary,
        "requests_sent": explorer.executor.calls,
    }


# ========== ENDPOINT TOOLS ==========

async def list_endpoints() -> Any:
    """List stored endpoints; passwords are never returned."""
    try:
        return _payload(await get_explorer().endpoints.list())
    except ExplorerError as e:
        return _error(e)


async def register_endpoint(
    name: str,
    url: str,
    insecure: bool = False,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Store a new Elasticsearch endpoint.

    Args:
        name: Display name
        url: Base URL, e.g. "https://es.example:9200"
        insecure: Skip TLS certificate validation for this endpoint (https only)
        username: Basic-Auth user
        password: Basic-Auth password, kept in the OS keychain or encrypted at rest

    Returns:
        The stored endpoint
    """
    try:
        endpoint = await get_explorer().endpoints.register(name, url, insecure, username, password)
    except (ExplorerError, ValueError) as e:
        return _error(e)
    return endpoint.to_dict()


async def update_endpoint(
    endpoint_id: int,
    name: Optional[str] = None,
    url: Optional[str] = None,
    insecure: Optional[bool] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    clear_password: bool = False,
) -> Dict[str, Any]:
    """Edit an endpoint; omitted fields are kept. The cached version profile is dropped."""
    try:
        endpoint = await get_explorer().endpoints.update(
            endpoint_id,
            name=name,
            url=url,
            insecure=insecure,
            username=username,
            password=password,
            clear_password=clear_password,
        )
    except (ExplorerError, ValueError) as e:
        return _error(e)
    return endpoint.to_dict()


async def remove_endpoint(endpoint_id: int) -> Dict[str, Any]:
    """Delete an endpoint with its console history and stored secret."""
    try:
        await get_explorer().endpoints.remove(endpoint_id)
    except ExplorerError as e:
        return _error(e)
    return {"removed": True, "endpoint_id": endpoint_id}


async def test_endpoint(endpoint_id: int) -> Dict[str, Any]:
    """Re-probe an endpoint and report its version, bypassing the profile cache."""
    try:
        result = await get_explorer().endpoints.test_connection(endpoint_id)
    except ExplorerError as e:
        return _error(e)
    return result.to_dict()


async def version_profile(endpoint_id: int) -> Dict[str, Any]:
    """Version and capability flags of the endpoint's cluster."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.profile(ep))


# ========== CLUSTER TOOLS ==========

async def cluster_health(endpoint_id: int) -> Dict[str, Any]:
    """Cluster health; fields the cluster does not report are "unknown"."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.cluster_health(ep))


async def cluster_stats(endpoint_id: int) -> Dict[str, Any]:
    """Cluster-wide statistics: nodes, indices, documents, store and heap."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.cluster_stats(ep))


async def list_nodes(endpoint_id: int) -> Any:
    """Nodes with roles, master flag and CPU/heap/RAM/disk usage."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.list_nodes(ep))


async def node_detail(endpoint_id: int, node_id: str) -> Dict[str, Any]:
    return await _on_endpoint(endpoint_id, lambda client, ep: client.node_detail(ep, node_id))


# ========== INDEX TOOLS ==========

async def list_indices(endpoint_id: int, pattern: str = "*", include_internal: bool = False) -> Any:
    """
    List indices matching a pattern.

    Args:
        endpoint_id: Endpoint to query
        pattern: Index pattern (e.g., "logs-*", "a,b,-c")
        include_internal: Include indices whose name starts with "."
    """
    return await _on_endpoint(
        endpoint_id,
        lambda client, ep: client.list_indices(ep, pattern, include_internal),
    )


async def index_detail(endpoint_id: int, name: str) -> Dict[str, Any]:
    """Settings, mappings, aliases and statistics of one index."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.index_detail(ep, name))


async def delete_index(endpoint_id: int, name: str, dry_run: bool = True) -> Dict[str, Any]:
    """
    Delete one index. Defaults to a dry run that only reports what would be removed.

    The caller is responsible for confirming before calling with dry_run=False.
    """
    return await _on_endpoint(endpoint_id, lambda client, ep: client.delete_index(ep, name, dry_run))


async def close_index(endpoint_id: int, name: str, dry_run: bool = True) -> Dict[str, Any]:
    """Close one index. Defaults to a dry run."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.close_index(ep, name, dry_run))


async def open_index(endpoint_id: int, name: str) -> Dict[str, Any]:
    return await _on_endpoint(endpoint_id, lambda client, ep: client.open_index(ep, name))


async def refresh_index(endpoint_id: int, name: str) -> Dict[str, Any]:
    return await _on_endpoint(endpoint_id, lambda client, ep: client.refresh_index(ep, name))


async def delete_documents(
    endpoint_id: int,
    documents: List[Dict[str, str]],
    dry_run: bool = True,
) -> Dict[str, Any]:
    """
    Delete documents given as {"index": ..., "id": ...}. Defaults to a dry run.
    """
    return await _on_endpoint(
        endpoint_id,
        lambda client, ep: client.delete_documents(ep, documents, dry_run),
    )


async def list_shards(endpoint_id: int, pattern: str = "*") -> Dict[str, Any]:
    """Shards of the matching indices grouped by node, with state counts."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.list_shards(ep, pattern))


# ========== SEARCH TOOLS ==========

async def search(
    endpoint_id: int,
    indices: Optional[List[str]] = None,
    query: Optional[Dict[str, Any]] = None,
    size: int = 20,
    from_offset: int = 0,
    sort: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Query DSL search.

    Args:
        endpoint_id: Endpoint to query
        indices: Index names or patterns; omit to search all
        query: Query DSL query clause (defaults to match_all)
        size: Number of hits (0-10000)
        from_offset: Pagination offset
        sort: Sort criteria
    """
    return await _on_endpoint(
        endpoint_id,
        lambda client, ep: client.search(ep, indices, query, size=size, from_=from_offset, sort=sort),
    )


async def search_sql(endpoint_id: int, query: str, fetch_size: Optional[int] = None) -> Dict[str, Any]:
    """SQL query; fails with UnsupportedOperation before 7.0 without contacting the cluster."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.search_sql(ep, query, fetch_size))


# ========== TEMPLATE TOOLS ==========

async def list_index_templates(endpoint_id: int) -> Dict[str, Any]:
    """Index templates, legacy or composable; "served_by" tells which API answered."""
    return await _on_endpoint(endpoint_id, lambda client, ep: client.list_index_templates(ep))


async def list_component_templates(endpoint_id: int) -> Any:
    return await _on_endpoint(endpoint_id, lambda client, ep: client.list_component_templates(ep))


# ========== CONSOLE TOOLS ==========

async def console_execute(
    endpoint_id: int,
    method: str,
    path: str,
    body: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Send a raw request to the endpoint and record it in console history.

    Args:
        endpoint_id: Endpoint to query
        method: GET, POST, PUT, DELETE, PATCH or HEAD
        path: Path such as "/_cat/indices?v"
        body: JSON body for POST, PUT and PATCH
    """
    explorer = get_explorer()
    try:
        endpoint = await explorer.endpoints.get(endpoint_id)
        result = await explorer.console.execute(endpoint, method, path, body)
    except (ExplorerError, ValueError) as e:
        return _error(e)
    return result.to_dict()


async def console_history(limit: int = 50, endpoint_id: Optional[int] = None) -> Any:
    """Most recent console requests, newest first."""
    try:
        entries = await get_explorer().console.recent(limit=max(1, min(limit, 200)), endpoint_id=endpoint_id)
    except ExplorerError as e:
        return _error(e)
    return _payload(entries)


TOOLS = [
    health,
    list_endpoints,
    register_endpoint,
    update_endpoint,
    remove_endpoint,
    test_endpoint,
    version_profile,
    cluster_health,
    cluster_stats,
    list_nodes,
    node_detail,
    list_indices,
    index_detail,
    delete_index,
    close_index,
    open_index,
    refresh_index,
    delete_documents,
    list_shards,
    search,
    search_sql,
    list_index_templates,
    list_component_templates,
    console_execute,
    console_history,
]

for _tool in TOOLS:
    mcp.tool()(_tool)


if __name__ == "__main__":
    mcp.run()
