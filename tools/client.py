"""
Version-adaptive Elasticsearch client.

One coroutine per logical operation. Each call resolves credentials, reads
the endpoint's VersionProfile once, selects a route from the operation's
dispatch table and runs that route's requests in order.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

from explorer_types.cluster import (
    ClusterHealth,
    ClusterSnapshot,
    ComponentTemplateInfo,
    DestructiveResult,
    IndexActionResult,
    IndexDetail,
    IndexInfo,
    NodeDetail,
    NodeInfo,
    SearchResult,
    ShardMap,
    SqlResult,
    TemplateListing,
)
from explorer_types.domain import EndpointIdentity, VersionProfile
from explorer_types.primitives import ElasticQuery, RawResponse, Request
from tools import primitives as ops
from tools.dispatch import Operation
from tools.probe import VersionProbe
from utils.connection import RequestExecutor
from utils.response_parser import expect_ok
from utils.validation import (
    validate_document_id,
    validate_index_name,
    validate_index_pattern,
    validate_size,
)
from vault.credentials import CredentialVault


logger = logging.getLogger(__name__)

DocumentRef = Union[Tuple[str, str], Dict[str, str]]


def _document_keys(documents: Iterable[DocumentRef]) -> List[Tuple[str, str]]:
    keys = []
    for doc in documents:
        if isinstance(doc, dict):
            index, doc_id = doc.get("index"), doc.get("id")
        else:
            index, doc_id = doc
        validate_index_name(index)
        keys.append((index, validate_document_id(doc_id)))
    if not keys:
        raise ValueError("At least one document is required")
    return keys


class CompatibilityClient:
    """Stable operation surface over Elasticsearch 3.x to 8.x."""

    def __init__(self, executor: RequestExecutor, probe: VersionProbe, vault: CredentialVault):
        self.executor = executor
        self.probe = probe
        self.vault = vault

    async def profile(self, endpoint: EndpointIdentity, refresh: bool = False) -> VersionProfile:
        credentials = await self.vault.resolve(endpoint)
        return await self.probe.detect(endpoint, credentials, refresh=refresh)

    async def _run(self, operation: Operation, endpoint: EndpointIdentity, **params: Any) -> Any:
        """
        Dispatch one operation.

        Raises:
            SecretUnavailable: If the endpoint secret cannot be resolved
            VersionUnrecognized: If the cluster version is unknown
            UnsupportedOperation: If no route serves the profile; nothing is sent
            AuthenticationFailed: On the first 401/403 answer
            EndpointUnreachable: If the cluster cannot be reached
        """
        credentials = await self.vault.resolve(endpoint)
        profile = await self.probe.detect(endpoint, credentials)
        route = operation.select(profile)

        responses: List[RawResponse] = []
        for request in route.build(profile, **params):
            response = await self.executor.execute(
                endpoint.base_url,
                request,
                auth=credentials,
                trust_policy=endpoint.trust_policy,
            )
            if response.status in (401, 403):
                expect_ok(response)
            responses.append(response)

        logger.debug(
            "%s on endpoint %s served by route '%s' (%s, %d request(s))",
            operation.name, endpoint.id, route.name, profile.number, len(responses),
        )
        return route.parse(profile, responses, **params)

    async def execute_raw(
        self,
        endpoint: EndpointIdentity,
        method: str,
        path: str,
        body: Optional[str] = None,
    ) -> RawResponse:
        """Send an arbitrary request with the endpoint's credentials and trust policy."""
        credentials = await self.vault.resolve(endpoint)
        return await self.executor.execute(
            endpoint.base_url,
            Request(method=method, path=path, body=body),
            auth=credentials,
            trust_policy=endpoint.trust_policy,
        )

    # ========== CLUSTER & NODES ==========

    async def cluster_health(self, endpoint: EndpointIdentity) -> ClusterHealth:
        return await self._run(ops.CLUSTER_HEALTH, endpoint)

    async def cluster_stats(self, endpoint: EndpointIdentity) -> ClusterSnapshot:
        return await self._run(ops.CLUSTER_STATS, endpoint)

    async def list_nodes(self, endpoint: EndpointIdentity) -> List[NodeInfo]:
        return await self._run(ops.LIST_NODES, endpoint)

    async def node_detail(self, endpoint: EndpointIdentity, node_id: str) -> NodeDetail:
        if not node_id or "*" in node_id or "," in node_id:
            raise ValueError("node_id must name a single node")
        return await self._run(ops.NODE_DETAIL, endpoint, node_id=quote(node_id, safe=""))

    # ========== INDICES ==========

    async def list_indices(
        self,
        endpoint: EndpointIdentity,
        pattern: str = "*",
        include_internal: bool = False,
    ) -> List[IndexInfo]:
        validate_index_pattern(pattern)
        return await self._run(ops.LIST_INDICES, endpoint, pattern=pattern, include_internal=include_internal)

    async def index_detail(self, endpoint: EndpointIdentity, name: str) -> IndexDetail:
        validate_index_name(name)
        return await self._run(ops.INDEX_DETAIL, endpoint, name=name)

    async def delete_index(self, endpoint: EndpointIdentity, name: str, dry_run: bool = False) -> DestructiveResult:
        """
        Delete one index, or report what deleting it would remove.

        Args:
            endpoint: Target endpoint
            name: Concrete index name (no wildcards, no ``_all``)
            dry_run: Only count the affected index and documents

        Returns:
            DestructiveResult

        Raises:
            ValueError: If the name is not a concrete index name
            UnsupportedOperation: If a dry run is requested on a cluster without the JSON cat API
            ResourceNotFound: If the index does not exist
        """
        validate_index_name(name)
        operation = ops.DELETE_INDEX_PREVIEW if dry_run else ops.DELETE_INDEX
        result = await self._run(operation, endpoint, name=name)
        if not dry_run:
            logger.info("Deleted index %s on endpoint %s", name, endpoint.id)
        return result

    async def close_index(self, endpoint: EndpointIdentity, name: str, dry_run: bool = False) -> DestructiveResult:
        validate_index_name(name)
        operation = ops.CLOSE_INDEX_PREVIEW if dry_run else ops.CLOSE_INDEX
        result = await self._run(operation, endpoint, name=name)
        if not dry_run:
            logger.info("Closed index %s on endpoint %s", name, endpoint.id)
        return result

    async def open_index(self, endpoint: EndpointIdentity, name: str) -> IndexActionResult:
        validate_index_name(name)
        return await self._run(ops.OPEN_INDEX, endpoint, name=name)

    async def refresh_index(self, endpoint: EndpointIdentity, name: str) -> IndexActionResult:
        validate_index_name(name)
        return await self._run(ops.REFRESH_INDEX, endpoint, name=name)

    async def delete_documents(
        self,
        endpoint: EndpointIdentity,
        documents: Sequence[DocumentRef],
        dry_run: bool = False,
    ) -> DestructiveResult:
        """
        Delete documents by index and id, or count how many would be deleted.

        Args:
            endpoint: Target endpoint
            documents: ``(index, id)`` pairs or ``{"index", "id"}`` dicts
            dry_run: Only count matching documents

        Returns:
            DestructiveResult with per-document outcomes where the cluster reports them
        """
        keys = _document_keys(documents)
        operation = ops.DELETE_DOCUMENTS_PREVIEW if dry_run else ops.DELETE_DOCUMENTS
        result = await self._run(operation, endpoint, documents=keys)
        if not dry_run:
            logger.info("Deleted %s document(s) on endpoint %s", result.affected_documents, endpoint.id)
        return result

    # ========== SHARDS ==========

    async def list_shards(self, endpoint: EndpointIdentity, pattern: str = "*") -> ShardMap:
        validate_index_pattern(pattern)
        return await self._run(ops.LIST_SHARDS, endpoint, pattern=pattern)

    # ========== SEARCH ==========

    async def search(
        self,
        endpoint: EndpointIdentity,
        indices: Optional[List[str]] = None,
        query: Optional[Dict[str, Any]] = None,
        size: int = 20,
        from_: int = 0,
        sort: Optional[List[Dict[str, Any]]] = None,
        source: Any = True,
        track_total_hits: Optional[bool] = None,
    ) -> SearchResult:
        """
        Run a Query DSL search.

        Args:
            endpoint: Target endpoint
            indices: Index names or patterns; empty searches every index
            query: Query DSL ``query`` clause (defaults to match_all)
            size: Number of hits (0-10000)
            from_: Offset for pagination
            sort: Sort criteria
            source: Source filtering (True, False, or field list)
            track_total_hits: Forwarded when set

        Returns:
            SearchResult
        """
        indices = list(indices or [])
        for pattern in indices:
            validate_index_pattern(pattern)
        elastic_query = ElasticQuery(
            index_pattern=",".join(indices),
            query=query or {"match_all": {}},
            size=validate_size(size),
            from_=max(0, from_),
            sort=sort,
            source=source,
            track_total_hits=track_total_hits,
        )
        return await self._run(ops.SEARCH, endpoint, indices=indices, query=elastic_query)

    async def search_sql(self, endpoint: EndpointIdentity, query: str, fetch_size: Optional[int] = None) -> SqlResult:
        """
        Run an SQL query.

        Raises:
            UnsupportedOperation: If the cluster has no SQL API; no request is sent
        """
        if not query or not query.strip():
            raise ValueError("SQL query cannot be empty")
        if fetch_size is not None:
            fetch_size = validate_size(fetch_size)
        return await self._run(ops.SEARCH_SQL, endpoint, query=query, fetch_size=fetch_size)

    # ========== TEMPLATES ==========

    async def list_index_templates(self, endpoint: EndpointIdentity) -> TemplateListing:
        return await self._run(ops.LIST_INDEX_TEMPLATES, endpoint)

    async def list_component_templates(self, endpoint: EndpointIdentity) -> List[ComponentTemplateInfo]:
        return await self._run(ops.LIST_COMPONENT_TEMPLATES, endpoint)
