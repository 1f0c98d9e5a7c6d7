"""
Index listing, index detail and index-level actions.

Clusters with the JSON cat API (5.0+) are read through ``_cat/indices``;
older ones are assembled from ``_stats``, per-index health and ``_alias``.
"""

from typing import Any, Dict, List, Optional

from explorer_types.cluster import (
    DestructiveResult,
    IndexActionResult,
    IndexDetail,
    IndexInfo,
    IndexStatsSummary,
)
from explorer_types.domain import Capability, VersionProfile
from explorer_types.errors import MalformedResponse, ResourceNotFound
from explorer_types.primitives import UNKNOWN, RawResponse, Request, is_known
from tools.dispatch import Operation, Route, always, lacks, requires, single
from utils.response_parser import (
    as_bool,
    as_bytes,
    as_int,
    as_str,
    dig,
    expect_ok,
    matches_pattern,
    parse_ok_json,
)


def _cat_indices_request(pattern: str) -> Request:
    return Request("GET", f"_cat/indices/{pattern}", params={"format": "json", "bytes": "b"})


def _row_to_info(row: Dict[str, Any], aliases: Optional[List[str]] = None) -> IndexInfo:
    if not isinstance(row, dict) or "index" not in row:
        raise MalformedResponse("Cat indices row has no 'index' column")
    return IndexInfo(
        index=row["index"],
        health=as_str(dig(row, "health")),
        status=as_str(dig(row, "status")),
        uuid=as_str(dig(row, "uuid")),
        primary_shards=as_int(dig(row, "pri")),
        replicas=as_int(dig(row, "rep")),
        docs_count=as_int(dig(row, "docs.count")),
        docs_deleted=as_int(dig(row, "docs.deleted")),
        store_size_bytes=as_bytes(dig(row, "store.size")),
        primary_store_size_bytes=as_bytes(dig(row, "pri.store.size")),
        aliases=sorted(aliases or []),
    )


def _cat_rows(response: RawResponse) -> List[Dict[str, Any]]:
    """Cat rows, or an empty list when the pattern matched nothing."""
    if response.status == 404:
        return []
    return parse_ok_json(response, expected=list)


def _alias_map_from_cat(response: RawResponse) -> Dict[str, List[str]]:
    aliases: Dict[str, List[str]] = {}
    for row in _cat_rows(response):
        index, alias = row.get("index"), row.get("alias")
        if index and alias:
            aliases.setdefault(index, []).append(alias)
    return aliases


def _alias_map_from_api(response: RawResponse) -> Dict[str, List[str]]:
    if response.status == 404:
        return {}
    body = parse_ok_json(response)
    return {
        index: sorted((entry or {}).get("aliases", {}).keys())
        for index, entry in body.items()
    }


def _visible(info: IndexInfo, include_internal: bool) -> bool:
    return include_internal or not info.is_internal


# ========== LIST INDICES ==========

def build_list_indices_cat(profile: VersionProfile, pattern: str, include_internal: bool) -> List[Request]:
    return [
        _cat_indices_request(pattern),
        Request("GET", "_cat/aliases", params={"format": "json"}),
    ]


def parse_list_indices_cat(
    profile: VersionProfile,
    responses: List[RawResponse],
    pattern: str,
    include_internal: bool,
) -> List[IndexInfo]:
    rows = _cat_rows(responses[0])
    aliases = _alias_map_from_cat(responses[1])
    infos = [_row_to_info(row, aliases.get(row.get("index"))) for row in rows]
    return sorted((i for i in infos if _visible(i, include_internal)), key=lambda i: i.index)


def build_list_indices_legacy(profile: VersionProfile, pattern: str, include_internal: bool) -> List[Request]:
    return [
        Request("GET", f"{pattern}/_stats/docs,store"),
        Request("GET", f"_cluster/health/{pattern}", params={"level": "indices"}),
        Request("GET", f"{pattern}/_alias"),
    ]


def _legacy_info(name: str, stats: Any, health: Any, aliases: List[str]) -> IndexInfo:
    return IndexInfo(
        index=name,
        health=as_str(dig(health, "status")),
        status="open",
        uuid=UNKNOWN,
        primary_shards=as_int(dig(health, "number_of_shards")),
        replicas=as_int(dig(health, "number_of_replicas")),
        docs_count=as_int(dig(stats, "primaries", "docs", "count")),
        docs_deleted=as_int(dig(stats, "primaries", "docs", "deleted")),
        store_size_bytes=as_int(dig(stats, "total", "store", "size_in_bytes")),
        primary_store_size_bytes=as_int(dig(stats, "primaries", "store", "size_in_bytes")),
        aliases=aliases,
    )


def parse_list_indices_legacy(
    profile: VersionProfile,
    responses: List[RawResponse],
    pattern: str,
    include_internal: bool,
) -> List[IndexInfo]:
    """Only open indices report stats on these versions, so every row is ``open``."""
    stats_response, health_response, alias_response = responses
    if stats_response.status == 404:
        return []
    stats = parse_ok_json(stats_response).get("indices", {})
    health = {} if health_response.status == 404 else parse_ok_json(health_response).get("indices", {})
    aliases = _alias_map_from_api(alias_response)

    infos = [
        _legacy_info(name, entry, health.get(name, {}), aliases.get(name, []))
        for name, entry in stats.items()
        if matches_pattern(name, pattern)
    ]
    return sorted((i for i in infos if _visible(i, include_internal)), key=lambda i: i.index)


LIST_INDICES = Operation(
    name="list_indices",
    routes=(
        Route("cat", requires(Capability.CAT_JSON), build_list_indices_cat, parse_list_indices_cat),
        Route("stats", lacks(Capability.CAT_JSON), build_list_indices_legacy, parse_list_indices_legacy),
    ),
)


# ========== INDEX DETAIL ==========

def _entry_for(body: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Section of a per-index response, tolerating an alias resolved to its index."""
    if name in body:
        return body[name] or {}
    if len(body) == 1:
        return next(iter(body.values())) or {}
    raise MalformedResponse(f"Response has no entry for index '{name}'")


def unwrap_typed_mappings(mappings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop the mapping-type level of a pre-7 mapping.

    A single type is unwrapped as-is; several types have their properties merged.
    """
    types = list(mappings.keys())
    if len(types) == 1:
        return mappings[types[0]] or {}
    merged: Dict[str, Any] = {"properties": {}}
    for type_name in types:
        merged["properties"].update((mappings[type_name] or {}).get("properties", {}))
    return merged


def _stats_summary(stats_body: Dict[str, Any], name: str) -> IndexStatsSummary:
    entry = _entry_for(stats_body.get("indices", {}), name)
    return IndexStatsSummary(
        docs_count=as_int(dig(entry, "primaries", "docs", "count")),
        docs_deleted=as_int(dig(entry, "primaries", "docs", "deleted")),
        store_size_bytes=as_int(dig(entry, "total", "store", "size_in_bytes")),
        primary_store_size_bytes=as_int(dig(entry, "primaries", "store", "size_in_bytes")),
        segments_count=as_int(dig(entry, "total", "segments", "count")),
        segments_memory_bytes=as_int(dig(entry, "total", "segments", "memory_in_bytes")),
        search_query_total=as_int(dig(entry, "total", "search", "query_total")),
        search_query_time_ms=as_int(dig(entry, "total", "search", "query_time_in_millis")),
        indexing_total=as_int(dig(entry, "total", "indexing", "index_total")),
        indexing_time_ms=as_int(dig(entry, "total", "indexing", "index_time_in_millis")),
    )


def _detail_tail(name: str) -> List[Request]:
    return [
        Request("GET", f"{name}/_alias"),
        Request("GET", f"{name}/_settings"),
        Request("GET", f"{name}/_mapping"),
        Request("GET", f"{name}/_stats"),
    ]


def build_index_detail_cat(profile: VersionProfile, name: str) -> List[Request]:
    return [_cat_indices_request(name)] + _detail_tail(name)


def build_index_detail_legacy(profile: VersionProfile, name: str) -> List[Request]:
    return [Request("GET", f"_cluster/health/{name}", params={"level": "indices"})] + _detail_tail(name)


def _assemble_detail(
    profile: VersionProfile,
    name: str,
    responses: List[RawResponse],
    info_builder,
) -> IndexDetail:
    for response in responses:
        expect_ok(response, kind="index", name=name)
    head, alias_response, settings_response, mapping_response, stats_response = responses

    aliases = _alias_map_from_api(alias_response)
    alias_names = aliases.get(name) or (next(iter(aliases.values())) if len(aliases) == 1 else [])
    stats = _stats_summary(parse_ok_json(stats_response), name)
    info = info_builder(head, alias_names, stats)

    settings = _entry_for(parse_ok_json(settings_response), name).get("settings", {})
    mappings = _entry_for(parse_ok_json(mapping_response), name).get("mappings", {})

    if profile.has_typed_mappings:
        mapping_types: Any = sorted(mappings.keys())
        mappings = unwrap_typed_mappings(mappings) if mappings else {}
    else:
        mapping_types = UNKNOWN

    return IndexDetail(
        info=info,
        settings=settings,
        mappings=mappings,
        mapping_types=mapping_types,
        stats=stats,
    )


def parse_index_detail_cat(profile: VersionProfile, responses: List[RawResponse], name: str) -> IndexDetail:
    def info_builder(head: RawResponse, aliases: List[str], stats: IndexStatsSummary) -> IndexInfo:
        rows = _cat_rows(head)
        if not rows:
            raise ResourceNotFound("index", name)
        return _row_to_info(rows[0], aliases)

    return _assemble_detail(profile, name, responses, info_builder)


def parse_index_detail_legacy(profile: VersionProfile, responses: List[RawResponse], name: str) -> IndexDetail:
    def info_builder(head: RawResponse, aliases: List[str], stats: IndexStatsSummary) -> IndexInfo:
        health = parse_ok_json(head).get("indices", {})
        entry = health.get(name, next(iter(health.values()), {})) if health else {}
        return IndexInfo(
            index=name,
            health=as_str(dig(entry, "status")),
            status="open",
            uuid=UNKNOWN,
            primary_shards=as_int(dig(entry, "number_of_shards")),
            replicas=as_int(dig(entry, "number_of_replicas")),
            docs_count=stats.docs_count,
            docs_deleted=stats.docs_deleted,
            store_size_bytes=stats.store_size_bytes,
            primary_store_size_bytes=stats.primary_store_size_bytes,
            aliases=aliases,
        )

    return _assemble_detail(profile, name, responses, info_builder)


INDEX_DETAIL = Operation(
    name="index_detail",
    routes=(
        Route("cat", requires(Capability.CAT_JSON), build_index_detail_cat, parse_index_detail_cat),
        Route("health", lacks(Capability.CAT_JSON), build_index_detail_legacy, parse_index_detail_legacy),
    ),
)


# ========== DESTRUCTIVE: DELETE / CLOSE ==========

def build_index_preview(profile: VersionProfile, name: str) -> List[Request]:
    return [_cat_indices_request(name)]


def _preview_parser(operation: str):
    def parse(profile: VersionProfile, responses: List[RawResponse], name: str) -> DestructiveResult:
        expect_ok(responses[0], kind="index", name=name)
        rows = _cat_rows(responses[0])
        if not rows:
            raise ResourceNotFound("index", name)
        counts = [as_int(dig(row, "docs.count")) for row in rows]
        documents = sum(counts) if all(is_known(c) for c in counts) else UNKNOWN
        return DestructiveResult(
            operation=operation,
            targets=sorted(row["index"] for row in rows),
            dry_run=True,
            applied=False,
            affected_indices=len(rows),
            affected_documents=documents,
        )

    return parse


_DRY_RUN_REASON = "dry run needs the JSON cat API (Elasticsearch 5.0+)"

DELETE_INDEX_PREVIEW = Operation(
    name="delete_index (dry run)",
    routes=(
        Route("cat", requires(Capability.CAT_JSON), build_index_preview, _preview_parser("delete_index")),
    ),
    unsupported_reason=_DRY_RUN_REASON,
)

CLOSE_INDEX_PREVIEW = Operation(
    name="close_index (dry run)",
    routes=(
        Route("cat", requires(Capability.CAT_JSON), build_index_preview, _preview_parser("close_index")),
    ),
    unsupported_reason=_DRY_RUN_REASON,
)


def build_delete_index(profile: VersionProfile, name: str) -> List[Request]:
    return single("DELETE", name)


def build_close_index(profile: VersionProfile, name: str) -> List[Request]:
    return single("POST", f"{name}/_close")


def _apply_parser(operation: str):
    def parse(profile: VersionProfile, responses: List[RawResponse], name: str) -> DestructiveResult:
        body = parse_ok_json(responses[0], kind="index", name=name)
        return DestructiveResult(
            operation=operation,
            targets=[name],
            dry_run=False,
            applied=True,
            affected_indices=1,
            affected_documents=UNKNOWN,
            acknowledged=as_bool(dig(body, "acknowledged")),
        )

    return parse


DELETE_INDEX = Operation(
    name="delete_index",
    routes=(
        Route("delete", always, build_delete_index, _apply_parser("delete_index")),
    ),
)

CLOSE_INDEX = Operation(
    name="close_index",
    routes=(
        Route("close", always, build_close_index, _apply_parser("close_index")),
    ),
)


# ========== OPEN / REFRESH ==========

def build_open_index(profile: VersionProfile, name: str) -> List[Request]:
    return single("POST", f"{name}/_open")


def build_refresh_index(profile: VersionProfile, name: str) -> List[Request]:
    return single("POST", f"{name}/_refresh")


def _action_parser(operation: str):
    def parse(profile: VersionProfile, responses: List[RawResponse], name: str) -> IndexActionResult:
        body = parse_ok_json(responses[0], kind="index", name=name)
        acknowledged = as_bool(dig(body, "acknowledged"))
        if acknowledged is UNKNOWN and is_known(dig(body, "_shards", "failed")):
            acknowledged = as_int(dig(body, "_shards", "failed")) == 0
        return IndexActionResult(operation=operation, index=name, acknowledged=acknowledged)

    return parse


OPEN_INDEX = Operation(
    name="open_index",
    routes=(
        Route("open", always, build_open_index, _action_parser("open_index")),
    ),
)

REFRESH_INDEX = Operation(
    name="refresh_index",
    routes=(
        Route("refresh", always, build_refresh_index, _action_parser("refresh_index")),
    ),
)
