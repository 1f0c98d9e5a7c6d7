"""
Primitive search operations for Elasticsearch: Query DSL and SQL.
"""

from typing import Any, Dict, List, Optional

from explorer_types.cluster import SearchHit, SearchResult, SqlColumn, SqlResult
from explorer_types.domain import Capability, VersionProfile
from explorer_types.errors import MalformedResponse
from explorer_types.primitives import UNKNOWN, ElasticQuery, RawResponse, Request
from tools.dispatch import Operation, Route, lacks, requires, single
from utils.response_parser import (
    as_bool,
    as_int,
    as_str,
    dig,
    parse_hits,
    parse_ok_json,
)


def _search_path(indices: List[str]) -> str:
    return f"{','.join(indices)}/_search" if indices else "_search"


def build_search(profile: VersionProfile, indices: List[str], query: ElasticQuery) -> List[Request]:
    return single("POST", _search_path(indices), body=query.to_dict())


def _hits(body: Dict[str, Any], typed: bool) -> List[SearchHit]:
    hits = []
    for hit in parse_hits(body):
        if not isinstance(hit, dict) or "_id" not in hit:
            raise MalformedResponse("Search hit has no '_id'")
        hits.append(SearchHit(
            index=str(hit.get("_index", "")),
            id=str(hit["_id"]),
            score=hit.get("_score"),
            source=dig(hit, "_source"),
            doc_type=as_str(dig(hit, "_type")) if typed else UNKNOWN,
        ))
    return hits


def _result(body: Dict[str, Any], total: Any, relation: Any, typed: bool) -> SearchResult:
    return SearchResult(
        took=as_int(dig(body, "took")),
        timed_out=as_bool(dig(body, "timed_out")),
        total=total,
        total_relation=relation,
        hits=_hits(body, typed),
        aggregations=body.get("aggregations"),
    )


def parse_search_total_object(
    profile: VersionProfile,
    responses: List[RawResponse],
    indices: List[str],
    query: ElasticQuery,
) -> SearchResult:
    """``hits.total`` is ``{"value", "relation"}``; it is absent when totals are not tracked."""
    body = parse_ok_json(responses[0], kind="index", name=",".join(indices) or "_all")
    total = dig(body, "hits", "total")
    if isinstance(total, dict):
        return _result(body, as_int(dig(total, "value")), as_str(dig(total, "relation")), typed=False)
    # rest_total_hits_as_int or proxies may still return an integer
    return _result(body, as_int(total), "eq" if total is not UNKNOWN else UNKNOWN, typed=False)


def parse_search_total_int(
    profile: VersionProfile,
    responses: List[RawResponse],
    indices: List[str],
    query: ElasticQuery,
) -> SearchResult:
    body = parse_ok_json(responses[0], kind="index", name=",".join(indices) or "_all")
    total = as_int(dig(body, "hits", "total"))
    return _result(body, total, "eq" if total is not UNKNOWN else UNKNOWN, typed=True)


SEARCH = Operation(
    name="search",
    routes=(
        Route("total-object", requires(Capability.TOTAL_HITS_OBJECT), build_search, parse_search_total_object),
        Route("total-int", lacks(Capability.TOTAL_HITS_OBJECT), build_search, parse_search_total_int),
    ),
)


# ========== SQL ==========

def build_search_sql(profile: VersionProfile, query: str, fetch_size: Optional[int]) -> List[Request]:
    body: Dict[str, Any] = {"query": query}
    if fetch_size is not None:
        body["fetch_size"] = fetch_size
    return single("POST", "_sql", body=body, format="json")


def parse_search_sql(
    profile: VersionProfile,
    responses: List[RawResponse],
    query: str,
    fetch_size: Optional[int],
) -> SqlResult:
    body = parse_ok_json(responses[0])
    columns = body.get("columns", [])
    rows = body.get("rows", [])
    if not isinstance(columns, list) or not isinstance(rows, list):
        raise MalformedResponse("SQL response 'columns' and 'rows' must be lists")
    return SqlResult(
        columns=[SqlColumn(name=str(c.get("name")), type=as_str(dig(c, "type"))) for c in columns],
        rows=rows,
        cursor=body.get("cursor"),
    )


SEARCH_SQL = Operation(
    name="search_sql",
    routes=(
        Route("sql", requires(Capability.SQL), build_search_sql, parse_search_sql),
    ),
    unsupported_reason="the SQL API requires Elasticsearch 7.0 or later",
)
