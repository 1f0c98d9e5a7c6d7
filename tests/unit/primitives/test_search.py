"""
Unit tests for Query DSL and SQL search.
"""

import pytest

from explorer_types.errors import ClusterRequestFailed, ResourceNotFound, UnsupportedOperation
from explorer_types.primitives import UNKNOWN


def search_body(total, hits=None):
    return {
        "took": 5,
        "timed_out": False,
        "hits": {
            "total": total,
            "max_score": 1.0,
            "hits": hits if hits is not None else [
                {
                    "_index": "logs-2023",
                    "_type": "_doc",
                    "_id": "a1",
                    "_score": 1.0,
                    "_source": {"level": "error", "message": "disk full"},
                }
            ],
        },
    }


class TestSearch:
    """Test cases for CompatibilityClient.search."""

    @pytest.mark.asyncio
    async def test_total_object(self, explorer, endpoint, cluster):
        cluster.add("POST", "/logs-*/_search", search_body({"value": 42, "relation": "gte"}))

        result = await explorer.client.search(
            endpoint,
            indices=["logs-*"],
            query={"match": {"level": "error"}},
            size=5,
            sort=[{"@timestamp": {"order": "desc"}}],
        )

        assert result.total == 42
        assert result.total_relation == "gte"
        assert result.took == 5
        assert result.hits[0].id == "a1"
        assert result.hits[0].source["message"] == "disk full"
        assert result.hits[0].doc_type is UNKNOWN

        assert cluster.calls() == [("GET", "/"), ("POST", "/logs-*/_search")]
        assert cluster.body_of(-1) == {
            "query": {"match": {"level": "error"}},
            "size": 5,
            "from": 0,
            "sort": [{"@timestamp": {"order": "desc"}}],
        }

    @pytest.mark.asyncio
    async def test_total_int(self, explorer, endpoint, cluster):
        """Test that 6.x integer totals and mapping types are normalized."""
        cluster.set_version("6.8.2")
        cluster.add("POST", "/logs-2023/_search", search_body(17))

        result = await explorer.client.search(endpoint, indices=["logs-2023"])

        assert result.total == 17
        assert result.total_relation == "eq"
        assert result.hits[0].doc_type == "_doc"

    @pytest.mark.asyncio
    async def test_missing_source_is_unknown(self, explorer, endpoint, cluster):
        """Test that a hit without _source is not reported as an empty document."""
        cluster.add("POST", "/logs-2023/_search", search_body({"value": 2, "relation": "eq"}, hits=[
            {"_index": "logs-2023", "_id": "a1", "_score": 1.0},
            {"_index": "logs-2023", "_id": "a2", "_score": 1.0, "_source": {}},
        ]))

        result = await explorer.client.search(endpoint, indices=["logs-2023"], source=False)

        assert result.hits[0].source is UNKNOWN
        assert result.hits[0].to_dict()["source"] == "unknown"
        assert result.hits[1].source == {}

    @pytest.mark.asyncio
    async def test_untracked_total_is_unknown(self, explorer, endpoint, cluster):
        body = search_body(None)
        del body["hits"]["total"]
        cluster.add("POST", "/_search", body)

        result = await explorer.client.search(endpoint, track_total_hits=False)

        assert result.total is UNKNOWN
        assert result.total_relation is UNKNOWN
        assert cluster.body_of(-1)["track_total_hits"] is False

    @pytest.mark.asyncio
    async def test_default_query_and_size_clamp(self, explorer, endpoint, cluster):
        cluster.add("POST", "/_search", search_body({"value": 0, "relation": "eq"}, hits=[]))

        await explorer.client.search(endpoint, size=50000, from_=-3)

        body = cluster.body_of(-1)
        assert body["query"] == {"match_all": {}}
        assert body["size"] == 10000
        assert body["from"] == 0

    @pytest.mark.asyncio
    async def test_sends_credentials(self, explorer, endpoint, cluster):
        cluster.add("POST", "/_search", search_body({"value": 0, "relation": "eq"}, hits=[]))

        await explorer.client.search(endpoint)

        assert all(r.headers["authorization"].startswith("Basic ") for r in cluster.requests)

    @pytest.mark.asyncio
    async def test_missing_index(self, explorer, endpoint, cluster):
        with pytest.raises(ResourceNotFound):
            await explorer.client.search(endpoint, indices=["nope"])

    @pytest.mark.asyncio
    async def test_bad_request(self, explorer, endpoint, cluster):
        cluster.add("POST", "/_search", {
            "error": {"type": "search_phase_execution_exception", "reason": "all shards failed"},
            "status": 400,
        }, status=400)

        with pytest.raises(ClusterRequestFailed, match="all shards failed"):
            await explorer.client.search(endpoint)

    @pytest.mark.asyncio
    async def test_invalid_pattern(self, explorer, endpoint, cluster):
        with pytest.raises(ValueError):
            await explorer.client.search(endpoint, indices=["logs/2023"])
        assert cluster.requests == []


class TestSearchSql:
    """Test cases for CompatibilityClient.search_sql."""

    @pytest.mark.asyncio
    async def test_sql_on_8_1(self, explorer, endpoint, cluster):
        cluster.add("POST", "/_sql", {
            "columns": [{"name": "level", "type": "keyword"}, {"name": "c", "type": "long"}],
            "rows": [["error", 3], ["info", 10]],
            "cursor": "sDXF1ZXJ5QW5kRmV0Y2gBAAAAAAAAAAEWWWdrRlVfSS1TbDYtcW9lc1FJNmlYdw==",
        })

        result = await explorer.client.search_sql(
            endpoint, "SELECT level, COUNT(*) AS c FROM logs GROUP BY level", fetch_size=2,
        )

        assert [c.name for c in result.columns] == ["level", "c"]
        assert result.rows == [["error", 3], ["info", 10]]
        assert result.cursor is not None

        request = cluster.requests[-1]
        assert (request.method, request.url.path) == ("POST", "/_sql")
        assert request.url.params["format"] == "json"
        assert cluster.body_of(-1)["fetch_size"] == 2

    @pytest.mark.asyncio
    async def test_sql_unsupported_issues_no_request(self, explorer, endpoint, cluster):
        """Test that a cluster without SQL is refused before any network call."""
        cluster.set_version("6.8.2")
        profile = await explorer.client.profile(endpoint)
        assert profile.has_sql is False
        calls_before = explorer.executor.calls

        with pytest.raises(UnsupportedOperation, match="SQL"):
            await explorer.client.search_sql(endpoint, "SELECT * FROM logs")

        assert explorer.executor.calls == calls_before
        assert cluster.calls("POST") == []

    @pytest.mark.asyncio
    async def test_empty_query(self, explorer, endpoint):
        with pytest.raises(ValueError):
            await explorer.client.search_sql(endpoint, "   ")
