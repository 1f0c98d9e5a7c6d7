"""
Unit tests for bulk document delete.
"""

import pytest

from explorer_types.errors import AuthenticationFailed, UnsupportedOperation
from explorer_types.primitives import UNKNOWN
from tools.primitives.documents import group_ids


DOCUMENTS = [("logs-2023", "a1"), ("logs-2023", "a2"), ("metrics", "m1"), ("logs-2023", "a1")]


class TestGroupIds:
    """Test cases for group_ids."""

    def test_grouped_in_first_seen_order(self):
        assert group_ids(DOCUMENTS) == {"logs-2023": ["a1", "a2"], "metrics": ["m1"]}


class TestDeleteDocumentsDryRun:
    """Test cases for counting documents without deleting them."""

    @pytest.mark.asyncio
    async def test_counts_per_index(self, explorer, endpoint, cluster):
        cluster.add("POST", "/logs-2023/_count", {"count": 2})
        cluster.add("POST", "/metrics/_count", {"count": 0})

        result = await explorer.client.delete_documents(endpoint, DOCUMENTS, dry_run=True)

        assert result.dry_run is True
        assert result.applied is False
        assert result.targets == ["logs-2023", "metrics"]
        assert result.affected_documents == 2
        assert result.affected_indices == 1
        assert cluster.body_of(1) == {"query": {"ids": {"values": ["a1", "a2"]}}}
        assert cluster.calls("DELETE") == []

    @pytest.mark.asyncio
    async def test_works_before_5(self, explorer, endpoint, cluster):
        cluster.set_version("4.6.1")
        cluster.add("POST", "/logs-2023/_count", {"count": 1})

        result = await explorer.client.delete_documents(endpoint, [("logs-2023", "a1")], dry_run=True)

        assert result.affected_documents == 1


class TestDeleteDocuments:
    """Test cases for applying a bulk document delete."""

    @pytest.mark.asyncio
    async def test_by_id_on_typeless_cluster(self, explorer, endpoint, cluster):
        cluster.add("DELETE", "/logs-2023/_doc/a1", {"result": "deleted", "_id": "a1"})
        cluster.add("DELETE", "/logs-2023/_doc/a2", {"result": "not_found", "_id": "a2"}, status=404)

        result = await explorer.client.delete_documents(
            endpoint,
            [{"index": "logs-2023", "id": "a1"}, {"index": "logs-2023", "id": "a2"}],
        )

        assert result.applied is True
        assert result.affected_documents == 1
        assert result.affected_indices == 1
        assert result.acknowledged is False
        assert [(o.id, o.deleted, o.status) for o in result.outcomes] == [
            ("a1", True, 200),
            ("a2", False, 404),
        ]
        assert ("POST", "/logs-2023/_delete_by_query") not in cluster.calls()

    @pytest.mark.asyncio
    async def test_conflict_is_an_outcome_not_an_error(self, explorer, endpoint, cluster):
        """Test that a 409 on one id does not hide the deletes around it."""
        cluster.add("DELETE", "/logs-2023/_doc/a1", {"result": "deleted", "_id": "a1"})
        cluster.add("DELETE", "/logs-2023/_doc/a2", {
            "error": {"type": "version_conflict_engine_exception", "reason": "version conflict"},
        }, status=409)
        cluster.add("DELETE", "/logs-2023/_doc/a3", {"result": "deleted", "_id": "a3"})

        result = await explorer.client.delete_documents(
            endpoint, [("logs-2023", "a1"), ("logs-2023", "a2"), ("logs-2023", "a3")],
        )

        assert result.applied is True
        assert result.affected_documents == 2
        assert result.acknowledged is False
        assert [(o.id, o.deleted, o.status) for o in result.outcomes] == [
            ("a1", True, 200),
            ("a2", False, 409),
            ("a3", True, 200),
        ]
        assert len(cluster.calls("DELETE")) == 3

    @pytest.mark.asyncio
    async def test_server_error_is_an_outcome(self, explorer, endpoint, cluster):
        cluster.add("DELETE", "/logs-2023/_doc/a1", "upstream timeout", status=503)
        cluster.add("DELETE", "/metrics/_doc/m1", {"result": "deleted", "_id": "m1"})

        result = await explorer.client.delete_documents(endpoint, [("logs-2023", "a1"), ("metrics", "m1")])

        assert result.affected_indices == 1
        assert [(o.index, o.deleted, o.status) for o in result.outcomes] == [
            ("logs-2023", False, 503),
            ("metrics", True, 200),
        ]

    @pytest.mark.asyncio
    async def test_forbidden_aborts(self, explorer, endpoint, cluster):
        cluster.add("DELETE", "/logs-2023/_doc/a1", {"result": "deleted", "_id": "a1"})
        cluster.add("DELETE", "/logs-2023/_doc/a2", {
            "error": {"type": "security_exception", "reason": "action is unauthorized"},
        }, status=403)

        with pytest.raises(AuthenticationFailed):
            await explorer.client.delete_documents(endpoint, [("logs-2023", "a1"), ("logs-2023", "a2")])

    @pytest.mark.asyncio
    async def test_by_query_on_6_8(self, explorer, endpoint, cluster):
        """Test that typed clusters delete through _delete_by_query without knowing the type."""
        cluster.set_version("6.8.2")
        cluster.add("POST", "/logs-2023/_delete_by_query", {"deleted": 2, "failures": []})
        cluster.add("POST", "/metrics/_delete_by_query", {"deleted": 1, "failures": []})

        result = await explorer.client.delete_documents(endpoint, DOCUMENTS)

        assert result.affected_documents == 3
        assert result.affected_indices == 2
        assert result.acknowledged is True
        assert all(o.deleted is UNKNOWN for o in result.outcomes)
        assert cluster.requests[1].url.params["refresh"] == "true"
        assert cluster.body_of(1) == {"query": {"ids": {"values": ["a1", "a2"]}}}
        assert cluster.calls("DELETE") == []

    @pytest.mark.asyncio
    async def test_by_query_failures(self, explorer, endpoint, cluster):
        cluster.set_version("6.8.2")
        cluster.add("POST", "/logs-2023/_delete_by_query", {
            "deleted": 0,
            "failures": [{"index": "logs-2023", "cause": {"type": "version_conflict_engine_exception"}}],
        })

        result = await explorer.client.delete_documents(endpoint, [("logs-2023", "a1")])

        assert result.acknowledged is False
        assert result.affected_indices == 0

    @pytest.mark.asyncio
    async def test_unsupported_before_5(self, explorer, endpoint, cluster):
        cluster.set_version("4.6.1")

        with pytest.raises(UnsupportedOperation):
            await explorer.client.delete_documents(endpoint, [("logs-2023", "a1")])
        assert cluster.calls() == [("GET", "/")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("documents", [[], [("logs-2023", "")], [("logs-*", "a1")]])
    async def test_invalid_documents(self, explorer, endpoint, cluster, documents):
        with pytest.raises(ValueError):
            await explorer.client.delete_documents(endpoint, documents)
        assert cluster.requests == []
