"""
Unit tests for capability dispatch tables.
"""

import pytest

from explorer_types.domain import Capability
from explorer_types.errors import UnsupportedOperation
from tools import primitives as ops
from tools.dispatch import Operation, Route, always, lacks, requires, single
from tools.probe import build_profile


def _noop(*args, **kwargs):
    return []


OPERATION = Operation(
    name="demo",
    routes=(
        Route("modern", requires(Capability.SQL, Capability.COMPOSABLE_TEMPLATES), _noop, _noop),
        Route("middle", requires(Capability.SQL), _noop, _noop),
    ),
    unsupported_reason="needs SQL",
)


class TestDispatch:
    """Test cases for Operation.select."""

    def test_first_matching_route_wins(self):
        assert OPERATION.select(build_profile("8.1.0")).name == "modern"
        assert OPERATION.select(build_profile("7.4.0")).name == "middle"

    def test_no_route_raises(self):
        with pytest.raises(UnsupportedOperation) as exc_info:
            OPERATION.select(build_profile("6.8.2"))

        assert exc_info.value.operation == "demo"
        assert exc_info.value.version == "6.8.2"
        assert "needs SQL" in str(exc_info.value)

    def test_predicates(self):
        old, new = build_profile("6.8.2"), build_profile("8.1.0")

        assert lacks(Capability.SQL)(old)
        assert not lacks(Capability.SQL)(new)
        assert always(old) and always(new)

    def test_single(self):
        [request] = single("POST", "_sql", body={"query": "SELECT 1"}, format="json")

        assert request.params == {"format": "json"}
        assert single("GET", "_template")[0].params is None


class TestOperationCoverage:
    """Every supported version must have a route for the version-independent operations."""

    @pytest.mark.parametrize("number", ["3.0.0", "4.6.1", "5.6.16", "6.8.2", "7.0.0", "7.10.2", "8.1.0"])
    @pytest.mark.parametrize("operation", [
        ops.CLUSTER_HEALTH,
        ops.CLUSTER_STATS,
        ops.LIST_NODES,
        ops.NODE_DETAIL,
        ops.LIST_INDICES,
        ops.INDEX_DETAIL,
        ops.DELETE_INDEX,
        ops.CLOSE_INDEX,
        ops.OPEN_INDEX,
        ops.REFRESH_INDEX,
        ops.LIST_SHARDS,
        ops.SEARCH,
        ops.LIST_INDEX_TEMPLATES,
        ops.DELETE_DOCUMENTS_PREVIEW,
    ], ids=lambda op: op.name)
    def test_route_exists(self, number, operation):
        operation.select(build_profile(number))

    @pytest.mark.parametrize("operation, first_supported, last_unsupported", [
        (ops.SEARCH_SQL, "7.0.0", "6.8.2"),
        (ops.LIST_COMPONENT_TEMPLATES, "7.8.0", "7.7.1"),
        (ops.DELETE_INDEX_PREVIEW, "5.0.0", "4.6.1"),
        (ops.CLOSE_INDEX_PREVIEW, "5.0.0", "4.6.1"),
        (ops.DELETE_DOCUMENTS, "5.0.0", "4.6.1"),
    ], ids=lambda value: getattr(value, "name", value))
    def test_version_gated(self, operation, first_supported, last_unsupported):
        operation.select(build_profile(first_supported))
        with pytest.raises(UnsupportedOperation):
            operation.select(build_profile(last_unsupported))
