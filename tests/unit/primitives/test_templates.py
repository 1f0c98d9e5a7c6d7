"""
Unit tests for legacy and composable template listings.
"""

from dataclasses import fields

import pytest

from explorer_types.cluster import TemplateInfo
from explorer_types.errors import UnsupportedOperation
from explorer_types.primitives import UNKNOWN
from tools.primitives.templates import (
    parse_composable_listing,
    parse_legacy_listing,
)

from tests.fakes import make_response


LEGACY_6X = {
    "logs": {
        "order": 1,
        "version": 3,
        "index_patterns": ["logs-*"],
        "settings": {"index": {"number_of_shards": "1"}},
        "mappings": {"_doc": {"properties": {"message": {"type": "text"}}}},
        "aliases": {"logs": {}},
    }
}

LEGACY_5X = {
    "old": {
        "order": 0,
        "template": "old-*",
        "settings": {},
        "mappings": {"event": {"properties": {"ts": {"type": "date"}}}},
        "aliases": {},
    }
}

COMPOSABLE = {
    "index_templates": [
        {
            "name": "logs",
            "index_template": {
                "index_patterns": ["logs-*"],
                "priority": 200,
                "version": 3,
                "composed_of": ["logs-settings"],
                "template": {
                    "settings": {"index": {"number_of_shards": "1"}},
                    "mappings": {"properties": {"message": {"type": "text"}}},
                },
                "data_stream": {},
            },
        },
        {
            "name": "metrics",
            "index_template": {"index_patterns": ["metrics-*"]},
        },
    ]
}

COMPONENTS = {
    "component_templates": [
        {
            "name": "logs-settings",
            "component_template": {
                "version": 1,
                "template": {"settings": {"index": {"codec": "best_compression"}}},
                "_meta": {"owner": "platform"},
            },
        }
    ]
}


class TestNormalization:
    """Test cases for parsing both template APIs into one shape."""

    def test_identical_field_sets(self, profile_for):
        """Test that both paths produce the same keys, with UNKNOWN for absent concepts."""
        legacy = parse_legacy_listing(profile_for("6.8.2"), [make_response(200, LEGACY_6X)])
        composable = parse_composable_listing(
            profile_for("8.1.0"),
            [make_response(200, COMPOSABLE), make_response(200, COMPONENTS)],
        )

        legacy_dict = legacy.templates[0].to_dict()
        composable_dict = composable.templates[0].to_dict()

        assert set(legacy_dict) == set(composable_dict) == {f.name for f in fields(TemplateInfo)}
        assert legacy_dict["priority"] == "unknown"
        assert legacy_dict["composed_of"] == "unknown"
        assert legacy_dict["data_stream"] == "unknown"
        assert composable_dict["order"] == "unknown"

    def test_legacy_template(self, profile_for):
        listing = parse_legacy_listing(profile_for("6.8.2"), [make_response(200, LEGACY_6X)])
        template = listing.templates[0]

        assert listing.served_by == "legacy"
        assert listing.version == "6.8.2"
        assert listing.component_templates is UNKNOWN
        assert template.index_patterns == ["logs-*"]
        assert template.order == 1
        assert template.mappings == {"properties": {"message": {"type": "text"}}}
        assert template.source == "legacy"

    def test_pre_6_template_pattern(self, profile_for):
        """Test that the single 'template' pattern of 5.x becomes a list."""
        listing = parse_legacy_listing(profile_for("5.6.16"), [make_response(200, LEGACY_5X)])

        assert listing.templates[0].index_patterns == ["old-*"]
        assert listing.templates[0].mappings == {"properties": {"ts": {"type": "date"}}}

    def test_composable_template(self, profile_for):
        listing = parse_composable_listing(
            profile_for("8.1.0"),
            [make_response(200, COMPOSABLE), make_response(200, COMPONENTS)],
        )
        logs, metrics = listing.templates

        assert listing.served_by == "composable"
        assert logs.priority == 200
        assert logs.composed_of == ["logs-settings"]
        assert logs.data_stream is True
        assert logs.mappings == {"properties": {"message": {"type": "text"}}}
        assert metrics.priority is UNKNOWN
        assert metrics.data_stream is False
        assert metrics.settings == {}
        assert [c.name for c in listing.component_templates] == ["logs-settings"]
        assert listing.component_templates[0].meta == {"owner": "platform"}

    def test_missing_patterns_are_unknown(self, profile_for):
        legacy = parse_legacy_listing(profile_for("6.8.2"), [make_response(200, {"bare": {"order": 0}})])
        composable = parse_composable_listing(
            profile_for("8.1.0"),
            [make_response(200, {"index_templates": [{"name": "bare", "index_template": {}}]}),
             make_response(200, {"component_templates": []})],
        )

        assert legacy.templates[0].index_patterns is UNKNOWN
        assert composable.templates[0].index_patterns is UNKNOWN
        assert composable.templates[0].to_dict()["index_patterns"] == "unknown"

    def test_no_templates(self, profile_for):
        listing = parse_legacy_listing(profile_for("6.8.2"), [make_response(404, {})])

        assert listing.templates == []


class TestTemplateRouting:
    """Test cases for the version-dependent template endpoints."""

    @pytest.mark.asyncio
    async def test_6_8_2_uses_legacy_endpoint(self, explorer, endpoint, cluster):
        cluster.set_version("6.8.2")
        cluster.add("GET", "/_template", LEGACY_6X)

        listing = await explorer.client.list_index_templates(endpoint)

        assert listing.served_by == "legacy"
        assert cluster.calls() == [("GET", "/"), ("GET", "/_template")]

    @pytest.mark.asyncio
    async def test_8_1_0_uses_composable_endpoints(self, explorer, endpoint, cluster):
        cluster.add("GET", "/_index_template", COMPOSABLE)
        cluster.add("GET", "/_component_template", COMPONENTS)

        listing = await explorer.client.list_index_templates(endpoint)

        assert listing.served_by == "composable"
        assert ("GET", "/_template") not in cluster.calls()

    @pytest.mark.asyncio
    async def test_component_templates(self, explorer, endpoint, cluster):
        cluster.add("GET", "/_component_template", COMPONENTS)

        components = await explorer.client.list_component_templates(endpoint)

        assert components[0].version == 1

    @pytest.mark.asyncio
    async def test_component_templates_before_7_8(self, explorer, endpoint, cluster):
        cluster.set_version("7.7.1")

        with pytest.raises(UnsupportedOperation):
            await explorer.client.list_component_templates(endpoint)
        assert cluster.calls() == [("GET", "/")]
