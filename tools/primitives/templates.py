"""
Index and component templates.

Legacy (``_template``) and composable (``_index_template``) listings are
normalized into the same TemplateInfo shape. Concepts a path does not have
(``order`` on composable templates, ``priority``/``composed_of``/``data_stream``
on legacy ones) are UNKNOWN.
"""

from typing import Any, Dict, List

from explorer_types.cluster import ComponentTemplateInfo, TemplateInfo, TemplateListing
from explorer_types.domain import Capability, VersionProfile
from explorer_types.errors import MalformedResponse
from explorer_types.primitives import UNKNOWN, RawResponse, Request
from tools.dispatch import Operation, Route, lacks, requires, single
from tools.primitives.indices import unwrap_typed_mappings
from utils.response_parser import as_int, dig, parse_ok_json, string_list


SERVED_BY_LEGACY = "legacy"
SERVED_BY_COMPOSABLE = "composable"


def _json_or_empty(response: RawResponse) -> Dict[str, Any]:
    """A 404 on a template listing means no templates exist."""
    if response.status == 404:
        return {}
    return parse_ok_json(response)


def _section(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


# ========== LEGACY ==========

def _legacy_template(profile: VersionProfile, name: str, body: Dict[str, Any]) -> TemplateInfo:
    mappings = _section(body.get("mappings"))
    if profile.has_typed_mappings and mappings:
        mappings = unwrap_typed_mappings(mappings)
    return TemplateInfo(
        name=name,
        index_patterns=string_list(_pattern_field(body)),
        order=as_int(dig(body, "order")),
        priority=UNKNOWN,
        version=as_int(dig(body, "version")),
        composed_of=UNKNOWN,
        settings=_section(body.get("settings")),
        mappings=mappings,
        aliases=_section(body.get("aliases")),
        data_stream=UNKNOWN,
        source=SERVED_BY_LEGACY,
    )


def _pattern_field(body: Dict[str, Any]) -> Any:
    """``index_patterns`` from 6.0, a single ``template`` string before that."""
    if "index_patterns" in body:
        return body["index_patterns"]
    return dig(body, "template")


def parse_legacy_templates(profile: VersionProfile, responses: List[RawResponse]) -> List[TemplateInfo]:
    body = _json_or_empty(responses[0])
    return sorted(
        (_legacy_template(profile, name, entry or {}) for name, entry in body.items()),
        key=lambda t: t.name,
    )


# ========== COMPOSABLE ==========

def _composable_template(entry: Dict[str, Any]) -> TemplateInfo:
    if "name" not in entry:
        raise MalformedResponse("Index template entry has no 'name'")
    definition = _section(entry.get("index_template"))
    template = _section(definition.get("template"))
    return TemplateInfo(
        name=entry["name"],
        index_patterns=string_list(dig(definition, "index_patterns")),
        order=UNKNOWN,
        priority=as_int(dig(definition, "priority")),
        version=as_int(dig(definition, "version")),
        composed_of=string_list(dig(definition, "composed_of")),
        settings=_section(template.get("settings")),
        mappings=_section(template.get("mappings")),
        aliases=_section(template.get("aliases")),
        data_stream="data_stream" in definition,
        source=SERVED_BY_COMPOSABLE,
    )


def _component_template(entry: Dict[str, Any]) -> ComponentTemplateInfo:
    if "name" not in entry:
        raise MalformedResponse("Component template entry has no 'name'")
    definition = _section(entry.get("component_template"))
    template = _section(definition.get("template"))
    meta = dig(definition, "_meta")
    return ComponentTemplateInfo(
        name=entry["name"],
        version=as_int(dig(definition, "version")),
        settings=_section(template.get("settings")),
        mappings=_section(template.get("mappings")),
        aliases=_section(template.get("aliases")),
        meta=meta if isinstance(meta, dict) else UNKNOWN,
    )


def parse_component_templates(profile: VersionProfile, responses: List[RawResponse]) -> List[ComponentTemplateInfo]:
    entries = _json_or_empty(responses[-1]).get("component_templates", [])
    if not isinstance(entries, list):
        raise MalformedResponse("'component_templates' is not a list")
    return sorted((_component_template(e) for e in entries), key=lambda t: t.name)


def parse_composable_templates(profile: VersionProfile, responses: List[RawResponse]) -> List[TemplateInfo]:
    entries = _json_or_empty(responses[0]).get("index_templates", [])
    if not isinstance(entries, list):
        raise MalformedResponse("'index_templates' is not a list")
    return sorted((_composable_template(e) for e in entries), key=lambda t: t.name)


# ========== OPERATIONS ==========

def build_legacy_listing(profile: VersionProfile) -> List[Request]:
    return single("GET", "_template")


def build_composable_listing(profile: VersionProfile) -> List[Request]:
    return [
        Request("GET", "_index_template"),
        Request("GET", "_component_template"),
    ]


def build_component_listing(profile: VersionProfile) -> List[Request]:
    return single("GET", "_component_template")


def parse_legacy_listing(profile: VersionProfile, responses: List[RawResponse]) -> TemplateListing:
    return TemplateListing(
        templates=parse_legacy_templates(profile, responses),
        component_templates=UNKNOWN,
        served_by=SERVED_BY_LEGACY,
        version=profile.number,
    )


def parse_composable_listing(profile: VersionProfile, responses: List[RawResponse]) -> TemplateListing:
    return TemplateListing(
        templates=parse_composable_templates(profile, responses),
        component_templates=parse_component_templates(profile, responses),
        served_by=SERVED_BY_COMPOSABLE,
        version=profile.number,
    )


LIST_INDEX_TEMPLATES = Operation(
    name="list_index_templates",
    routes=(
        Route(
            SERVED_BY_COMPOSABLE,
            requires(Capability.COMPOSABLE_TEMPLATES),
            build_composable_listing,
            parse_composable_listing,
        ),
        Route(
            SERVED_BY_LEGACY,
            lacks(Capability.COMPOSABLE_TEMPLATES),
            build_legacy_listing,
            parse_legacy_listing,
        ),
    ),
)

LIST_COMPONENT_TEMPLATES = Operation(
    name="list_component_templates",
    routes=(
        Route(
            "component",
            requires(Capability.COMPOSABLE_TEMPLATES),
            build_component_listing,
            parse_component_templates,
        ),
    ),
    unsupported_reason="component templates require Elasticsearch 7.8 or later",
)
