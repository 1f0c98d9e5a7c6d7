"""
Node listing and node detail.

Roles come from ``roles`` on 5.x and later; older clusters only expose
``master``/``data`` attributes, which default to true when absent.
"""

from typing import Any, Callable, Dict, List

from explorer_types.cluster import NodeDetail, NodeInfo
from explorer_types.domain import Capability, VersionProfile
from explorer_types.errors import MalformedResponse, ResourceNotFound
from explorer_types.primitives import UNKNOWN, RawResponse, Request, is_known
from tools.dispatch import Operation, Route, lacks, requires
from utils.response_parser import (
    as_int,
    as_str,
    dig,
    first_known,
    parse_ok_json,
    percent,
    string_list,
)


RoleReader = Callable[[Dict[str, Any]], Any]


def roles_from_list(info: Dict[str, Any]) -> Any:
    return string_list(dig(info, "roles"))


def roles_from_attributes(info: Dict[str, Any]) -> Any:
    attributes = dig(info, "attributes")
    if not isinstance(attributes, dict):
        attributes = {}
    roles = []
    for role in ("master", "data"):
        if str(attributes.get(role, "true")).lower() == "true":
            roles.append(role)
    if str(attributes.get("client", "false")).lower() == "true":
        roles = []
    return roles


def _nodes_section(body: Dict[str, Any]) -> Dict[str, Any]:
    nodes = body.get("nodes", {})
    if not isinstance(nodes, dict):
        raise MalformedResponse("'nodes' is not an object")
    return nodes


# ========== METRICS ==========

def _cpu_percent(stats: Dict[str, Any]) -> Any:
    return as_int(first_known(dig(stats, "os", "cpu", "percent"), dig(stats, "os", "cpu_percent")))


def _heap(stats: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "percent": as_int(dig(stats, "jvm", "mem", "heap_used_percent")),
        "used": as_int(dig(stats, "jvm", "mem", "heap_used_in_bytes")),
        "max": as_int(dig(stats, "jvm", "mem", "heap_max_in_bytes")),
    }


def _ram(stats: Dict[str, Any]) -> Dict[str, Any]:
    used = as_int(dig(stats, "os", "mem", "used_in_bytes"))
    total = as_int(dig(stats, "os", "mem", "total_in_bytes"))
    return {
        "percent": first_known(as_int(dig(stats, "os", "mem", "used_percent")), percent(used, total)),
        "used": used,
        "total": total,
    }


def _disk(stats: Dict[str, Any]) -> Dict[str, Any]:
    total = as_int(dig(stats, "fs", "total", "total_in_bytes"))
    available = as_int(dig(stats, "fs", "total", "available_in_bytes"))
    used = total - available if is_known(total) and is_known(available) else UNKNOWN
    return {"percent": percent(used, total), "used": used, "total": total}


# ========== LIST NODES ==========

def build_list_nodes(profile: VersionProfile) -> List[Request]:
    return [
        Request("GET", "_nodes"),
        Request("GET", "_nodes/stats"),
        Request("GET", "_cluster/state/master_node"),
    ]


def _list_nodes_parser(read_roles: RoleReader):
    def parse(profile: VersionProfile, responses: List[RawResponse]) -> List[NodeInfo]:
        info_body, stats_body, master_body = (parse_ok_json(r) for r in responses)
        stats_nodes = _nodes_section(stats_body)
        master_id = dig(master_body, "master_node")

        nodes = []
        for node_id, info in _nodes_section(info_body).items():
            stats = stats_nodes.get(node_id, {})
            nodes.append(NodeInfo(
                id=node_id,
                name=as_str(dig(info, "name")),
                roles=read_roles(info),
                is_master=node_id == master_id if is_known(master_id) else UNKNOWN,
                ip=as_str(first_known(dig(info, "ip"), dig(info, "host"))),
                version=as_str(dig(info, "version")),
                cpu_percent=_cpu_percent(stats),
                heap_percent=_heap(stats)["percent"],
                ram_percent=_ram(stats)["percent"],
                disk_percent=_disk(stats)["percent"],
            ))
        return sorted(nodes, key=lambda n: n.name if is_known(n.name) else n.id)

    return parse


LIST_NODES = Operation(
    name="list_nodes",
    routes=(
        Route("roles", requires(Capability.NODE_ROLES), build_list_nodes, _list_nodes_parser(roles_from_list)),
        Route("attributes", lacks(Capability.NODE_ROLES), build_list_nodes, _list_nodes_parser(roles_from_attributes)),
    ),
)


# ========== NODE DETAIL ==========

def build_node_detail(profile: VersionProfile, node_id: str) -> List[Request]:
    return [
        Request("GET", f"_nodes/{node_id}"),
        Request("GET", f"_nodes/{node_id}/stats"),
    ]


def _node_detail_parser(read_roles: RoleReader):
    def parse(profile: VersionProfile, responses: List[RawResponse], node_id: str) -> NodeDetail:
        info_body, stats_body = (parse_ok_json(r, kind="node", name=node_id) for r in responses)
        infos = _nodes_section(info_body)
        if not infos:
            raise ResourceNotFound("node", node_id)
        resolved_id, info = next(iter(infos.items()))
        stats = _nodes_section(stats_body).get(resolved_id, {})
        heap, ram, disk = _heap(stats), _ram(stats), _disk(stats)

        return NodeDetail(
            id=resolved_id,
            name=as_str(dig(info, "name")),
            roles=read_roles(info),
            ip=as_str(first_known(dig(info, "ip"), dig(info, "host"))),
            version=as_str(dig(info, "version")),
            os_name=as_str(dig(info, "os", "name")),
            os_arch=as_str(dig(info, "os", "arch")),
            jvm_version=as_str(dig(info, "jvm", "version")),
            cpu_percent=_cpu_percent(stats),
            heap_percent=heap["percent"],
            heap_used_bytes=heap["used"],
            heap_max_bytes=heap["max"],
            ram_percent=ram["percent"],
            ram_used_bytes=ram["used"],
            ram_total_bytes=ram["total"],
            disk_percent=disk["percent"],
            disk_used_bytes=disk["used"],
            disk_total_bytes=disk["total"],
            docs_count=as_int(dig(stats, "indices", "docs", "count")),
            docs_deleted=as_int(dig(stats, "indices", "docs", "deleted")),
            store_size_bytes=as_int(dig(stats, "indices", "store", "size_in_bytes")),
        )

    return parse


NODE_DETAIL = Operation(
    name="node_detail",
    routes=(
        Route("roles", requires(Capability.NODE_ROLES), build_node_detail, _node_detail_parser(roles_from_list)),
        Route("attributes", lacks(Capability.NODE_ROLES), build_node_detail, _node_detail_parser(roles_from_attributes)),
    ),
)
