"""
Bulk document delete.

Typeless clusters (7.0+) delete document by document through ``_doc``;
5.x and 6.x use ``_delete_by_query`` with an ``ids`` query so the mapping
type never has to be known.
"""

from typing import Dict, List, Tuple
from urllib.parse import quote

from explorer_types.cluster import DestructiveResult, DocumentOutcome
from explorer_types.domain import Capability, VersionProfile
from explorer_types.primitives import UNKNOWN, RawResponse, Request, is_known
from tools.dispatch import Operation, Route, always, requires
from utils.response_parser import as_int, decode_json, dig, parse_ok_json


DocumentKey = Tuple[str, str]

OPERATION_NAME = "delete_documents"


def group_ids(documents: List[DocumentKey]) -> Dict[str, List[str]]:
    """Document ids per index, first-seen order, duplicates removed."""
    grouped: Dict[str, List[str]] = {}
    for index, doc_id in documents:
        ids = grouped.setdefault(index, [])
        if doc_id not in ids:
            ids.append(doc_id)
    return grouped


def _ids_query(ids: List[str]) -> dict:
    return {"query": {"ids": {"values": ids}}}


# ========== DRY RUN ==========

def build_count_documents(profile: VersionProfile, documents: List[DocumentKey]) -> List[Request]:
    return [
        Request("POST", f"{index}/_count", body=_ids_query(ids))
        for index, ids in group_ids(documents).items()
    ]


def parse_count_documents(
    profile: VersionProfile,
    responses: List[RawResponse],
    documents: List[DocumentKey],
) -> DestructiveResult:
    grouped = group_ids(documents)
    counts = []
    for index, response in zip(grouped, responses):
        body = parse_ok_json(response, kind="index", name=index)
        counts.append(as_int(dig(body, "count")))

    known = all(is_known(c) for c in counts)
    return DestructiveResult(
        operation=OPERATION_NAME,
        targets=list(grouped),
        dry_run=True,
        applied=False,
        affected_indices=sum(1 for c in counts if c > 0) if known else UNKNOWN,
        affected_documents=sum(counts) if known else UNKNOWN,
    )


DELETE_DOCUMENTS_PREVIEW = Operation(
    name="delete_documents (dry run)",
    routes=(
        Route("count", always, build_count_documents, parse_count_documents),
    ),
)


# ========== APPLY ==========

def build_delete_by_id(profile: VersionProfile, documents: List[DocumentKey]) -> List[Request]:
    return [
        Request("DELETE", f"{index}/_doc/{quote(doc_id, safe='')}")
        for index, ids in group_ids(documents).items()
        for doc_id in ids
    ]


def parse_delete_by_id(
    profile: VersionProfile,
    responses: List[RawResponse],
    documents: List[DocumentKey],
) -> DestructiveResult:
    """
    A per-document failure such as a 404 or a 409 version conflict is
    reported as an outcome with ``deleted=False``; only 401/403 abort the run.
    """
    grouped = group_ids(documents)
    pairs = [(index, doc_id) for index, ids in grouped.items() for doc_id in ids]

    outcomes = []
    for (index, doc_id), response in zip(pairs, responses):
        deleted = response.ok and dig(decode_json(response), "result") == "deleted"
        outcomes.append(DocumentOutcome(index=index, id=doc_id, deleted=deleted, status=response.status))

    deleted_indices = {o.index for o in outcomes if o.deleted}
    return DestructiveResult(
        operation=OPERATION_NAME,
        targets=list(grouped),
        dry_run=False,
        applied=True,
        affected_indices=len(deleted_indices),
        affected_documents=sum(1 for o in outcomes if o.deleted),
        acknowledged=all(o.deleted for o in outcomes),
        outcomes=outcomes,
    )


def build_delete_by_query(profile: VersionProfile, documents: List[DocumentKey]) -> List[Request]:
    return [
        Request("POST", f"{index}/_delete_by_query", body=_ids_query(ids), params={"refresh": "true"})
        for index, ids in group_ids(documents).items()
    ]


def parse_delete_by_query(
    profile: VersionProfile,
    responses: List[RawResponse],
    documents: List[DocumentKey],
) -> DestructiveResult:
    """Delete-by-query reports counts per index, so per-document outcomes stay UNKNOWN."""
    grouped = group_ids(documents)
    deleted_counts = []
    acknowledged = True
    for index, response in zip(grouped, responses):
        body = parse_ok_json(response, kind="index", name=index)
        deleted_counts.append(as_int(dig(body, "deleted")))
        failures = body.get("failures") or []
        acknowledged = acknowledged and not failures

    known = all(is_known(c) for c in deleted_counts)
    return DestructiveResult(
        operation=OPERATION_NAME,
        targets=list(grouped),
        dry_run=False,
        applied=True,
        affected_indices=sum(1 for c in deleted_counts if c > 0) if known else UNKNOWN,
        affected_documents=sum(deleted_counts) if known else UNKNOWN,
        acknowledged=acknowledged,
        outcomes=[
            DocumentOutcome(index=index, id=doc_id, deleted=UNKNOWN)
            for index, ids in grouped.items()
            for doc_id in ids
        ],
    )


DELETE_DOCUMENTS = Operation(
    name=OPERATION_NAME,
    routes=(
        Route("by-id", requires(Capability.TYPELESS_DOCUMENTS), build_delete_by_id, parse_delete_by_id),
        Route("by-query", requires(Capability.DELETE_BY_QUERY), build_delete_by_query, parse_delete_by_query),
    ),
    unsupported_reason="needs typeless document APIs or delete-by-query (Elasticsearch 5.0+)",
)
