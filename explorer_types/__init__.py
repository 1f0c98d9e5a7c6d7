"""
Type definitions for the elastic-explorer core.
"""

from .primitives import (
    UNKNOWN,
    BasicCredentials,
    ElasticQuery,
    RawResponse,
    Request,
    TrustPolicy,
    is_known,
    serialize,
)

from .domain import (
    Capability,
    ConsoleHistoryEntry,
    ConsoleResult,
    EncryptedSecret,
    EndpointIdentity,
    KeychainSecret,
    SecretRecord,
    UnreadableSecret,
    VersionProfile,
    decode_secret_record,
    encode_secret_record,
    load_secret_record,
)

from .cluster import (
    ClusterHealth,
    ClusterSnapshot,
    ComponentTemplateInfo,
    ConnectionTestResult,
    DestructiveResult,
    DocumentOutcome,
    IndexActionResult,
    IndexDetail,
    IndexInfo,
    IndexStatsSummary,
    NodeDetail,
    NodeInfo,
    SearchHit,
    SearchResult,
    ShardInfo,
    ShardMap,
    SqlColumn,
    SqlResult,
    TemplateInfo,
    TemplateListing,
)

from .errors import (
    AuthenticationFailed,
    ClusterRequestFailed,
    EndpointUnreachable,
    ExplorerError,
    MalformedResponse,
    ResourceNotFound,
    SecretUnavailable,
    UnsupportedOperation,
    VersionUnrecognized,
)

__all__ = [
    # Primitives
    "UNKNOWN",
    "BasicCredentials",
    "ElasticQuery",
    "RawResponse",
    "Request",
    "TrustPolicy",
    "is_known",
    "serialize",
    # Domain
    "Capability",
    "ConsoleHistoryEntry",
    "ConsoleResult",
    "EncryptedSecret",
    "EndpointIdentity",
    "KeychainSecret",
    "SecretRecord",
    "UnreadableSecret",
    "VersionProfile",
    "decode_secret_record",
    "encode_secret_record",
    "load_secret_record",
    # Cluster DTOs
    "ClusterHealth",
    "ClusterSnapshot",
    "ComponentTemplateInfo",
    "ConnectionTestResult",
    "DestructiveResult",
    "DocumentOutcome",
    "IndexActionResult",
    "IndexDetail",
    "IndexInfo",
    "IndexStatsSummary",
    "NodeDetail",
    "NodeInfo",
    "SearchHit",
    "SearchResult",
    "ShardInfo",
    "ShardMap",
    "SqlColumn",
    "SqlResult",
    "TemplateInfo",
    "TemplateListing",
    # Errors
    "AuthenticationFailed",
    "ClusterRequestFailed",
    "EndpointUnreachable",
    "ExplorerError",
    "MalformedResponse",
    "ResourceNotFound",
    "SecretUnavailable",
    "UnsupportedOperation",
    "VersionUnrecognized",
]
