"""
Utility functions for the elastic-explorer core.
"""

from .connection import RequestExecutor
from .validation import (
    CONSOLE_METHODS,
    validate_index_pattern,
    validate_index_name,
    validate_endpoint_url,
    validate_console_method,
    validate_document_id,
    validate_size,
    clamp_value,
)
from .response_parser import (
    expect_ok,
    decode_json,
    parse_ok_json,
    dig,
    first_known,
    parse_hits,
    matches_pattern,
)

__all__ = [
    # Connection
    "RequestExecutor",
    # Validation
    "CONSOLE_METHODS",
    "validate_index_pattern",
    "validate_index_name",
    "validate_endpoint_url",
    "validate_console_method",
    "validate_document_id",
    "validate_size",
    "clamp_value",
    # Response parsing
    "expect_ok",
    "decode_json",
    "parse_ok_json",
    "dig",
    "first_known",
    "parse_hits",
    "matches_pattern",
]
