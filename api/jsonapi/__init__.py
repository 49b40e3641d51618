# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""JSON:API flavoured error objects and rendering helpers."""
from jsonapi.errors import (
    Error,
    ErrorList,
    SourceError,
    bad_json,
    bad_request,
    conflict,
    forbidden,
    from_store_error,
    internal_server_error,
    invalid_attribute,
    invalid_parameter,
    new_error,
    not_found,
    precondition_failed,
)

__all__ = [
    "Error",
    "ErrorList",
    "SourceError",
    "bad_json",
    "bad_request",
    "conflict",
    "forbidden",
    "from_store_error",
    "internal_server_error",
    "invalid_attribute",
    "invalid_parameter",
    "new_error",
    "not_found",
    "precondition_failed",
]
