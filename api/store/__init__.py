# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""Document store backends for the data API"""
from store.interfaces import (
    DocumentStore,
    FindQuery,
    IndexDefinition,
    IndexResult,
    StoreError,
    StoreUpdate,
)
from store.database_factory import StoreFactory

__all__ = [
    "DocumentStore",
    "FindQuery",
    "IndexDefinition",
    "IndexResult",
    "StoreError",
    "StoreUpdate",
    "StoreFactory",
]
