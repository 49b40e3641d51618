# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""Secondary index management for doctype databases."""
import logging
from typing import Any, List, Optional

from jsonapi import errors as jsonapi
from store.interfaces import DocumentStore, IndexDefinition, IndexResult, StoreError
from tenancy import Instance

logger = logging.getLogger(__name__)


def normalize_fields(raw: List[Any]) -> List[str]:
    """Turn ["a", {"b": "desc"}] into ["a", "b"], rejecting anything else"""
    fields = []
    for entry in raw:
        if isinstance(entry, str) and entry:
            fields.append(entry)
        elif isinstance(entry, dict) and len(entry) == 1:
            fields.append(next(iter(entry)))
        else:
            raise jsonapi.invalid_attribute("fields", f"invalid index field {entry!r}")
    return fields


class IndexManager:
    """Creates and lists the indexes the store keeps for each doctype.

    Creation is idempotent: the same field list yields "created" once, then
    "exists", with the same design doc id and index name. Nothing is cached;
    every call asks the store.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def ensure_index(self, instance: Instance, doctype: str, fields: List[Any],
                           name: Optional[str] = None,
                           ddoc: Optional[str] = None) -> IndexResult:
        """Create the index over fields unless it already exists.

        The doctype database is provisioned when missing.
        """
        normalized = normalize_fields(fields)
        if not normalized:
            raise jsonapi.bad_json()
        try:
            result = await self.store.define_index(
                instance.db_name(doctype), normalized, name=name, ddoc=ddoc
            )
        except StoreError as e:
            raise jsonapi.from_store_error(e) from e
        logger.info("Index %s on %s for %s: %s", result.name, doctype, instance.domain, result.result)
        return result

    async def list_indexes(self, instance: Instance, doctype: str) -> List[IndexDefinition]:
        try:
            return await self.store.get_indexes(instance.db_name(doctype))
        except StoreError as e:
            raise jsonapi.from_store_error(e) from e
