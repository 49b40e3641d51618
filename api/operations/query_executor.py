# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

import logging
import re
from typing import Any, Dict, Iterable, List, Set

from jsonapi import errors as jsonapi
from operations.index_manager import IndexManager
from store.interfaces import DocumentStore, FindQuery, IndexDefinition, StoreError
from store.selector import SelectorError, referenced_fields, sort_fields
from tenancy import Instance

logger = logging.getLogger(__name__)

NO_INDEX_DETAIL = "no matching index found, create an index to optimize query time"

# Fields the store can always serve without a secondary index
ALWAYS_INDEXED = frozenset({"_id"})


def uncovered_fields(fields: Iterable[str], indexes: List[IndexDefinition]) -> Set[str]:
    """Fields not covered by any of the given indexes"""
    return {
        f for f in fields
        if f not in ALWAYS_INDEXED and not any(index.covers(f) for index in indexes)
    }


class QueryExecutor:
    """Runs selector queries, refusing those no index can serve.

    An unindexed selector would force the store into a full scan of the
    doctype database, so it fails fast with a no_index error instead.
    """

    def __init__(self, store: DocumentStore, index_manager: IndexManager):
        self.store = store
        self.index_manager = index_manager

    async def execute(self, instance: Instance, doctype: str, query: FindQuery) -> List[Dict[str, Any]]:
        """Validate coverage then query the store"""
        fields = self._query_fields(query)
        indexes = await self.index_manager.list_indexes(instance, doctype)
        missing = uncovered_fields(fields, indexes)
        if missing:
            logger.debug("Rejecting query on %s, unindexed fields: %s", doctype, sorted(missing))
            raise jsonapi.Error(400, "no_index", NO_INDEX_DETAIL)
        try:
            return await self.store.find(instance.db_name(doctype), query)
        except StoreError as e:
            raise jsonapi.from_store_error(e) from e
        except (SelectorError, re.error) as e:
            raise jsonapi.bad_request(str(e)) from e

    @staticmethod
    def _query_fields(query: FindQuery) -> Set[str]:
        try:
            fields = referenced_fields(query.selector)
            fields.update(name for name, _ in sort_fields(query.sort))
        except SelectorError as e:
            raise jsonapi.bad_request(str(e)) from e
        return fields
