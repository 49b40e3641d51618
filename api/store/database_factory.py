# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Store factory for runtime backend selection.

Selects the embedded SQLite store or the CouchDB store from the store URL:
    - sqlite:// -> SQLiteDocumentStore (aiosqlite)
    - http:// or https:// -> CouchDBDocumentStore (httpx)

Usage:
    from store.database_factory import StoreFactory

    store = await StoreFactory.open(config.store)
"""
import logging
from typing import Literal, Optional

from config import StoreConfig
from store.interfaces import DocumentStore

logger = logging.getLogger(__name__)

BackendType = Literal['sqlite', 'couchdb']


class StoreFactory:
    """Factory for document store implementations."""

    @staticmethod
    def detect_backend(config: StoreConfig) -> BackendType:
        """Detect store backend from the configured URL"""
        url = config.url.lower()
        if url.startswith("sqlite"):
            return 'sqlite'
        if url.startswith("http://") or url.startswith("https://"):
            return 'couchdb'
        raise ValueError(f"Unsupported STORE_URL scheme: {config.url}")

    @classmethod
    def create(cls, config: StoreConfig, backend: Optional[BackendType] = None) -> DocumentStore:
        """Instantiate a store without opening it"""
        backend = backend or cls.detect_backend(config)
        logger.debug("Selected %s document store backend", backend)
        if backend == 'sqlite':
            from store.sqlite_store import SQLiteDocumentStore
            return SQLiteDocumentStore(config)
        from store.couchdb_store import CouchDBDocumentStore
        return CouchDBDocumentStore(config)

    @classmethod
    async def open(cls, config: StoreConfig, backend: Optional[BackendType] = None) -> DocumentStore:
        """Instantiate and open a store"""
        store = cls.create(config, backend)
        return await store.open()
