# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Document store abstraction.

These ABCs define the contract every document store backend follows. The
data API only talks to a store through this interface, so the embedded
SQLite backend and the CouchDB backend are interchangeable.

Usage:
    from store.database_factory import StoreFactory

    store = await StoreFactory.open(config.store)
    doc = await store.get_doc("example-com/io-cozy-events", "4521C325")
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# Reasons reported on 404, mirrored from CouchDB
REASON_MISSING = "missing"
REASON_DELETED = "deleted"
REASON_WRONG_DOCTYPE = "wrong_doctype"
REASON_CONFLICT = "Document update conflict."


class StoreError(Exception):
    """Failure reported by a document store.

    Attributes:
        status: HTTP-like status code (404, 409, 500, ...)
        error: short error name (not_found, conflict, no_index, ...)
        reason: human readable detail
    """

    def __init__(self, status: int, error: str, reason: str = ""):
        super().__init__(f"{error} ({status}): {reason}")
        self.status = status
        self.error = error
        self.reason = reason

    @classmethod
    def missing(cls) -> 'StoreError':
        return cls(404, "not_found", REASON_MISSING)

    @classmethod
    def deleted(cls) -> 'StoreError':
        return cls(404, "not_found", REASON_DELETED)

    @classmethod
    def wrong_doctype(cls) -> 'StoreError':
        return cls(404, "not_found", REASON_WRONG_DOCTYPE)

    @classmethod
    def conflict(cls) -> 'StoreError':
        return cls(409, "conflict", REASON_CONFLICT)

    @classmethod
    def unreachable(cls, reason: str) -> 'StoreError':
        return cls(500, "internal", reason)


@dataclass(frozen=True)
class StoreUpdate:
    """Outcome of a successful mutation: the document id and its new revision"""
    id: str
    rev: str


@dataclass(frozen=True)
class IndexDefinition:
    """An index known by the store for one database"""
    ddoc: str
    name: str
    fields: List[str]

    def covers(self, field_name: str) -> bool:
        return field_name in self.fields


@dataclass(frozen=True)
class IndexResult:
    """Outcome of an index creation request"""
    result: str  # "created" or "exists"
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"result": self.result, "id": self.id, "name": self.name}


@dataclass
class FindQuery:
    """Mango-style query sent to the store once it has been validated"""
    selector: Dict[str, Any]
    limit: Optional[int] = None
    skip: int = 0
    sort: List[Any] = field(default_factory=list)
    fields: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"selector": self.selector}
        if self.limit is not None:
            body["limit"] = self.limit
        if self.skip:
            body["skip"] = self.skip
        if self.sort:
            body["sort"] = self.sort
        if self.fields is not None:
            body["fields"] = self.fields
        return body


class DocumentStore(ABC):
    """Revisioned document store.

    Databases are identified by name; documents by id within a database.
    Every mutation checks the caller's revision against the current one and
    fails with a 409 StoreError on mismatch.
    """

    async def open(self) -> 'DocumentStore':
        """Prepare the store for use"""
        return self

    @abstractmethod
    async def create_database(self, db: str) -> None:
        """Create a database if it does not exist yet"""

    @abstractmethod
    async def delete_database(self, db: str) -> None:
        """Drop a database and everything in it (no-op when absent)"""

    @abstractmethod
    async def get_doc(self, db: str, doc_id: str) -> Dict[str, Any]:
        """Return the document with its _id and _rev"""

    @abstractmethod
    async def all_docs(self, db: str, limit: Optional[int] = None,
                       skip: int = 0) -> Dict[str, Any]:
        """Return {"total_rows", "offset", "docs"} ordered by id"""

    @abstractmethod
    async def create_doc(self, db: str, body: Dict[str, Any]) -> StoreUpdate:
        """Create a document with a store-assigned id, provisioning the database"""

    @abstractmethod
    async def create_named_doc(self, db: str, doc_id: str,
                               body: Dict[str, Any]) -> StoreUpdate:
        """Create a document with a caller-supplied id; 409 if it already exists"""

    @abstractmethod
    async def update_doc(self, db: str, doc_id: str, rev: str,
                         body: Dict[str, Any]) -> StoreUpdate:
        """Replace a document if rev is its current revision"""

    @abstractmethod
    async def delete_doc(self, db: str, doc_id: str, rev: str) -> StoreUpdate:
        """Delete a document if rev is its current revision; returns the tombstone"""

    @abstractmethod
    async def define_index(self, db: str, fields: List[str],
                           name: Optional[str] = None,
                           ddoc: Optional[str] = None) -> IndexResult:
        """Create an index over fields, provisioning the database"""

    @abstractmethod
    async def get_indexes(self, db: str) -> List[IndexDefinition]:
        """List the indexes of a database (empty when the database is absent)"""

    @abstractmethod
    async def find(self, db: str, query: FindQuery) -> List[Dict[str, Any]]:
        """Run a validated query"""

    @abstractmethod
    async def ping(self) -> bool:
        """True when the store answers"""

    @abstractmethod
    async def close(self) -> None:
        """Release connections"""
