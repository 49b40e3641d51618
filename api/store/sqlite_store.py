# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Embedded document store on SQLite.

Implements the same revision semantics as CouchDB so the data API
behaves identically on both backends:
- revisions are "<generation>-<hex>" and change on every mutation
- a mutation only applies when the caller's revision is the current one,
  checked and set in one conditional UPDATE
- deletions leave a tombstone with a new revision
- indexes are named, ordered field lists kept per database
"""
import hashlib
import json
import logging
import uuid
from typing import Any, Dict, List, Optional

import aiosqlite

from config import StoreConfig
from store.interfaces import (
    DocumentStore, FindQuery, IndexDefinition, IndexResult, StoreError, StoreUpdate,
)
from store.selector import matches, project, sort_docs
from store.sqlite_connection import AsyncStoreConnection
from store.sqlite_schema import StoreSchemaManager
from value_objects import ID_FIELD, REV_FIELD, revision_generation

logger = logging.getLogger(__name__)


def new_revision(generation: int) -> str:
    return f"{generation}-{uuid.uuid4().hex}"


def default_index_name(fields: List[str]) -> str:
    """Stable index name derived from the ordered field list"""
    return hashlib.sha1(json.dumps(fields).encode("utf-8")).hexdigest()


class SQLiteDocumentStore(DocumentStore):
    """DocumentStore backed by a single aiosqlite connection"""

    def __init__(self, config: StoreConfig):
        self.config = config
        self._connection = AsyncStoreConnection(config)
        self.conn: Optional[aiosqlite.Connection] = None

    async def open(self) -> 'SQLiteDocumentStore':
        self.conn = await self._connection.connect()
        await StoreSchemaManager(self.conn).create_schema()
        logger.info("Embedded document store ready at %s", self.config.sqlite_path)
        return self

    async def close(self) -> None:
        await self._connection.close()
        self.conn = None

    async def ping(self) -> bool:
        if self.conn is None:
            return False
        try:
            cursor = await self.conn.execute("SELECT 1")
            await cursor.fetchone()
            return True
        except aiosqlite.Error:
            return False

    # === Databases ===

    async def _database_exists(self, db: str) -> bool:
        cursor = await self.conn.execute("SELECT 1 FROM databases WHERE name = ?", (db,))
        return await cursor.fetchone() is not None

    async def create_database(self, db: str) -> None:
        await self.conn.execute("INSERT OR IGNORE INTO databases (name) VALUES (?)", (db,))
        await self.conn.commit()

    async def delete_database(self, db: str) -> None:
        await self.conn.execute("DELETE FROM documents WHERE db = ?", (db,))
        await self.conn.execute("DELETE FROM indexes WHERE db = ?", (db,))
        await self.conn.execute("DELETE FROM databases WHERE name = ?", (db,))
        await self.conn.commit()

    async def _require_database(self, db: str) -> None:
        if not await self._database_exists(db):
            raise StoreError.wrong_doctype()

    # === Documents ===

    @staticmethod
    def _render(row) -> Dict[str, Any]:
        doc = json.loads(row["body"])
        doc[ID_FIELD] = row["id"]
        doc[REV_FIELD] = row["rev"]
        return doc

    async def _fetch_row(self, db: str, doc_id: str):
        cursor = await self.conn.execute(
            "SELECT id, rev, deleted, body FROM documents WHERE db = ? AND id = ?",
            (db, doc_id),
        )
        return await cursor.fetchone()

    async def get_doc(self, db: str, doc_id: str) -> Dict[str, Any]:
        await self._require_database(db)
        row = await self._fetch_row(db, doc_id)
        if row is None:
            raise StoreError.missing()
        if row["deleted"]:
            raise StoreError.deleted()
        return self._render(row)

    async def all_docs(self, db: str, limit: Optional[int] = None,
                       skip: int = 0) -> Dict[str, Any]:
        await self._require_database(db)
        cursor = await self.conn.execute(
            "SELECT COUNT(*) FROM documents WHERE db = ? AND deleted = 0", (db,)
        )
        total = (await cursor.fetchone())[0]
        cursor = await self.conn.execute(
            "SELECT id, rev, deleted, body FROM documents WHERE db = ? AND deleted = 0 "
            "ORDER BY id LIMIT ? OFFSET ?",
            (db, -1 if limit is None else limit, skip),
        )
        rows = await cursor.fetchall()
        return {"total_rows": total, "offset": skip, "docs": [self._render(r) for r in rows]}

    async def create_doc(self, db: str, body: Dict[str, Any]) -> StoreUpdate:
        return await self.create_named_doc(db, uuid.uuid4().hex, body)

    async def create_named_doc(self, db: str, doc_id: str,
                               body: Dict[str, Any]) -> StoreUpdate:
        await self.create_database(db)
        rev = new_revision(1)
        cursor = await self.conn.execute(
            "INSERT OR IGNORE INTO documents (db, id, rev, deleted, body) VALUES (?, ?, ?, 0, ?)",
            (db, doc_id, rev, json.dumps(body)),
        )
        await self.conn.commit()
        if cursor.rowcount == 1:
            return StoreUpdate(id=doc_id, rev=rev)
        return await self._recreate(db, doc_id, body)

    async def _recreate(self, db: str, doc_id: str, body: Dict[str, Any]) -> StoreUpdate:
        """Bring a deleted document back; live documents are a conflict"""
        row = await self._fetch_row(db, doc_id)
        if row is None or not row["deleted"]:
            raise StoreError.conflict()
        rev = new_revision(revision_generation(row["rev"]) + 1)
        cursor = await self.conn.execute(
            "UPDATE documents SET rev = ?, deleted = 0, body = ? "
            "WHERE db = ? AND id = ? AND rev = ? AND deleted = 1",
            (rev, json.dumps(body), db, doc_id, row["rev"]),
        )
        await self.conn.commit()
        if cursor.rowcount != 1:
            raise StoreError.conflict()
        return StoreUpdate(id=doc_id, rev=rev)

    async def _conditional_write(self, db: str, doc_id: str, rev: str,
                                 body: Dict[str, Any], deleted: bool) -> StoreUpdate:
        await self._require_database(db)
        new_rev = new_revision(revision_generation(rev) + 1)
        cursor = await self.conn.execute(
            "UPDATE documents SET rev = ?, deleted = ?, body = ? "
            "WHERE db = ? AND id = ? AND rev = ? AND deleted = 0",
            (new_rev, int(deleted), json.dumps(body), db, doc_id, rev),
        )
        await self.conn.commit()
        if cursor.rowcount == 1:
            return StoreUpdate(id=doc_id, rev=new_rev)
        return await self._write_failure(db, doc_id, deleted)

    async def _write_failure(self, db: str, doc_id: str, deleting: bool) -> StoreUpdate:
        row = await self._fetch_row(db, doc_id)
        if deleting and row is None:
            raise StoreError.missing()
        if deleting and row["deleted"]:
            raise StoreError.deleted()
        raise StoreError.conflict()

    async def update_doc(self, db: str, doc_id: str, rev: str,
                         body: Dict[str, Any]) -> StoreUpdate:
        return await self._conditional_write(db, doc_id, rev, body, deleted=False)

    async def delete_doc(self, db: str, doc_id: str, rev: str) -> StoreUpdate:
        return await self._conditional_write(db, doc_id, rev, {}, deleted=True)

    # === Indexes and queries ===

    async def define_index(self, db: str, fields: List[str],
                           name: Optional[str] = None,
                           ddoc: Optional[str] = None) -> IndexResult:
        await self.create_database(db)
        name = name or default_index_name(fields)
        ddoc_id = ddoc or f"_design/{name}"
        if not ddoc_id.startswith("_design/"):
            ddoc_id = f"_design/{ddoc_id}"
        cursor = await self.conn.execute(
            "SELECT fields FROM indexes WHERE db = ? AND ddoc = ? AND name = ?",
            (db, ddoc_id, name),
        )
        row = await cursor.fetchone()
        if row is not None and json.loads(row["fields"]) == fields:
            return IndexResult(result="exists", id=ddoc_id, name=name)
        await self.conn.execute(
            "INSERT OR REPLACE INTO indexes (db, ddoc, name, fields) VALUES (?, ?, ?, ?)",
            (db, ddoc_id, name, json.dumps(fields)),
        )
        await self.conn.commit()
        return IndexResult(result="created", id=ddoc_id, name=name)

    async def get_indexes(self, db: str) -> List[IndexDefinition]:
        cursor = await self.conn.execute(
            "SELECT ddoc, name, fields FROM indexes WHERE db = ? ORDER BY ddoc, name", (db,)
        )
        rows = await cursor.fetchall()
        return [
            IndexDefinition(ddoc=r["ddoc"], name=r["name"], fields=json.loads(r["fields"]))
            for r in rows
        ]

    async def find(self, db: str, query: FindQuery) -> List[Dict[str, Any]]:
        if not await self._database_exists(db):
            return []
        cursor = await self.conn.execute(
            "SELECT id, rev, deleted, body FROM documents WHERE db = ? AND deleted = 0 ORDER BY id",
            (db,),
        )
        docs = [self._render(r) for r in await cursor.fetchall()]
        found = [d for d in docs if matches(d, query.selector)]
        found = sort_docs(found, query.sort)
        end = None if query.limit is None else query.skip + query.limit
        return [project(d, query.fields) for d in found[query.skip:end]]
