# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""Schema of the embedded document store."""

import aiosqlite


class StoreSchemaManager:
    """Creates the tables backing databases, documents and indexes.

    Single responsibility: schema creation
    """

    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def create_schema(self):
        """Create all required tables"""
        await self._create_databases_table()
        await self._create_documents_table()
        await self._create_indexes_table()
        await self.conn.commit()

    async def _create_databases_table(self):
        await self.conn.execute("""
            CREATE TABLE IF NOT EXISTS databases (
                name TEXT PRIMARY KEY,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    async def _create_documents_table(self):
        """Documents, including deletion tombstones"""
        await self.conn.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                db TEXT NOT NULL,
                id TEXT NOT NULL,
                rev TEXT NOT NULL,
                deleted INTEGER NOT NULL DEFAULT 0,
                body TEXT NOT NULL,
                PRIMARY KEY (db, id),
                FOREIGN KEY (db) REFERENCES databases(name) ON DELETE CASCADE
            )
        """)

    async def _create_indexes_table(self):
        await self.conn.execute("""
            CREATE TABLE IF NOT EXISTS indexes (
                db TEXT NOT NULL,
                ddoc TEXT NOT NULL,
                name TEXT NOT NULL,
                fields TEXT NOT NULL,
                PRIMARY KEY (db, ddoc, name),
                FOREIGN KEY (db) REFERENCES databases(name) ON DELETE CASCADE
            )
        """)
