# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Async SQLite connection management for the embedded document store.

Single Responsibility: connection lifecycle only.
"""

import aiosqlite

from config import StoreConfig


class AsyncStoreConnection:
    """Manages the async SQLite connection of the embedded store"""

    def __init__(self, config: StoreConfig):
        self.config = config
        self.conn = None

    async def connect(self) -> aiosqlite.Connection:
        """Establish async database connection"""
        self.conn = await aiosqlite.connect(
            self.config.sqlite_path,
            timeout=self.config.timeout,
        )
        self.conn.row_factory = aiosqlite.Row
        if self.config.sqlite_path != ":memory:":
            # WAL allows concurrent reads during writes
            await self.conn.execute("PRAGMA journal_mode=WAL")
        await self.conn.execute(f"PRAGMA busy_timeout={int(self.config.timeout * 1000)}")
        return self.conn

    async def close(self):
        """Close connection"""
        if self.conn:
            await self.conn.close()
            self.conn = None
