# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
CouchDB document store over HTTP.

Thin async client for the handful of CouchDB endpoints the data API
needs. CouchDB errors ({"error": ..., "reason": ...}) become StoreError;
network failures and timeouts become a 500 StoreError so they never leak
as raw exceptions.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from config import StoreConfig
from store.interfaces import (
    REASON_WRONG_DOCTYPE, DocumentStore, FindQuery, IndexDefinition, IndexResult,
    StoreError, StoreUpdate,
)

logger = logging.getLogger(__name__)

DB_MISSING_REASONS = {"Database does not exist.", "no_db_file"}


def _escape(value: str) -> str:
    return quote(value, safe="")


class CouchDBDocumentStore(DocumentStore):
    """DocumentStore speaking the CouchDB HTTP API"""

    def __init__(self, config: StoreConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.client = httpx.AsyncClient(
            base_url=config.base_url,
            auth=config.credentials,
            timeout=config.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def open(self) -> 'CouchDBDocumentStore':
        logger.info("Using CouchDB document store at %s", self.config.base_url)
        return self

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("CouchDB request %s %s failed: %s", method, path, e)
            raise StoreError.unreachable(f"document store unreachable: {e}") from e
        if response.status_code >= 400:
            raise self._to_store_error(response)
        return response

    @staticmethod
    def _to_store_error(response: httpx.Response) -> StoreError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        error = payload.get("error", "unknown_error")
        reason = payload.get("reason", response.reason_phrase)
        if response.status_code == 404 and reason in DB_MISSING_REASONS:
            reason = REASON_WRONG_DOCTYPE
        return StoreError(response.status_code, error, reason)

    async def ping(self) -> bool:
        try:
            await self._request("GET", "")
            return True
        except StoreError:
            return False

    # === Databases ===

    async def create_database(self, db: str) -> None:
        try:
            await self._request("PUT", _escape(db))
        except StoreError as e:
            if e.status != 412:  # file_exists
                raise

    async def delete_database(self, db: str) -> None:
        try:
            await self._request("DELETE", _escape(db))
        except StoreError as e:
            if e.status != 404:
                raise

    async def _with_database(self, db: str, method: str, path: str, **kwargs) -> httpx.Response:
        """Run a request, creating the database once if it is missing"""
        try:
            return await self._request(method, path, **kwargs)
        except StoreError as e:
            if e.reason != REASON_WRONG_DOCTYPE:
                raise
        await self.create_database(db)
        return await self._request(method, path, **kwargs)

    # === Documents ===

    async def get_doc(self, db: str, doc_id: str) -> Dict[str, Any]:
        response = await self._request("GET", f"{_escape(db)}/{_escape(doc_id)}")
        return response.json()

    async def all_docs(self, db: str, limit: Optional[int] = None,
                       skip: int = 0) -> Dict[str, Any]:
        params: Dict[str, Any] = {"include_docs": "true", "skip": skip}
        if limit is not None:
            params["limit"] = limit
        response = await self._request("GET", f"{_escape(db)}/_all_docs", params=params)
        payload = response.json()
        docs = [
            row["doc"] for row in payload.get("rows", [])
            if row.get("doc") and not row["id"].startswith("_design/")
        ]
        return {
            "total_rows": payload.get("total_rows", len(docs)),
            "offset": payload.get("offset", skip),
            "docs": docs,
        }

    async def create_doc(self, db: str, body: Dict[str, Any]) -> StoreUpdate:
        response = await self._with_database(db, "POST", _escape(db), json=body)
        payload = response.json()
        return StoreUpdate(id=payload["id"], rev=payload["rev"])

    async def create_named_doc(self, db: str, doc_id: str,
                               body: Dict[str, Any]) -> StoreUpdate:
        response = await self._with_database(
            db, "PUT", f"{_escape(db)}/{_escape(doc_id)}", json=body
        )
        payload = response.json()
        return StoreUpdate(id=payload["id"], rev=payload["rev"])

    async def update_doc(self, db: str, doc_id: str, rev: str,
                         body: Dict[str, Any]) -> StoreUpdate:
        doc = dict(body, _id=doc_id, _rev=rev)
        response = await self._request("PUT", f"{_escape(db)}/{_escape(doc_id)}", json=doc)
        payload = response.json()
        return StoreUpdate(id=payload["id"], rev=payload["rev"])

    async def delete_doc(self, db: str, doc_id: str, rev: str) -> StoreUpdate:
        response = await self._request(
            "DELETE", f"{_escape(db)}/{_escape(doc_id)}", params={"rev": rev}
        )
        payload = response.json()
        return StoreUpdate(id=payload["id"], rev=payload["rev"])

    # === Indexes and queries ===

    async def define_index(self, db: str, fields: List[str],
                           name: Optional[str] = None,
                           ddoc: Optional[str] = None) -> IndexResult:
        body: Dict[str, Any] = {"index": {"fields": fields}, "type": "json"}
        if name:
            body["name"] = name
        if ddoc:
            body["ddoc"] = ddoc
        response = await self._with_database(db, "POST", f"{_escape(db)}/_index", json=body)
        payload = response.json()
        return IndexResult(result=payload["result"], id=payload["id"], name=payload["name"])

    async def get_indexes(self, db: str) -> List[IndexDefinition]:
        try:
            response = await self._request("GET", f"{_escape(db)}/_index")
        except StoreError as e:
            if e.status == 404:
                return []
            raise
        indexes = []
        for index in response.json().get("indexes", []):
            if index.get("type") == "special":
                continue
            fields = [next(iter(f)) if isinstance(f, dict) else f
                      for f in index.get("def", {}).get("fields", [])]
            indexes.append(IndexDefinition(ddoc=index.get("ddoc") or "",
                                           name=index.get("name", ""), fields=fields))
        return indexes

    async def find(self, db: str, query: FindQuery) -> List[Dict[str, Any]]:
        response = await self._request("POST", f"{_escape(db)}/_find", json=query.to_dict())
        return response.json().get("docs", [])
