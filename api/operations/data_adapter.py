# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
Data access adapter.

Maps the REST verbs of the data API onto revision-checked document store
operations. Every handler:
1. resolves the (doctype, id) identity,
2. runs the namespace guard before touching the store,
3. converts store failures into JSON:API errors.

The adapter holds no state between calls; the tenant Instance is an
explicit argument of every operation.
"""
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from pydantic import ValidationError

from domain_models import JSONDoc
from jsonapi import errors as jsonapi
from models import FindRequest, IndexRequest, UpdateResponse
from namespace_guard import NamespaceGuard
from operations.index_manager import IndexManager
from operations.query_executor import QueryExecutor
from store.interfaces import DocumentStore, FindQuery, IndexResult, StoreError
from tenancy import Instance
from value_objects import (
    ID_FIELD, REV_FIELD, REV_QUERY_PARAM, TYPE_FIELD, DocumentIdentity, ExpectedRevision,
)

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_json_body(raw: bytes) -> Any:
    """Decode a request body, failing with BadJSON when it is not JSON.

    NaN and Infinity are refused: they could be stored but never rendered.
    """
    if not raw or not raw.strip():
        raise jsonapi.bad_json()
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as e:
        raise jsonapi.bad_json() from e


@contextmanager
def store_errors():
    """Re-raise StoreError as the matching JSON:API error"""
    try:
        yield
    except StoreError as e:
        raise jsonapi.from_store_error(e) from e


def _validation_error(e: ValidationError) -> jsonapi.Error:
    first = e.errors()[0]
    location = [str(p) for p in first.get("loc", ())]
    if first.get("type") == "missing" or not location:
        return jsonapi.bad_json()
    return jsonapi.invalid_attribute("/".join(location), first.get("msg", "invalid value"))


class DataAccessAdapter:
    """Request handlers of the generic data API"""

    def __init__(self, store: DocumentStore, guard: Optional[NamespaceGuard] = None,
                 index_manager: Optional[IndexManager] = None,
                 query_executor: Optional[QueryExecutor] = None):
        self.store = store
        self.guard = guard or NamespaceGuard()
        self.index_manager = index_manager or IndexManager(store)
        self.query_executor = query_executor or QueryExecutor(store, self.index_manager)

    # === Helpers ===

    @staticmethod
    def _document_body(doctype: str, body: Any) -> JSONDoc:
        if not isinstance(body, dict):
            raise jsonapi.bad_json()
        body_type = body.get(TYPE_FIELD)
        if body_type is not None and body_type != doctype:
            raise jsonapi.bad_request("Document _type does not match the doctype in the URL")
        for key in (ID_FIELD, REV_FIELD):
            if key in body and not isinstance(body[key], str):
                raise jsonapi.invalid_attribute(key, f"{key} must be a string")
        return JSONDoc(doctype=doctype, fields=dict(body))

    @staticmethod
    def _require_id(identity: DocumentIdentity) -> None:
        if identity.is_collection:
            raise jsonapi.bad_request("Missing document id")

    @staticmethod
    def _envelope(doctype: str, doc: JSONDoc) -> UpdateResponse:
        return UpdateResponse(id=doc.id, rev=doc.rev, type=doctype, ok=True, data=doc.to_dict())

    # === Reads ===

    async def get_document(self, instance: Instance, doctype: str, doc_id: str) -> Dict[str, Any]:
        """Fetch one document by id"""
        identity = DocumentIdentity.from_route(doctype, doc_id)
        self._require_id(identity)
        self.guard.check_read(identity.doctype)
        with store_errors():
            raw = await self.store.get_doc(instance.db_name(identity.doctype), identity.doc_id)
        return JSONDoc.from_store(identity.doctype, raw).to_dict()

    async def list_documents(self, instance: Instance, doctype: str,
                             limit: Optional[int] = None, skip: int = 0) -> Dict[str, Any]:
        """Page through all documents of a doctype, ordered by id"""
        identity = DocumentIdentity.from_route(doctype)
        self.guard.check_read(identity.doctype)
        if limit is not None and limit < 0:
            raise jsonapi.invalid_parameter("limit", "limit must be a positive integer")
        if skip < 0:
            raise jsonapi.invalid_parameter("skip", "skip must be a positive integer")
        with store_errors():
            page = await self.store.all_docs(instance.db_name(identity.doctype), limit=limit, skip=skip)
        page["docs"] = [JSONDoc.from_store(identity.doctype, d).to_dict() for d in page["docs"]]
        return page

    # === Writes ===

    async def create_document(self, instance: Instance, doctype: str, body: Any) -> UpdateResponse:
        """Create a document with a store-assigned id (POST)"""
        identity = DocumentIdentity.from_route(doctype)
        self.guard.check_write(identity.doctype)
        doc = self._document_body(identity.doctype, body)
        if doc.get(ID_FIELD) is not None:
            raise jsonapi.bad_request("Cannot create a document with _id, use PUT instead")
        with store_errors():
            update = await self.store.create_doc(instance.db_name(identity.doctype), doc.content())
        doc.set_identity(update.id, update.rev)
        logger.info("Created %s/%s for %s", identity.doctype, update.id, instance.domain)
        return self._envelope(identity.doctype, doc)

    async def put_document(self, instance: Instance, doctype: str, doc_id: str, body: Any,
                           if_match: Optional[str] = None) -> UpdateResponse:
        """Create with a fixed id, or update when a revision is supplied (PUT).

        Without a revision the document must not exist yet, and a body _id
        means the caller meant an update and forgot the revision. With one,
        it must be the document's current revision.
        """
        identity = DocumentIdentity.from_route(doctype, doc_id)
        self._require_id(identity)
        self.guard.check_write(identity.doctype)
        doc = self._document_body(identity.doctype, body)

        body_id = doc.get(ID_FIELD)
        if body_id is not None and body_id != identity.doc_id:
            raise jsonapi.bad_request("Document _id does not match the id in the URL")
        expected = ExpectedRevision.resolve(if_match, doc.get(REV_FIELD), REV_FIELD)
        db = instance.db_name(identity.doctype)

        if not expected.present:
            if body_id is not None:
                # An update that forgot its revision
                raise jsonapi.bad_json()
            return await self._create_named(instance, identity, doc)

        with store_errors():
            update = await self.store.update_doc(db, identity.doc_id, expected.value, doc.content())
        doc.set_identity(update.id, update.rev)
        logger.info("Updated %s to %s for %s", identity, update.rev, instance.domain)
        return self._envelope(identity.doctype, doc)

    async def _create_named(self, instance: Instance, identity: DocumentIdentity,
                            doc: JSONDoc) -> UpdateResponse:
        with store_errors():
            update = await self.store.create_named_doc(
                instance.db_name(identity.doctype), identity.doc_id, doc.content()
            )
        doc.set_identity(update.id, update.rev)
        logger.info("Created %s for %s", identity, instance.domain)
        return self._envelope(identity.doctype, doc)

    async def delete_document(self, instance: Instance, doctype: str, doc_id: str,
                              if_match: Optional[str] = None,
                              rev: Optional[str] = None) -> UpdateResponse:
        """Delete a document at a given revision, leaving a tombstone"""
        identity = DocumentIdentity.from_route(doctype, doc_id)
        self._require_id(identity)
        self.guard.check_write(identity.doctype)
        expected = ExpectedRevision.resolve(if_match, rev, f"{REV_QUERY_PARAM} query parameter")
        if not expected.present:
            raise jsonapi.bad_request("Delete requires the document revision (If-Match or ?rev=)")
        with store_errors():
            update = await self.store.delete_doc(
                instance.db_name(identity.doctype), identity.doc_id, expected.value
            )
        logger.info("Deleted %s for %s", identity, instance.domain)
        return UpdateResponse(id=update.id, rev=update.rev, type=identity.doctype,
                              ok=True, deleted=True)

    # === Indexes and queries ===

    async def define_index(self, instance: Instance, doctype: str, body: Any) -> IndexResult:
        """Create an index on the doctype from {"index": {"fields": [...]}}"""
        identity = DocumentIdentity.from_route(doctype)
        self.guard.check_write(identity.doctype)
        if not isinstance(body, dict):
            raise jsonapi.bad_json()
        try:
            request = IndexRequest.model_validate(body)
        except ValidationError as e:
            raise _validation_error(e) from e
        return await self.index_manager.ensure_index(
            instance, identity.doctype, request.index.fields,
            name=request.name, ddoc=request.ddoc,
        )

    async def find_documents(self, instance: Instance, doctype: str, body: Any) -> Dict[str, Any]:
        """Run a selector query backed by an existing index"""
        identity = DocumentIdentity.from_route(doctype)
        self.guard.check_read(identity.doctype)
        if not isinstance(body, dict):
            raise jsonapi.bad_json()
        try:
            request = FindRequest.model_validate(body)
        except ValidationError as e:
            raise _validation_error(e) from e
        query = FindQuery(
            selector=request.selector,
            limit=request.limit,
            skip=request.skip,
            sort=request.sort,
            fields=request.fields,
        )
        docs = await self.query_executor.execute(instance, identity.doctype, query)
        return {"docs": [JSONDoc.from_store(identity.doctype, d).to_dict() for d in docs]}
