"""
Value objects for the data API.

Principles:
- Immutable data structures
- Named instead of primitive types (no Primitive Obsession)
- Small, focused classes with single responsibility
"""

from dataclasses import dataclass
from typing import Optional

from jsonapi import errors as jsonapi

IF_MATCH_HEADER = "If-Match"
REV_QUERY_PARAM = "rev"
REV_FIELD = "_rev"
ID_FIELD = "_id"
TYPE_FIELD = "_type"


@dataclass(frozen=True)
class DocumentIdentity:
    """Identifies a document by its doctype and id.

    The id may be empty for collection-level operations (create, list,
    index, find).
    """
    doctype: str
    doc_id: str = ""

    @classmethod
    def from_route(cls, doctype: Optional[str], doc_id: Optional[str] = None) -> 'DocumentIdentity':
        """Create identity from route parameters, rejecting an empty doctype"""
        doctype = (doctype or "").strip()
        if not doctype:
            raise jsonapi.bad_request("Missing doctype")
        return cls(doctype=doctype, doc_id=doc_id or "")

    @property
    def is_collection(self) -> bool:
        return self.doc_id == ""

    def __str__(self) -> str:
        if self.is_collection:
            return self.doctype
        return f"{self.doctype}/{self.doc_id}"


def normalize_revision(value: Optional[str]) -> Optional[str]:
    """Strip ETag decoration from a revision, returning None when empty.

    If-Match values may arrive quoted ("1-abc") or weak (W/"1-abc").
    """
    if value is None:
        return None
    value = value.strip()
    if value.startswith("W/"):
        value = value[2:]
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]
    return value or None


@dataclass(frozen=True)
class ExpectedRevision:
    """Revision a caller expects a document to be at before mutating it.

    Two sources may carry it: the If-Match header, and either the body's
    _rev field (updates) or the rev query parameter (deletes). The header
    takes precedence; both present and different is a bad request.
    """
    value: Optional[str]

    @classmethod
    def resolve(cls, header: Optional[str], fallback: Optional[str],
                fallback_name: str = REV_FIELD) -> 'ExpectedRevision':
        from_header = normalize_revision(header)
        from_fallback = normalize_revision(fallback)
        if from_header and from_fallback and from_header != from_fallback:
            raise jsonapi.bad_request(
                f"{IF_MATCH_HEADER} header and {fallback_name} do not match"
            )
        return cls(from_header or from_fallback)

    @property
    def present(self) -> bool:
        return self.value is not None


def revision_generation(rev: str) -> int:
    """Generation number of a '<n>-<hash>' revision, 0 if unparseable"""
    head, _, _ = rev.partition("-")
    try:
        return int(head)
    except ValueError:
        return 0
