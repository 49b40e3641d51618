# Copyright (c) 2024 Docdata Contributors
# SPDX-License-Identifier: MIT

"""
JSON:API error objects.

Every failure the data API reports goes through one of the constructors
below, so callers always receive the same envelope:

    {"errors": [{"status": "409", "title": "Conflict", "detail": "..."}]}

The status is rendered as a string on the wire (see
http://jsonapi.org/format/#error-objects).
"""
from dataclasses import dataclass
from http import HTTPStatus
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from store.interfaces import StoreError

BAD_JSON_DETAIL = "JSON input is malformed or is missing mandatory fields"


@dataclass(frozen=True)
class SourceError:
    """Reference to the part of the request that caused an error"""
    pointer: str = ""
    parameter: str = ""

    def is_empty(self) -> bool:
        return not self.pointer and not self.parameter

    def to_dict(self) -> Dict[str, str]:
        out = {}
        if self.pointer:
            out["pointer"] = self.pointer
        if self.parameter:
            out["parameter"] = self.parameter
        return out


class Error(Exception):
    """A single JSON:API error object, raisable from any handler."""

    def __init__(self, status: int, title: str, detail: str = "",
                 source: Optional[SourceError] = None):
        status = int(status)
        super().__init__(f"{title}({status}): {detail}")
        self.status = status
        self.title = title
        self.detail = detail
        self.source = source or SourceError()

    def to_dict(self) -> Dict:
        """Wire representation of the error object"""
        out = {
            "status": str(self.status),
            "title": self.title,
            "detail": self.detail,
        }
        if not self.source.is_empty():
            out["source"] = self.source.to_dict()
        return out

    def to_body(self) -> Dict:
        return ErrorList([self]).to_body()

    def __repr__(self) -> str:
        return f"Error(status={self.status!r}, title={self.title!r}, detail={self.detail!r})"


class ErrorList(Exception):
    """Ordered collection of errors returned together.

    The HTTP status of the response is the status of the first error.
    """

    def __init__(self, errors: Iterable[Error]):
        self.errors: List[Error] = list(errors)
        if not self.errors:
            raise ValueError("ErrorList needs at least one error")
        super().__init__("; ".join(str(e) for e in self.errors))

    @property
    def status(self) -> int:
        return self.errors[0].status

    def to_body(self) -> Dict:
        return {"errors": [e.to_dict() for e in self.errors]}


def _status_text(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown Status"


def new_error(status: int, *msg) -> Error:
    """Generic error whose title is the HTTP reason phrase"""
    detail = " ".join(str(m) for m in msg)
    return Error(status, _status_text(status), detail)


def not_found(detail) -> Error:
    return Error(HTTPStatus.NOT_FOUND, "Not Found", str(detail))


def bad_request(detail) -> Error:
    return Error(HTTPStatus.BAD_REQUEST, "Bad request", str(detail))


def bad_json() -> Error:
    """400 error meaning the JSON input is malformed"""
    return Error(HTTPStatus.BAD_REQUEST, "Bad request", BAD_JSON_DETAIL)


def forbidden(detail) -> Error:
    return Error(HTTPStatus.FORBIDDEN, "Forbidden", str(detail))


def conflict(detail) -> Error:
    return Error(HTTPStatus.CONFLICT, "Conflict", str(detail))


def internal_server_error(detail) -> Error:
    return Error(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error", str(detail))


def precondition_failed(parameter: str, detail) -> Error:
    """412 error when an expectation from an HTTP header is not matched"""
    return Error(
        HTTPStatus.PRECONDITION_FAILED,
        "Precondition Failed",
        str(detail),
        SourceError(parameter=parameter),
    )


def invalid_parameter(parameter: str, detail) -> Error:
    """422 error when an HTTP header or query-string parameter is invalid"""
    return Error(
        HTTPStatus.UNPROCESSABLE_ENTITY,
        "Invalid Parameter",
        str(detail),
        SourceError(parameter=parameter),
    )


def invalid_attribute(attribute: str, detail) -> Error:
    """422 error when a document attribute is invalid"""
    return Error(
        HTTPStatus.UNPROCESSABLE_ENTITY,
        "Invalid Attribute",
        str(detail),
        SourceError(pointer="/data/attributes/" + attribute),
    )


def from_store_error(err: "StoreError") -> Error:
    """Translate a document store failure into the error taxonomy.

    The store's reason is kept as detail; status and title always come
    from this module.
    """
    if err.status == HTTPStatus.CONFLICT:
        return conflict(err.reason or "Document update conflict.")
    if err.status == HTTPStatus.NOT_FOUND:
        return Error(HTTPStatus.NOT_FOUND, "not_found", err.reason)
    if err.error == "no_index":
        return Error(HTTPStatus.BAD_REQUEST, "no_index", err.reason)
    if err.status in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
        # The store refused our own credentials
        return internal_server_error(err.reason or "document store refused access")
    if 400 <= err.status < 500:
        return Error(HTTPStatus.BAD_REQUEST, "bad_request", err.reason)
    return internal_server_error(err.reason or "document store failure")
