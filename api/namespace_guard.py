"""
Doctype namespace guard.

Some doctypes belong to subsystems that own their structural integrity
(the virtual file tree stores its nodes as io.cozy.files documents). The
generic data API must not write them, and by default does not read them
either. Classification is one static table consulted once per request.
"""
from enum import Enum
from typing import Dict, Iterable, Optional

from jsonapi import errors as jsonapi


class DoctypeAccess(Enum):
    """How the generic data API may touch a doctype"""
    OPEN = "open"
    RESERVED = "reserved"


# Doctypes owned by other subsystems
RESERVED_DOCTYPES: Dict[str, str] = {
    "io.cozy.files": "vfs",
}


class DoctypeClassification:
    """Static doctype -> access table.

    Args:
        extra_reserved: additional reserved doctypes from configuration
        readable: reserved doctypes whose documents may still be read
    """

    def __init__(self, extra_reserved: Optional[Iterable[str]] = None,
                 readable: Optional[Iterable[str]] = None):
        self._table: Dict[str, DoctypeAccess] = {
            doctype: DoctypeAccess.RESERVED for doctype in RESERVED_DOCTYPES
        }
        for doctype in extra_reserved or ():
            self._table[doctype] = DoctypeAccess.RESERVED
        self._readable = frozenset(readable or ())

    def classify(self, doctype: str) -> DoctypeAccess:
        return self._table.get(doctype, DoctypeAccess.OPEN)

    def is_reserved(self, doctype: str) -> bool:
        return self.classify(doctype) is DoctypeAccess.RESERVED

    def is_read_exempt(self, doctype: str) -> bool:
        return doctype in self._readable


class NamespaceGuard:
    """Rejects data API access to reserved doctypes with a 403"""

    def __init__(self, classification: Optional[DoctypeClassification] = None):
        self.classification = classification or DoctypeClassification()

    def is_reserved(self, doctype: str) -> bool:
        return self.classification.is_reserved(doctype)

    def check_write(self, doctype: str) -> None:
        if self.is_reserved(doctype):
            raise self._reserved_error(doctype)

    def check_read(self, doctype: str) -> None:
        if self.is_reserved(doctype) and not self.classification.is_read_exempt(doctype):
            raise self._reserved_error(doctype)

    @staticmethod
    def _reserved_error(doctype: str) -> jsonapi.Error:
        return jsonapi.forbidden(
            f"Doctype {doctype} is reserved and cannot be accessed through the data API"
        )
