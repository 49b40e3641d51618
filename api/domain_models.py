"""Domain models for the data API"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from value_objects import ID_FIELD, REV_FIELD, TYPE_FIELD


@dataclass
class JSONDoc:
    """A document of arbitrary fields belonging to a doctype.

    Identity (_id) and revision (_rev) travel inside the field mapping as
    the store expects them; the doctype is kept beside it and only added
    to the rendered form.
    """
    doctype: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_store(cls, doctype: str, raw: Dict[str, Any]) -> 'JSONDoc':
        """Build a document from what the store returned"""
        return cls(doctype=doctype, fields=dict(raw))

    @property
    def id(self) -> Optional[str]:
        return self.fields.get(ID_FIELD) or None

    @property
    def rev(self) -> Optional[str]:
        return self.fields.get(REV_FIELD) or None

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def set_identity(self, doc_id: str, rev: str) -> None:
        self.fields[ID_FIELD] = doc_id
        self.fields[REV_FIELD] = rev

    def content(self) -> Dict[str, Any]:
        """Fields to persist: everything except identity, revision and type"""
        return {
            k: v for k, v in self.fields.items()
            if k not in (ID_FIELD, REV_FIELD, TYPE_FIELD)
        }

    def to_dict(self) -> Dict[str, Any]:
        """Rendered form returned to API callers"""
        out = dict(self.fields)
        out[TYPE_FIELD] = self.doctype
        return out
