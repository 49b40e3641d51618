from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union


class UpdateResponse(BaseModel):
    """Mutation envelope, mirroring CouchDB's update response plus the document"""
    id: str
    rev: str
    type: str
    ok: bool = True
    deleted: Optional[bool] = None
    error: Optional[str] = None
    reason: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    def render(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class IndexFields(BaseModel):
    fields: List[Union[str, Dict[str, str]]]


class IndexRequest(BaseModel):
    index: IndexFields
    name: Optional[str] = None
    ddoc: Optional[str] = None


class IndexCreationResponse(BaseModel):
    result: str
    id: str
    name: str


class FindRequest(BaseModel):
    selector: Dict[str, Any]
    limit: Optional[int] = Field(default=None, ge=0)
    skip: int = Field(default=0, ge=0)
    sort: List[Union[str, Dict[str, str]]] = []
    fields: Optional[List[str]] = None


class FindResponse(BaseModel):
    docs: List[Dict[str, Any]]


class ListResponse(BaseModel):
    total_rows: int
    offset: int
    docs: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str
    store: str
    version: str
