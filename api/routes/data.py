"""Data routes module.

Generic document API over doctypes:
- GET    /data/{doctype}/           list documents
- GET    /data/{doctype}/{id}       read a document
- POST   /data/{doctype}/           create a document
- PUT    /data/{doctype}/{id}       create with a fixed id, or update
- DELETE /data/{doctype}/{id}       delete at a revision
- POST   /data/{doctype}/_index     define an index
- POST   /data/{doctype}/_find      query through an index
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from models import FindResponse, IndexCreationResponse, ListResponse
from operations.data_adapter import DataAccessAdapter, parse_json_body
from routes.deps import get_adapter, get_instance
from tenancy import Instance

router = APIRouter(prefix="/data", tags=["data"])


@router.post("/{doctype}/_index", response_model=IndexCreationResponse)
async def define_index(doctype: str, request: Request,
                       instance: Instance = Depends(get_instance),
                       adapter: DataAccessAdapter = Depends(get_adapter)):
    """Create an index; answers "created" once, then "exists" """
    body = parse_json_body(await request.body())
    result = await adapter.define_index(instance, doctype, body)
    return result.to_dict()


@router.post("/{doctype}/_find", response_model=FindResponse)
async def find_documents(doctype: str, request: Request,
                         instance: Instance = Depends(get_instance),
                         adapter: DataAccessAdapter = Depends(get_adapter)):
    """Run a selector query; the selector must be covered by an index"""
    body = parse_json_body(await request.body())
    return await adapter.find_documents(instance, doctype, body)


@router.get("/{doctype}/", response_model=ListResponse)
async def list_documents(doctype: str,
                         limit: Optional[int] = Query(default=None),
                         skip: int = Query(default=0),
                         instance: Instance = Depends(get_instance),
                         adapter: DataAccessAdapter = Depends(get_adapter)):
    """List the documents of a doctype, ordered by id"""
    return await adapter.list_documents(instance, doctype, limit=limit, skip=skip)


@router.get("/{doctype}/{doc_id}")
async def get_document(doctype: str, doc_id: str,
                       instance: Instance = Depends(get_instance),
                       adapter: DataAccessAdapter = Depends(get_adapter)):
    """Read one document"""
    return await adapter.get_document(instance, doctype, doc_id)


@router.post("/{doctype}/")
@router.post("/{doctype}", include_in_schema=False)
async def create_document(doctype: str, request: Request,
                          instance: Instance = Depends(get_instance),
                          adapter: DataAccessAdapter = Depends(get_adapter)):
    """Create a document with a generated id"""
    body = parse_json_body(await request.body())
    response = await adapter.create_document(instance, doctype, body)
    return JSONResponse(status_code=201, content=response.render())


@router.put("/{doctype}/{doc_id}")
async def put_document(doctype: str, doc_id: str, request: Request,
                       if_match: Optional[str] = Header(default=None),
                       instance: Instance = Depends(get_instance),
                       adapter: DataAccessAdapter = Depends(get_adapter)):
    """Create a document at this id, or update it when a revision is given"""
    body = parse_json_body(await request.body())
    response = await adapter.put_document(instance, doctype, doc_id, body, if_match=if_match)
    return JSONResponse(status_code=200, content=response.render())


@router.delete("/{doctype}/{doc_id}")
async def delete_document(doctype: str, doc_id: str,
                          rev: Optional[str] = Query(default=None),
                          if_match: Optional[str] = Header(default=None),
                          instance: Instance = Depends(get_instance),
                          adapter: DataAccessAdapter = Depends(get_adapter)):
    """Delete a document; If-Match and ?rev= must agree when both are given"""
    response = await adapter.delete_document(instance, doctype, doc_id,
                                             if_match=if_match, rev=rev)
    return JSONResponse(status_code=200, content=response.render())
