"""Route dependencies and helpers

Provides clean access to application state without Law of Demeter violations,
and resolves the tenant instance once per request.
"""
from fastapi import Request

from app_state import AppState
from jsonapi import errors as jsonapi
from operations.data_adapter import DataAccessAdapter
from tenancy import Instance


def get_app_state(request: Request) -> AppState:
    """Get AppState from request

    Encapsulates the request.app.state.app_state chain.

    Usage:
        @router.get("/example")
        async def example(request: Request):
            app_state = get_app_state(request)
    """
    return request.app.state.app_state


def get_instance(request: Request) -> Instance:
    """Resolve the instance addressed by the request Host header"""
    tenants = get_app_state(request).get_tenants()
    if tenants is None:
        raise jsonapi.internal_server_error("tenant registry not initialized")
    return tenants.resolve(request.headers.get("host"))


def get_adapter(request: Request) -> DataAccessAdapter:
    """Get the data access adapter, failing when the store is not ready"""
    adapter = get_app_state(request).get_adapter()
    if adapter is None:
        raise jsonapi.internal_server_error("document store not initialized")
    return adapter
