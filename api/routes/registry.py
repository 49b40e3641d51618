"""Registry routes module.

Read-through proxy to the application registries of the instance.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from jsonapi import errors as jsonapi
from routes.deps import get_app_state, get_instance
from tenancy import Instance

router = APIRouter(prefix="/registry", tags=["registry"])


async def proxy_request(request: Request, instance: Instance) -> StreamingResponse:
    """Stream the first successful registry answer back to the caller"""
    proxy = get_app_state(request).get_registry_proxy()
    if proxy is None:
        raise jsonapi.internal_server_error("registry proxy not initialized")
    path = request.url.path[len(router.prefix):]
    upstream = await proxy.open(path, dict(request.query_params), instance.registries)
    return StreamingResponse(
        upstream.iter_bytes(),
        status_code=200,
        media_type=upstream.media_type,
        background=BackgroundTask(upstream.aclose),
    )


@router.get("")
@router.get("/")
async def list_apps(request: Request, instance: Instance = Depends(get_instance)):
    return await proxy_request(request, instance)


@router.get("/{app}")
async def get_app(app: str, request: Request, instance: Instance = Depends(get_instance)):
    return await proxy_request(request, instance)


@router.get("/{app}/{version}")
async def get_app_version(app: str, version: str, request: Request,
                          instance: Instance = Depends(get_instance)):
    return await proxy_request(request, instance)


@router.get("/{app}/{channel}/latest")
async def get_app_latest(app: str, channel: str, request: Request,
                         instance: Instance = Depends(get_instance)):
    return await proxy_request(request, instance)
