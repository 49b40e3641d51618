import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app_state import AppState
from config import API_VERSION, Config, default_config
from jsonapi import errors as jsonapi
from services import RegistryProxy, configure_logging
from store import DocumentStore, StoreFactory
from routes.health import router as health_router
from routes.data import router as data_router
from routes.registry import router as registry_router

logger = logging.getLogger(__name__)

JSONAPI_CONTENT_TYPE = "application/vnd.api+json"


def _render(status: int, body: dict) -> JSONResponse:
    return JSONResponse(status_code=status, content=body, media_type=JSONAPI_CONTENT_TYPE)


async def jsonapi_error_handler(request: Request, exc: jsonapi.Error):
    return _render(exc.status, exc.to_body())


async def jsonapi_error_list_handler(request: Request, exc: jsonapi.ErrorList):
    return _render(exc.status, exc.to_body())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else ""
    return _render(exc.status_code, jsonapi.new_error(exc.status_code, detail).to_body())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Map request parsing failures onto invalid_parameter errors"""
    errors = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ())]
        name = loc[-1] if loc else ""
        if loc and loc[0] == "body":
            errors.append(jsonapi.invalid_attribute("/".join(loc[1:]) or name, err.get("msg", "")))
        else:
            errors.append(jsonapi.invalid_parameter(name, err.get("msg", "")))
    if not errors:
        errors.append(jsonapi.new_error(422, "invalid request"))
    error_list = jsonapi.ErrorList(errors)
    return _render(error_list.status, error_list.to_body())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _render(500, jsonapi.internal_server_error("internal error").to_body())


def create_app(config: Optional[Config] = None, store: Optional[DocumentStore] = None,
               registry: Optional[RegistryProxy] = None) -> FastAPI:
    """Build the application.

    store and registry override the collaborators opened from config;
    the lifespan still closes them on shutdown.
    """
    config = config or default_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan"""
        configure_logging(config.logging)
        opened_store = store or await StoreFactory.open(config.store)
        proxy = registry or RegistryProxy(config.registry)
        app.state.app_state = AppState.from_config(config, store=opened_store, registry=proxy)
        logger.info("Data API ready (%d tenants)", len(config.tenants.domains))
        yield
        await app.state.app_state.close_all_resources()

    app = FastAPI(
        title="Document Data API",
        description="Generic document storage with revisions and Mango queries",
        version=API_VERSION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes see an empty state until the lifespan has run
    app.state.app_state = AppState.from_config(config)

    app.add_exception_handler(jsonapi.Error, jsonapi_error_handler)
    app.add_exception_handler(jsonapi.ErrorList, jsonapi_error_list_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(data_router)
    app.include_router(registry_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=default_config.server.host, port=default_config.server.port)
