"""Health and info routes."""
from fastapi import APIRouter, Request

from config import API_VERSION
from models import HealthResponse
from routes.deps import get_app_state

router = APIRouter()


@router.get("/", include_in_schema=False)
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Document Data API",
        "docs": "/docs",
        "health": "/health"
    }


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """
    Health check endpoint

    Reports whether the document store answers.
    """
    app_state = get_app_state(request)
    store_ok = await app_state.is_store_available()

    return HealthResponse(
        status="healthy" if store_ok else "degraded",
        store="available" if store_ok else "unavailable",
        version=API_VERSION,
    )
