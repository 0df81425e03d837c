"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from bannerforge import __version__
from bannerforge.engine.registry import get_registry
from bannerforge.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        layouts_registered=get_registry().count,
    )


@router.get("/layouts")
async def layouts() -> dict[str, str]:
    return {spec.category.value: spec.description for spec in get_registry().all()}
