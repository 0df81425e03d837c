"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bannerforge import __version__
from bannerforge.config import settings
from bannerforge.errors import (
    BannerForgeError,
    ExportFailure,
    InvalidCategory,
    InvalidSlotNumber,
    SlotCapacityExceeded,
    SlotNotFound,
    StaleSlotEdit,
)

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.bannerforge_log_level.upper(), logging.DEBUG),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)

# Domain error → HTTP status. Anything unlisted is a 500.
_STATUS: dict[type[BannerForgeError], int] = {
    SlotCapacityExceeded: 409,
    StaleSlotEdit: 409,
    SlotNotFound: 404,
    InvalidSlotNumber: 422,
    InvalidCategory: 422,
    ExportFailure: 500,
}


async def _domain_error(request: Request, exc: BannerForgeError) -> JSONResponse:
    status = next((code for cls, code in _STATUS.items() if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})


def create_app() -> FastAPI:
    app = FastAPI(
        title="BannerForge",
        description="Banner composition and slot-transform engine",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import all category layouts, then refuse to start with a gap
    from bannerforge.engine.composer import register_builtin_layouts
    from bannerforge.engine.registry import get_registry

    register_builtin_layouts()
    get_registry().verify_complete()

    app.add_exception_handler(BannerForgeError, _domain_error)

    from bannerforge.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
