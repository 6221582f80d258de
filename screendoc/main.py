"""
Main application entry point - FastAPI app instance and configuration.
Run with: uvicorn screendoc.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from screendoc.core.config import settings
from screendoc.core.logging import setup_logging
from screendoc.db.session import init_db
from screendoc.deps import ServiceContainer, build_services
from screendoc.routers import history, preview, process
from screendoc.routers import progress as progress_router

logger = logging.getLogger("screendoc")


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the application.

    Args:
        services: Process-scoped services; built from settings when omitted
    """
    setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db()
        yield
        # Preview servers outlive their jobs; close them with the process
        await app.state.services.previews.stop_all()

    app = FastAPI(
        title=settings.APP_NAME,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services or build_services()

    # -----------------------------------------------------------------------
    # CORS MIDDLEWARE
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # ERROR BODIES
    # -----------------------------------------------------------------------
    # Every error leaves the API as {"success": false, "error": "..."}
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})

    # -----------------------------------------------------------------------
    # REGISTER ROUTERS
    # -----------------------------------------------------------------------
    app.include_router(process.router)
    app.include_router(history.router)
    app.include_router(preview.router)
    app.include_router(progress_router.router)

    # -----------------------------------------------------------------------
    # HEALTH CHECK ENDPOINT
    # -----------------------------------------------------------------------
    @app.get("/api/health", tags=["health"])
    def health_check():
        """Service status and whether a model API key is configured."""
        return {
            "success": True,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "apiKeyConfigured": bool(settings.ANTHROPIC_API_KEY),
        }

    return app


app = create_app()
