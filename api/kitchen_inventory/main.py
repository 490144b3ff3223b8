# kitchen_inventory/main.py
# Kitchen Inventory API - SQLite inventory + detection reconciliation + recipe lookup
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kitchen_inventory.settings import Settings, settings as default_settings
from kitchen_inventory.database import (
    create_engine, create_session_factory, init_db, close_db, check_db_health,
)
from kitchen_inventory.logging_setup import setup_logging
from kitchen_inventory.models import HealthOut
from kitchen_inventory.routers.inventory import router as inventory_router
from kitchen_inventory.routers.recipes import router as recipes_router
from kitchen_inventory.services.recipes import RecipeClient

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    recipe_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the API for one configuration. Nothing is shared between apps."""
    settings = settings or default_settings
    setup_logging(settings)

    # ---------------------------------------------------------
    # Lifespan: Database init/cleanup
    # ---------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        engine = create_engine(settings)
        await init_db(engine)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        logger.info(f"Database ready at {settings.database_url}")
        yield
        await close_db(engine)
        logger.info("Database disconnected")

    # ---------------------------------------------------------
    # FastAPI app + CORS
    # ---------------------------------------------------------
    app = FastAPI(
        title="Kitchen Inventory API",
        version=VERSION,
        description="Kitchen inventory with detection-driven restocking",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.recipe_client = RecipeClient.from_settings(settings, transport=recipe_transport)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # malformed body or params -> 400, same as a missing field
        errors = exc.errors()
        first = errors[0] if errors else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid request: {where} {first.get('msg', '')}".strip()
        return JSONResponse(status_code=400, content={"detail": message})

    @app.get("/health", response_model=HealthOut)
    async def health(request: Request):
        """Health check endpoint with database status."""
        db_health = await check_db_health(request.app.state.session_factory)
        return {
            "status": "ok" if db_health.get("status") == "healthy" else "degraded",
            "version": VERSION,
            "database": db_health,
        }

    app.include_router(inventory_router, prefix=settings.API_PREFIX)
    app.include_router(recipes_router, prefix=settings.API_PREFIX)
    return app


def run() -> None:
    """Console entry point: kitchen-inventory"""
    uvicorn.run(
        "kitchen_inventory.main:create_app",
        factory=True,
        host=default_settings.HOST,
        port=default_settings.PORT,
    )


if __name__ == "__main__":
    run()
