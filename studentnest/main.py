from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from studentnest.api.errors import register_exception_handlers
from studentnest.api.v1.router import router as api_v1_router
from studentnest.config.settings import settings
from studentnest.core.logging import setup_logging
from studentnest.core.middleware import register_middlewares
from studentnest.db.init_db import init_db
from studentnest.db.session import engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema bootstrap for dev/demo databases; production runs migrations
    if not settings.is_production():
        init_db(engine)
    yield


def create_app(initialize_db: bool = True) -> FastAPI:
    """
    Application factory.

    - Configures logging, title, version and debug mode from Settings.
    - Registers request middleware and the error envelope handlers.
    - Includes the versioned API router under /api/v1.
    """
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan if initialize_db else None,
    )

    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["Health"])
    def health() -> dict:
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    return app


app = create_app()
