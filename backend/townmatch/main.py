from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from townmatch.config import settings

logger = structlog.get_logger()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting townmatch API", env=settings.app_env)
    for warning in settings.validate_production():
        logger.warning("Configuration issue", detail=warning)

    from townmatch.database import create_all_tables
    await create_all_tables()

    db_type = "sqlite" if settings.is_sqlite else "postgresql"
    logger.info("Gazetteer database ready", backend=db_type)

    yield

    logger.info("Shutting down townmatch API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="townmatch",
        description="Resolves Japanese addresses to prefecture, city and town.",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from townmatch.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Database connectivity check."""
        from sqlalchemy import text
        from townmatch.database import async_session

        result = {
            "status": "healthy",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "unknown",
            "fuzzy_enabled": bool(settings.fuzzy_char),
        }

        try:
            async with async_session() as session:
                await session.execute(text("SELECT 1"))
                result["database"] = "connected"
        except SQLAlchemyError as e:
            result["status"] = "degraded"
            result["database"] = f"error: {str(e)[:100]}"

        return result

    return app


app = create_app()
