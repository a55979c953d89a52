"""
FastAPI application entry point
Application factory and configuration
Run with: uvicorn taskreload.main:app
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from taskreload.api.v1.api import build_api_router
from taskreload.core.config import Settings, settings as default_settings
from taskreload.core.database import Database
from taskreload.core.exceptions import register_exception_handlers
from taskreload.core.logging_setup import RequestLoggingMiddleware, setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Explicit settings; the environment-loaded defaults are used when omitted

    Returns:
        Configured FastAPI instance
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Open the database handle on startup, close it on shutdown
        An unreachable database at boot stops the process from starting
        Reference: https://fastapi.tiangolo.com/advanced/events/
        """
        database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
        try:
            await database.ping()
            if settings.CREATE_TABLES_ON_STARTUP:
                await database.create_tables()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"✗ Database connection failed: {e}")
            await database.dispose()
            raise
        except Exception:
            logger.error("✗ Database setup failed", exc_info=True)
            await database.dispose()
            raise
        logger.info("✓ Database connection successful")

        app.state.database = database
        yield

        # Shutdown: Dispose of database connections
        await database.dispose()
        logger.info("Database connections closed")

    # Reference: https://fastapi.tiangolo.com/reference/fastapi/
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Task management REST API with SQLAlchemy persistence",
        docs_url="/docs",  # Swagger UI documentation
        redoc_url="/redoc",  # ReDoc documentation
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    app.include_router(build_api_router(settings.API_PREFIX))

    @app.get("/", include_in_schema=False)
    async def root():
        """
        Root endpoint
        Provides basic information about the API
        """
        return {
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "docs": "/docs",
        }

    return app


setup_logging(default_settings.LOG_LEVEL)
app = create_app()
