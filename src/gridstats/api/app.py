"""FastAPI application factory.

API layer:
- Validates inputs, reads/writes statistics through the repository
- Returns JSON payloads for the puzzle UI
- Forbidden: solving logic, choosing which attempt is included
"""

from __future__ import annotations

import logging
from typing import Generator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gridstats.db.errors import StorageError
from gridstats.db.repo import DbSession
from gridstats.db.session import get_session

logger = logging.getLogger(__name__)


def get_db_session() -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def create_app() -> FastAPI:
    """Create FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="gridstats API",
        description="Solving attempt statistics for puzzle grids",
        version="0.1.0",
    )

    # A failing store is never reported as empty or zero statistics
    @app.exception_handler(StorageError)
    def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Storage failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Statistics storage unavailable"})

    # Include routes
    from gridstats.api.routes import reports, statistics

    app.include_router(statistics.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
