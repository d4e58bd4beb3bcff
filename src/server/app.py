"""FastAPI application bootstrap."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .dependencies import get_dashboard_service, get_repository
from .routes import (
    register_dashboard_routes,
    register_goal_routes,
    register_journal_routes,
    register_task_routes,
    register_user_routes,
)

logger = logging.getLogger(__name__)

__all__ = ["app", "create_app", "get_dashboard_service", "get_repository"]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title="Daily Growth Tracker API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Invalid request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"detail": "Invalid request body"})

    register_user_routes(app)
    register_dashboard_routes(app)
    register_journal_routes(app)
    register_goal_routes(app)
    register_task_routes(app)

    return app


app = create_app()
