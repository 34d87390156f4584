"""
FastAPI application entry point for the hotel backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from hotel_backend.config import get_settings
from hotel_backend.errors import register_exception_handlers
from hotel_backend.routes import router


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
    )
    app = FastAPI(title="Hotel Backend (FastAPI)", version="0.1.0")
    register_exception_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
