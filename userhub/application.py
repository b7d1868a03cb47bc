"""Application factory that serves both the JSON API and the card pages."""
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .api import create_app as create_api_app
from .config import ServiceConfig
from .database import Database
from .web import register_ui_routes


def create_application(
    *,
    config: Optional[ServiceConfig] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Create the combined ASGI application.

    The store handle is built once by the API factory and shared by every route.
    """

    app = create_api_app(config=config, database=database)
    register_ui_routes(app, app.state.database)
    return app


__all__ = ["create_application"]
