"""Application factory that serves both the users API and the registration form."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .api import create_app as create_api_app
from .client import UserAPIClient
from .config import Settings, load_settings
from .database import Database
from .web import create_app as create_web_app


def create_application(
    *,
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    api_client: Optional[UserAPIClient] = None,
) -> FastAPI:
    """Create the combined ASGI application.

    The users API is mounted at ``/api`` and the form at ``/``. The form talks
    to the API over HTTP through ``api_client`` (built from the configured API
    base URL when omitted).
    """

    if settings is None:
        settings = load_settings()

    if database is None:
        database = Database(settings.database_path)
    database.initialize()

    api_app = create_api_app(database=database, cors_origins=settings.cors_origins)

    if api_client is None:
        api_client = UserAPIClient(settings.resolved_api_base_url)
    web_app = create_web_app(api_client=api_client)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        api_client.close()

    app = FastAPI(
        title="User Registration Service",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.database = database
    app.state.settings = settings
    app.state.api = api_app
    app.state.web = web_app

    app.mount("/api", api_app)
    app.mount("/", web_app)

    return app


__all__ = ["create_application"]
