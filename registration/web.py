"""Browser front end for the registration form.

Each request gets its own :class:`RegistrationFormController` because one app
serves many browsers, so the controller's in-flight guard only spans a single
request. Repeat submissions from the same page are blocked in the browser by
``static/form.js``, which disables ``#submitBtn`` on submit.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .client import UserAPIClient
from .config import load_settings
from .ui import (
    REGISTER_ANOTHER_EVENT,
    SUBMIT_EVENT,
    FormState,
    RegistrationFormController,
    build_dispatcher,
)

logger = logging.getLogger("registration.web")

BASE_DIR = Path(__file__).resolve().parent
TEMPLATE_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"


def create_app(
    *,
    api_client: Optional[UserAPIClient] = None,
    api_base_url: Optional[str] = None,
) -> FastAPI:
    """Create the web application that serves the registration form."""

    if api_client is None:
        if api_base_url is None:
            api_base_url = load_settings().resolved_api_base_url
        api_client = UserAPIClient(api_base_url)

    app = FastAPI(
        title="User Registration",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.api_client = api_client
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

    def _render(request: Request, state: FormState) -> HTMLResponse:
        return templates.TemplateResponse(request, "index.html", {"state": state})

    def _dispatch(event: str, payload: Optional[dict] = None) -> FormState:
        controller = RegistrationFormController(api_client)
        dispatcher = build_dispatcher(controller)
        return dispatcher.dispatch(event, payload)

    @app.get("/", response_class=HTMLResponse, name="registration_form")
    def registration_form(request: Request):
        return _render(request, FormState())

    @app.post("/", response_class=HTMLResponse, name="submit_registration")
    def submit_registration(
        request: Request,
        username: str = Form(""),
        email: str = Form(""),
        age: str = Form(""),
    ):
        state = _dispatch(SUBMIT_EVENT, {"username": username, "email": email, "age": age})
        if state.user is not None:
            logger.info("Form registration succeeded for user %s", state.user.get("id"))
        return _render(request, state)

    @app.post("/register-another", response_class=HTMLResponse, name="register_another")
    def register_another(request: Request):
        return _render(request, _dispatch(REGISTER_ANOTHER_EVENT))

    return app


__all__ = ["create_app"]
