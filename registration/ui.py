"""Registration form controller and the event dispatcher that drives it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional

from .client import APIUnavailableError, UserAPIClient

logger = logging.getLogger("registration.ui")

SUBMIT_EVENT = "submit"
REGISTER_ANOTHER_EVENT = "register_another"

SERVER_UNREACHABLE_MESSAGE = "Failed to register user. Please ensure the server is running."


@dataclass(frozen=True)
class FormState:
    """Everything the registration page needs to render itself."""

    username: str = ""
    email: str = ""
    age: str = ""
    submitting: bool = False
    message: Optional[str] = None
    message_kind: Optional[str] = None
    user: Optional[Dict[str, Any]] = field(default=None)

    @property
    def show_form(self) -> bool:
        return self.user is None

    @property
    def show_user(self) -> bool:
        return self.user is not None

    @property
    def submit_label(self) -> str:
        return "Registering..." if self.submitting else "Register User"


def _field(fields: Mapping[str, object], name: str) -> str:
    value = fields.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _age_for_request(raw: str) -> object:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return raw


class RegistrationFormController:
    """Command handlers for the registration form.

    The rendered result only ever comes from the record the API returned,
    never from the values typed into the form.
    """

    def __init__(self, client: UserAPIClient, *, state: FormState | None = None) -> None:
        self._client = client
        self._state = state or FormState()

    @property
    def state(self) -> FormState:
        return self._state

    def submit(self, fields: Mapping[str, object]) -> FormState:
        if self._state.submitting:
            logger.debug("Ignoring submit while a registration is in flight")
            return self._state

        username = _field(fields, "username")
        email = _field(fields, "email")
        age = _field(fields, "age")

        self._state = FormState(username=username, email=email, age=age, submitting=True)
        try:
            response = self._client.create_user(username, email, _age_for_request(age))
        except APIUnavailableError as exc:
            logger.error("Registration request failed: %s", exc)
            self._state = replace(
                self._state,
                message=SERVER_UNREACHABLE_MESSAGE,
                message_kind="error",
            )
        else:
            if response.success and response.user is not None:
                self._state = FormState(user=dict(response.user))
            else:
                message = response.message or f"Registration failed with status {response.status_code}"
                self._state = replace(self._state, message=message, message_kind="error")
        finally:
            self._state = replace(self._state, submitting=False)

        return self._state

    def register_another(self, _: Mapping[str, object] | None = None) -> FormState:
        self._state = FormState()
        return self._state


Handler = Callable[[Mapping[str, object]], FormState]


class UIEventDispatcher:
    """Route named UI events to explicit command handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def register(self, event: str, handler: Handler) -> None:
        if event in self._handlers:
            raise ValueError(f"A handler is already registered for '{event}'")
        self._handlers[event] = handler

    def dispatch(self, event: str, payload: Mapping[str, object] | None = None) -> FormState:
        try:
            handler = self._handlers[event]
        except KeyError as exc:
            raise KeyError(f"Unknown UI event '{event}'") from exc
        return handler(payload or {})


def build_dispatcher(controller: RegistrationFormController) -> UIEventDispatcher:
    dispatcher = UIEventDispatcher()
    dispatcher.register(SUBMIT_EVENT, controller.submit)
    dispatcher.register(REGISTER_ANOTHER_EVENT, controller.register_another)
    return dispatcher


__all__ = [
    "FormState",
    "REGISTER_ANOTHER_EVENT",
    "RegistrationFormController",
    "SERVER_UNREACHABLE_MESSAGE",
    "SUBMIT_EVENT",
    "UIEventDispatcher",
    "build_dispatcher",
]
