"""FastAPI application that exposes the users resource."""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import load_settings
from .database import Database, UniqueConstraintViolation
from .models import User
from .validation import ValidationFailed, require_valid_registration

logger = logging.getLogger("registration.api")

USER_NOT_FOUND_MESSAGE = "User not found"
CONFLICT_MESSAGE = "Username or email already exists"


class UserPayload(BaseModel):
    id: int
    username: str
    email: str
    age: int
    created_at: datetime


class UserResponse(BaseModel):
    success: bool = True
    user: UserPayload


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserPayload]


class CreateUserResponse(BaseModel):
    success: bool = True
    message: str
    user: UserPayload


class MessageResponse(BaseModel):
    success: bool
    message: str


class CreateUserRequest(BaseModel):
    """Raw registration payload; the validation rules decide what is acceptable."""

    username: Optional[Any] = None
    email: Optional[Any] = None
    age: Optional[Any] = None


def user_to_payload(user: User) -> UserPayload:
    return UserPayload(
        id=user.id,
        username=user.username,
        email=user.email,
        age=user.age,
        created_at=user.created_at,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


SQLITE_INTEGER_MIN = -(2**63)
SQLITE_INTEGER_MAX = 2**63 - 1


def _parse_user_id(raw: str) -> Optional[int]:
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    # Ids outside SQLite's INTEGER range cannot be bound, so no row can match.
    if not SQLITE_INTEGER_MIN <= value <= SQLITE_INTEGER_MAX:
        return None
    return value


def create_app(
    *,
    database: Database | None = None,
    initialize_database: bool = False,
    cors_origins: Sequence[str] | None = None,
) -> FastAPI:
    if database is None or cors_origins is None:
        settings = load_settings()
        if database is None:
            database = Database(settings.database_path)
            database.initialize()
        elif initialize_database:
            database.initialize()
        if cors_origins is None:
            cors_origins = settings.cors_origins
    elif initialize_database:
        database.initialize()

    app = FastAPI(
        title="User Registration API",
        description="Validated CRUD API for registered users",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.database = database

    def get_db() -> Database:
        return database

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/users", response_model=UserListResponse)
    def list_users(db: Database = Depends(get_db)) -> UserListResponse:
        return UserListResponse(users=[user_to_payload(user) for user in db.list_users()])

    @app.get("/users/username/{username:path}", response_model=UserResponse)
    def read_user_by_username(username: str, db: Database = Depends(get_db)):
        user = db.get_user_by_username(username)
        if user is None:
            return _error(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND_MESSAGE)
        return UserResponse(user=user_to_payload(user))

    @app.get("/users/{user_id}", response_model=UserResponse)
    def read_user(user_id: str, db: Database = Depends(get_db)):
        numeric_id = _parse_user_id(user_id)
        user = db.get_user(numeric_id) if numeric_id is not None else None
        if user is None:
            return _error(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND_MESSAGE)
        return UserResponse(user=user_to_payload(user))

    @app.post(
        "/users",
        response_model=CreateUserResponse,
        status_code=status.HTTP_201_CREATED,
    )
    def create_user(payload: CreateUserRequest, db: Database = Depends(get_db)) -> CreateUserResponse:
        registration = require_valid_registration(payload.model_dump())
        user = db.create_user(registration.username, registration.email, registration.age)
        logger.info("Registered user %s (%s)", user.id, user.username)
        return CreateUserResponse(
            message="User registered successfully",
            user=user_to_payload(user),
        )

    @app.delete("/users/{user_id}", response_model=MessageResponse)
    def delete_user(user_id: str, db: Database = Depends(get_db)) -> MessageResponse:
        numeric_id = _parse_user_id(user_id)
        if numeric_id is not None:
            db.delete_user(numeric_id)
        return MessageResponse(success=True, message="User deleted successfully")

    @app.delete("/users", response_model=MessageResponse)
    def delete_all_users(db: Database = Depends(get_db)) -> MessageResponse:
        db.delete_all_users()
        return MessageResponse(success=True, message="All users deleted successfully")

    @app.exception_handler(ValidationFailed)
    async def handle_validation_failed(_: Request, exc: ValidationFailed):
        logger.info("Rejected registration (%s): %s", exc.kind.value, exc.failure.message)
        return _error(status.HTTP_400_BAD_REQUEST, exc.failure.message)

    @app.exception_handler(UniqueConstraintViolation)
    async def handle_conflict(_: Request, exc: UniqueConstraintViolation):
        logger.warning("Registration conflict: %s", exc)
        return _error(status.HTTP_409_CONFLICT, CONFLICT_MESSAGE)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(_: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return _error(exc.status_code, message)

    @app.exception_handler(sqlite3.Error)
    async def handle_database_error(_: Request, exc: sqlite3.Error):
        logger.exception("Database failure while handling request", exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    return app


__all__ = [
    "CONFLICT_MESSAGE",
    "USER_NOT_FOUND_MESSAGE",
    "UserPayload",
    "create_app",
    "user_to_payload",
]
