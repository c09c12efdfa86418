"""Core utilities for the user registration service."""

from __future__ import annotations

from typing import Any

from .database import Database, UniqueConstraintViolation, resolve_database_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the combined API + form application."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


def create_api_app(*args: Any, **kwargs: Any):
    """Factory function for the API-only application."""

    from .api import create_app as _create_api_app

    return _create_api_app(*args, **kwargs)


def create_web_app(*args: Any, **kwargs: Any):
    """Factory function for the form-only application."""

    from .web import create_app as _create_web_app

    return _create_web_app(*args, **kwargs)


__all__ = [
    "Database",
    "UniqueConstraintViolation",
    "resolve_database_path",
    "create_app",
    "create_api_app",
    "create_web_app",
]
