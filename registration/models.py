"""Domain models for the user registration service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class User:
    """Represents a registered user stored in the database."""

    id: int
    username: str
    email: str
    age: int
    created_at: datetime


__all__ = ["User"]
