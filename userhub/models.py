"""Domain models for the user directory service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class User:
    """Represents a user record stored in the ``users`` table."""

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


__all__ = ["User"]
