"""Core types shared across showcase subsystems."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


def new_id() -> str:
    return uuid.uuid4().hex[:12]


# ── Users (relational) ───────────────────────────────────────────────────────


class UserIn(BaseModel):
    """Payload for creating or replacing a user row."""

    name: str = Field(min_length=1, max_length=200)
    age: int = 0


class User(UserIn):
    id: int | None = None


class UserPage(BaseModel):
    users: list[User]
    page: int


# ── Person (document store) ──────────────────────────────────────────────────


class Person(BaseModel):
    name: str
    age: int = 0
    city: str = ""


# ── Object storage ───────────────────────────────────────────────────────────


class ObjectEntry(BaseModel):
    """One entry of an object-store listing."""

    name: str
    type: str  # "File" or "Dir"
    size: int = 0
    mtime: str | None = None
