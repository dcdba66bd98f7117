"""Schemas for login and profile endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    pw: str = Field(..., description="Password, forwarded to the authentication service.")


class ProfileSetRequest(BaseModel):
    """Request body for POST /profile/{attrib}. Settings are sent as a JSON string."""

    data: str = ""


class HistoryUpdateRequest(BaseModel):
    """Request body for POST /profile/history: result items the user picked for the last query."""

    items: list[Any] | None = None
