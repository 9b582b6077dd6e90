"""Pydantic schemas for the authenticated caller."""

from uuid import UUID

from pydantic import BaseModel


class UserResponse(BaseModel):
    """Authenticated user as described by the access token claims."""

    id: UUID
    email: str = ""
    role: str
