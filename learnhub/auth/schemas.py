"""Pydantic schemas for the authenticated caller."""

from uuid import UUID

from pydantic import BaseModel


class AuthenticatedUser(BaseModel):
    """Caller identity extracted from the access token."""

    id: UUID
    email: str
    role: str
    name: str = ""
