"""Pydantic schemas for signed-in users."""

from __future__ import annotations

from pydantic import BaseModel, Field

from wescollab.schemas.post import PostAuthor


class AuthenticatedUser(BaseModel):
    """User resolved from a bearer token by the identity provider."""

    id: str = Field(..., description="Identity provider user id (UUID).")
    email: str = Field(..., description="Primary email address.")
    name: str | None = Field(default=None, description="Display name, if known.")

    def as_author(self) -> PostAuthor:
        return PostAuthor(name=self.name, email=self.email)
