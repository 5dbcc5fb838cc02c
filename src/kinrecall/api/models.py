"""Pydantic models for the session API."""

from pydantic import BaseModel, Field


class CredentialsPayload(BaseModel):
    """Email and password submitted by a sign-in or sign-up form."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class CreateFamilyPayload(BaseModel):
    """Name of a family to create."""

    name: str


class CheckoutPayload(BaseModel):
    """Plan selected on the pricing page."""

    plan: str


class FamilyModel(BaseModel):
    """Family as returned to the presentation layer."""

    id: str
    name: str


class SessionModel(BaseModel):
    """Session snapshot as returned to the presentation layer."""

    mode: str
    status: str
    identity: str | None = None
    current_family: str | None = None
    families: list[FamilyModel] = Field(default_factory=list)
