"""Response envelope shared by every endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ORMModel(BaseModel):
    """Schema that can be validated straight from an ORM row."""

    model_config = ConfigDict(from_attributes=True)


class Envelope(BaseModel):
    """``{success, message}`` header; subclasses add the resource key."""

    success: bool = True
    message: str | None = None


class MessageResponse(Envelope):
    pass
