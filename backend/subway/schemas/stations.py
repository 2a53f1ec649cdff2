"""Pydantic schemas for station management."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateStationRequest(BaseModel):
    """Request to register a new station."""

    name: str = Field(..., min_length=1, max_length=255, description="Station name (unique)")

    @field_validator("name")
    @classmethod
    def strip_name(cls, name: str) -> str:
        """Reject names that are only whitespace."""
        if not (stripped := name.strip()):
            msg = "Station name must not be blank"
            raise ValueError(msg)
        return stripped


class StationResponse(BaseModel):
    """Station as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
