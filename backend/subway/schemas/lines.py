"""Pydantic schemas for lines and their sections."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from subway.schemas.stations import StationResponse

# ==================== Request Schemas ====================


class SectionRequest(BaseModel):
    """Request to add a section to a line."""

    up_station_id: UUID = Field(..., description="Station the section starts at")
    down_station_id: UUID = Field(..., description="Station the section ends at")
    distance: int = Field(..., gt=0, description="Section length (positive integer)")

    @model_validator(mode="after")
    def validate_distinct_stations(self) -> "SectionRequest":
        """Reject sections that start and end at the same station."""
        if self.up_station_id == self.down_station_id:
            msg = "up_station_id and down_station_id must differ"
            raise ValueError(msg)
        return self


class CreateLineRequest(SectionRequest):
    """Request to create a line together with its first section."""

    name: str = Field(..., min_length=1, max_length=255, description="Line name (unique)")
    color: str = Field(..., min_length=1, max_length=50, description="Display colour, e.g. 'bg-green-600'")


class UpdateLineRequest(BaseModel):
    """Request to update a line's metadata. Sections are changed through the sections endpoints."""

    name: str | None = Field(None, min_length=1, max_length=255)
    color: str | None = Field(None, min_length=1, max_length=50)


# ==================== Response Schemas ====================


class SectionResponse(BaseModel):
    """Section as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    up_station_id: UUID
    down_station_id: UUID
    distance: int


class LineResponse(BaseModel):
    """Line with its stations ordered from the top endpoint to the bottom endpoint."""

    id: UUID
    name: str
    color: str
    stations: list[StationResponse] = Field(default_factory=list)
    sections: list[SectionResponse] = Field(default_factory=list)
    total_distance: int = 0


class LineListItemResponse(BaseModel):
    """Line summary for list views."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: str
