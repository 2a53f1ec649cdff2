"""Line API endpoints, including section insertion and station removal."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_db
from subway.domain import Sections
from subway.models.subway import Line
from subway.schemas.lines import (
    CreateLineRequest,
    LineListItemResponse,
    LineResponse,
    SectionRequest,
    SectionResponse,
    UpdateLineRequest,
)
from subway.schemas.stations import StationResponse
from subway.services.line_service import LineService

router = APIRouter(prefix="/lines", tags=["lines"])


def build_line_response(line: Line, sections: Sections) -> LineResponse:
    """Combine a line row and its chain into the API representation."""
    return LineResponse(
        id=line.id,
        name=line.name,
        color=line.color,
        stations=[StationResponse(id=station.id, name=station.name) for station in sections.get_sorted_stations()],
        sections=[
            SectionResponse(
                id=section.id,
                up_station_id=section.up_station_id,
                down_station_id=section.down_station_id,
                distance=section.distance,
            )
            for section in sections
        ],
        total_distance=sections.total_distance,
    )


# ==================== Line Endpoints ====================


@router.post("", response_model=LineResponse, status_code=status.HTTP_201_CREATED)
async def create_line(
    request: CreateLineRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Create a line with its first section.

    Raises:
        HTTPException: 404 if a station does not exist, 400 if the line name is taken
    """
    service = LineService(db)
    line, sections = await service.create_line(request)
    response.headers["Location"] = f"/lines/{line.id}"
    return build_line_response(line, sections)


@router.get("", response_model=list[LineListItemResponse])
async def list_lines(db: AsyncSession = Depends(get_db)) -> list[Line]:
    """List all lines."""
    service = LineService(db)
    return await service.list_lines()


@router.get("/{line_id}", response_model=LineResponse)
async def get_line(
    line_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Get a line with its stations in travel order.

    Raises:
        HTTPException: 404 if the line does not exist
    """
    service = LineService(db)
    line, sections = await service.get_line_with_sections(line_id)
    return build_line_response(line, sections)


@router.put("/{line_id}", response_model=LineListItemResponse)
async def update_line(
    line_id: UUID,
    request: UpdateLineRequest,
    db: AsyncSession = Depends(get_db),
) -> Line:
    """
    Update a line's name or colour.

    Raises:
        HTTPException: 404 if the line does not exist, 400 if the new name is taken
    """
    service = LineService(db)
    return await service.update_line(line_id, request)


@router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_line(
    line_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a line and all its sections."""
    service = LineService(db)
    await service.delete_line(line_id)


# ==================== Section Endpoints ====================


@router.post("/{line_id}/sections", response_model=LineResponse, status_code=status.HTTP_201_CREATED)
async def add_section(
    line_id: UUID,
    request: SectionRequest,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Add a section to a line.

    The section either extends the line at one of its endpoints or splits an
    existing section that shares its up-station or down-station.

    Raises:
        HTTPException: 404 if the line or a station does not exist
        SectionError: Translated to 400 when the section cannot be added
    """
    service = LineService(db)
    line, sections = await service.add_section(line_id, request)
    return build_line_response(line, sections)


@router.delete("/{line_id}/sections", status_code=status.HTTP_204_NO_CONTENT)
async def remove_station(
    line_id: UUID,
    station_id: UUID = Query(..., description="Station to remove from the line"),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Remove a station from a line.

    Raises:
        HTTPException: 404 if the line or station does not exist
        SectionError: Translated to 400 when the station cannot be removed
    """
    service = LineService(db)
    await service.remove_station(line_id, station_id)
