"""Station API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_db
from subway.models.subway import Station
from subway.schemas.stations import CreateStationRequest, StationResponse
from subway.services.station_service import StationService

router = APIRouter(prefix="/stations", tags=["stations"])


@router.post("", response_model=StationResponse, status_code=status.HTTP_201_CREATED)
async def create_station(
    request: CreateStationRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Station:
    """
    Register a station.

    Args:
        request: Station creation request
        response: Outgoing response (used to set the Location header)
        db: Database session

    Returns:
        Created station

    Raises:
        HTTPException: 400 if the station name is already registered
    """
    service = StationService(db)
    station = await service.create_station(request)
    response.headers["Location"] = f"/stations/{station.id}"
    return station


@router.get("", response_model=list[StationResponse])
async def list_stations(db: AsyncSession = Depends(get_db)) -> list[Station]:
    """List all stations."""
    service = StationService(db)
    return await service.list_stations()


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station(
    station_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a station.

    Raises:
        HTTPException: 404 if not found, 400 if the station is still on a line
    """
    service = StationService(db)
    await service.delete_station(station_id)
