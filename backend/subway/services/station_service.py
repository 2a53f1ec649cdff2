"""Station management service."""

import uuid

import structlog
from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from subway.models.subway import Section, Station
from subway.schemas.stations import CreateStationRequest

logger = structlog.get_logger(__name__)


class StationService:
    """Service for registering and removing stations."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the station service.

        Args:
            db: Database session
        """
        self.db = db

    async def get_station(self, station_id: uuid.UUID) -> Station:
        """
        Get a station by ID.

        Raises:
            HTTPException: 404 if the station does not exist
        """
        if not (station := await self.db.get(Station, station_id)):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Station not found.",
            )
        return station

    async def list_stations(self) -> list[Station]:
        """List all stations ordered by name."""
        result = await self.db.execute(select(Station).order_by(Station.name))
        return list(result.scalars().all())

    async def create_station(self, request: CreateStationRequest) -> Station:
        """
        Register a station.

        Args:
            request: Station creation request

        Returns:
            Created station

        Raises:
            HTTPException: 400 if a station with the same name already exists
        """
        station = Station(name=request.name)
        self.db.add(station)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("station_name_conflict", name=request.name)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Station with the same name already exists.",
            ) from e

        await self.db.refresh(station)
        logger.info("station_created", station_id=str(station.id), name=station.name)
        return station

    async def delete_station(self, station_id: uuid.UUID) -> None:
        """
        Delete a station that no line uses.

        Raises:
            HTTPException: 404 if the station does not exist, 400 if a section still references it
        """
        station = await self.get_station(station_id)

        in_use = await self.db.execute(
            select(Section.id)
            .where(or_(Section.up_station_id == station_id, Section.down_station_id == station_id))
            .limit(1)
        )
        if in_use.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Station is still part of a line. Remove it from its lines first.",
            )

        await self.db.delete(station)
        await self.db.commit()
        logger.info("station_deleted", station_id=str(station_id))
