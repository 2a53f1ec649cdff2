"""Line management service.

Loads a line's sections into a Sections chain, lets the chain decide how an
insert or a station removal changes the line, and persists the resulting
delta. Structural changes lock the line row for the duration of the
transaction so concurrent requests on the same line are applied one at a time.
"""

import uuid

import structlog
from fastapi import HTTPException, status
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subway.core.telemetry import service_span
from subway.domain import Section as SectionValue
from subway.domain import Sections
from subway.helpers.section_changes import SectionChanges, diff_sections
from subway.models.subway import Line, Section, Station
from subway.schemas.lines import CreateLineRequest, SectionRequest, UpdateLineRequest

logger = structlog.get_logger(__name__)


class LineService:
    """Service for managing lines and their sections."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the line service.

        Args:
            db: Database session
        """
        self.db = db

    # ==================== Line Operations ====================

    async def get_line(self, line_id: uuid.UUID, *, for_update: bool = False) -> Line:
        """
        Get a line by ID.

        Args:
            line_id: Line UUID
            for_update: Lock the line row until the transaction ends

        Raises:
            HTTPException: 404 if the line does not exist
        """
        query = select(Line).where(Line.id == line_id)
        if for_update:
            query = query.with_for_update()

        result = await self.db.execute(query)
        if not (line := result.scalar_one_or_none()):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Line not found.",
            )
        return line

    async def list_lines(self) -> list[Line]:
        """List all lines ordered by name."""
        result = await self.db.execute(select(Line).order_by(Line.name))
        return list(result.scalars().all())

    async def get_line_with_sections(self, line_id: uuid.UUID) -> tuple[Line, Sections]:
        """Get a line together with its section chain."""
        line = await self.get_line(line_id)
        return line, await self.load_sections(line_id)

    async def create_line(self, request: CreateLineRequest) -> tuple[Line, Sections]:
        """
        Create a line with its first section.

        Args:
            request: Line creation request

        Returns:
            Tuple of (created line, its section chain)

        Raises:
            HTTPException: 404 if a station does not exist, 400 if the name is taken
        """
        with service_span("line.create", "line-service", line_name=request.name):
            up_station = await self._get_station(request.up_station_id)
            down_station = await self._get_station(request.down_station_id)

            line = Line(id=uuid.uuid4(), name=request.name, color=request.color)
            self.db.add(line)

            first_section = SectionValue(
                id=None,
                line_id=line.id,
                up_station=up_station.to_value(),
                down_station=down_station.to_value(),
                distance=request.distance,
            )
            sections = Sections().insert(first_section)

            # The section insert flushes the line row, so the unique-name check can fire there
            try:
                await self._apply_changes(line.id, diff_sections(Sections(), sections))
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                logger.info("line_name_conflict", name=request.name)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Line with the same name already exists.",
                ) from e

            logger.info("line_created", line_id=str(line.id), name=line.name)
            return line, await self.load_sections(line.id)

    async def update_line(self, line_id: uuid.UUID, request: UpdateLineRequest) -> Line:
        """
        Update line metadata.

        Raises:
            HTTPException: 404 if the line does not exist, 400 if the new name is taken
        """
        line = await self.get_line(line_id)

        if request.name is not None:
            line.name = request.name
        if request.color is not None:
            line.color = request.color

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Line with the same name already exists.",
            ) from e

        await self.db.refresh(line)
        return line

    async def delete_line(self, line_id: uuid.UUID) -> None:
        """
        Delete a line (and all its sections via CASCADE).

        Raises:
            HTTPException: 404 if the line does not exist
        """
        line = await self.get_line(line_id)

        await self.db.delete(line)
        await self.db.commit()
        logger.info("line_deleted", line_id=str(line_id))

    # ==================== Section Operations ====================

    async def load_sections(self, line_id: uuid.UUID) -> Sections:
        """Load a line's sections as a chain."""
        result = await self.db.execute(
            select(Section)
            .where(Section.line_id == line_id)
            .options(
                selectinload(Section.up_station),
                selectinload(Section.down_station),
            )
            # Rows changed by a bulk UPDATE keep stale station relationships otherwise
            .execution_options(populate_existing=True)
        )
        return Sections.from_sections(section.to_value() for section in result.scalars().all())

    async def add_section(self, line_id: uuid.UUID, request: SectionRequest) -> tuple[Line, Sections]:
        """
        Add a section to a line.

        Args:
            line_id: Line UUID
            request: Section to add

        Returns:
            Tuple of (line, updated section chain)

        Raises:
            HTTPException: 404 if the line or a station does not exist
            SectionInsertionError: If the section cannot be attached to the line
            SectionLengthError: If the section is too long to split an existing one
        """
        with service_span("line.add_section", "line-service", line_id=str(line_id)) as span:
            line = await self.get_line(line_id, for_update=True)
            before = await self.load_sections(line_id)

            up_station = await self._get_station(request.up_station_id)
            down_station = await self._get_station(request.down_station_id)
            candidate = SectionValue(
                id=None,
                line_id=line_id,
                up_station=up_station.to_value(),
                down_station=down_station.to_value(),
                distance=request.distance,
            )

            after = before.insert(candidate)
            changes = diff_sections(before, after)
            await self._apply_changes(line_id, changes)
            await self.db.commit()

            span.set_attribute("line.section_count", len(after))
            logger.info(
                "section_added",
                line_id=str(line_id),
                up_station_id=str(request.up_station_id),
                down_station_id=str(request.down_station_id),
                distance=request.distance,
                updated_sections=len(changes.updated),
            )
            return line, await self.load_sections(line_id)

    async def remove_station(self, line_id: uuid.UUID, station_id: uuid.UUID) -> tuple[Line, Sections]:
        """
        Remove a station from a line, merging its neighbouring sections.

        Args:
            line_id: Line UUID
            station_id: Station UUID

        Returns:
            Tuple of (line, updated section chain)

        Raises:
            HTTPException: 404 if the line or station does not exist
            ChainNotFoundError: If the line has fewer than two sections
            StationNotInChainError: If the station is not on the line
        """
        with service_span("line.remove_station", "line-service", line_id=str(line_id)) as span:
            line = await self.get_line(line_id, for_update=True)
            before = await self.load_sections(line_id)
            station = await self._get_station(station_id)

            after = before.delete_station(station.to_value())
            changes = diff_sections(before, after)
            await self._apply_changes(line_id, changes)
            await self.db.commit()

            span.set_attribute("line.section_count", len(after))
            logger.info(
                "station_removed_from_line",
                line_id=str(line_id),
                station_id=str(station_id),
                merged=bool(changes.added),
            )
            return line, await self.load_sections(line_id)

    # ==================== Helpers ====================

    async def _get_station(self, station_id: uuid.UUID) -> Station:
        if not (station := await self.db.get(Station, station_id)):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Station {station_id} not found.",
            )
        return station

    async def _apply_changes(self, line_id: uuid.UUID, changes: SectionChanges) -> None:
        """Write a chain delta: delete removed rows, update shortened rows, insert new rows."""
        if changes.removed:
            await self.db.execute(
                delete(Section).where(
                    Section.line_id == line_id,
                    Section.id.in_([section.id for section in changes.removed]),
                )
            )

        for section in changes.updated:
            await self.db.execute(
                update(Section)
                .where(Section.id == section.id)
                .values(
                    up_station_id=section.up_station_id,
                    down_station_id=section.down_station_id,
                    distance=section.distance,
                )
            )

        for section in changes.added:
            self.db.add(
                Section(
                    line_id=line_id,
                    up_station_id=section.up_station_id,
                    down_station_id=section.down_station_id,
                    distance=section.distance,
                )
            )

        await self.db.flush()
