"""Subway network models: stations, lines and the sections joining them."""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subway.domain import Section as SectionValue
from subway.domain import Station as StationValue
from subway.models.base import BaseModel


class Station(BaseModel):
    """A station that can appear on any number of lines."""

    __tablename__ = "stations"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    def to_value(self) -> StationValue:
        """Convert to the identity value used by the section chain."""
        return StationValue(id=self.id, name=self.name)

    def __repr__(self) -> str:
        """String representation of the station."""
        return f"<Station(id={self.id}, name={self.name})>"


class Line(BaseModel):
    """A subway line; its route is stored as sections."""

    __tablename__ = "lines"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    color: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Relationships
    sections: Mapped[list["Section"]] = relationship(
        back_populates="line",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        """String representation of the line."""
        return f"<Line(id={self.id}, name={self.name})>"


class Section(BaseModel):
    """Directed, weighted edge between two adjacent stations of a line."""

    __tablename__ = "sections"

    line_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("lines.id", ondelete="CASCADE"),
        nullable=False,
    )
    up_station_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    down_station_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    distance: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Relationships
    line: Mapped[Line] = relationship(back_populates="sections")
    up_station: Mapped[Station] = relationship(foreign_keys=[up_station_id])
    down_station: Mapped[Station] = relationship(foreign_keys=[down_station_id])

    __table_args__ = (
        CheckConstraint("distance > 0", name="ck_sections_distance_positive"),
        CheckConstraint("up_station_id <> down_station_id", name="ck_sections_distinct_stations"),
        Index("ix_sections_line_id", "line_id"),
        Index("ix_sections_up_station_id", "up_station_id"),
        Index("ix_sections_down_station_id", "down_station_id"),
    )

    def to_value(self) -> SectionValue:
        """Convert to a chain section; requires up_station and down_station to be loaded."""
        return SectionValue(
            id=self.id,
            line_id=self.line_id,
            up_station=self.up_station.to_value(),
            down_station=self.down_station.to_value(),
            distance=self.distance,
        )

    def __repr__(self) -> str:
        """String representation of the section."""
        return (
            f"<Section(id={self.id}, line_id={self.line_id}, "
            f"up={self.up_station_id}, down={self.down_station_id}, distance={self.distance})>"
        )
