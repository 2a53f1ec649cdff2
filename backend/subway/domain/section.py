"""Section value: a directed, weighted edge between two adjacent stations."""

from collections.abc import Hashable
from dataclasses import dataclass, replace

from subway.domain.errors import InvalidSectionError
from subway.domain.station import Station


@dataclass(frozen=True)
class Section:
    """
    Immutable edge from an up-station to a down-station on one line.

    Args:
        id: Persisted identifier, or None for a section not stored yet
        line_id: Identifier of the owning line
        up_station: Chain predecessor
        down_station: Chain successor
        distance: Positive integer length

    Raises:
        InvalidSectionError: If distance is not a positive integer or both
            endpoints are the same station
    """

    id: Hashable | None
    line_id: Hashable
    up_station: Station
    down_station: Station
    distance: int

    def __post_init__(self) -> None:
        if isinstance(self.distance, bool) or not isinstance(self.distance, int):
            msg = f"Section distance must be an integer, got {self.distance!r}."
            raise InvalidSectionError(msg)
        if self.distance <= 0:
            msg = f"Section distance must be positive, got {self.distance}."
            raise InvalidSectionError(msg)
        if self.up_station == self.down_station:
            msg = f"Section endpoints must differ, got '{self.up_station}' twice."
            raise InvalidSectionError(msg)

    @property
    def up_station_id(self) -> Hashable:
        return self.up_station.id

    @property
    def down_station_id(self) -> Hashable:
        return self.down_station.id

    def has_same_up_station(self, other: "Section") -> bool:
        """Check whether both sections start at the same station."""
        return self.up_station_id == other.up_station_id

    def has_same_down_station(self, other: "Section") -> bool:
        """Check whether both sections end at the same station."""
        return self.down_station_id == other.down_station_id

    def has_station(self, station: Station) -> bool:
        return station in (self.up_station, self.down_station)

    def shortened(
        self,
        *,
        up_station: Station | None = None,
        down_station: Station | None = None,
        by: int,
    ) -> "Section":
        """
        Return a copy of this section with one endpoint moved and the distance reduced.

        The copy keeps the id and line so that persistence updates the stored row.
        """
        return replace(
            self,
            up_station=up_station or self.up_station,
            down_station=down_station or self.down_station,
            distance=self.distance - by,
        )
