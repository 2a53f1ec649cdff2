"""
Sections: the chain of sections making up one line.

A Sections value holds the sections of a single line whose up→down edges form
one simple path. Structural changes never mutate the receiver: insert and
delete_station work on a copy and return a new Sections, so a failed
operation leaves the original chain exactly as it was.
"""

from collections.abc import Iterable, Iterator, Sequence

import structlog

from subway.domain.chain import (
    collect_station_ids,
    find_bottom_station,
    find_top_station,
    order_sections,
    sorted_stations,
)
from subway.domain.errors import (
    BrokenChainError,
    ChainNotFoundError,
    SectionInsertionError,
    StationNotInChainError,
)
from subway.domain.rules import DEFAULT_SECTION_ADD_RULES, SectionAddRule
from subway.domain.section import Section
from subway.domain.station import Station

logger = structlog.get_logger(__name__)

# A line needs at least this many sections before one of its stations can be removed
MIN_SECTIONS_FOR_REMOVAL = 2


class Sections:
    """Ordered chain of sections for one line."""

    def __init__(
        self,
        sections: Iterable[Section] = (),
        *,
        rules: Sequence[SectionAddRule] = DEFAULT_SECTION_ADD_RULES,
    ) -> None:
        """
        Build a chain from the sections of one line.

        Args:
            sections: Sections of one line, in any order
            rules: Ordered add rules; the first matching rule handles an insert

        Raises:
            BrokenChainError: If some sections are not on the path from the top station
        """
        given = list(sections)
        ordered = order_sections(given)
        if len(ordered) != len(given):
            raise BrokenChainError(total=len(given), reachable=len(ordered))
        self._sections: tuple[Section, ...] = tuple(ordered)
        self._rules = tuple(rules)

    @classmethod
    def from_sections(cls, sections: Iterable[Section]) -> "Sections":
        """Build a chain from persisted sections."""
        return cls(sections)

    @property
    def sections(self) -> tuple[Section, ...]:
        """Sections from the top endpoint to the bottom endpoint."""
        return self._sections

    @property
    def top_station(self) -> Station | None:
        return find_top_station(self._sections)

    @property
    def bottom_station(self) -> Station | None:
        return find_bottom_station(self._sections)

    @property
    def total_distance(self) -> int:
        return sum(section.distance for section in self._sections)

    def is_empty(self) -> bool:
        return not self._sections

    def contains_station(self, station: Station) -> bool:
        return station.id in collect_station_ids(self._sections)

    def get_sorted_stations(self) -> list[Station]:
        """
        List the stations from the top endpoint to the bottom endpoint.

        Returns an empty list for an empty chain. Calling it repeatedly
        without an intervening change returns the same order.
        """
        return sorted_stations(self._sections)

    def insert(self, candidate: Section) -> "Sections":
        """
        Add a section to the chain.

        An empty chain accepts any section. Otherwise the first add rule whose
        predicate holds grafts the candidate.

        Args:
            candidate: Section to add

        Returns:
            A new Sections holding the resulting chain

        Raises:
            SectionInsertionError: If both or neither of the candidate's
                stations are already on the chain
            SectionLengthError: If a split candidate is not strictly shorter
                than the section it splits
        """
        if self.is_empty():
            logger.debug("section_chain_bootstrapped", line_id=candidate.line_id)
            return self._with_sections([candidate])

        station_ids = collect_station_ids(self._sections)
        up_known = candidate.up_station_id in station_ids
        down_known = candidate.down_station_id in station_ids
        if up_known and down_known:
            msg = f"Both '{candidate.up_station}' and '{candidate.down_station}' are already on this line."
            raise SectionInsertionError(msg)

        working = list(self._sections)
        for rule in self._rules:
            if rule.is_satisfied_by(working, candidate):
                rule.execute(working, candidate)
                logger.debug(
                    "section_add_rule_applied",
                    rule=type(rule).__name__,
                    line_id=candidate.line_id,
                    up_station_id=candidate.up_station_id,
                    down_station_id=candidate.down_station_id,
                )
                return self._with_sections(working)

        msg = f"Neither '{candidate.up_station}' nor '{candidate.down_station}' is on this line."
        raise SectionInsertionError(msg)

    def delete_station(self, station: Station) -> "Sections":
        """
        Remove a station from the chain.

        An endpoint loses its single section. An interior station's two
        sections are merged into one whose distance is their sum; the merged
        section has no id and receives a fresh one when persisted.

        Args:
            station: Station to remove

        Returns:
            A new Sections holding the resulting chain

        Raises:
            ChainNotFoundError: If the chain has fewer than two sections
            StationNotInChainError: If the station is not on the chain
        """
        if len(self._sections) < MIN_SECTIONS_FOR_REMOVAL:
            raise ChainNotFoundError

        # Ordered chain: an interior station touches its incoming section first
        touching = [section for section in self._sections if section.has_station(station)]
        if not touching:
            raise StationNotInChainError(station.id)

        remaining = [section for section in self._sections if not section.has_station(station)]
        if len(touching) == 2:
            incoming, outgoing = touching
            remaining.append(
                Section(
                    id=None,
                    line_id=incoming.line_id,
                    up_station=incoming.up_station,
                    down_station=outgoing.down_station,
                    distance=incoming.distance + outgoing.distance,
                )
            )
        return self._with_sections(remaining)

    def _with_sections(self, sections: Iterable[Section]) -> "Sections":
        return Sections(sections, rules=self._rules)

    def __iter__(self) -> Iterator[Section]:
        return iter(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sections):
            return NotImplemented
        return self._sections == other._sections

    def __hash__(self) -> int:
        return hash(self._sections)

    def __repr__(self) -> str:
        path = " -> ".join(str(station) for station in self.get_sorted_stations())
        return f"<Sections({path})>"
