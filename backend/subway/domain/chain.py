"""
Pure helpers for walking a chain of sections.

These functions take any sequence of sections that forms a single simple
path (or is empty) and never mutate it. They are shared by Sections and the
section add rules.
"""

from collections.abc import Hashable, Sequence

from subway.domain.section import Section
from subway.domain.station import Station


def build_down_map(sections: Sequence[Section]) -> dict[Hashable, Section]:
    """Map each up-station id to the section leaving it."""
    return {section.up_station_id: section for section in sections}


def find_top_station(sections: Sequence[Section]) -> Station | None:
    """
    Find the station with no incoming section.

    Returns:
        The top endpoint, or None for an empty chain

    Examples:
        >>> a, b, c = Station(1, "A"), Station(2, "B"), Station(3, "C")
        >>> find_top_station([Section(2, 1, b, c, 5), Section(1, 1, a, b, 5)])
        Station(id=1, name='A')
    """
    down_station_ids = {section.down_station_id for section in sections}
    for section in sections:
        if section.up_station_id not in down_station_ids:
            return section.up_station
    return None


def find_bottom_station(sections: Sequence[Section]) -> Station | None:
    """Find the station with no outgoing section, or None for an empty chain."""
    up_station_ids = {section.up_station_id for section in sections}
    for section in sections:
        if section.down_station_id not in up_station_ids:
            return section.down_station
    return None


def collect_station_ids(sections: Sequence[Section]) -> set[Hashable]:
    """Return the ids of every station touched by the chain."""
    station_ids: set[Hashable] = set()
    for section in sections:
        station_ids.add(section.up_station_id)
        station_ids.add(section.down_station_id)
    return station_ids


def order_sections(sections: Sequence[Section]) -> list[Section]:
    """
    Order sections from the top endpoint to the bottom endpoint.

    Follows the up→down map starting at the top station. The walk stops after
    len(sections) steps so a malformed (cyclic) input cannot loop forever.
    """
    top_station = find_top_station(sections)
    if top_station is None:
        return []

    down_map = build_down_map(sections)
    ordered: list[Section] = []
    current_id = top_station.id
    while (section := down_map.get(current_id)) is not None and len(ordered) < len(sections):
        ordered.append(section)
        current_id = section.down_station_id
    return ordered


def sorted_stations(sections: Sequence[Section]) -> list[Station]:
    """List stations from the top endpoint to the bottom endpoint."""
    ordered = order_sections(sections)
    if not ordered:
        return []
    return [ordered[0].up_station, *(section.down_station for section in ordered)]
