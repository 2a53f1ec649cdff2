"""
Section add rules.

Each rule recognises one topological case for grafting a new section onto a
non-empty chain and knows how to apply it. Sections.insert evaluates the
rules in order and applies the first one whose predicate holds, so new graft
cases can be added by extending the rule sequence.

Rules work on a list owned by the caller. They validate before mutating, so a
raised error leaves the list untouched.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from subway.domain.chain import collect_station_ids, find_bottom_station, find_top_station
from subway.domain.errors import SectionLengthError
from subway.domain.section import Section


class SectionAddRule(ABC):
    """Strategy for one way of adding a section to a chain."""

    @abstractmethod
    def is_satisfied_by(self, sections: Sequence[Section], candidate: Section) -> bool:
        """Return True when this rule applies to the candidate."""

    @abstractmethod
    def execute(self, sections: list[Section], candidate: Section) -> None:
        """Graft the candidate onto the chain in place."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class TopStationExtension(SectionAddRule):
    """Candidate ends at the current top station and starts at a new station."""

    def is_satisfied_by(self, sections: Sequence[Section], candidate: Section) -> bool:
        top_station = find_top_station(sections)
        return (
            top_station is not None
            and candidate.down_station == top_station
            and candidate.up_station_id not in collect_station_ids(sections)
        )

    def execute(self, sections: list[Section], candidate: Section) -> None:
        sections.insert(0, candidate)


class BottomStationExtension(SectionAddRule):
    """Candidate starts at the current bottom station and ends at a new station."""

    def is_satisfied_by(self, sections: Sequence[Section], candidate: Section) -> bool:
        bottom_station = find_bottom_station(sections)
        return (
            bottom_station is not None
            and candidate.up_station == bottom_station
            and candidate.down_station_id not in collect_station_ids(sections)
        )

    def execute(self, sections: list[Section], candidate: Section) -> None:
        sections.append(candidate)


class _SplitRule(SectionAddRule):
    """Shared behaviour for rules that split an existing section in two."""

    def is_satisfied_by(self, sections: Sequence[Section], candidate: Section) -> bool:
        return self._find_split_target(sections, candidate) is not None

    def execute(self, sections: list[Section], candidate: Section) -> None:
        existing = self._find_split_target(sections, candidate)
        if existing is None:
            msg = f"{self!r} executed for a candidate it does not match"
            raise RuntimeError(msg)
        if existing.distance <= candidate.distance:
            raise SectionLengthError(existing.distance, candidate.distance)

        index = sections.index(existing)
        sections[index : index + 1] = self._split(existing, candidate)

    @abstractmethod
    def _find_split_target(self, sections: Sequence[Section], candidate: Section) -> Section | None:
        """Return the section the candidate would split, if any."""

    @abstractmethod
    def _split(self, existing: Section, candidate: Section) -> list[Section]:
        """Return the two sections replacing existing, in chain order."""


class UpStationExists(_SplitRule):
    """Candidate starts at a station that already has an outgoing section."""

    def _find_split_target(self, sections: Sequence[Section], candidate: Section) -> Section | None:
        return next((section for section in sections if section.has_same_up_station(candidate)), None)

    def _split(self, existing: Section, candidate: Section) -> list[Section]:
        remainder = existing.shortened(up_station=candidate.down_station, by=candidate.distance)
        return [candidate, remainder]


class DownStationExists(_SplitRule):
    """Candidate ends at a station that already has an incoming section."""

    def _find_split_target(self, sections: Sequence[Section], candidate: Section) -> Section | None:
        return next((section for section in sections if section.has_same_down_station(candidate)), None)

    def _split(self, existing: Section, candidate: Section) -> list[Section]:
        remainder = existing.shortened(down_station=candidate.up_station, by=candidate.distance)
        return [remainder, candidate]


DEFAULT_SECTION_ADD_RULES: tuple[SectionAddRule, ...] = (
    TopStationExtension(),
    BottomStationExtension(),
    UpStationExists(),
    DownStationExists(),
)
