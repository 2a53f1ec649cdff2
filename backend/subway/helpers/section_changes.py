"""
Helpers for turning two chain states into a persistence delta.

These pure functions let the line service persist only what an insert or a
station removal changed, without any database access in the comparison
itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from subway.domain import Section, Sections


@dataclass(frozen=True)
class SectionChanges:
    """Rows to insert, update and delete after a chain operation."""

    added: list[Section] = field(default_factory=list)
    updated: list[Section] = field(default_factory=list)
    removed: list[Section] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.removed)


def diff_sections(before: Sections, after: Sections) -> SectionChanges:
    """
    Compare two chain states of the same line.

    A section present in both states with the same id but different values is
    reported as updated (for example the shortened remainder of a split).
    Sections without an id, or whose id is absent from ``before``, are added.
    Sections whose id is absent from ``after`` are removed.

    Args:
        before: Chain loaded from storage
        after: Chain returned by Sections.insert or Sections.delete_station

    Returns:
        SectionChanges describing the delta

    Examples:
        >>> from subway.domain import Station
        >>> a, b, c = Station(1, "A"), Station(2, "B"), Station(3, "C")
        >>> before = Sections([Section(10, 1, a, c, 7)])
        >>> after = before.insert(Section(None, 1, a, b, 3))
        >>> changes = diff_sections(before, after)
        >>> [s.distance for s in changes.added], [s.distance for s in changes.updated]
        ([3], [4])
    """
    before_by_id = {section.id: section for section in before if section.id is not None}
    after_ids = {section.id for section in after if section.id is not None}

    added: list[Section] = []
    updated: list[Section] = []
    for section in after:
        if section.id is None or section.id not in before_by_id:
            added.append(section)
        elif before_by_id[section.id] != section:
            updated.append(section)

    removed = [section for section_id, section in before_by_id.items() if section_id not in after_ids]
    return SectionChanges(added=added, updated=updated, removed=removed)
