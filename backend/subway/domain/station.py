"""Station identity value used by the section chain."""

from collections.abc import Hashable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Station:
    """
    A station as seen by the chain: an opaque identifier plus a display name.

    Equality and hashing use the identifier only, so two values loaded from
    different queries compare equal when they refer to the same station.
    """

    id: Hashable
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.name or str(self.id)
