"""Domain exceptions raised by the section chain."""


class SectionError(Exception):
    """Base exception for section chain errors."""

    pass


class InvalidSectionError(SectionError):
    """Raised when a section is constructed with an invalid distance or endpoints."""

    pass


class SectionInsertionError(SectionError):
    """
    Raised when a candidate section cannot be grafted onto the chain.

    Either neither endpoint of the candidate is on the chain, or both already
    are (which would close a cycle or duplicate an existing path).
    """

    pass


class SectionLengthError(SectionError):
    """Raised when a split candidate is not strictly shorter than the section it splits."""

    def __init__(self, existing_distance: int, candidate_distance: int) -> None:
        self.existing_distance = existing_distance
        self.candidate_distance = candidate_distance
        super().__init__(
            f"New section distance ({candidate_distance}) must be shorter than "
            f"the existing section distance ({existing_distance})."
        )


class ChainNotFoundError(SectionError):
    """Raised when a station is removed from a line that has fewer than two sections."""

    def __init__(self) -> None:
        super().__init__("The line has no removable sections.")


class StationNotInChainError(SectionError):
    """Raised when the station to remove is not on the line."""

    def __init__(self, station_id: object) -> None:
        self.station_id = station_id
        super().__init__(f"Station '{station_id}' is not on this line.")


class BrokenChainError(SectionError):
    """Raised when stored sections do not form one path from a single top station."""

    def __init__(self, total: int, reachable: int) -> None:
        self.total = total
        self.reachable = reachable
        super().__init__(f"Only {reachable} of {total} sections form a connected line.")
