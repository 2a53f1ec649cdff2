"""Section chain domain: stations, sections and the rules for changing a line."""

from subway.domain.errors import (
    BrokenChainError,
    ChainNotFoundError,
    InvalidSectionError,
    SectionError,
    SectionInsertionError,
    SectionLengthError,
    StationNotInChainError,
)
from subway.domain.rules import (
    DEFAULT_SECTION_ADD_RULES,
    BottomStationExtension,
    DownStationExists,
    SectionAddRule,
    TopStationExtension,
    UpStationExists,
)
from subway.domain.section import Section
from subway.domain.sections import Sections
from subway.domain.station import Station

__all__ = [
    # Values
    "Station",
    "Section",
    "Sections",
    # Add rules
    "SectionAddRule",
    "TopStationExtension",
    "BottomStationExtension",
    "UpStationExists",
    "DownStationExists",
    "DEFAULT_SECTION_ADD_RULES",
    # Errors
    "SectionError",
    "InvalidSectionError",
    "SectionInsertionError",
    "SectionLengthError",
    "BrokenChainError",
    "ChainNotFoundError",
    "StationNotInChainError",
]
