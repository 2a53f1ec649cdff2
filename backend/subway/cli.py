#!/usr/bin/env python3
"""CLI tool for inspecting and editing lines.

Usage:
    # List all lines
    python -m subway.cli list-lines

    # Show a line's stations from top to bottom
    python -m subway.cli show-line <line-id>

    # Add a section to a line
    python -m subway.cli add-section <line-id> <up-station-id> <down-station-id> <distance>

    # Remove a station from a line
    python -m subway.cli remove-station <line-id> <station-id>
"""

import argparse
import asyncio
import sys
import uuid

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import session_scope
from subway.domain import SectionError, Sections
from subway.models.subway import Line
from subway.schemas.lines import SectionRequest
from subway.services.line_service import LineService


def _print_line(line: Line, sections: Sections) -> None:
    print(f"{line.name} ({line.color})  id={line.id}")
    stations = sections.get_sorted_stations()
    if not stations:
        print("   (no sections)")
        return
    print(f"   {stations[0].name}")
    for section in sections:
        print(f"     | {section.distance}")
        print(f"   {section.down_station.name}")
    print(f"   total distance: {sections.total_distance}")


async def cmd_list_lines(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    List all lines.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (0 for success)
    """
    lines = await LineService(session).list_lines()
    if not lines:
        print("No lines found.")
        return 0

    print(f"Found {len(lines)} line(s):")
    for line in lines:
        print(f"   {line.id}  {line.name} ({line.color})")
    return 0


async def cmd_show_line(args: argparse.Namespace, session: AsyncSession) -> int:
    """Show a line with its stations in travel order."""
    line, sections = await LineService(session).get_line_with_sections(args.line_id)
    _print_line(line, sections)
    return 0


async def cmd_add_section(args: argparse.Namespace, session: AsyncSession) -> int:
    """Add a section to a line and print the resulting line."""
    request = SectionRequest(
        up_station_id=args.up_station_id,
        down_station_id=args.down_station_id,
        distance=args.distance,
    )
    line, sections = await LineService(session).add_section(args.line_id, request)
    print("Section added.")
    _print_line(line, sections)
    return 0


async def cmd_remove_station(args: argparse.Namespace, session: AsyncSession) -> int:
    """Remove a station from a line and print the resulting line."""
    line, sections = await LineService(session).remove_station(args.line_id, args.station_id)
    print("Station removed.")
    _print_line(line, sections)
    return 0


COMMAND_HANDLERS = {
    "list-lines": cmd_list_lines,
    "show-line": cmd_show_line,
    "add-section": cmd_add_section,
    "remove-station": cmd_remove_station,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        description="Subway line management CLI tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("list-lines", help="List all lines")

    show_line_parser = subparsers.add_parser("show-line", help="Show a line's stations in order")
    show_line_parser.add_argument("line_id", type=uuid.UUID, help="Line UUID")

    add_section_parser = subparsers.add_parser(
        "add-section",
        help="Add a section to a line",
        description="Extend the line at an endpoint or split an existing section.",
    )
    add_section_parser.add_argument("line_id", type=uuid.UUID, help="Line UUID")
    add_section_parser.add_argument("up_station_id", type=uuid.UUID, help="Up-station UUID")
    add_section_parser.add_argument("down_station_id", type=uuid.UUID, help="Down-station UUID")
    add_section_parser.add_argument("distance", type=int, help="Section distance (positive integer)")

    remove_station_parser = subparsers.add_parser(
        "remove-station",
        help="Remove a station from a line",
        description="Remove a station; its neighbouring sections are merged.",
    )
    remove_station_parser.add_argument("line_id", type=uuid.UUID, help="Line UUID")
    remove_station_parser.add_argument("station_id", type=uuid.UUID, help="Station UUID")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI tool.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    handler = COMMAND_HANDLERS[args.command]

    async def run_with_session() -> int:
        async with session_scope() as session:
            try:
                return await handler(args, session)
            except HTTPException as e:
                print(f"Error: {e.detail}", file=sys.stderr)
                return 1
            except SectionError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1

    return asyncio.run(run_with_session())


if __name__ == "__main__":
    sys.exit(main())
