"""Tests for the line and section API endpoints."""

import uuid
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException, status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from subway.api.lines import build_line_response
from subway.domain import (
    ChainNotFoundError,
    Section,
    SectionInsertionError,
    SectionLengthError,
    Sections,
    Station,
    StationNotInChainError,
)
from subway.models.subway import Line

PREFIX = "/api/v1/lines"
LINE_ID = uuid.uuid4()

GANGNAM = Station(uuid.uuid4(), "Gangnam")
YEOKSAM = Station(uuid.uuid4(), "Yeoksam")
SEOLLEUNG = Station(uuid.uuid4(), "Seolleung")


@pytest.fixture
def line() -> Line:
    return Line(id=LINE_ID, name="Line 2", color="bg-green-600")


@pytest.fixture
def chain() -> Sections:
    return Sections(
        [
            Section(uuid.uuid4(), LINE_ID, YEOKSAM, SEOLLEUNG, 5),
            Section(uuid.uuid4(), LINE_ID, GANGNAM, YEOKSAM, 10),
        ]
    )


@pytest.fixture
def line_service(line: Line, chain: Sections) -> Generator[MagicMock]:
    """Replace LineService in the lines router with a mock instance."""
    service = MagicMock()
    service.create_line = AsyncMock(return_value=(line, chain))
    service.list_lines = AsyncMock(return_value=[line])
    service.get_line_with_sections = AsyncMock(return_value=(line, chain))
    service.update_line = AsyncMock(return_value=line)
    service.delete_line = AsyncMock(return_value=None)
    service.add_section = AsyncMock(return_value=(line, chain))
    service.remove_station = AsyncMock(return_value=(line, chain))
    with patch("subway.api.lines.LineService", return_value=service):
        yield service


def section_body(up: Station, down: Station, distance: int) -> dict[str, object]:
    return {"up_station_id": str(up.id), "down_station_id": str(down.id), "distance": distance}


class TestBuildLineResponse:
    def test_stations_are_in_travel_order(self, line: Line, chain: Sections) -> None:
        response = build_line_response(line, chain)

        assert [station.name for station in response.stations] == ["Gangnam", "Yeoksam", "Seolleung"]
        assert [section.distance for section in response.sections] == [10, 5]
        assert response.total_distance == 15

    def test_line_without_sections(self, line: Line) -> None:
        response = build_line_response(line, Sections())

        assert response.stations == []
        assert response.total_distance == 0


class TestLineEndpoints:
    def test_create_line(self, client: TestClient, line_service: MagicMock) -> None:
        body = {"name": "Line 2", "color": "bg-green-600", **section_body(GANGNAM, YEOKSAM, 10)}

        response = client.post(PREFIX, json=body)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.headers["location"] == f"/lines/{LINE_ID}"
        data = response.json()
        assert data["name"] == "Line 2"
        assert [station["name"] for station in data["stations"]] == ["Gangnam", "Yeoksam", "Seolleung"]
        line_service.create_line.assert_awaited_once()

    def test_create_line_rejects_same_station(self, client: TestClient, line_service: MagicMock) -> None:
        body = {"name": "Line 2", "color": "bg-green-600", **section_body(GANGNAM, GANGNAM, 10)}

        response = client.post(PREFIX, json=body)

        assert response.status_code == 422
        line_service.create_line.assert_not_awaited()

    def test_create_line_duplicate_name(self, client: TestClient, line_service: MagicMock) -> None:
        line_service.create_line.side_effect = HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Line with the same name already exists."
        )
        body = {"name": "Line 2", "color": "bg-green-600", **section_body(GANGNAM, YEOKSAM, 10)}

        response = client.post(PREFIX, json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_lines(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.get(PREFIX)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == [{"id": str(LINE_ID), "name": "Line 2", "color": "bg-green-600"}]

    def test_get_line(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.get(f"{PREFIX}/{LINE_ID}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_distance"] == 15
        line_service.get_line_with_sections.assert_awaited_once_with(LINE_ID)

    def test_get_missing_line(self, client: TestClient, line_service: MagicMock) -> None:
        line_service.get_line_with_sections.side_effect = HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Line not found."
        )

        response = client.get(f"{PREFIX}/{uuid.uuid4()}")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Line not found."

    def test_get_line_invalid_id(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.get(f"{PREFIX}/not-a-uuid")

        assert response.status_code == 422

    def test_update_line(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.put(f"{PREFIX}/{LINE_ID}", json={"color": "bg-green-600"})

        assert response.status_code == status.HTTP_200_OK
        line_service.update_line.assert_awaited_once()

    def test_delete_line(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.delete(f"{PREFIX}/{LINE_ID}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        line_service.delete_line.assert_awaited_once_with(LINE_ID)


class TestSectionEndpoints:
    def test_add_section(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.post(f"{PREFIX}/{LINE_ID}/sections", json=section_body(YEOKSAM, SEOLLEUNG, 5))

        assert response.status_code == status.HTTP_201_CREATED
        request = line_service.add_section.await_args.args[1]
        assert request.up_station_id == YEOKSAM.id
        assert request.distance == 5

    def test_add_section_rejects_non_positive_distance(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.post(f"{PREFIX}/{LINE_ID}/sections", json=section_body(YEOKSAM, SEOLLEUNG, 0))

        assert response.status_code == 422
        line_service.add_section.assert_not_awaited()

    @pytest.mark.parametrize(
        "error",
        [
            SectionInsertionError("Section does not connect to the line."),
            SectionLengthError(existing_distance=10, candidate_distance=10),
        ],
    )
    def test_add_section_chain_errors_are_400(
        self, client: TestClient, line_service: MagicMock, error: Exception
    ) -> None:
        line_service.add_section.side_effect = error

        response = client.post(f"{PREFIX}/{LINE_ID}/sections", json=section_body(YEOKSAM, SEOLLEUNG, 5))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"detail": str(error)}

    def test_remove_station(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.delete(f"{PREFIX}/{LINE_ID}/sections", params={"station_id": str(YEOKSAM.id)})

        assert response.status_code == status.HTTP_204_NO_CONTENT
        line_service.remove_station.assert_awaited_once_with(LINE_ID, YEOKSAM.id)

    def test_remove_station_requires_station_id(self, client: TestClient, line_service: MagicMock) -> None:
        response = client.delete(f"{PREFIX}/{LINE_ID}/sections")

        assert response.status_code == 422

    @pytest.mark.parametrize("error", [ChainNotFoundError(), StationNotInChainError(uuid.uuid4())])
    def test_remove_station_chain_errors_are_400(
        self, client: TestClient, line_service: MagicMock, error: Exception
    ) -> None:
        line_service.remove_station.side_effect = error

        response = client.delete(f"{PREFIX}/{LINE_ID}/sections", params={"station_id": str(YEOKSAM.id)})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_database_error_is_400(self, client: TestClient, line_service: MagicMock) -> None:
        line_service.remove_station.side_effect = OperationalError("DELETE", {}, Exception("connection lost"))

        response = client.delete(f"{PREFIX}/{LINE_ID}/sections", params={"station_id": str(YEOKSAM.id)})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"detail": "Database error."}
