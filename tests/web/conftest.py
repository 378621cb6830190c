"""Shared fixtures for web tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from race_replay.feeds.openf1 import SessionData
from race_replay.web.app import app, get_service
from race_replay.web.service import ReplayService


def make_session_data(session_key: int = 9159) -> SessionData:
    """Two cars swapping places, one lap and two race-control messages."""
    return SessionData(
        session_key=session_key,
        drivers=[
            {"driver_number": 1, "name_acronym": "VER", "team_name": "Red Bull Racing", "team_colour": "3671C6"},
            {"driver_number": 44, "name_acronym": "HAM", "team_name": "Mercedes", "team_colour": "27F4D2"},
        ],
        positions=[
            {"date": "2024-03-02T15:00:00+00:00", "driver_number": 1, "position": 1},
            {"date": "2024-03-02T15:00:00+00:00", "driver_number": 44, "position": 2},
            {"date": "2024-03-02T15:00:30+00:00", "driver_number": 44, "position": 1},
            {"date": "2024-03-02T15:00:30+00:00", "driver_number": 1, "position": 2},
        ],
        laps=[
            {"date_start": "2024-03-02T15:00:10+00:00", "driver_number": 1, "lap_number": 1,
             "lap_duration": 62.345, "duration_sector_1": 20.1, "duration_sector_2": 22.1,
             "duration_sector_3": 20.145},
        ],
        messages=[
            {"date": "2024-03-02T15:00:20+00:00", "category": "Flag", "flag": "YELLOW",
             "message": "YELLOW IN TRACK SECTOR 4"},
            {"date": "2024-03-02T15:00:25+00:00", "category": "Flag", "flag": "CLEAR",
             "message": "CLEAR IN TRACK SECTOR 4"},
        ],
    )


def make_openf1_client(data: SessionData | None = None) -> MagicMock:
    client = MagicMock()
    client.fetch_session.return_value = data or make_session_data()
    return client


@pytest.fixture
def openf1_client():
    return make_openf1_client()


@pytest.fixture
def service(openf1_client):
    svc = ReplayService(client_factory=lambda: openf1_client)
    yield svc
    svc.close()


@pytest.fixture
def client(service):
    """FastAPI test client wired to a fresh ReplayService."""
    app.dependency_overrides[get_service] = lambda: service
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def session_payload() -> dict:
    data = make_session_data()
    return {
        "drivers": data.drivers,
        "positions": data.positions,
        "laps": data.laps,
        "messages": data.messages,
    }


@pytest.fixture
def session_data() -> SessionData:
    return make_session_data()
