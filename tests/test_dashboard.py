"""
Unit tests for the Flask Dashboard.
"""
from unittest.mock import MagicMock

import pytest

from dashboard.app import app

# Sample data for mocking the facade's response
SAMPLE_DATA = {
    "counts": {"pending": 2, "collected": 1, "recycled": 0},
    "recent": [
        {
            "wasteId": "WTABC12345",
            "summary": "Plastic: 2",
            "status": "pending",
            "timestamps": {"created": "2025-03-01T09:00:00.000+00:00"},
            "location": {"address": "Pune, India"},
        }
    ],
    "locations": [],
    "logs": [{"timestamp": "2025-03-01 10:00:00", "level": "INFO", "message": "Test log"}],
}

ERROR_DATA = {
    "counts": {},
    "recent": [],
    "locations": [],
    "logs": [],
    "error": "Database connection failed.",
}


@pytest.fixture
def facade():
    return MagicMock()


@pytest.fixture
def client(facade):
    app.config["TESTING"] = True
    app.config["FACADE"] = facade
    with app.test_client() as client:
        yield client
    app.config.pop("FACADE", None)


def test_dashboard_displays_data(client, facade):
    """
    Tests that the dashboard correctly renders data retrieved from the facade.
    """
    facade.get_municipality_dashboard.return_value = SAMPLE_DATA

    response = client.get("/")

    assert response.status_code == 200
    assert b"WTABC12345" in response.data
    assert b"Plastic: 2" in response.data
    assert b"Pune, India" in response.data
    assert b"Test log" in response.data


def test_dashboard_handles_error(client, facade):
    facade.get_municipality_dashboard.return_value = ERROR_DATA

    response = client.get("/")

    assert response.status_code == 200
    assert b"Database connection failed." in response.data
    assert b"No waste submitted yet." in response.data


def test_ticket_endpoint(client, facade):
    facade.get_ticket_display.return_value = {"ticket": {"wasteId": "WT1"}, "classification": "not available", "stages": []}

    response = client.get("/tickets/WT1")

    assert response.status_code == 200
    assert response.get_json()["classification"] == "not available"
    facade.get_ticket_display.assert_called_once_with("WT1")


def test_unknown_ticket_returns_404(client, facade):
    facade.get_ticket_display.return_value = None
    assert client.get("/tickets/missing").status_code == 404


def test_citizen_and_collector_endpoints(client, facade):
    facade.get_citizen_dashboard.return_value = {"eco_points": 5}
    facade.get_collector_dashboard.return_value = {"pending": []}

    assert client.get("/citizens/c1").get_json() == {"eco_points": 5}
    assert client.get("/collectors/col-1").get_json() == {"pending": []}


def test_dashboard_without_facade():
    app.config["TESTING"] = True
    app.config.pop("FACADE", None)
    with app.test_client() as client:
        assert client.get("/").status_code == 503


def test_each_request_reloads_saved_state(client, facade):
    facade.get_citizen_dashboard.return_value = {"eco_points": 5}

    client.get("/citizens/c1")
    client.get("/citizens/c1")

    assert facade.reload.call_count == 2
