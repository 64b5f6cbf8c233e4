from unittest.mock import AsyncMock, patch

from mytime_server.api_service.core.errors import StorageError

DAY = "2025-03-10"
SCENARIO = {
    "entries": [
        {"time": "08:00", "activity_type": "Obudzenie", "is_wakeup": True},
        {"time": "09:00", "activity_type": "Praca"},
        {"time": "17:30", "activity_type": "Sport"},
    ]
}


# Activity types

def test_read_activity_types(client):
    response = client.get("/api/activity-types")
    assert response.status_code == 200
    assert [t["name"] for t in response.json()] == ["Nauka", "Obudzenie", "Odpoczynek", "Praca", "Sport"]


def test_create_activity_type_uses_palette(client):
    response = client.post("/api/activity-types", json={"name": "Gotowanie"})
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Gotowanie"
    assert data["color"] == "#f59e0b"
    assert "Gotowanie" in [t["name"] for t in client.get("/api/activity-types").json()]


def test_create_activity_type_returns_existing_for_other_case(client):
    praca = next(t for t in client.get("/api/activity-types").json() if t["name"] == "Praca")
    response = client.post("/api/activity-types", json={"name": "PRACA", "color": "#000000"})
    assert response.status_code == 201
    assert response.json() == praca


def test_create_activity_type_requires_name(client):
    response = client.post("/api/activity-types", json={"name": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Activity type name is required"


# Time logs

def test_replace_and_read_day(client):
    response = client.put(f"/api/time-logs/{DAY}", json=SCENARIO)
    assert response.status_code == 201
    assert response.json() == {"success": True, "day": DAY, "saved_entries": 3}

    logs = client.get(f"/api/time-logs/{DAY}").json()
    assert [(log["name"], log["start_time"], log["is_wakeup"]) for log in logs] == [
        ("Obudzenie", "2025-03-10T08:00:00", True),
        ("Praca", "2025-03-10T09:00:00", False),
        ("Sport", "2025-03-10T17:30:00", False),
    ]
    assert all(log["day"] == DAY for log in logs)
    assert len(client.get("/api/time-logs").json()) == 3


def test_day_logs_carry_durations(client):
    payload = {"entries": SCENARIO["entries"] + [{"time": "00:45", "activity_type": "Odpoczynek"}]}
    client.put(f"/api/time-logs/{DAY}", json=payload)

    logs = client.get(f"/api/time-logs/{DAY}").json()

    # Stored order is by wall clock; 00:45 is after midnight on the day axis
    assert [(log["name"], log["duration_minutes"]) for log in logs] == [
        ("Odpoczynek", None),
        ("Obudzenie", 0),
        ("Praca", 510),
        ("Sport", 1485 - 1050),
    ]


def test_replace_day_drops_rows_with_null_fields(client):
    payload = {"entries": [
        {"time": None, "activity_type": "Praca"},
        {"time": "10:00", "activity_type": None},
        {"time": "11:00", "activity_type": "Sport"},
    ]}

    response = client.put(f"/api/time-logs/{DAY}", json=payload)

    assert response.status_code == 201
    assert response.json()["saved_entries"] == 1
    assert [log["name"] for log in client.get(f"/api/time-logs/{DAY}").json()] == ["Sport"]


def test_replace_day_creates_unknown_activity_type(client):
    payload = {"entries": [{"time": "12:00", "activity_type": "Gotowanie", "color": "#123456"}]}
    assert client.put(f"/api/time-logs/{DAY}", json=payload).status_code == 201

    created = next(t for t in client.get("/api/activity-types").json() if t["name"] == "Gotowanie")
    assert created["color"] == "#123456"


def test_replace_day_rejects_too_short_activity(client):
    client.put(f"/api/time-logs/{DAY}", json=SCENARIO)
    payload = {"entries": [
        {"time": "09:00", "activity_type": "Praca"},
        {"time": "09:00", "activity_type": "Sport"},
    ]}

    response = client.put(f"/api/time-logs/{DAY}", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Minimum activity length is 1 minute. Check the start times."
    assert len(client.get(f"/api/time-logs/{DAY}").json()) == 3


def test_replace_day_rejects_malformed_time(client):
    payload = {"entries": [{"time": "9 o'clock", "activity_type": "Praca"}]}
    response = client.put(f"/api/time-logs/{DAY}", json=payload)
    assert response.status_code == 400
    assert "Invalid start time" in response.json()["detail"]


def test_replace_day_rejects_invalid_date(client):
    response = client.put("/api/time-logs/10-03-2025", json=SCENARIO)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid date format. Please use YYYY-MM-DD."


def test_replace_day_requires_entries(client):
    response = client.put(f"/api/time-logs/{DAY}", json={})
    assert response.status_code == 422


def test_replace_day_with_empty_list_clears_it(client):
    client.put(f"/api/time-logs/{DAY}", json=SCENARIO)

    response = client.put(f"/api/time-logs/{DAY}", json={"entries": []})

    assert response.status_code == 201
    assert response.json()["saved_entries"] == 0
    assert client.get(f"/api/time-logs/{DAY}").json() == []
    assert client.get("/api/dates-with-data").json() == []


def test_replace_day_storage_failure(client):
    failing = AsyncMock(side_effect=StorageError("Failed to save activities for 2025-03-10"))
    with patch("mytime_server.api_service.core.repository.replace_day_events", new=failing):
        response = client.put(f"/api/time-logs/{DAY}", json=SCENARIO)

    assert response.status_code == 500
    assert response.json() == {"detail": "Server error"}
    failing.assert_awaited_once()


# Summary

def test_dates_with_data_skip_wake_only_days(client):
    client.put(f"/api/time-logs/{DAY}", json=SCENARIO)
    client.put("/api/time-logs/2025-03-11", json={"entries": [SCENARIO["entries"][0]]})

    assert client.get("/api/dates-with-data").json() == [DAY]


def test_analysis(client):
    client.put(f"/api/time-logs/{DAY}", json=SCENARIO)

    response = client.get("/api/analysis")

    assert response.status_code == 200
    data = response.json()
    assert [(t["name"], t["value"]) for t in data["ranking"]] == [("Praca", 8.5), ("Sport", 1.0)]
    assert data["total_hours"] == 9.5
    assert data["average_per_day"] == 9.5
    assert data["days_with_data"] == 1


def test_initial_data(client):
    client.put(f"/api/time-logs/{DAY}", json=SCENARIO)

    response = client.get("/api/initial-data")

    assert response.status_code == 200
    data = response.json()
    assert len(data["activity_types"]) == 5
    assert len(data["time_logs"]) == 3
    assert [(t["name"], t["value"], t["color"]) for t in data["analysis"]] == [
        ("Praca", 8.5, "#3b82f6"),
        ("Sport", 1.0, "#10b981"),
    ]
    assert data["dates_with_data"] == [DAY]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database_connected"] is True
