import time

import pytest
from fastapi.testclient import TestClient
from factories import FakeDriver, sample_legs, sample_records

from itinerary_composer.api import app as app_module
from itinerary_composer.api import search_runner
from itinerary_composer.api.sessions import SessionRegistry

SEARCH = {"route": ["AAA", "BBB", "CCC"], "start_date": "2024-05-01", "end_date": "2024-05-02"}


@pytest.fixture()
def client(monkeypatch):
    def fake_driver(api_key, settings):
        return FakeDriver(sample_records(), sample_legs())

    monkeypatch.setattr(app_module, "build_driver", fake_driver)
    monkeypatch.setattr(search_runner, "build_driver", fake_driver)
    return TestClient(app_module.app)


def _leg(flight_id, departs, arrives, segment_index, origin, destination):
    return {
        "flight_id": flight_id,
        "from": origin,
        "to": destination,
        "departs_at": departs,
        "arrives_at": arrives,
        "segment_index": segment_index,
        "economy": True,
    }


def _segments():
    return [
        {
            "index": 0,
            "origin": "AAA",
            "destination": "BBB",
            "legs": [
                _leg("L1", "2024-05-01 07:00:00", "2024-05-01 10:00:00", 0, "AAA", "BBB"),
                _leg("L2", "2024-05-01 11:00:00", "2024-05-01 14:00:00", 0, "AAA", "BBB"),
            ],
        },
        {
            "index": 1,
            "origin": "BBB",
            "destination": "CCC",
            "legs": [
                _leg("M2", "2024-05-01 11:00:00", "2024-05-01 13:00:00", 1, "BBB", "CCC"),
                _leg("M3", "2024-05-01 16:00:00", "2024-05-01 18:00:00", 1, "BBB", "CCC"),
            ],
        },
    ]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_availability_calendar(client):
    response = client.post("/api/availability", json={**SEARCH, "api_key": "k"})
    assert response.status_code == 200
    days = response.json()["days"]
    assert [day["date"] for day in days] == ["2024-05-01", "2024-05-02"]
    assert days[0]["available"] is True
    assert [segment["route"] for segment in days[0]["segments"]] == ["AAA-BBB", "BBB-CCC"]


def test_range_longer_than_a_week_is_rejected(client):
    response = client.post("/api/availability", json={**SEARCH, "end_date": "2024-05-20"})
    assert response.status_code == 400
    assert "exceed" in response.json()["detail"]


def test_stateless_combinations_and_toggle(client):
    response = client.post("/api/combinations", json={"segments": _segments(), "base_date": "2024-05-01"})
    assert response.status_code == 200
    body = response.json()
    combos = [[leg["flight_id"] for leg in combo["legs"]] for combo in body["combinations"]]
    assert combos == [["L1", "M2"], ["L1", "M3"], ["L2", "M3"]]
    assert body["combinations"][0]["connections"][0]["minutes"] == 60

    legs = {leg["flight_id"]: leg for leg in body["legs"]}
    toggle = client.post(
        "/api/selection/toggle",
        json={
            "combinations": [combo["legs"] for combo in body["combinations"]],
            "selection": {},
            "leg": legs["L2"],
            "segment_index": 0,
            "shown": body["legs"],
        },
    )
    assert toggle.status_code == 200
    states = {leg["flight_id"]: (leg["is_selected"], leg["hidden"]) for leg in toggle.json()["legs"]}
    assert states == {"L1": (False, True), "L2": (True, False), "M2": (False, True), "M3": (False, False)}
    assert list(toggle.json()["selection"]) == ["0"]


def test_session_search_toggle_reset_and_close(client):
    created = client.post("/api/sessions", json={"api_key": "k"})
    assert created.status_code == 200
    session_id = created.json()["id"]

    searched = client.post(f"/api/sessions/{session_id}/search", json=SEARCH)
    assert searched.status_code == 200
    outcome = searched.json()
    assert outcome["status"] == "ok"
    assert len(outcome["combinations"]) == 2
    assert [segment["route"] for segment in outcome["segments"]] == ["AAA-BBB", "BBB-CCC"]

    toggled = client.post(
        f"/api/sessions/{session_id}/toggle",
        json={"segment_index": 0, "flight_id": "ab1", "departs_at": "2024-05-01 08:00:00"},
    )
    assert toggled.status_code == 200
    hidden = {leg["flight_id"] for leg in toggled.json()["legs"] if leg["hidden"]}
    assert hidden == {"AB2", "BC2"}

    state = client.get(f"/api/sessions/{session_id}").json()
    assert state["selected_segments"] == [0]
    assert state["status"] == "ready"

    reset = client.post(f"/api/sessions/{session_id}/reset").json()
    assert reset["generation"] == outcome["generation"] + 1
    assert reset["segments"] == 0

    assert client.delete(f"/api/sessions/{session_id}").status_code == 200
    assert client.get(f"/api/sessions/{session_id}").status_code == 404


def test_session_toggle_unknown_leg(client):
    session_id = client.post("/api/sessions", json={"api_key": "k"}).json()["id"]
    client.post(f"/api/sessions/{session_id}/search", json=SEARCH)
    response = client.post(
        f"/api/sessions/{session_id}/toggle",
        json={"segment_index": 0, "flight_id": "AB1", "departs_at": "2024-05-01 09:00:00"},
    )
    assert response.status_code == 404


def test_unknown_session_and_job(client):
    assert client.get("/api/sessions/missing").status_code == 404
    assert client.get("/api/jobs/missing").status_code == 404
    assert client.post("/api/jobs/missing/cancel").status_code == 404


def test_search_job_completes(client):
    created = client.post("/api/jobs/search", json={**SEARCH, "api_key": "k"})
    assert created.status_code == 200
    job_id = created.json()["id"]

    deadline = time.time() + 10
    job = created.json()
    while time.time() < deadline:
        job = client.get(f"/api/jobs/{job_id}").json()
        if job["status"] in {"completed", "failed", "cancelled"}:
            break
        time.sleep(0.05)

    assert job["status"] == "completed", job
    assert job["result"]["status"] == "ok"
    assert job_id in [item["id"] for item in client.get("/api/jobs").json()["items"]]


def test_toggle_with_segments_lists_every_leg_without_combinations(client):
    segments = _segments()
    response = client.post(
        "/api/selection/toggle",
        json={
            "combinations": [],
            "selection": {},
            "leg": segments[0]["legs"][0],
            "segment_index": 0,
            "segments": segments,
        },
    )
    assert response.status_code == 200
    states = {leg["flight_id"]: (leg["is_selected"], leg["hidden"]) for leg in response.json()["legs"]}
    assert set(states) == {"L1", "L2", "M2", "M3"}
    assert states["L1"] == (True, False)


def test_evicted_session_is_closed(monkeypatch):
    drivers = []

    class ClosingDriver(FakeDriver):
        closed = False

        async def aclose(self):
            self.closed = True

    def closing_driver(api_key, settings):
        driver = ClosingDriver(sample_records(), sample_legs())
        drivers.append(driver)
        return driver

    monkeypatch.setattr(search_runner, "build_driver", closing_driver)
    monkeypatch.setattr(app_module, "SESSIONS", SessionRegistry(max_sessions=1))
    client = TestClient(app_module.app)

    first = client.post("/api/sessions", json={"api_key": "k"}).json()["id"]
    second = client.post("/api/sessions", json={"api_key": "k"}).json()["id"]

    assert [driver.closed for driver in drivers] == [True, False]
    assert client.get(f"/api/sessions/{first}").status_code == 404
    assert client.get(f"/api/sessions/{second}").status_code == 200
