import os
from datetime import datetime, timezone

from factories import exercise, measurement
from outputdash.services.output_sports import OutputSportsError


NOW = datetime(2025, 3, 15, 14, 30, tzinfo=timezone.utc)


class FakeOutputClient:
    def __init__(self, measurements=(), exercises=(), fail_with=None):
        self.measurements = list(measurements)
        self.exercises = list(exercises)
        self.fail_with = fail_with
        self.requests = []

    def get_athletes(self):
        return []

    def get_exercise_metadata(self):
        if self.fail_with:
            raise self.fail_with
        return self.exercises

    def get_exercise_measurements(self, start, end, exercise_ids=None, athlete_ids=None):
        self.requests.append((start, end, exercise_ids, athlete_ids))
        return self.measurements


def get_client(fake=None):
    # Use in-memory sqlite for tests
    os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    # Import after env is set so engine is created with sqlite
    from outputdash.main import app  # noqa: WPS433
    from outputdash.api.deps import get_now, get_output_client  # noqa: WPS433
    from fastapi.testclient import TestClient  # noqa: WPS433

    app.dependency_overrides[get_now] = lambda: NOW
    if fake is not None:
        app.dependency_overrides[get_output_client] = lambda: fake
    return TestClient(app)


def test_root_ok():
    client = get_client()
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data


def test_save_list_and_delete_report():
    client = get_client()
    first = client.post(
        "/reports/",
        json={"name": "Pre-season", "athleteId": "a1", "athleteName": "Sam Reid", "exercise": "cmj", "timeRange": "30days"},
    )
    assert first.status_code == 200, first.text
    second = client.post(
        "/reports/",
        json={"name": "Team", "athleteId": None, "athleteName": "All Athletes", "exercise": None, "timeRange": "7days"},
    )
    assert second.status_code == 200, second.text
    saved = first.json()
    assert saved["id"].startswith("report_")
    assert saved["timeRange"] == "30days"

    lr = client.get("/reports/")
    assert lr.status_code == 200
    ids = [r["id"] for r in lr.json()]
    assert ids.index(second.json()["id"]) < ids.index(saved["id"])

    dr = client.delete(f"/reports/{saved['id']}")
    assert dr.status_code == 200
    assert dr.json()["name"] == "Pre-season"
    assert client.delete(f"/reports/{saved['id']}").status_code == 404


def test_report_name_required():
    client = get_client()
    r = client.post("/reports/", json={"name": "", "athleteName": "x", "timeRange": "today"})
    assert r.status_code == 422


def test_series_endpoint():
    fake = FakeOutputClient(
        measurements=[
            measurement("m1", "2025-03-10T08:00:00Z", {"meanForce": 500, "peakVelocity": 2.5}),
            measurement("m2", "2025-03-10T09:00:00Z", {"meanForce": 700, "peakVelocity": 2.1}),
            measurement("m3", "2025-03-12T09:00:00Z", {"meanForce": 600}),
            measurement("other", "2025-03-12T09:00:00Z", {"meanForce": 1}, athlete_id="a2"),
        ],
        exercises=[exercise("cmj")],
    )
    client = get_client(fake)
    r = client.get("/analytics/series", params={"range": "7days", "athlete_id": "a1", "exercise_id": "cmj"})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["selectedExerciseId"] == "cmj"
    assert [b["bucketKey"] for b in data["buckets"]] == ["2025-03-10", "2025-03-12"]
    assert data["buckets"][0]["metricAverages"]["meanForce"] == 600
    assert data["buckets"][1]["metricAverages"]["peakVelocity"] is None
    assert data["axes"]["secondary"] == ["peakVelocity"]
    assert data["limited"] is False
    start, end, _, athlete_ids = fake.requests[0]
    assert athlete_ids == ["a1"]
    assert start == datetime(2025, 3, 9, tzinfo=timezone.utc)


def test_series_rejects_inverted_custom_range():
    client = get_client(FakeOutputClient())
    r = client.get(
        "/analytics/series",
        params={"range": "custom", "custom_start": "2025-03-10", "custom_end": "2025-03-01"},
    )
    assert r.status_code == 422


def test_series_upstream_failure():
    client = get_client(FakeOutputClient(fail_with=OutputSportsError("boom", status_code=500)))
    r = client.get("/analytics/series", params={"range": "today"})
    assert r.status_code == 502


def test_summary_endpoint():
    fake = FakeOutputClient(
        measurements=[
            measurement("m1", "2025-03-10T08:00:00Z", {"meanForce": 500}),
            measurement("m2", "2025-03-11T08:00:00Z", {"meanForce": 700}),
        ],
        exercises=[exercise("cmj", metrics=[("Mean Force", "meanForce", "Newton")])],
    )
    client = get_client(fake)
    r = client.get("/analytics/summary", params={"range": "7days"})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["totalMeasurements"] == 2
    [ex] = data["exercises"]
    assert ex["sessions"] == 2
    [stats] = ex["metrics"]
    assert (stats["avg"], stats["max"], stats["min"], stats["unit"]) == (600, 700, 500, "N")


def test_presentation_endpoint():
    client = get_client(FakeOutputClient())
    r = client.get("/analytics/presentation/peakVelocity")
    assert r.json() == {
        "field": "peakVelocity",
        "displayName": "Peak Velocity",
        "unit": "m/s",
        "label": "Peak Velocity (m/s)",
    }


def test_measurements_proxy_validates_dates():
    fake = FakeOutputClient(measurements=[measurement("m1", "2025-03-10T08:00:00Z")])
    client = get_client(fake)
    bad = client.post("/output/exercises/measurements", json={"startDate": "03/01/2025", "endDate": "2025-03-02"})
    assert bad.status_code == 400
    inverted = client.post("/output/exercises/measurements", json={"startDate": "2025-03-05", "endDate": "2025-03-02"})
    assert inverted.status_code == 400

    ok = client.post("/output/exercises/measurements", json={"startDate": "2025-03-01", "endDate": "2025-03-10"})
    assert ok.status_code == 200, ok.text
    assert ok.json()[0]["completedDate"] == "2025-03-10T08:00:00Z"
    start, end, _, _ = fake.requests[0]
    assert start == datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)
