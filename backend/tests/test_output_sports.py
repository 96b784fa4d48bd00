import json
import logging
from datetime import datetime, timezone

import httpx
import pytest

from outputdash.services.output_sports import (
    OutputSportsClient,
    OutputSportsError,
    TokenCache,
    fetch_measurements,
)


BASE = "https://api.example.test/api/v1"

MEASUREMENT = {
    "id": "m1",
    "athleteId": "a1",
    "athleteFirstName": "Sam",
    "athleteLastName": "Reid",
    "exerciseId": "cmj",
    "exerciseCategory": "Jump",
    "exerciseType": "Output",
    "completedDate": "2025-03-14T10:00:00.000Z",
    "variant": None,
    "metrics": [{"field": "meanForce", "value": 812.5}],
    "repetitions": [],
}


class Upstream:
    """Records requests and answers like the Output Sports API."""

    def __init__(self, measurements_status=(200,), measurements=None):
        self.calls = []
        self.measurements = measurements if measurements is not None else [MEASUREMENT]
        self.token_requests = 0
        self.measurements_status = list(measurements_status)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        if path.endswith("/oauth/token"):
            self.token_requests += 1
            body = json.loads(request.content)
            assert body["grantType"] == "password"
            return httpx.Response(
                200, json={"accessToken": f"tok{self.token_requests}", "refreshToken": "r", "expiresIn": "3600"}
            )
        assert request.headers["Authorization"].startswith("Bearer tok")
        if path.endswith("/athletes"):
            return httpx.Response(200, json=[{"id": "a1", "firstName": "Sam", "lastName": "Reid", "fullName": "Sam Reid"}])
        if path.endswith("/exercises/metadata"):
            return httpx.Response(
                200,
                json=[{
                    "id": "cmj", "name": "Countermovement Jump", "category": "Jump",
                    "isEnabled": True, "type": "Output", "variants": [],
                    "metrics": [{"name": "Mean Force", "field": "meanForce", "unitOfMeasure": "Newton"}],
                }],
            )
        if path.endswith("/exercises/measurements"):
            status = self.measurements_status.pop(0) if self.measurements_status else 200
            if status != 200:
                return httpx.Response(status, text="Bad Request")
            return httpx.Response(200, json=self.measurements)
        return httpx.Response(404)


def make_client(upstream, cache=None):
    return OutputSportsClient(
        base_url=BASE,
        email="coach@example.test",
        password="secret",
        token_cache=cache or TokenCache(),
        transport=httpx.MockTransport(upstream),
    )


def test_token_is_cached_between_calls():
    upstream = Upstream()
    client = make_client(upstream)
    client.get_athletes()
    client.get_exercise_metadata()
    assert upstream.token_requests == 1


def test_token_cache_is_per_owner():
    upstream = Upstream()
    make_client(upstream).get_athletes()
    make_client(upstream).get_athletes()
    assert upstream.token_requests == 2


def test_expiring_token_is_refreshed():
    upstream = Upstream()
    cache = TokenCache(token="old", expires_at=0)
    client = make_client(upstream, cache)
    client.get_athletes()
    assert upstream.token_requests == 1
    assert cache.token == "tok1"


def test_token_cache_validity_window():
    cache = TokenCache()
    cache.store("t", 3600, now=1000.0)
    assert cache.valid(now=1000.0)
    assert not cache.valid(now=1000.0 + 3600 - 30)


def test_parses_camel_case_payloads():
    client = make_client(Upstream())
    [ex] = client.get_exercise_metadata()
    assert ex.metrics[0].unit_of_measure == "Newton"
    [m] = client.get_exercise_measurements(
        datetime(2025, 3, 1, tzinfo=timezone.utc), datetime(2025, 3, 14, tzinfo=timezone.utc)
    )
    assert m.completed_date == "2025-03-14T10:00:00.000Z"
    assert m.variant == "Standard"
    assert m.metrics[0].value == 812.5


def test_measurements_request_body():
    upstream = Upstream()
    client = make_client(upstream)
    client.get_exercise_measurements(
        datetime(2025, 3, 1, tzinfo=timezone.utc),
        datetime(2025, 3, 14, 23, 59, 59, 999000, tzinfo=timezone.utc),
        ["cmj"],
        ["a1"],
    )
    body = json.loads(upstream.calls[-1].content)
    assert body == {
        "startDate": "2025-03-01T00:00:00+00:00",
        "endDate": "2025-03-14T23:59:59.999000+00:00",
        "exerciseMetadataIds": ["cmj"],
        "athleteIds": ["a1"],
    }


def test_missing_credentials():
    client = OutputSportsClient(BASE, None, None, TokenCache(), transport=httpx.MockTransport(Upstream()))
    with pytest.raises(OutputSportsError):
        client.get_athletes()


def test_error_status_is_reported():
    client = make_client(Upstream(measurements_status=[500]))
    with pytest.raises(OutputSportsError) as exc:
        client.get_exercise_measurements(
            datetime(2025, 3, 1, tzinfo=timezone.utc), datetime(2025, 3, 2, tzinfo=timezone.utc)
        )
    assert exc.value.status_code == 500


def test_long_span_is_clamped_to_ninety_days():
    upstream = Upstream()
    end = datetime(2025, 3, 14, 23, 59, tzinfo=timezone.utc)
    result = fetch_measurements(make_client(upstream), datetime(2024, 3, 14, tzinfo=timezone.utc), end)
    assert result.limited
    assert result.start == datetime(2024, 12, 14, tzinfo=timezone.utc)
    body = json.loads(upstream.calls[-1].content)
    assert body["startDate"] == "2024-12-14T00:00:00+00:00"


def test_bad_request_on_long_span_falls_back_to_thirty_days():
    upstream = Upstream(measurements_status=[400, 200])
    end = datetime(2025, 3, 14, 23, 59, tzinfo=timezone.utc)
    result = fetch_measurements(make_client(upstream), datetime(2024, 12, 15, tzinfo=timezone.utc), end)
    assert result.limited
    assert result.start == datetime(2025, 2, 12, tzinfo=timezone.utc)
    assert len(result.measurements) == 1


def test_bad_request_on_short_span_propagates():
    upstream = Upstream(measurements_status=[400])
    end = datetime(2025, 3, 14, 23, 59, tzinfo=timezone.utc)
    with pytest.raises(OutputSportsError):
        fetch_measurements(make_client(upstream), datetime(2025, 3, 8, tzinfo=timezone.utc), end)


def test_malformed_measurements_are_skipped(caplog):
    no_date = dict(MEASUREMENT, id="no-date", completedDate=None)
    dup_fields = dict(
        MEASUREMENT,
        id="dup",
        metrics=[{"field": "meanForce", "value": 1.0}, {"field": "meanForce", "value": 2.0}],
    )
    upstream = Upstream(measurements=[dup_fields, MEASUREMENT])
    with caplog.at_level(logging.WARNING):
        result = fetch_measurements(
            make_client(upstream),
            datetime(2025, 3, 1, tzinfo=timezone.utc),
            datetime(2025, 3, 14, 23, 59, tzinfo=timezone.utc),
        )
    assert [m.id for m in result.measurements] == ["m1"]
    assert "dup" in caplog.text

    [kept, good] = make_client(Upstream(measurements=[no_date, MEASUREMENT])).get_exercise_measurements(
        datetime(2025, 3, 1, tzinfo=timezone.utc), datetime(2025, 3, 14, tzinfo=timezone.utc)
    )
    # A missing date survives parsing; filtering drops it later with a warning
    assert kept.completed_date is None
    assert good.id == "m1"
