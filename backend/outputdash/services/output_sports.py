"""Output Sports API client.

Tokens live in a TokenCache owned by the caller (one per application), so
there is no process-wide token state.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import httpx
from pydantic import ValidationError

from outputdash.core.constants import (
    FALLBACK_MIN_SPAN_DAYS,
    FALLBACK_RANGE_DAYS,
    MAX_RANGE_DAYS,
    TOKEN_EXPIRY_SKEW_S,
)
from outputdash.schemas.measurement import Athlete, ExerciseMetadata, Measurement

logger = logging.getLogger(__name__)


class OutputSportsError(Exception):
    """Non-2xx answer (or transport failure) from the Output Sports API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class TokenCache:
    token: Optional[str] = None
    expires_at: float = 0.0  # epoch seconds

    def valid(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return bool(self.token) and self.expires_at - now > TOKEN_EXPIRY_SKEW_S

    def store(self, token: str, expires_in: float, now: Optional[float] = None) -> None:
        now = time.time() if now is None else now
        self.token = token
        self.expires_at = now + expires_in

    def clear(self) -> None:
        self.token = None
        self.expires_at = 0.0


class OutputSportsClient:
    def __init__(
        self,
        base_url: str,
        email: Optional[str],
        password: Optional[str],
        token_cache: TokenCache,
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.token_cache = token_cache
        self.timeout = timeout
        self.transport = transport

    def _client(self, **kwargs) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            **kwargs,
        )

    def _send(self, method: str, path: str, what: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.get_auth_token()}"}
        try:
            with self._client(headers=headers) as client:
                r = client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise OutputSportsError(f"Failed to fetch {what}: {e}") from e
        if r.status_code == 401:
            # Token revoked upstream; next call authenticates again
            self.token_cache.clear()
        if r.status_code >= 400:
            raise OutputSportsError(
                f"Failed to fetch {what}: {r.status_code} {r.reason_phrase}",
                status_code=r.status_code,
            )
        return r

    def get_auth_token(self) -> str:
        if self.token_cache.valid():
            return self.token_cache.token  # type: ignore[return-value]
        if not (self.email and self.password):
            raise OutputSportsError("Output Sports credentials not configured")
        payload = {"grantType": "password", "email": self.email, "password": self.password}
        try:
            with self._client() as client:
                r = client.post("/oauth/token", json=payload)
        except httpx.HTTPError as e:
            raise OutputSportsError(f"Failed to authenticate: {e}") from e
        if r.status_code != 200:
            raise OutputSportsError(
                f"Failed to authenticate: {r.status_code} {r.reason_phrase}",
                status_code=r.status_code,
            )
        tok = r.json()
        self.token_cache.store(tok["accessToken"], float(tok.get("expiresIn") or 0))
        return tok["accessToken"]

    def get_athletes(self) -> list[Athlete]:
        r = self._send("GET", "/athletes", "athletes")
        return [Athlete.model_validate(a) for a in r.json()]

    def get_exercise_metadata(self) -> list[ExerciseMetadata]:
        r = self._send("GET", "/exercises/metadata", "exercise metadata")
        return [ExerciseMetadata.model_validate(e) for e in r.json()]

    def get_exercise_measurements(
        self,
        start: datetime,
        end: datetime,
        exercise_ids: Optional[list[str]] = None,
        athlete_ids: Optional[list[str]] = None,
    ) -> list[Measurement]:
        body = {
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "exerciseMetadataIds": exercise_ids or [],
            "athleteIds": athlete_ids or [],
        }
        r = self._send("POST", "/exercises/measurements", "exercise measurements", json=body)
        measurements: list[Measurement] = []
        for item in r.json():
            try:
                measurements.append(Measurement.model_validate(item))
            except ValidationError as e:
                item_id = item.get("id") if isinstance(item, dict) else None
                logger.warning("Skipping malformed measurement %s: %s", item_id, e)
        return measurements


@dataclass
class FetchResult:
    measurements: list[Measurement]
    start: datetime
    end: datetime
    limited: bool = False


def fetch_measurements(
    client: OutputSportsClient,
    start: datetime,
    end: datetime,
    exercise_ids: Optional[list[str]] = None,
    athlete_ids: Optional[list[str]] = None,
) -> FetchResult:
    """Fetch measurements, working around the API's span limit.

    Spans over MAX_RANGE_DAYS are shortened up front. A 400 on a span of
    FALLBACK_MIN_SPAN_DAYS or more is retried once over the last
    FALLBACK_RANGE_DAYS. `limited` is set whenever the window shrank.
    """
    limited = False
    days = (end - start).days
    if days > MAX_RANGE_DAYS:
        adjusted = (end - timedelta(days=MAX_RANGE_DAYS)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        logger.warning(
            "Date range too large (%d days), adjusting to %d days", days, MAX_RANGE_DAYS
        )
        start = adjusted
        days = (end - start).days
        limited = True

    try:
        rows = client.get_exercise_measurements(start, end, exercise_ids, athlete_ids)
    except OutputSportsError as e:
        if e.status_code != 400 or days < FALLBACK_MIN_SPAN_DAYS:
            raise
        start = (end - timedelta(days=FALLBACK_RANGE_DAYS)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        logger.warning(
            "Measurements request rejected (%s); retrying with last %d days",
            e,
            FALLBACK_RANGE_DAYS,
        )
        rows = client.get_exercise_measurements(start, end, exercise_ids, athlete_ids)
        limited = True

    logger.info("Fetched %d measurements from %s to %s", len(rows), start, end)
    return FetchResult(measurements=rows, start=start, end=end, limited=limited)
