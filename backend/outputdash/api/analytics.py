from datetime import date, datetime, tzinfo
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from outputdash.analytics.date_range import InvalidRange, resolve
from outputdash.analytics.filtering import filter_measurements
from outputdash.analytics.presenter import display_name, metric_label, unit
from outputdash.analytics.series import build_series
from outputdash.analytics.summary import summarize
from outputdash.api.deps import get_calendar_zone, get_now, get_output_client
from outputdash.api.output import upstream_failure
from outputdash.schemas.series import (
    AggregationMode,
    RangeKind,
    SeriesResponse,
    SummaryResponse,
)
from outputdash.services.output_sports import (
    OutputSportsClient,
    OutputSportsError,
    fetch_measurements,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _window(time_range, now, custom_start, custom_end, tz):
    try:
        return resolve(time_range, now, custom_start, custom_end, tz=tz)
    except InvalidRange as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/series", response_model=SeriesResponse)
def get_series(
    time_range: RangeKind = Query(RangeKind.days30, alias="range"),
    mode: AggregationMode = Query(AggregationMode.aggregate),
    athlete_id: Optional[str] = Query(None),
    exercise_id: Optional[str] = Query(None, description="Preferred exercise; replaced when it has no data"),
    custom_start: Optional[date] = Query(None),
    custom_end: Optional[date] = Query(None),
    client: OutputSportsClient = Depends(get_output_client),
    tz: tzinfo = Depends(get_calendar_zone),
    now: datetime = Depends(get_now),
):
    """
    Chart-ready buckets for one athlete (or all athletes) and exercise.

      GET /analytics/series?range=7days&mode=aggregate&athlete_id=a1&exercise_id=cmj
    """
    window = _window(time_range, now, custom_start, custom_end, tz)
    athlete_ids = [athlete_id] if athlete_id else []
    try:
        exercises = client.get_exercise_metadata()
        fetched = fetch_measurements(client, window.start, window.end, [], athlete_ids)
    except OutputSportsError as e:
        raise upstream_failure(e)

    rows = fetched.measurements
    if athlete_id:
        rows = [m for m in rows if m.athlete_id == athlete_id]

    series = build_series(
        rows,
        exercises,
        time_range,
        mode,
        now,
        tz,
        selected_exercise=exercise_id,
        custom_start=custom_start,
        custom_end=custom_end,
    )
    series.limited = fetched.limited
    return series


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    time_range: RangeKind = Query(RangeKind.days7, alias="range"),
    athlete_id: Optional[str] = Query(None),
    exercise_id: Optional[str] = Query(None),
    custom_start: Optional[date] = Query(None),
    custom_end: Optional[date] = Query(None),
    client: OutputSportsClient = Depends(get_output_client),
    tz: tzinfo = Depends(get_calendar_zone),
    now: datetime = Depends(get_now),
):
    window = _window(time_range, now, custom_start, custom_end, tz)
    try:
        exercises = client.get_exercise_metadata()
        fetched = fetch_measurements(
            client,
            window.start,
            window.end,
            [exercise_id] if exercise_id else [],
            [athlete_id] if athlete_id else [],
        )
    except OutputSportsError as e:
        raise upstream_failure(e)

    rows = filter_measurements(fetched.measurements, window).in_range
    if athlete_id:
        rows = [m for m in rows if m.athlete_id == athlete_id]
    if exercise_id:
        rows = [m for m in rows if m.exercise_id == exercise_id]
    summary = summarize(rows, exercises, window, tz)
    summary.limited = fetched.limited
    return summary


@router.get("/presentation/{field}")
def get_presentation(
    field: str,
    exercise_id: Optional[str] = Query(None),
    client: OutputSportsClient = Depends(get_output_client),
):
    exercise = None
    if exercise_id:
        try:
            exercise = next(
                (e for e in client.get_exercise_metadata() if e.id == exercise_id), None
            )
        except OutputSportsError as e:
            raise upstream_failure(e)
    return {
        "field": field,
        "displayName": display_name(field),
        "unit": unit(field, exercise),
        "label": metric_label(field, exercise),
    }
