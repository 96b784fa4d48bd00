from datetime import tzinfo

from fastapi import APIRouter, Depends, HTTPException

from outputdash.api.deps import get_calendar_zone, get_output_client
from outputdash.core.time_utils import end_of_day, parse_ymd, start_of_day
from outputdash.schemas.measurement import Athlete, ExerciseMetadata, Measurement, MeasurementsQuery
from outputdash.services.output_sports import (
    OutputSportsClient,
    OutputSportsError,
    fetch_measurements,
)

router = APIRouter(prefix="/output", tags=["output"])


def upstream_failure(e: OutputSportsError) -> HTTPException:
    return HTTPException(status_code=502, detail=str(e))


@router.get("/athletes", response_model=list[Athlete])
def list_athletes(client: OutputSportsClient = Depends(get_output_client)):
    try:
        return client.get_athletes()
    except OutputSportsError as e:
        raise upstream_failure(e)


@router.get("/exercises/metadata", response_model=list[ExerciseMetadata])
def list_exercise_metadata(client: OutputSportsClient = Depends(get_output_client)):
    try:
        return client.get_exercise_metadata()
    except OutputSportsError as e:
        raise upstream_failure(e)


@router.post("/exercises/measurements", response_model=list[Measurement])
def list_measurements(
    payload: MeasurementsQuery,
    client: OutputSportsClient = Depends(get_output_client),
    tz: tzinfo = Depends(get_calendar_zone),
):
    """
    Measurements for whole calendar days [startDate, endDate].

    Called by the dashboard as:
      POST /output/exercises/measurements {"startDate": "2025-01-06", "endDate": "2025-01-12"}
    """
    try:
        first = parse_ymd(payload.start_date)
        last = parse_ymd(payload.end_date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format - expected YYYY-MM-DD")
    if first > last:
        raise HTTPException(status_code=400, detail="Start date must be before end date")

    try:
        result = fetch_measurements(
            client,
            start_of_day(first, tz),
            end_of_day(last, tz),
            payload.exercise_metadata_ids,
            payload.athlete_ids,
        )
    except OutputSportsError as e:
        raise upstream_failure(e)
    return result.measurements
