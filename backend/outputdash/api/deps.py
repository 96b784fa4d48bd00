from datetime import datetime, tzinfo

from fastapi import Depends, Request

from outputdash.core.config import settings
from outputdash.core.time_utils import get_zone
from outputdash.services.output_sports import OutputSportsClient


def get_output_client(request: Request) -> OutputSportsClient:
    # The token cache belongs to the app instance (created in main.py)
    return OutputSportsClient(
        base_url=settings.output_api_base,
        email=settings.output_email,
        password=settings.output_password,
        token_cache=request.app.state.token_cache,
        timeout=settings.output_timeout_seconds,
    )


def get_calendar_zone() -> tzinfo:
    return get_zone(settings.timezone)


def get_now(tz: tzinfo = Depends(get_calendar_zone)) -> datetime:
    return datetime.now(tz)
