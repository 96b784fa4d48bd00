from zoneinfo import ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

from outputdash.core.time_utils import get_zone


class Settings(BaseSettings):
    database_url: str = "sqlite+pysqlite:///./outputdash.db"
    # Single calendar authority for "today", bucket keys and window bounds.
    # IANA name, e.g. "America/New_York" or "Europe/Dublin".
    timezone: str = "UTC"

    # Output Sports API
    output_api_base: str = "https://api.outputsports.com/api/v1"
    output_email: str | None = None
    output_password: str | None = None
    output_timeout_seconds: float = 30.0

    # Allow empty env strings for optional fields
    @field_validator("output_email", "output_password", mode="before")
    @classmethod
    def _empty_to_none(cls, v):
        if v in ("", None, "null", "None"):
            return None
        return v

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, v):
        # Fail at startup rather than on the first request
        try:
            get_zone(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone {v!r}") from e
        return v

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()
