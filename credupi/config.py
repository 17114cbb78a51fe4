"""Application configuration via environment variables."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Sheets endpoint (script web app URL). No default: deployments must opt in.
    sheets_endpoint_url: Optional[str] = None
    sheets_delivery_mode: Literal["observed", "opaque"] = "observed"
    sheets_timeout_seconds: float = 10.0

    # Signup flow
    phone_country_code: str = "+91"
    reset_delay_ms: int = 300
    celebration_ms: int = 3000

    # Local entry cache
    cache_backend: Literal["file", "redis"] = "file"
    cache_dir: str = ".credupi"
    cache_slot: str = "credupi_waitlist"

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Google Analytics 4 (Measurement Protocol)
    ga_measurement_id: str = ""
    ga_api_secret: str = ""

    # Sheet endpoint storage
    sheet_csv_path: str = "waitlist.csv"

    # App
    log_level: str = "INFO"
    environment: str = "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
