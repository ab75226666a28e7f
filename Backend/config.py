'''
Runtime configuration for the hotel booking frontend.
'''
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_SESSION_FILE = Path.home() / ".hotel_frontend" / "session.json"


class Settings(BaseModel):
    """Frontend settings resolved from the environment."""

    api_url: str = DEFAULT_API_URL
    timeout: float = Field(default=10.0, gt=0)
    session_file: Path = DEFAULT_SESSION_FILE
    currency: str = "USD"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build the frontend settings from environment variables.

    The .env file may define:
    - HOTEL_API_URL
    - HOTEL_API_TIMEOUT
    - HOTEL_SESSION_FILE
    - HOTEL_CURRENCY
    - HOTEL_LOG_LEVEL

    Returns:
        A validated Settings instance.

    Raises:
        ValueError: If the timeout is not a positive number.
    """

    load_dotenv()
    raw_timeout: Optional[str] = os.environ.get("HOTEL_API_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else 10.0
    except ValueError as exc:
        raise ValueError(f"HOTEL_API_TIMEOUT must be a number, got {raw_timeout!r}") from exc
    if timeout <= 0:
        raise ValueError("HOTEL_API_TIMEOUT must be a positive number of seconds.")

    session_file = os.environ.get("HOTEL_SESSION_FILE")
    return Settings(
        api_url=os.environ.get("HOTEL_API_URL", DEFAULT_API_URL).rstrip("/"),
        timeout=timeout,
        session_file=Path(session_file).expanduser() if session_file else DEFAULT_SESSION_FILE,
        currency=os.environ.get("HOTEL_CURRENCY", "USD"),
        log_level=os.environ.get("HOTEL_LOG_LEVEL", "INFO").upper(),
    )
