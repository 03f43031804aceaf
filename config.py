# file: config.py
from __future__ import annotations

import json
from typing import List, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "dev"

    # Base URL of the cinema API (no trailing slash)
    CINEMA_API_URL: str = "http://localhost:5001/api"
    HTTP_TIMEOUT_SEC: int = 10

    CHAT_HISTORY_LIMIT: int = 10
    MAX_MESSAGE_CHARS: int = 2000

    MAX_SEATS: int = 8
    SERVICE_FEE: int = 10_000
    PAYMENT_STUB_DELAY_SEC: float = 2.0
    LOCAL_TIMEZONE: str = "Asia/Ho_Chi_Minh"

    # Accept comma-separated string, JSON array, list or empty
    ALLOWED_ORIGINS: Union[str, List[str], None] = None
    ALLOWED_ORIGIN_REGEX: Optional[str] = None

    SESS_TTL_SECONDS: int = 3600

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("CINEMA_API_URL", mode="after")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _parse_origins(cls, v):
        return _as_list(v)


def _as_list(v) -> List[str]:
    """``None``/"" -> [], JSON array or comma-separated string -> list of stripped items."""
    if v in (None, ""):
        return []
    if isinstance(v, str):
        raw = v.strip()
        items = None
        if raw.startswith("["):
            try:
                items = json.loads(raw)
            except ValueError:
                items = None
        if not isinstance(items, list):
            items = raw.split(",")
    else:
        items = list(v)
    return [str(x).strip() for x in items if str(x).strip()]
