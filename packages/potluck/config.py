"""Runtime settings for the sheet endpoints and refresh cadence.

Values come from explicit arguments first, then the environment (the CLI
loads a local ``.env`` with ``python-dotenv`` before calling
:func:`load_settings`):

- ``POTLUCK_SHEET_CSV_URL``: published CSV export of the sheet (required)
- ``POTLUCK_SCRIPT_URL``: write endpoint accepting form posts (required)
- ``POTLUCK_REFRESH_INTERVAL``: seconds between background refreshes (15)
- ``POTLUCK_RESYNC_DELAY``: seconds to wait after a submission before
  re-reading the sheet (1.2)
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ConfigError

ENV_CSV_URL = "POTLUCK_SHEET_CSV_URL"
ENV_SCRIPT_URL = "POTLUCK_SCRIPT_URL"
ENV_REFRESH_INTERVAL = "POTLUCK_REFRESH_INTERVAL"
ENV_RESYNC_DELAY = "POTLUCK_RESYNC_DELAY"

DEFAULT_REFRESH_INTERVAL: float = 15.0
DEFAULT_RESYNC_DELAY: float = 1.2


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    csv_url: str
    script_url: str
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    resync_delay: float = DEFAULT_RESYNC_DELAY

    @field_validator("csv_url", "script_url")
    @classmethod
    def _http_url(cls, v: str) -> str:
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return v

    @field_validator("refresh_interval")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("resync_delay")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def load_settings(
    *,
    csv_url: str | None = None,
    script_url: str | None = None,
    refresh_interval: float | None = None,
    resync_delay: float | None = None,
) -> Settings:
    """Resolve settings from arguments and environment.

    Raises ``ConfigError`` naming the missing variable or the invalid field.
    """

    csv_url = csv_url or os.getenv(ENV_CSV_URL)
    if not csv_url or not csv_url.strip():
        raise ConfigError(f"{ENV_CSV_URL} is not set; pass --csv-url or add it to .env")
    script_url = script_url or os.getenv(ENV_SCRIPT_URL)
    if not script_url or not script_url.strip():
        raise ConfigError(f"{ENV_SCRIPT_URL} is not set; pass --script-url or add it to .env")

    values: dict[str, object] = {"csv_url": csv_url, "script_url": script_url}
    interval = refresh_interval if refresh_interval is not None else _env_float(ENV_REFRESH_INTERVAL)
    if interval is not None:
        values["refresh_interval"] = interval
    delay = resync_delay if resync_delay is not None else _env_float(ENV_RESYNC_DELAY)
    if delay is not None:
        values["resync_delay"] = delay

    try:
        return Settings(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"invalid settings: {problems}") from exc


__all__ = [
    "ENV_CSV_URL",
    "ENV_SCRIPT_URL",
    "ENV_REFRESH_INTERVAL",
    "ENV_RESYNC_DELAY",
    "Settings",
    "load_settings",
]
