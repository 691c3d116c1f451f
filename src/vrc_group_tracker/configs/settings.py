from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vrc_group_tracker.configs.logging_config import LOG_LEVELS
from vrc_group_tracker.errors import InputError


class Settings(BaseSettings):
    """
    Central configuration.

    - Values loaded from `TRACKER_*` environment variables and `.env`
    - CLI options override individual fields (see main.py)
    - `groups` is a comma-separated list of group ids
    """

    # ----------------------------
    # Files
    # ----------------------------
    workspace: Path = Path(".")
    output: str = "output"

    # ----------------------------
    # Credentials
    # ----------------------------
    username: str = ""
    password: str = ""
    # base32 TOTP secret, grouping spaces allowed
    key: str = ""

    # ----------------------------
    # Tracked groups
    # ----------------------------
    groups: str = ""

    # ----------------------------
    # Remote API
    # ----------------------------
    api_base_url: str = "https://api.vrchat.cloud/api/1"
    user_agent: str = "vrc-group-tracker/0.1.0"
    http_timeout_seconds: float = 30.0

    # ----------------------------
    # Scheduling
    # ----------------------------
    members_page_size: int = Field(default=100, ge=1, le=100)
    members_page_delay_seconds: float = Field(default=1.0, ge=0)
    totp_safety_margin_seconds: int = Field(default=5, ge=0)

    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return v

    model_config = SettingsConfigDict(
        env_prefix="TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def group_ids(self) -> list[str]:
        return [g.strip() for g in self.groups.split(",") if g.strip()]

    def validate_inputs(self) -> None:
        """Fail before any remote call if the run cannot possibly succeed."""
        missing = [name for name in ("username", "password") if not getattr(self, name)]
        if missing:
            raise InputError(f"missing required input(s): {', '.join(missing)}")
        if not self.group_ids():
            raise InputError("at least one group id is required")
        if not self.output.strip():
            raise InputError("output directory name must not be empty")

