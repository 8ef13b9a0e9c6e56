from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rategate.domain.errors import DomainError
from rategate.domain.models import Policy
from rategate.domain.policies import PolicyTable


class SettingsError(RuntimeError):
    pass


class PolicyOverride(BaseModel):
    limit: PositiveInt
    window_ms: PositiveInt


class AppSettings(BaseSettings):
    # Web server
    webapp_host: str = Field(default="0.0.0.0", alias="WEBAPP_HOST")
    webapp_port: int = Field(default=8000, alias="PORT")

    # Eviction sweeper
    sweep_interval_sec: PositiveInt = Field(default=3600, alias="SWEEP_INTERVAL_SEC")
    sweep_max_age_sec: PositiveInt = Field(default=86400, alias="SWEEP_MAX_AGE_SEC")
    sweep_batch_size: PositiveInt = Field(default=500, alias="SWEEP_BATCH_SIZE")

    # Store bound (unset = unbounded, sweeper only)
    max_tracked_keys: Optional[PositiveInt] = Field(default=None, alias="MAX_TRACKED_KEYS")

    # {"note_write": {"limit": 7, "window_ms": 60000}}
    policy_overrides: dict[str, PolicyOverride] = Field(default_factory=dict, alias="RATE_POLICY_OVERRIDES")

    # Admin endpoints (reset) require this token when set
    admin_token: Optional[str] = Field(default=None, alias="ADMIN_TOKEN")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        allowed_levels = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "TRACE"}
        if level not in allowed_levels:
            raise ValueError(f"Invalid LOG_LEVEL={value!r}. Allowed: {sorted(allowed_levels)}")
        return level

    @property
    def sweep_max_age_ms(self) -> int:
        return self.sweep_max_age_sec * 1000

    def build_policy_table(self) -> PolicyTable:
        try:
            overrides = {
                name: Policy(limit=o.limit, window_ms=o.window_ms)
                for name, o in self.policy_overrides.items()
            }
            return PolicyTable.with_overrides(overrides)
        except DomainError as exc:
            raise SettingsError(f"Invalid RATE_POLICY_OVERRIDES: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
