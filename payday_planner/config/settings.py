"""
Configuration Management for Payday Planner

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The scheduling engine itself never reads settings; hosts read them once
and pass the values in, which keeps engine calls deterministic.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from payday_planner.models.bill import PriorityUpdateMode, SchedulingStrategy
from payday_planner.validation.validator import InvalidBillPolicy


class SchedulerSettings(BaseSettings):
    """Scheduling engine defaults."""

    model_config = SettingsConfigDict(
        env_prefix="PAYDAY_SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    strategy: SchedulingStrategy = Field(
        default=SchedulingStrategy.PERIOD_BUCKETING,
        description="Allocation strategy used when the caller does not pick one"
    )
    overload_threshold: int = Field(
        default=5,
        ge=0,
        description="Load above which the load-balanced strategy looks for a lighter payday"
    )
    invalid_bill_policy: InvalidBillPolicy = Field(
        default=InvalidBillPolicy.REJECT_BILL,
        description="Reject only the invalid bill, or the whole batch"
    )
    update_mode: PriorityUpdateMode = Field(
        default=PriorityUpdateMode.SCORE,
        description="How stored priorities are refreshed"
    )


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PAYDAY_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render JSON lines (False = human-readable console output)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def scheduler(self) -> SchedulerSettings:
        return SchedulerSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("scheduler", "logging", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
