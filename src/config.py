from datetime import date
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.etl.errors import EtlConfigError


class RunConfig(BaseModel):
    """Per-run configuration threaded through every pipeline stage."""

    model_config = ConfigDict(frozen=True)

    timezone: str
    month_start: int = Field(ge=1, le=12)
    month_end: int = Field(ge=1, le=12)
    start_date: date | None = None
    end_date: date | None = None
    base_domain: str
    max_violation_rate: float = Field(ge=0.0, le=1.0)
    user_merge_priority: Literal["assignee", "caller"] = "caller"
    workers: int = Field(default=1, ge=1)
    partition_size: int = Field(default=5000, ge=1)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone '{value}'") from exc
        return value

    @field_validator("base_domain")
    @classmethod
    def _normalize_domain(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("base domain must not be empty")
        if "://" not in value:
            value = f"https://{value}"
        return value

    @model_validator(mode="after")
    def _dates_in_order(self) -> "RunConfig":
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date and end_date must be given together")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Source DB (read-only)
    source_db_host: str = "localhost"
    source_db_port: int = 5432
    source_db_name: str = "itsm"
    source_db_schema: str = "raw"
    source_db_user: str = "readonly_user"
    source_db_password: SecretStr = SecretStr("changeme")

    # Reporting DB (read-write)
    reporting_db_host: str = "localhost"
    reporting_db_port: int = 5432
    reporting_db_name: str = "itsm"
    reporting_db_schema: str = "rpt"
    reporting_db_user: str = "reporting_user"
    reporting_db_password: SecretStr = SecretStr("changeme")

    # ETL
    etl_timezone: str = "America/New_York"
    etl_month_start: int = 1
    etl_month_end: int = 12
    etl_base_domain: str = "https://example.service-now.com"
    etl_max_violation_rate: float = 0.05
    etl_user_merge_priority: Literal["assignee", "caller"] = "caller"
    etl_workers: int = 4
    etl_partition_size: int = 5000
    etl_log_level: str = "info"
    etl_log_json: bool = False

    # Seed
    seed_profile: str = "standard"
    seed_random_seed: int = 42

    @property
    def source_db_url_sync(self) -> str:
        pwd = self.source_db_password.get_secret_value()
        return (
            f"postgresql+psycopg2://{self.source_db_user}:{pwd}"
            f"@{self.source_db_host}:{self.source_db_port}"
            f"/{self.source_db_name}"
        )

    @property
    def reporting_db_url_sync(self) -> str:
        pwd = self.reporting_db_password.get_secret_value()
        return (
            f"postgresql+psycopg2://{self.reporting_db_user}:{pwd}"
            f"@{self.reporting_db_host}:{self.reporting_db_port}"
            f"/{self.reporting_db_name}"
        )

    def run_config(self, **overrides) -> RunConfig:
        """Build the validated per-run config, letting CLI values override env."""
        values = {
            "timezone": self.etl_timezone,
            "month_start": self.etl_month_start,
            "month_end": self.etl_month_end,
            "base_domain": self.etl_base_domain,
            "max_violation_rate": self.etl_max_violation_rate,
            "user_merge_priority": self.etl_user_merge_priority,
            "workers": self.etl_workers,
            "partition_size": self.etl_partition_size,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return RunConfig(**values)
        except ValidationError as exc:
            raise EtlConfigError(str(exc)) from exc


settings = Settings()
