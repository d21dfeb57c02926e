"""Engine configuration read from the environment (and .env) with pydantic-settings.

Task rules (assignee cap, hours cap, page sizes) are settings too;
validate_task_rules rejects inconsistent combinations when settings load.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment and .env.

    Every field has a default, so the engine runs with in-memory stores and
    no database configured; database_url is only needed by the SQL adapters.
    """

    # App
    app_name: str = "taskflow"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (SQL adapters only)
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    db_command_timeout: int | None = None

    # Task rules
    max_assignees: int = 5
    default_priority: int = 5
    max_entry_hours: float = 10000
    # Comma-separated departments whose members see every task
    org_wide_departments: str = "hr,human resources"
    max_page_size: int = 100
    default_page_size: int = 20

    # Side effects (notifications, recurrence cloning)
    side_effect_queue_size: int = 100

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def org_wide_department_set(self) -> frozenset[str]:
        """Lower-cased org-wide departments."""
        return frozenset(
            d.strip().lower() for d in self.org_wide_departments.split(",") if d.strip()
        )

    @model_validator(mode="after")
    def validate_task_rules(self) -> "Settings":
        """Reject inconsistent rule settings.

        - max_assignees and side_effect_queue_size must be positive.
        - default_priority must be on the 1-10 scale.
        - default_page_size must not exceed max_page_size.
        """
        if self.max_assignees < 1:
            raise ValueError("MAX_ASSIGNEES must be at least 1")
        if not 1 <= self.default_priority <= 10:
            raise ValueError(
                f"DEFAULT_PRIORITY must be between 1 and 10, got: {self.default_priority}"
            )
        if self.max_entry_hours <= 0:
            raise ValueError("MAX_ENTRY_HOURS must be positive")
        if self.max_page_size < 1 or not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                "DEFAULT_PAGE_SIZE must be between 1 and MAX_PAGE_SIZE "
                f"(got {self.default_page_size} and {self.max_page_size})"
            )
        if self.side_effect_queue_size < 1:
            raise ValueError("SIDE_EFFECT_QUEUE_SIZE must be at least 1")
        if not 0.0 <= self.telemetry_sample_rate <= 1.0:
            raise ValueError("TELEMETRY_SAMPLE_RATE must be between 0.0 and 1.0")
        return self


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, loaded and validated on first call.

    Tests that change env vars call get_settings.cache_clear() first.
    """
    return Settings()
