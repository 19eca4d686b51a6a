# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the tuition
ledger service. Settings are loaded from environment variables with sensible
defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.ledger.multi_course_discount)
    10000
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PASSWORD = "ledger_password"


class DatabaseSettings(BaseSettings):
    """Ledger database configuration.

    The ledger database stores courses, batches, users and the tuition
    ledger tables (enrollments, payments, installments, expenses).

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full async connection URL; takes precedence when set.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_DB_",
        extra="ignore",
    )

    user: str = "ledger"
    password: SecretStr = SecretStr(DEFAULT_DB_PASSWORD)
    host: str = "localhost"
    port: int = 5432
    database: str = "tuition_ledger"
    url_override: str | None = Field(
        default=None,
        validation_alias="LEDGER_DATABASE_URL",
    )
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class LedgerSettings(BaseSettings):
    """Business constants for enrollment billing.

    Attributes:
        multi_course_discount: Flat discount for a student's second and later
            enrollments, in whole currency units.
        currency: Currency code used in discount notes.
        second_installment_offset_days: Days after batch start when the
            second installment falls due.
        default_plan_type: Plan used when a request does not name one.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore",
    )

    multi_course_discount: int = Field(default=10000, ge=0)
    currency: str = "MMK"
    second_installment_offset_days: int = Field(default=28, ge=0)
    default_plan_type: Literal["full", "installment_2"] = "installment_2"


class CORSSettings(BaseSettings):
    """Cross-origin access for the admin front end.

    ``origins`` is a comma-separated list, e.g.
    ``CORS_ORIGINS=https://admin.example.com,http://localhost:3000``.
    """

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """Uvicorn options used by ``src.main``."""

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = Field(default=1, ge=1)
    reload: bool = False


class Settings(BaseSettings):
    """Top-level settings; obtain through get_settings().

    Plain fields come from unprefixed variables (ENVIRONMENT, DEBUG,
    LOG_LEVEL); each subsetting reads its own prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @model_validator(mode="after")
    def refuse_default_password_in_production(self) -> Self:
        """Production must not run on the shipped database password.

        Raises:
            ValueError: If production uses the default password and no URL
                override.
        """
        uses_default = (
            self.database.url_override is None
            and self.database.password.get_secret_value() == DEFAULT_DB_PASSWORD
        )
        if self.is_production and uses_default:
            raise ValueError(
                "Database password must be changed from default in production. "
                "Set LEDGER_DB_PASSWORD or LEDGER_DATABASE_URL."
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process; see clear_settings_cache()."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget the cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
