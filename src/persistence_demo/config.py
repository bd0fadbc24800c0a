"""Application settings.

Values come from ``DEMO_``-prefixed environment variables (or a ``.env``
file), nested sections separated by ``__``::

    DEMO_DATABASE__HOST=db.internal
    DEMO_DATABASE__PORT=5433
    DEMO_PROVISIONING__MIGRATIONS_ENABLED=false
    DEMO_PROVISIONING__GENERATION=create

Tests build :class:`Settings` explicitly and hand it to
:class:`persistence_demo.app.Application`; nothing reads the environment
after startup.
"""
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class GenerationMode(str, Enum):
    """What the ORM does with the schema at startup."""

    NONE = "none"
    CREATE = "create"
    VALIDATE = "validate"


class DatabaseSettings(BaseModel):
    """Connection parameters for the relational store."""

    driver: str = "postgresql+asyncpg"
    host: str | None = "localhost"
    port: int | None = 5432
    name: str = "persistence-demo"
    username: str | None = "persistence-demo"
    password: SecretStr | None = SecretStr("persistence-demo")
    echo: bool = False

    @property
    def url(self) -> URL:
        """SQLAlchemy URL assembled from the individual parameters.

        For SQLite only ``driver`` and ``name`` (the file path) are used.
        """
        if self.is_sqlite:
            return URL.create(drivername=self.driver, database=self.name)
        return URL.create(
            drivername=self.driver,
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            host=self.host,
            port=self.port,
            database=self.name,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.driver.startswith("sqlite")


class ProvisioningSettings(BaseModel):
    """Schema provisioning flags.

    ``migrations_enabled`` turns the Alembic upgrade on; ``generation`` picks
    what the ORM does afterwards. Generating the schema from the model while
    also migrating is rejected.
    """

    migrations_enabled: bool = True
    generation: GenerationMode = GenerationMode.VALIDATE

    @model_validator(mode="after")
    def _check_exclusive(self) -> ProvisioningSettings:
        if self.migrations_enabled and self.generation is GenerationMode.CREATE:
            raise ValueError(
                "generation=create cannot be combined with migrations_enabled=true; "
                "pick one provisioning strategy per run"
            )
        return self


class Settings(BaseSettings):
    """Top-level configuration passed to the application at startup."""

    model_config = SettingsConfigDict(
        env_prefix="DEMO_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    provisioning: ProvisioningSettings = Field(default_factory=ProvisioningSettings)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value
