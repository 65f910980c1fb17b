"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.commission_schedule import (
    DEFAULT_DIRECT_COMMISSION_RATE,
    DEFAULT_FIRST_OVERRIDE_RATE,
    DEFAULT_LOCATION_MULTIPLIER_STEP,
    DEFAULT_MAX_OVERRIDE_DEPTH,
    DEFAULT_OVERRIDE_DECAY_FACTOR,
)
from app.config.operational_constants import (
    MAX_HIERARCHY_LEVELS,
    RECONCILIATION_BATCH_SIZE,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_isolation_level: str | None = Field(
        default="SERIALIZABLE",
        description=(
            "Isolation level for engine connections. Sponsor-chain reads "
            "made by the cycle guard rely on SERIALIZABLE."
        ),
    )

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/commission_engine.log"

    # Hierarchy
    max_hierarchy_levels: int = Field(
        default=MAX_HIERARCHY_LEVELS,
        ge=1,
        le=50,
        description="Maximum number of sponsor hops above any partner",
    )
    reconciliation_batch_size: int = Field(
        default=RECONCILIATION_BATCH_SIZE,
        gt=0,
        description="Partners audited per batch during a reconciliation sweep",
    )

    # Commission schedule
    direct_commission_rate: Decimal = Field(
        default=DEFAULT_DIRECT_COMMISSION_RATE,
        ge=0,
        le=1,
        description="Share of the pool paid to the submitting partner",
    )
    first_override_rate: Decimal = Field(
        default=DEFAULT_FIRST_OVERRIDE_RATE,
        ge=0,
        le=1,
        description="Share of the pool paid to the immediate sponsor",
    )
    override_decay_factor: Decimal = Field(
        default=DEFAULT_OVERRIDE_DECAY_FACTOR,
        ge=0,
        le=1,
        description="Multiplier applied to the override share per extra level",
    )
    max_override_depth: int = Field(
        default=DEFAULT_MAX_OVERRIDE_DEPTH,
        ge=0,
        description="Deepest ancestor level that receives an override",
    )
    location_multiplier_step: Decimal = Field(
        default=DEFAULT_LOCATION_MULTIPLIER_STEP,
        ge=0,
        description="Extra card-processing multiplier per additional location",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_commission_schedule(self) -> 'Settings':
        """Ensure the payout schedule can never exceed the pool."""
        total = self.direct_commission_rate
        rate = self.first_override_rate
        for _ in range(self.max_override_depth):
            total += rate
            rate *= self.override_decay_factor

        if total > Decimal("1"):
            raise ValueError(
                f'Commission schedule pays out {total:.4f} of the pool. '
                'Lower DIRECT_COMMISSION_RATE, FIRST_OVERRIDE_RATE or '
                'MAX_OVERRIDE_DEPTH so the total stays at or below 1.'
            )
        return self

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )

            if self.database_url.startswith('sqlite'):
                logger.warning(
                    'DATABASE_URL points at SQLite in production. '
                    'Concurrent link and payout operations need PostgreSQL.'
                )

            if self.database_isolation_level not in ('SERIALIZABLE', None):
                logger.warning(
                    f'DATABASE_ISOLATION_LEVEL is {self.database_isolation_level}. '
                    'Concurrent signups may pass cycle detection against a '
                    'chain that is being extended.'
                )

        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        return v

    @field_validator('database_isolation_level')
    @classmethod
    def validate_isolation_level(cls, v: str | None) -> str | None:
        """Normalize isolation level name."""
        if v is None or not v.strip():
            return None
        return v.strip().upper().replace('-', ' ')

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver."""
        if self.database_url.startswith('postgresql://'):
            return self.database_url.replace(
                'postgresql://', 'postgresql+asyncpg://', 1
            )
        return self.database_url


# Global settings instance
settings = Settings()
