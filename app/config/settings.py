"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.business_constants import (
    DEFAULT_BENEFIT_GROWTH_RATE,
    DEFAULT_DAILY_BENEFIT_RATE,
    DEFAULT_DAILY_NORMAL_RATE,
    DEFAULT_DEPOSIT_DAY_CAP,
    DEFAULT_NORMAL_GROWTH_RATE,
    EXTENDED_DEPOSIT_DAY_CAP,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(default=10, ge=1)
    database_max_overflow: int = Field(default=20, ge=0)

    # Redis (for Dramatiq and distributed locks)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/ledger.log"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Accrual tick
    accrual_formula: str = Field(
        default="percent_of_balance",
        description="percent_of_balance, fixed_initial or deposit_target",
    )
    accrual_cron_hour: int = Field(default=0, ge=0, le=23)
    accrual_cron_minute: int = Field(default=0, ge=0, le=59)
    accrual_business_days_only: bool = False
    accrual_batch_size: int = Field(default=500, ge=1)
    daily_normal_rate: Decimal = Field(
        default=DEFAULT_DAILY_NORMAL_RATE, ge=0, le=1,
        description="Fraction of the normal wallet deducted per tick",
    )
    daily_benefit_rate: Decimal = Field(
        default=DEFAULT_DAILY_BENEFIT_RATE, ge=0, le=1,
        description="Fraction of the benefit wallet moved to withdrawal per tick",
    )
    growth_normal_rate: Decimal = Field(
        default=Decimal("0"), ge=0, le=1,
        description="Optional daily growth credited to the normal wallet",
    )
    growth_benefit_rate: Decimal = Field(
        default=Decimal("0"), ge=0, le=1,
        description="Optional daily growth credited to the benefit wallet",
    )
    deposit_target_multiplier: Decimal = Field(default=Decimal("2"), gt=0)
    deposit_target_days: int = Field(default=DEFAULT_DEPOSIT_DAY_CAP, gt=0)

    # Deposits
    deposit_fee_percent: Decimal = Field(default=Decimal("10"), ge=0, lt=100)
    deposit_benefit_multiplier: Decimal = Field(default=Decimal("2"), ge=0)
    deposit_normal_growth_rate: Decimal = Field(
        default=DEFAULT_NORMAL_GROWTH_RATE, ge=0, le=1
    )
    deposit_benefit_growth_rate: Decimal = Field(
        default=DEFAULT_BENEFIT_GROWTH_RATE, ge=0, le=1
    )
    deposit_day_cap: int = Field(default=DEFAULT_DEPOSIT_DAY_CAP, gt=0)
    minimum_deposit_amount: Decimal = Field(default=Decimal("1"), gt=0)

    # Withdrawals
    min_withdrawal_amount: Decimal = Field(default=Decimal("500"), gt=0)
    withdrawal_fee_percent: Decimal = Field(default=Decimal("10"), ge=0, lt=100)

    # Wallet transfers
    game_funding_benefit_multiplier: Decimal = Field(default=Decimal("2"), ge=0)

    # Referral graph
    max_referral_depth: int = Field(default=30, ge=1, le=30)
    rebuild_on_referral_change: bool = True
    level_tables_path: str | None = Field(
        default=None,
        description="Optional JSON file overriding the MLM level tables",
    )

    # Scheduled profit sharing
    daily_profit_share_percent: Decimal = Field(default=Decimal("1"), ge=0, le=100)
    level_based_percent_per_level: Decimal = Field(
        default=Decimal("0.5"), ge=0, le=100
    )
    daily_profit_share_hour: int = Field(default=0, ge=0, le=23)
    level_based_profit_share_hour: int = Field(default=1, ge=0, le=23)

    # Games
    color_entry_fee: Decimal = Field(default=Decimal("10"), gt=0)
    color_benefit_fee_multiplier: Decimal = Field(default=Decimal("2"), ge=0)
    color_max_players: int = Field(default=20, ge=2)
    color_winning_amount: Decimal = Field(default=Decimal("100"), ge=0)
    number_max_players: int = Field(default=10, ge=2)
    number_payout_multiplier: Decimal = Field(default=Decimal("1"), ge=0)
    game_reset_interval_seconds: int = Field(default=60, ge=1)
    color_reset_delay_seconds: int = Field(default=0, ge=0)
    number_reset_delay_seconds: int = Field(default=60, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('accrual_formula')
    @classmethod
    def validate_accrual_formula(cls, v: str) -> str:
        """Validate accrual formula name."""
        allowed = ("percent_of_balance", "fixed_initial", "deposit_target")
        if v not in allowed:
            raise ValueError(
                f'ACCRUAL_FORMULA must be one of {", ".join(allowed)}'
            )
        return v

    @field_validator('deposit_day_cap')
    @classmethod
    def validate_day_cap(cls, v: int) -> int:
        """Only the two configured deposit lifetimes are supported."""
        if v not in (DEFAULT_DEPOSIT_DAY_CAP, EXTENDED_DEPOSIT_DAY_CAP):
            raise ValueError(
                f'DEPOSIT_DAY_CAP must be {DEFAULT_DEPOSIT_DAY_CAP} '
                f'or {EXTENDED_DEPOSIT_DAY_CAP}'
            )
        return v

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql+asyncpg:// '
                'or sqlite+aiosqlite://'
            )
        if v.startswith('postgresql://'):
            v = 'postgresql+asyncpg://' + v[len('postgresql://'):]
        return v

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
                    'Row locks are not enforced by SQLite.'
                )
        return self


# Global settings instance
settings = Settings()
