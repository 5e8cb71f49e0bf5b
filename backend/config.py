"""Application configuration using pydantic-settings."""

from decimal import Decimal
from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from services.credential_manager import CREDENTIAL_KEYS, get_credential


class KeychainSettingsSource(PydanticBaseSettingsSource):
    """Settings source that reads provider API keys from the keychain.

    Sits ahead of the environment, so a stored key wins over ``.env``.
    Fields that are not provider keys are never looked up.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        key = field_name.upper()
        value = get_credential(key) if key in CREDENTIAL_KEYS else None
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        found: dict[str, Any] = {}
        for field_name, field_info in self.settings_cls.model_fields.items():
            value, name, _ = self.get_field_value(field_info, field_name)
            if value is not None:
                found[name] = value
        return found


class Settings(BaseSettings):
    """Settings resolved from init kwargs, keychain, environment, then .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            KeychainSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Yahoo Finance (keyless, tried first)
    YAHOO_FINANCE_ENABLED: bool = True
    YAHOO_FINANCE_BASE_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    YAHOO_CONNECT_TIMEOUT: float = 10.0
    YAHOO_READ_TIMEOUT: float = 15.0

    # Finnhub (optional - needs an API key)
    FINNHUB_API_KEY: str = ""
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    FINNHUB_ENABLED: bool = True

    # Alpha Vantage (optional - needs an API key, tightest rate limit)
    ALPHA_VANTAGE_API_KEY: str = ""
    ALPHA_VANTAGE_BASE_URL: str = "https://www.alphavantage.co"
    ALPHA_VANTAGE_ENABLED: bool = True

    # Timeouts for Finnhub and Alpha Vantage (seconds)
    PROVIDER_CONNECT_TIMEOUT: float = 2.5
    PROVIDER_READ_TIMEOUT: float = 5.0

    # Rebalancing
    MIN_TRADE_AMOUNT: Decimal = Decimal("10000")
    COMMISSION_RATE: Decimal = Decimal("0.0025")
    CAPITAL_GAINS_TAX_RATE: Decimal = Decimal("0.22")
    QUICK_ANALYSIS_ATTENTION_THRESHOLD: Decimal = Decimal("5.0")

    # Strategy selection breakpoints
    STRATEGY_SMALL_PORTFOLIO_CUTOFF: Decimal = Decimal("100000000")
    STRATEGY_CONSERVATIVE_RISK_MAX: int = 2
    STRATEGY_LONG_HORIZON_MONTHS: int = 60
    STRATEGY_MODERATE_RISK_MAX: int = 3
    STRATEGY_AGGRESSIVE_RISK_MIN: int = 4

    @field_validator("FINNHUB_API_KEY", "ALPHA_VANTAGE_API_KEY", mode="before")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        """Strip whitespace pasted along with an API key."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()


settings = Settings()
