"""
Application settings with environment-based configuration.

Priority (highest to lowest):
1. Environment variables (from .env or system)
2. Environment-specific YAML config file (development.yaml, production.yaml)
3. Default YAML config file (default.yaml)
4. Pydantic defaults
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All sensitive values (secrets, gateway keys) should come from
    environment variables, not from YAML files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Application
    APP_NAME: str = "Tresorier"
    APP_VERSION: str = "0.1.0"
    ENV: str = Field(default="development", description="Environment name")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # API Server
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8010, ge=1024, le=65535)
    API_RELOAD: bool = Field(default=False)

    # CORS Configuration
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    # Database (from environment - REQUIRED in production)
    DATABASE_URL: str = Field(..., description="Database connection URL")
    DATABASE_ECHO: bool = Field(default=False)
    DATABASE_POOL_SIZE: int = Field(default=20, ge=1)
    DATABASE_CREATE_TABLES: bool = Field(
        default=False,
        description="Create tables on startup (development and tests only)",
    )

    # JWT Authentication (from environment - REQUIRED in production)
    JWT_SECRET_KEY: str = Field(..., description="JWT secret key")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRATION_HOURS: int = Field(default=24, ge=1)
    INTERNAL_API_TOKEN: str = Field(
        ...,
        description="Bearer token for trusted server-to-server endpoints",
    )

    # Redis (balance cache)
    REDIS_ENABLED: bool = Field(default=False)
    REDIS_HOST: str = Field(default="localhost")
    REDIS_PORT: int = Field(default=6379, ge=1024, le=65535)
    REDIS_DB: int = Field(default=0, ge=0, le=15)
    REDIS_PASSWORD: Optional[str] = Field(default=None)
    BALANCE_CACHE_TTL_SECONDS: int = Field(
        default=60,
        ge=1,
        description="Max age of a cached balance snapshot",
    )

    # Withdrawals
    MIN_WITHDRAWAL_AMOUNT: Decimal = Field(
        default=Decimal("100"),
        gt=0,
        description="Smallest withdrawal (inclusive)",
    )
    MAX_WITHDRAWAL_AMOUNT: Decimal = Field(
        default=Decimal("50000"),
        gt=0,
        description="Largest withdrawal (inclusive)",
    )
    WITHDRAWAL_MODE: str = Field(
        default="gateway",
        description="gateway (instant payout) or manual (back-office NEFT/IMPS)",
    )
    MANUAL_WITHDRAWAL_THRESHOLD: Optional[Decimal] = Field(
        default=None,
        description="Amounts above this always go to manual processing",
    )

    # Recharges
    MIN_RECHARGE_AMOUNT: Decimal = Field(
        default=Decimal("1"),
        gt=0,
        description="Smallest wallet recharge (inclusive)",
    )
    MAX_RECHARGE_AMOUNT: Decimal = Field(
        default=Decimal("100000"),
        gt=0,
        description="Largest wallet recharge (inclusive)",
    )

    # Verification
    OTP_LENGTH: int = Field(default=6, ge=4, le=10)
    OTP_EXPIRY_SECONDS: int = Field(default=600, ge=30)
    OTP_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    OTP_HASH_SECRET: str = Field(..., description="HMAC key for OTP hashes")
    MICRO_DEPOSIT_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    MICRO_DEPOSIT_EXPIRY_SECONDS: int = Field(default=86400, ge=60)
    PENNY_DROP_MIN_MINOR: int = Field(
        default=100,
        ge=1,
        description="Smallest penny-drop amount in paise",
    )
    PENNY_DROP_MAX_MINOR: int = Field(
        default=999,
        ge=1,
        description="Largest penny-drop amount in paise",
    )

    # Payout gateway
    PAYOUT_GATEWAY: str = Field(
        default="razorpay",
        description="razorpay or simulated (also selects the checkout order gateway)",
    )
    RAZORPAY_BASE_URL: str = Field(default="https://api.razorpay.com/v1")
    RAZORPAY_KEY_ID: Optional[str] = Field(default=None)
    RAZORPAY_KEY_SECRET: Optional[str] = Field(default=None)
    RAZORPAY_ACCOUNT_NUMBER: Optional[str] = Field(
        default=None,
        description="Platform source account for payouts",
    )
    PAYMENT_WEBHOOK_SECRET: str = Field(
        ...,
        description="HMAC secret for payment gateway webhooks",
    )
    GATEWAY_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    GATEWAY_CONNECT_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Bank registry lookup (bank_api verification)
    BANK_VERIFICATION_URL: Optional[str] = Field(
        default=None,
        description="Registry lookup endpoint (offline rule when unset)",
    )

    # OTP dispatch
    OTP_DISPATCH_URL: Optional[str] = Field(
        default=None,
        description="SMS/email provider endpoint (logged when unset)",
    )

    # Notification channel
    EVENTS_URL: Optional[str] = Field(
        default=None,
        description="Notification service base URL (events logged when unset)",
    )
    EVENTS_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # Resilience - Circuit Breaker
    CB_FAILURE_THRESHOLD: int = Field(
        default=5,
        description="Circuit breaker failure threshold",
    )
    CB_SUCCESS_THRESHOLD: int = Field(
        default=2,
        description="Circuit breaker success threshold for half-open",
    )
    CB_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        description="Circuit breaker open state timeout",
    )

    # Background jobs
    SWEEPER_ENABLED: bool = Field(default=True)
    SWEEPER_INTERVAL_SECONDS: float = Field(
        default=60.0,
        gt=0,
        description="How often expired verification attempts are purged",
    )

    # Observability - Metrics
    METRICS_ENABLED: bool = Field(
        default=True,
        description="Expose Prometheus metrics at /metrics",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Invalid LOG_LEVEL. Must be one of: {allowed}")
        return v_upper

    @field_validator("WITHDRAWAL_MODE")
    @classmethod
    def validate_withdrawal_mode(cls, v: str) -> str:
        """Validate withdrawal mode."""
        allowed = ["gateway", "manual"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid WITHDRAWAL_MODE. Must be one of: {allowed}")
        return v_lower

    @field_validator("PAYOUT_GATEWAY")
    @classmethod
    def validate_payout_gateway(cls, v: str) -> str:
        """Validate payout gateway."""
        allowed = ["razorpay", "simulated"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid PAYOUT_GATEWAY. Must be one of: {allowed}")
        return v_lower

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Validate min/max pairs."""
        if self.MIN_WITHDRAWAL_AMOUNT > self.MAX_WITHDRAWAL_AMOUNT:
            raise ValueError("MIN_WITHDRAWAL_AMOUNT exceeds MAX_WITHDRAWAL_AMOUNT")
        if self.MIN_RECHARGE_AMOUNT > self.MAX_RECHARGE_AMOUNT:
            raise ValueError("MIN_RECHARGE_AMOUNT exceeds MAX_RECHARGE_AMOUNT")
        if self.PENNY_DROP_MIN_MINOR > self.PENNY_DROP_MAX_MINOR:
            raise ValueError("PENNY_DROP_MIN_MINOR exceeds PENNY_DROP_MAX_MINOR")
        return self


# tresorier/ (holds config/ and the .env files)
SERVICE_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = SERVICE_ROOT / "config"

# ENV -> (.env file, YAML overlay)
ENVIRONMENT_FILES = {
    "production": (".env.production", "production.yaml"),
    "development": (".env.development", "development.yaml"),
    "test": (".env.test", "test.yaml"),
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(
    config_file: Optional[str] = None,
    env_file: Optional[str] = None,
    env: Optional[str] = None,
) -> Settings:
    """
    Build Settings for an environment.

    Args:
        config_file: YAML overlay under config/ (defaults per environment)
        env_file: .env file under the service root (defaults per environment)
        env: Environment name; falls back to $ENV, then "production"

    Returns:
        Settings instance

    Raises:
        pydantic.ValidationError: Required secrets missing or values out of range
    """
    environment = env or os.getenv("ENV", "production")
    default_env_file, default_overlay = ENVIRONMENT_FILES.get(
        environment, ENVIRONMENT_FILES["production"]
    )

    dotenv_path = SERVICE_ROOT / (env_file or default_env_file)
    if dotenv_path.is_file():
        load_dotenv(dotenv_path, override=True)

    values = _read_yaml(CONFIG_DIR / "default.yaml")
    values.update(_read_yaml(CONFIG_DIR / (config_file or default_overlay)))

    # Let pydantic-settings read anything set in the environment
    overrides = {k: v for k, v in values.items() if k not in os.environ}
    return Settings(**overrides)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def override_settings(new_settings: Settings) -> None:
    global _settings
    _settings = new_settings


def reset_settings() -> None:
    global _settings
    _settings = None
