# backend/sitopay/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", case_sensitive=False)

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development", description="Deployment environment name"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # Auth (tokens are issued by the main application; we only verify them)
    secret_key: SecretStr = Field(
        default=SecretStr("dev-secret-key-change-me"),
        description="Secret key for JWT tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    database_url: str = Field(
        default="sqlite:///./sito_payments.db",
        description="SQLAlchemy database URL",
    )
    auto_create_tables: bool = Field(
        default=True, description="Create tables on startup (local SQLite convenience)"
    )

    site_url: str = Field(
        default="http://localhost:3000",
        description="Public frontend origin used for Stripe redirect URLs",
    )
    cors_origins_csv: str = Field(
        default="http://localhost:3000",
        alias="cors_origins",
        description="Comma separated list of allowed CORS origins",
    )

    # Stripe Configuration
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key for backend API calls",
    )

    # Webhook secrets - local CLI secret and deployed Connect endpoint secret
    stripe_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe webhook secret for local dev (Stripe CLI)",
    )
    stripe_webhook_secret_connect: SecretStr = Field(
        default=SecretStr(""),
        description="Connect events webhook secret (deployed)",
    )

    stripe_platform_fee_percent: int = Field(
        default=20, ge=0, le=100, description="Platform fee percentage (20 = 20%)"
    )
    stripe_default_currency: str = Field(
        default="usd", description="Default currency for new products"
    )
    stripe_products_list_max: int = Field(
        default=100, description="Provider-imposed ceiling on list page size"
    )
    stripe_timeout_seconds: int = Field(default=8, description="Stripe HTTP timeout")
    stripe_max_network_retries: int = Field(
        default=1, description="Retries for transient Stripe network failures"
    )

    @field_validator("stripe_default_currency")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        return (value or "usd").strip().lower()

    @field_validator("site_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins_csv.split(",") if origin.strip()]

    @property
    def webhook_secrets(self) -> list[str]:
        """Build list of webhook secrets to try in order."""
        secrets = []

        for secret in (self.stripe_webhook_secret, self.stripe_webhook_secret_connect):
            secret_str = secret.get_secret_value() if secret else ""
            if secret_str:
                secrets.append(secret_str)

        return secrets


settings = Settings()
