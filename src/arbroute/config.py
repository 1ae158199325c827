"""Application configuration using pydantic-settings."""

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # Aggregator (LI.FI)
    # ======================
    aggregator_enabled: bool = Field(
        default=True, description="Offer aggregator routes on mainnet corridors"
    )
    lifi_api_url: str = Field(
        default="https://li.quest/v1", description="LI.FI API base URL"
    )
    lifi_api_key: Optional[str] = Field(default=None, description="LI.FI API key")
    lifi_integrator: str = Field(default="_arbitrum", description="LI.FI integrator id")
    quote_timeout_seconds: float = Field(
        default=30.0, description="HTTP timeout for a single routes request"
    )
    default_slippage: Decimal = Field(
        default=Decimal("0.5"), description="Default slippage tolerance in percent"
    )

    # ======================
    # Pipeline
    # ======================
    amount_debounce_ms: int = Field(
        default=300, description="Debounce window for amount input in milliseconds"
    )

    # ======================
    # Safety Guards
    # ======================
    dry_run: bool = Field(
        default=False, description="Use simulated aggregator quotes (no network calls)"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def amount_debounce_seconds(self) -> float:
        return self.amount_debounce_ms / 1000

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "aggregator": {
                "enabled": self.aggregator_enabled,
                "url": self.lifi_api_url,
                "api_key": "***" if self.lifi_api_key else "(not set)",
                "integrator": self.lifi_integrator,
                "timeout": self.quote_timeout_seconds,
                "slippage": str(self.default_slippage),
            },
            "amount_debounce_ms": self.amount_debounce_ms,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging for hosts embedding the engine."""
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
