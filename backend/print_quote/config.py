# config.py

import logging
from typing import Dict, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.common_types import PricingRates

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore' # Ignore extra fields from environment/dotenv
    )

    # Logging Configuration
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")

    # Catalog & Storage
    materials_file: Optional[str] = Field(None, description="Optional override path for the material catalog JSON file.")
    max_upload_size_mb: float = Field(50, gt=0, description="Largest accepted upload, in megabytes.")
    quote_validity_days: int = Field(7, ge=1, description="Days before an active quote expires.")

    # Pricing & Scheduling Rates
    base_print_speed_cm3_per_hour: float = Field(30.0, gt=0)
    labor_rate_per_hour: float = Field(15.0, ge=0)
    shipping_days: int = Field(2, ge=0)
    productive_hours_per_day: float = Field(8.0, gt=0)
    support_time_factor: float = Field(1.3, ge=1.0)
    post_processing_fees: Optional[Dict[str, float]] = Field(
        None, description="JSON object of finishing option -> flat fee per unit. Defaults to the built-in table."
    )
    unknown_post_processing: Literal["warn", "reject"] = Field(
        "warn", description="'warn' skips unknown finishing options, 'reject' refuses the quote."
    )

    # Validators
    @field_validator('log_level')
    @classmethod
    def log_level_must_be_valid(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of {valid_levels}')
        return v.upper()

    @field_validator('post_processing_fees')
    @classmethod
    def fees_must_be_non_negative(cls, v):
        if v is not None and any(fee < 0 for fee in v.values()):
            raise ValueError('post_processing_fees must not contain negative fees')
        return v

    @property
    def max_upload_size_bytes(self) -> int:
        return int(self.max_upload_size_mb * 1024 * 1024)

    def pricing_rates(self) -> PricingRates:
        """Builds the rates injected into pricing, time and delivery estimation."""
        overrides = dict(
            base_print_speed_cm3_per_hour=self.base_print_speed_cm3_per_hour,
            labor_rate_per_hour=self.labor_rate_per_hour,
            shipping_days=self.shipping_days,
            productive_hours_per_day=self.productive_hours_per_day,
            support_time_factor=self.support_time_factor,
            unknown_post_processing=self.unknown_post_processing,
        )
        if self.post_processing_fees is not None:
            overrides["post_processing_fees"] = self.post_processing_fees
        return PricingRates(**overrides)

def setup_logging(level: Optional[str] = None) -> None:
    """Configures the root logger at the given level, or the configured one."""
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)

def get_settings() -> Settings:
    """Returns the loaded settings instance (used as a FastAPI dependency)."""
    return settings

# --- Singleton Instance ---
# Create a single instance of the settings to be imported across the application
settings = Settings()
logger.debug(f"Configuration loaded. Log level: {settings.log_level}, "
             f"max upload {settings.max_upload_size_mb} MB, quote validity {settings.quote_validity_days} days")
