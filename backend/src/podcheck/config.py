"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
The backend connection string is deployment-specific (production vs test)
and must always come from the environment or a .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from podcheck.domain.models import FieldLimits, LookupTable


class Settings(BaseSettings):
    """
    Application settings with validation.
    
    All settings are loaded from environment variables prefixed with
    PODCHECK_. Use .env file for local development.
    """
    
    model_config = SettingsConfigDict(
        env_prefix="PODCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    
    # Backend
    backend_url: str = Field(
        description="SQLAlchemy URL of the backend order database"
    )
    environment: Literal["production", "test"] = Field(
        default="test",
        description="Deployment environment the backend URL belongs to"
    )
    query_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-statement timeout in seconds (unset uses the driver default)"
    )
    
    # Lookup table
    lookup_schema: str | None = Field(
        default="zdemouser",
        description="Schema holding the order table (None for the default schema)"
    )
    lookup_table: str = Field(
        default="hhhordhp",
        description="Order table queried for customer/invoice existence"
    )
    invoice_column: str = Field(
        default="hhhinvn",
        description="Invoice number column of the order table"
    )
    customer_column: str = Field(
        default="hhhcusn",
        description="Customer number column of the order table"
    )
    
    # Field type catalog
    customer_max_length: int = Field(
        default=20,
        ge=1,
        description="Maximum length of the customer number field (J_ACCT#)"
    )
    invoice_max_length: int = Field(
        default=15,
        ge=1,
        description="Maximum length of the invoice number field (J_INV#)"
    )
    
    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )
    
    @property
    def field_limits(self) -> FieldLimits:
        """Return the configured per-field-type maximum lengths."""
        return FieldLimits(
            customer_max_length=self.customer_max_length,
            invoice_max_length=self.invoice_max_length,
        )
    
    @property
    def lookup(self) -> LookupTable:
        """Return the identifiers of the backend order table."""
        return LookupTable(
            name=self.lookup_table,
            invoice_column=self.invoice_column,
            customer_column=self.customer_column,
            schema=self.lookup_schema or None,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Settings are loaded once at startup and cached for subsequent calls.
    This ensures consistent configuration across the application lifecycle.
    """
    return Settings()
