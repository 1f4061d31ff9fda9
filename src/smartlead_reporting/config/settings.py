"""Configuration settings for Smartlead reporting.

This module defines the configuration settings for the Smartlead API client
and the export pipeline, including the credential, the API base URL, the
fixed rate-limit delay and cache TTL, and export output options.
Settings are loaded from environment variables and .env files.
"""

from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://server.smartlead.ai/api/v1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The Smartlead API authenticates with a static API key sent as a query
    parameter; it is optional at load time so that the settings object can
    always be created, and is enforced when an API client is built.

    :param smartlead_api_key: Smartlead API key
    :type smartlead_api_key: Optional[str]
    :param smartlead_base_url: Base URL for the Smartlead API
    :type smartlead_base_url: str
    :param rate_limit_delay: Minimum seconds between upstream requests
    :type rate_limit_delay: float
    :param cache_ttl: Seconds a cached response stays valid
    :type cache_ttl: float
    :param request_timeout: Read timeout for upstream requests in seconds
    :type request_timeout: float
    :param export_dir: Directory export workbooks are written to
    :type export_dir: str
    :param export_max_concurrency: Optional cap on concurrent analytics fetches
    :type export_max_concurrency: Optional[int]
    :param dashboard_client_name: Display name of the dashboard
    :type dashboard_client_name: str
    :param log_level: Logging level for the application
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",  # Ignore extra fields in .env file
    )

    smartlead_api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("SMARTLEAD_API_KEY", "VITE_SMARTLEAD_API_KEY"),
        description="Smartlead API key",
    )
    smartlead_base_url: str = Field(
        DEFAULT_BASE_URL,
        validation_alias=AliasChoices("SMARTLEAD_BASE_URL", "VITE_SMARTLEAD_BASE_URL"),
        description="Smartlead API base URL",
    )

    # 10 requests per 2 seconds
    rate_limit_delay: float = Field(
        0.2, ge=0, description="Minimum delay between upstream requests (seconds)"
    )
    cache_ttl: float = Field(
        300.0, gt=0, description="Response cache time-to-live (seconds)"
    )
    request_timeout: float = Field(
        30.0, gt=0, description="Upstream read timeout (seconds)"
    )

    export_dir: str = Field("exports", description="Export output directory")
    export_max_concurrency: Optional[int] = Field(
        None, ge=1, description="Cap on concurrent analytics fetches during export"
    )

    dashboard_client_name: str = Field(
        "Smartlead Dashboard",
        validation_alias=AliasChoices("DASHBOARD_CLIENT_NAME", "VITE_CLIENT_NAME"),
        description="Dashboard display name",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )

    @field_validator("smartlead_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so endpoint paths can be appended.

        :param v: The configured base URL
        :type v: str
        :return: Base URL without trailing slash
        :rtype: str
        """
        return v.rstrip("/")

    @field_validator("smartlead_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace-only key as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip()


settings = Settings()
"""Global settings instance for Smartlead reporting.

This instance is created once and used by the command-line entry point
and the client factory when no explicit settings are passed.
"""
