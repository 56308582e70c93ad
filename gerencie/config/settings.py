"""
Configuration Management for Gerencie

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so it is easy to see which external
services exist. Remote storage credentials can also be entered at runtime
from the Database page; those are persisted in the local store and take
precedence over the environment (see services.storage.supabase_store).
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class SupabaseSettings(BaseSettings):
    """
    Remote table store configuration.

    Both values may be empty: the app then runs on the local store only.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        default="",
        description="Project URL (https://<project>.supabase.co)"
    )
    key: str = Field(
        default="",
        description="Anonymous (public) API key"
    )

    @field_validator("url", "key")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return v.strip()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Local store
    data_dir: Path = Field(
        default=Path(".gerencie"),
        description="Directory holding the local key-value store"
    )
    local_latency_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=5.0,
        description="Simulated delay applied to local store operations"
    )

    # Display
    default_mode: str = Field(
        default="Personal",
        description="Mode selected when the app starts"
    )
    currency_symbol: str = Field(
        default="R$",
        description="Currency symbol used in messages and views"
    )

    # File upload limits for the agent
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )
    supported_audio_formats: str = Field(
        default="mp3,wav,ogg,webm,m4a",
        description="Comma-separated list of supported audio formats"
    )

    @property
    def supported_image_list(self) -> list[str]:
        """Get supported image formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def supported_audio_list(self) -> list[str]:
        """Get supported audio formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_audio_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Gemini key does not
    # prevent the storage layer from starting.

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a `<name>_error`
    entry for each failure. Useful for startup checks.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    checks = {
        "gemini": lambda: settings.gemini,
        "supabase": lambda: settings.supabase,
        "app": lambda: settings.app,
    }

    for name, load in checks.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    # Remote storage is optional; report whether credentials are present
    if results.get("supabase"):
        supabase = settings.supabase
        results["supabase_credentials"] = bool(supabase.url and supabase.key)

    return results
