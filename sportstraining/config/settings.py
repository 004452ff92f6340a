"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode keeps preferences (including the session cookie) in memory,
enabling local development without touching the file system.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "SportsTraining API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys accepted from the mobile front end."
    )

    # Visual Coaching Configuration
    vc_base_url: str = Field(
        default="https://cloud.visualcoaching2.com",
        description="Base URL of the Visual Coaching service. Relative session URLs are resolved against it."
    )
    vc_user_agent: str = Field(
        default="Mozilla/5.0 (compatible; SportsTrainingApp/1.0)",
        description="User-Agent sent on every request. Some vendor endpoints reject requests without one."
    )
    vc_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Request timeout. Unset means the HTTP client's default."
    )

    # Preferences Configuration
    preferences_path: str = Field(
        default=".sportstraining_prefs.json",
        description="JSON file holding the session cookie and display preferences"
    )
    preferences_mock_mode: bool = Field(
        default=False,
        description="Keep preferences in memory instead of on disk. Enables local dev and tests."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_required_fields(self) -> list[str]:
        """
        Validate settings that Pydantic can't check on its own.

        Returns list of problems, empty when the configuration is usable.
        """
        missing = []

        if not self.vc_base_url.startswith(("http://", "https://")):
            missing.append("VC_BASE_URL (must be an http(s) URL)")

        if not self.api_keys_list:
            missing.append("API_KEYS")

        if not self.preferences_mock_mode and not self.preferences_path:
            missing.append("PREFERENCES_PATH or PREFERENCES_MOCK_MODE")

        if self.vc_timeout_seconds is not None and self.vc_timeout_seconds <= 0:
            missing.append("VC_TIMEOUT_SECONDS (must be positive)")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
