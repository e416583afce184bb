"""Configuration management using pydantic-settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "0.1.0"


class Settings(BaseSettings):
    """
    Library defaults loaded from environment variables.

    Only URLCACHE_-prefixed keys are read, from the environment or from a .env
    file in the current working directory of the embedding process.
    """

    # Polling
    # Used whenever the caller passes a zero or negative interval
    default_check_interval: float = 60.0

    # HTTP settings
    request_timeout: float = 30.0
    user_agent: str = f"urlcache/{VERSION}"

    # Cache file settings
    # Suffix for the fallback temp file written next to the cache file
    temp_suffix: str = ".tmp"

    model_config = SettingsConfigDict(
        env_prefix="URLCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
