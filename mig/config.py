"""
Framework configuration definition.

Loads configuration from environment variables (prefix ``MIG_``) and an
optional .env file. Uses pydantic-settings for type safety and defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MigConfig(BaseSettings):
    """
    Settings for a Mig instance.
    """

    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_CONFIG_PATH: str = Field(default="", description="YAML logging config file path")

    # Server settings
    BIND_ADDR: str = Field(default="0.0.0.0:8080", description="Listen address (host:port)")
    SHUTDOWN_TIMEOUT: float = Field(
        default=10.0, description="Time allowed for in-flight requests on shutdown (seconds)"
    )
    KEEP_ALIVE_TIMEOUT: int = Field(default=75, description="Idle keep-alive timeout (seconds)")

    # Request handling
    POOL_MAX_IDLE: int = Field(default=0, ge=0, description="Max idle pooled contexts (0 = no limit)")
    REDIRECT_SLASHES: bool = Field(
        default=True, description="Redirect on trailing slash mismatch"
    )

    model_config = SettingsConfigDict(
        env_prefix="MIG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )
