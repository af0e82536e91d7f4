"""
Configuration for the OmniDash HTTP API.

Uses pydantic-settings for environment variable loading.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HTTP API configuration loaded from environment."""

    host: str = Field(default="127.0.0.1", description="API bind host")
    port: int = Field(default=8080, description="API bind port")

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    model_config = {"env_prefix": "OMNIDASH_API_"}
