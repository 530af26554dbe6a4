"""Configuration management using Pydantic Settings."""

# Load environment variables from .env file if it exists
# In production, environment variables are set directly
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE_OPT: Optional[str] = None

# Only load .env if it exists (for local development)
_env_path = Path(".env")
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)
    ENV_FILE_OPT = str(_env_path)


class Settings(BaseSettings):
    """Application configuration.

    Loads settings from environment variables prefixed with ``GATEWAY_``. In
    local development, these can be provided via a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        # Only hint an env file to pydantic if it actually exists
        env_file=ENV_FILE_OPT,
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Application
    app_name: str = "Assistant Gateway"
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    extension_version: str = Field(
        default="unknown", description="Version reported for the attached host session"
    )

    # Server
    host: str = Field(default="127.0.0.1", description="Bind address for both listeners")
    port: int = Field(default=7777, description="HTTP control API port")
    ws_port: int = Field(default=7778, description="Push channel (WebSocket) port")

    # Security
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed origins for CORS")

    # Push channel
    push_queue_size: int = Field(
        default=256,
        ge=1,
        description="Maximum queued outbound messages per subscriber before it is dropped",
    )
    push_ping_interval: float = Field(
        default=30.0, description="Seconds of client silence before the server sends a ping"
    )
    push_close_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Seconds a subscriber may spend flushing queued messages at shutdown",
    )

    # Screenshots
    screenshot_timeout: float = Field(
        default=30.0, description="Upper bound for one screenshot capture (seconds)"
    )
    screenshot_settle_delay: float = Field(
        default=1.0, description="Delay after navigation before capturing (seconds)"
    )

    # Standalone session
    default_instructions: str = Field(
        default="", description="Custom instructions the standalone session starts with"
    )

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


# Global settings instance
settings = Settings()
