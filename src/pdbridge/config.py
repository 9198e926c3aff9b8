"""Configuration management for pdbridge."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pdbridge.codec import DEFAULT_MAX_RECORD_BYTES
from pdbridge.transport import DEFAULT_READ_CHUNK_BYTES


class Settings(BaseSettings):
    """Runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="PDBRIDGE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level for stderr diagnostics")
    log_format: Literal["default", "plain"] = Field(default="default", description="Log line format")

    # Wire Configuration
    max_record_bytes: int = Field(default=DEFAULT_MAX_RECORD_BYTES, gt=0, description="Maximum size of one record")
    read_chunk_bytes: int = Field(default=DEFAULT_READ_CHUNK_BYTES, gt=0, description="Bytes requested per read")
    include_traces: bool = Field(default=True, description="Attach tracebacks to handler error records")

    # Host Configuration
    inlets: int = Field(default=1, ge=1, description="Number of inlets on the host object")
    outlets: int = Field(default=1, ge=1, description="Number of outlets on the host object")


def get_settings(**overrides: object) -> Settings:
    """Get settings from the environment, with explicit overrides applied.

    Overrides whose value is None are ignored so CLI options only win when given.
    """

    values = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**values)
