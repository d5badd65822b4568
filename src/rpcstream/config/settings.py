"""Server stream settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """JSON-RPC server stream settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RPCSTREAM_",
        case_sensitive=False,
        extra="ignore",
    )

    ignore_version: bool = Field(default=False)
    line_delimited: bool = Field(default=True)
    host: str = Field(default="localhost")
    port: int = Field(default=7893)

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"


def load_settings(**overrides: object) -> ServerSettings:
    """Load settings from the environment, letting explicit options win."""
    return ServerSettings(**{key: value for key, value in overrides.items() if value is not None})
