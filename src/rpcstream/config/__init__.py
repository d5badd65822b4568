"""Configuration package."""

from rpcstream.config.settings import ServerSettings, load_settings

__all__ = [
    "ServerSettings",
    "load_settings",
]
