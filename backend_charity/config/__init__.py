"""
Configuration management for Backend Charity.

Loads settings from environment variables and an optional .env file into
immutable objects built once at startup and passed down explicitly.
"""

from backend_charity.config.settings import (  # noqa: F401
    DeploymentConfig,
    ServerSettings,
    load_deployment_config,
    load_server_settings,
)

__all__ = [
    "DeploymentConfig",
    "ServerSettings",
    "load_deployment_config",
    "load_server_settings",
]
