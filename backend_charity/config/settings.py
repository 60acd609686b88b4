"""
Application settings.

Responsibilities:
- Build the immutable DeploymentConfig (contract ids, RPC endpoint) once at
  startup; business logic receives it as a parameter and never reads globals.
- Build ServerSettings for the HTTP service and validate required credentials.
  A missing LLM key is the one intentionally fatal error.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from backend_charity.config.env import (
    DEFAULT_ADMIN_CAP_ID,
    DEFAULT_GLOBAL_CONFIG_ID,
    DEFAULT_MODULE_NAME,
    DEFAULT_PACKAGE_ID,
    SUI_CLOCK_ID,
    env_bool,
    env_float,
    env_int,
    env_str,
    get_sui_rpc_url,
    load_charity_env,
)
from backend_charity.core.exceptions import ConfigurationError
from backend_charity.ledger.decoder import DEFAULT_IPFS_GATEWAY

DEFAULT_PORT = 5000
DEFAULT_MODEL_NAME = "gemini-1.5-flash"
DEFAULT_DOCUMENT_TIMEOUT_SEC = 20.0


@dataclass(frozen=True)
class DeploymentConfig:
    """Identifiers of one deployment of the charity contract; fixed per network."""

    rpc_url: str
    package_id: str = DEFAULT_PACKAGE_ID
    module_name: str = DEFAULT_MODULE_NAME
    global_config_id: str = DEFAULT_GLOBAL_CONFIG_ID
    admin_cap_id: str = DEFAULT_ADMIN_CAP_ID
    clock_id: str = SUI_CLOCK_ID

    def __post_init__(self) -> None:
        for name in ("rpc_url", "package_id", "module_name", "global_config_id", "admin_cap_id"):
            if not getattr(self, name):
                raise ConfigurationError(f"DeploymentConfig.{name} must be non-empty")

    def event_type(self, name: str) -> str:
        """Fully-qualified Move event type, e.g. <pkg>::charity_impact_protocol::BidPlaced."""
        return f"{self.package_id}::{self.module_name}::{name}"

    def struct_type(self, name: str) -> str:
        return f"{self.package_id}::{self.module_name}::{name}"

    def move_target(self, function: str) -> str:
        return f"{self.package_id}::{self.module_name}::{function}"


@dataclass(frozen=True)
class ServerSettings:
    """HTTP service settings; gemini_api_key is required."""

    gemini_api_key: str
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    model_name: str = DEFAULT_MODEL_NAME
    ipfs_gateway: str = DEFAULT_IPFS_GATEWAY
    document_timeout_sec: float = DEFAULT_DOCUMENT_TIMEOUT_SEC
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))
    ledger_sync_enabled: bool = True
    log_level: str = "info"

    def __post_init__(self) -> None:
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is required")
        if self.document_timeout_sec <= 0:
            raise ConfigurationError("document_timeout_sec must be positive")


def load_deployment_config() -> DeploymentConfig:
    """Read deployment ids from env with hard-coded testnet fallbacks."""
    load_charity_env()
    return DeploymentConfig(
        rpc_url=get_sui_rpc_url(),
        package_id=env_str("CHARITY_PACKAGE_ID", DEFAULT_PACKAGE_ID),
        module_name=env_str("CHARITY_MODULE_NAME", DEFAULT_MODULE_NAME),
        global_config_id=env_str("CHARITY_GLOBAL_CONFIG_ID", DEFAULT_GLOBAL_CONFIG_ID),
        admin_cap_id=env_str("CHARITY_ADMIN_CAP_ID", DEFAULT_ADMIN_CAP_ID),
    )


def load_server_settings() -> ServerSettings:
    """
    Read server settings from env.

    Raises:
        ConfigurationError: GEMINI_API_KEY unset or a numeric setting invalid.
    """
    load_charity_env()
    try:
        port = env_int("PORT", DEFAULT_PORT)
        timeout = env_float("DOCUMENT_FETCH_TIMEOUT_SEC", DEFAULT_DOCUMENT_TIMEOUT_SEC)
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}") from e
    origins = tuple(o.strip() for o in env_str("CORS_ORIGINS", "*").split(",") if o.strip())
    return ServerSettings(
        gemini_api_key=env_str("GEMINI_API_KEY"),
        host=env_str("API_HOST", "0.0.0.0"),
        port=port,
        model_name=env_str("GEMINI_MODEL", DEFAULT_MODEL_NAME),
        ipfs_gateway=env_str("IPFS_GATEWAY", DEFAULT_IPFS_GATEWAY),
        document_timeout_sec=timeout,
        cors_origins=origins or ("*",),
        ledger_sync_enabled=env_bool("LEDGER_SYNC_ENABLED", True),
        log_level=env_str("LOG_LEVEL", "info").lower(),
    )
