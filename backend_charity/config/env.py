"""
Environment variable loading for Backend Charity.

- SUI_NETWORK: devnet | testnet | mainnet | localnet (default: testnet)
- SUI_RPC_URL: RPC endpoint override
- CHARITY_PACKAGE_ID / CHARITY_GLOBAL_CONFIG_ID / CHARITY_ADMIN_CAP_ID: deployed contract ids
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_charity/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

# Testnet deployment of charity_impact_protocol
DEFAULT_PACKAGE_ID = "0x1866265bdabf20bfab7f28f48f2c475ad4aba0f4eec379dc0f167192ca36dd5c"
DEFAULT_ADMIN_CAP_ID = "0x0024ff7e512ffea1b6ba88c19f601148b8c86f22adc88be9fbb0bcf9f9f8b864"
DEFAULT_GLOBAL_CONFIG_ID = "0xac6ae706beabc8a79e1c5d1cdf536749f5a6452c4df6ddb9e600c1378578b95d"
DEFAULT_MODULE_NAME = "charity_impact_protocol"
SUI_CLOCK_ID = "0x6"

NETWORK_RPC_URLS = {
    "devnet": "https://fullnode.devnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}
DEFAULT_NETWORK = "testnet"


def load_charity_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    """Stripped env value, or default when unset or blank."""
    raw = (os.getenv(name) or "").strip()
    return raw or default


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    return float(raw) if raw else default


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    return int(raw) if raw else default


def env_bool(name: str, default: bool) -> bool:
    raw = env_str(name).lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def get_sui_network() -> str:
    """
    Return SUI_NETWORK from env: devnet | testnet | mainnet | localnet.
    Unknown values fall back to testnet.
    """
    load_charity_env()
    raw = env_str("SUI_NETWORK", DEFAULT_NETWORK).lower()
    return raw if raw in NETWORK_RPC_URLS else DEFAULT_NETWORK


def get_sui_rpc_url() -> str:
    """Order: SUI_RPC_URL > public fullnode for SUI_NETWORK."""
    load_charity_env()
    url = env_str("SUI_RPC_URL")
    if url:
        return url
    return NETWORK_RPC_URLS[get_sui_network()]
