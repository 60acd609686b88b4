"""
Pytest fixtures for backend_charity tests. Ledger traffic goes to an
in-memory fake node over httpx.MockTransport; nothing touches the network.
"""

from __future__ import annotations

import pytest

from ledger_fakes import ADMIN_CAP, GLOBAL_CONFIG, MODULE, PKG, FakeSuiNode


@pytest.fixture
def deployment():
    from backend_charity.config.settings import DeploymentConfig

    return DeploymentConfig(
        rpc_url="http://sui.test",
        package_id=PKG,
        module_name=MODULE,
        global_config_id=GLOBAL_CONFIG,
        admin_cap_id=ADMIN_CAP,
    )


@pytest.fixture
def node():
    return FakeSuiNode()


@pytest.fixture
def make_reader(node):
    """Factory for a SuiLedgerReader wired to the fake node (create inside the event loop)."""
    from backend_charity.ledger.client import SuiLedgerReader

    def _make(**kwargs):
        kwargs.setdefault("min_retry_delay_sec", 0.0)
        kwargs.setdefault("max_retry_delay_sec", 0.0)
        return SuiLedgerReader("http://sui.test", transport=node.transport(), **kwargs)

    return _make


@pytest.fixture
def server_settings():
    from backend_charity.config.settings import ServerSettings

    return ServerSettings(gemini_api_key="test-key", ledger_sync_enabled=False)
