"""
Shared pytest fixtures for Kubeship tests.

This module provides common fixtures including:
- InMemoryResourceStore standing in for the cluster
- Static routing/build/cluster config
- FakeConnection observers for the broadcast channel
- FastAPI test client wired to the in-memory store
"""

import os
import sys
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kubeship.config.provider import BuildConfig, ClusterConfig, RoutingConfig
from kubeship.modules.broadcast import BroadcastModule
from kubeship.modules.store import InMemoryResourceStore

TEST_NAMESPACE = "apps"
TEST_BASE_DOMAIN = "example.test"


# =============================================================================
# Config
# =============================================================================


class StaticConfigProvider:
    """ConfigProvider returning fixed values, independent of the environment."""

    def __init__(self, tls_enabled: bool = True):
        self.tls_enabled = tls_enabled

    def get_routing_config(self) -> RoutingConfig:
        return RoutingConfig(
            base_domain=TEST_BASE_DOMAIN,
            ingress_class="nginx",
            tls_enabled=self.tls_enabled,
            cluster_issuer="letsencrypt-prod",
        )

    def get_build_config(self) -> BuildConfig:
        return BuildConfig(
            registry="registry.example.test/team",
            registry_auth="regcred",
            buildkit_addr="tcp://buildkitd:1234",
            git_image="alpine/git:latest",
            buildkit_image="moby/buildkit:latest",
        )

    def get_cluster_config(self) -> ClusterConfig:
        return ClusterConfig(kubeconfig_path=None, context=None, image_pull_secret="ghcr-secret")


@pytest.fixture
def config_provider():
    return StaticConfigProvider()


@pytest.fixture
def routing(config_provider):
    return config_provider.get_routing_config()


@pytest.fixture
def build_config(config_provider):
    return config_provider.get_build_config()


@pytest.fixture
def cluster_config(config_provider):
    return config_provider.get_cluster_config()


# =============================================================================
# Store and broadcast
# =============================================================================


@pytest.fixture
def memory_store():
    """Empty in-memory store scoped to the test namespace."""
    return InMemoryResourceStore(namespace=TEST_NAMESPACE)


@pytest.fixture
def broadcast():
    return BroadcastModule()


class FakeConnection:
    """Observer connection that records what it was sent."""

    def __init__(self, is_open: bool = True, fail: bool = False):
        self.is_open = is_open
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    async def send_json(self, data: Dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(data)

    @property
    def messages(self) -> List[str]:
        return [event["message"] for event in self.sent]


@pytest.fixture
def make_connection():
    return FakeConnection


# =============================================================================
# API
# =============================================================================


@pytest.fixture
def api_client(memory_store, config_provider):
    """TestClient running the full app (lifespan included) over the in-memory store."""
    from kubeship.main import create_app

    app = create_app(store=memory_store, config_provider=config_provider)
    with TestClient(app) as client:
        yield client


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
