"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── tdd/         Service tests with in-memory repositories
    └── mocks/       Shared mock implementations

Usage:
    pytest tests/component -v
    pytest tests/component/tdd/order_service -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.config import CommerceConfig
from tests.component.mocks import MockEventBus


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def mock_event_bus() -> MockEventBus:
    """Mock NATS event bus"""
    return MockEventBus()


@pytest.fixture
def fast_config() -> CommerceConfig:
    """Commerce policy with no retry backoff"""
    return CommerceConfig(retry_attempts=3, retry_min_wait=0, retry_max_wait=0)
