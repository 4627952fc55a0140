"""
Shared pytest fixtures and configuration for the onetime test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Shared fixtures for clocks, entities and storage doubles
- Automatic markers based on test location
"""

from unittest.mock import Mock

import pytest
from hypothesis import HealthCheck, Phase, settings

from onetime.config.settings import OnetimeConfig
from onetime.domain.clock import FixedClock
from onetime.domain.storage import OnetimeStorage
from tests.fixtures import MockStorage, create_file, create_link

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")


# =============================================================================
# Clock Fixtures
# =============================================================================

@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock pinned at 2000 ms, the redemption instant used across tests."""
    return FixedClock(2000)


# =============================================================================
# Entity Fixtures
# =============================================================================

@pytest.fixture
def sample_file():
    return create_file()


@pytest.fixture
def sample_link():
    return create_link(token="00000000000003e8aaaaaaaaaaaaaaaa")


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def mock_storage() -> MockStorage:
    """In-memory storage with at-most-once mark semantics."""
    return MockStorage()


@pytest.fixture
def storage_spec_mock():
    """
    Provide a Mock constrained to the OnetimeStorage interface.

    Each test sets the return values or side effects it needs.
    """
    return Mock(spec=OnetimeStorage)


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def test_config() -> OnetimeConfig:
    """Configuration with known API keys and small size limits."""
    return OnetimeConfig(
        provider="redis",
        files_api_key="files-secret",
        links_api_key="links-secret",
        max_len_file=64,
        max_len_value=20,
    )


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/contracts/* -> @pytest.mark.contract
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/contracts/" in test_path or "\\contracts\\" in test_path:
            item.add_marker(pytest.mark.contract)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
