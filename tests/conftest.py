"""
Test configuration and fixtures for the almrest project.

This file is the root pytest configuration file that sets up pytest
markers and imports fixtures from the fixtures modules to make them
available to all tests.
"""

import logging

import pytest

# Import fixtures from the fixtures modules to make them available to all tests
from tests.fixtures.base import (
    alm_config,
    base_test_env,
    make_http_error,
    mock_connector,
    mock_env_vars,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line("markers", "integration: mark a test as an integration test")
    config.addinivalue_line("markers", "cli: mark a test that tests CLI functionality")


@pytest.fixture(autouse=True)
def _propagate_almrest_logs():
    """Let caplog see almrest records even after configure_logging disabled propagation."""
    almrest_logger = logging.getLogger("almrest")
    previous = almrest_logger.propagate
    almrest_logger.propagate = True
    yield
    almrest_logger.propagate = previous
