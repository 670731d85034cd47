"""
Root-level pytest configuration for DealScout.

Configures:
- pytest-asyncio for async test support
- Custom markers
"""

import pytest


def pytest_configure(config):
    """Register custom markers to avoid warnings."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests that talk to live sources (network access)"
    )


# asyncio_mode is "auto" in pyproject.toml so async tests need no decorator
pytest_plugins = ["pytest_asyncio"]
