"""Pytest configuration and fixtures.

Test Markers:
    - Default: Unit tests run automatically
    - @pytest.mark.manual: Tests that launch a real browser
    - @pytest.mark.slow: Tests that take more than a few seconds

Run commands:
    pytest                          # Run unit tests only (default)
    pytest -m manual                # Run manual/browser tests
    pytest -m "not slow"            # Skip slow tests
    pytest -m ""                    # Run ALL tests (no filter)
"""

import os

# Must be set before app.core.configs is imported anywhere
os.environ.setdefault('ENVIRONMENT', 'testing')
os.environ.setdefault('LOG_HANDLERS', 'stream')

import pytest  # noqa: E402
from faker import Faker  # noqa: E402


@pytest.fixture(scope='session')
def faker() -> Faker:
    return Faker()
