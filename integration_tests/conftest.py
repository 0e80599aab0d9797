"""Pytest configuration for integration tests."""

import logging

import pytest


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep CLI log output out of captured command output."""
    logging.getLogger("wellness_pass").setLevel(logging.ERROR)
    yield
    logging.getLogger("wellness_pass").setLevel(logging.NOTSET)


def pytest_collection_modifyitems(items):
    """Mark everything collected from this directory as an integration test."""
    for item in items:
        if "integration_tests" in str(item.path):
            item.add_marker(pytest.mark.integration)
