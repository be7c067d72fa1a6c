"""
Fixtures for CLI tests.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep CLI invocations from replacing the root log handlers."""
    with patch("subtrack.cli.main.configure_logging") as mock_configure:
        yield mock_configure
