"""Test configuration hooks."""

from datetime import datetime

import pytest

from cron_ticker.scheduler import JobRegistry


@pytest.fixture
def friday_morning():
    """2020-05-01 10:00, a Friday and the first of the month."""
    return datetime(2020, 5, 1, 10, 0)


@pytest.fixture
def registry():
    """A fresh, empty job registry."""
    return JobRegistry()
