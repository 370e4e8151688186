"""Export test configuration: local time pinned to UTC+7."""

from datetime import timedelta, timezone

import pytest


@pytest.fixture
def tz():
    return timezone(timedelta(hours=7))
