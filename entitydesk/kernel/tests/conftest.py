"""
Kernel test configuration.

Every test that touches local time pins the zone to UTC+7 so results do
not depend on the machine running the suite.
"""

from datetime import timedelta, timezone

import pytest

BANGKOK = timezone(timedelta(hours=7))


@pytest.fixture
def tz():
    return BANGKOK
