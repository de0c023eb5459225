import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parent.parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from helpdesk_sla.sla.domain import BusinessHoursConfig  # noqa: E402


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def nine_to_six():
    """Mon-Fri 09:00-18:00 UTC."""
    return BusinessHoursConfig(start_hour=9, end_hour=18)


@pytest.fixture
def round_the_clock():
    return BusinessHoursConfig(working_weekdays=range(7), start_hour=0, end_hour=23)
