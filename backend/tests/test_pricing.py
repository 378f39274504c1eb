import pytest

from roombooking.models import Rooms
from roombooking.services.pricing import is_weekend, price_for_booking

from .conftest import local

SATURDAY = local(2030, 1, 5, 14)
SUNDAY = local(2030, 1, 6, 14)
TUESDAY = local(2030, 1, 1, 14)


@pytest.fixture
def priced_room():
    return Rooms(name="Room A", price_weekday=200, price_weekend=300)


def test_weekend_rate_on_saturday(priced_room, config):
    assert price_for_booking(priced_room, SATURDAY, 2, config) == 600


def test_weekday_rate_on_tuesday(priced_room, config):
    assert price_for_booking(priced_room, TUESDAY, 2, config) == 400


@pytest.mark.parametrize("start, expected", [
    (SATURDAY, True),
    (SUNDAY, True),
    (TUESDAY, False),
    (local(2030, 1, 4, 23), False),  # Friday
])
def test_is_weekend(start, expected, config):
    assert is_weekend(start, config) is expected


def test_weekday_follows_business_timezone(config):
    # Saturday 00:30 in UTC+8 is still Friday in UTC
    start = local(2030, 1, 5, 0, 30)
    assert start.astimezone(config.tz).weekday() == 5
    assert start.utctimetuple().tm_wday == 4

    assert is_weekend(start, config) is True


def test_fractional_hours_round_half_up(config):
    room = Rooms(name="Room C", price_weekday=125, price_weekend=125)

    # 125 * 1.5 = 187.5
    assert price_for_booking(room, TUESDAY, 1.5, config) == 188
    assert price_for_booking(room, TUESDAY, 0.5, config) == 63
