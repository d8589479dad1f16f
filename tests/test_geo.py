from datetime import datetime

import pytest

from laundrylocator.geo import distance, is_currently_open, latitude_band, parse_coordinate, parse_hours

DENVER = (39.7392, -104.9903)
BOULDER = (40.0150, -105.2705)

# 2024-01-01 was a Monday
MONDAY_NOON = datetime(2024, 1, 1, 12, 0)
MONDAY_6AM = datetime(2024, 1, 1, 6, 0)
SUNDAY_NOON = datetime(2024, 1, 7, 12, 0)
SATURDAY_1AM = datetime(2024, 1, 6, 1, 0)


def test_distance_zero_and_symmetric():
    assert distance(*DENVER, *DENVER) == 0
    assert distance(*DENVER, *BOULDER) == pytest.approx(distance(*BOULDER, *DENVER))

def test_distance_denver_boulder():
    assert distance(*DENVER, *BOULDER) == pytest.approx(24.2, abs=0.5)

def test_parse_coordinate():
    assert parse_coordinate(" 39.5 ", 90) == 39.5
    assert parse_coordinate("", 90) is None
    assert parse_coordinate("abc", 90) is None
    assert parse_coordinate("91", 90) is None
    assert parse_coordinate("nan", 90) is None
    assert parse_coordinate("3_9.75", 90) is None
    assert parse_coordinate("1e1", 90) is None
    assert parse_coordinate("-104.99", 180) == -104.99

def test_latitude_band_contains_radius():
    lo, hi = latitude_band(DENVER[0], 30)
    assert lo < BOULDER[0] < hi


@pytest.mark.parametrize("hours", ["24 Hours", "Open 24 hours", "24/7"])
def test_always_open(hours):
    assert parse_hours(hours) == "always"
    assert is_currently_open(hours, SATURDAY_1AM)

def test_weekday_ranges():
    hours = "Mon-Fri 7AM-10PM; Sat-Sun 8AM-9PM"
    assert is_currently_open(hours, MONDAY_NOON)
    assert not is_currently_open(hours, MONDAY_6AM)
    assert is_currently_open(hours, SUNDAY_NOON)

def test_google_style_with_closed_day():
    hours = "Monday: 7:00 AM – 10:00 PM, Tuesday: Closed"
    assert is_currently_open(hours, MONDAY_NOON)
    assert not is_currently_open(hours, datetime(2024, 1, 2, 12, 0))

def test_daily_and_no_day_spec():
    assert is_currently_open("Daily 6am-11pm", MONDAY_6AM)
    assert is_currently_open("6am-11pm", SUNDAY_NOON)

def test_overnight_range_counts_next_morning():
    hours = "Fri 6pm-2am"
    assert is_currently_open(hours, SATURDAY_1AM)
    assert not is_currently_open(hours, datetime(2024, 1, 6, 3, 0))

def test_shared_meridiem():
    assert parse_hours("Mon 7-10pm") == [(0, 19 * 60, 22 * 60)]
    assert parse_hours("Mon 9-5pm") == [(0, 9 * 60, 17 * 60)]

@pytest.mark.parametrize("hours", [None, "", "Not specified", "call for hours"])
def test_unparseable_is_closed(hours):
    assert parse_hours(hours) is None
    assert not is_currently_open(hours, MONDAY_NOON)
