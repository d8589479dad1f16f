# laundrylocator/geo.py
"""Great-circle distance, coordinate parsing and opening-hours checks."""
import math
import re
from datetime import datetime
from typing import List, Optional, Tuple

EARTH_RADIUS_MILES = 3958.8
# great-circle miles per degree of latitude
MILES_PER_DEGREE_LAT = EARTH_RADIUS_MILES * math.pi / 180
# plain decimal degrees; shared with the SQL prefilter
DECIMAL_PATTERN = r"^[+-]?[0-9]+(\.[0-9]+)?$"
_DECIMAL = re.compile(DECIMAL_PATTERN)


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in miles between two lat/lng pairs."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def parse_coordinate(value, limit: float = 180.0) -> Optional[float]:
    """Float for a finite decimal within +/-limit, else None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not _DECIMAL.match(value):
            return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f) or abs(f) > limit:
        return None
    return f


def latitude_band(lat: float, radius_miles: float) -> Tuple[float, float]:
    """Latitude interval that contains every point within radius_miles of lat."""
    delta = radius_miles / MILES_PER_DEGREE_LAT
    return max(lat - delta, -90.0), min(lat + delta, 90.0)


# --- opening hours -----------------------------------------------------------

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
_DAY_ALIASES = {
    "mon": 0, "tue": 1, "tues": 1, "wed": 2, "thu": 3, "thur": 3, "thurs": 3,
    "fri": 4, "sat": 5, "sun": 6,
}
_DAY_ALIASES.update({name: i for i, name in enumerate(DAY_NAMES)})

_ALWAYS_OPEN = re.compile(r"24\s*(hours|hrs|hr|/7)|open\s+24|always\s+open", re.I)
_DAY_TOKEN = r"(?:mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)[a-z]*\.?"
_DAY_SPEC = re.compile(
    rf"^\s*(?P<spec>daily|every\s*day|everyday|{_DAY_TOKEN}(?:\s*(?:-|–|to|through|thru)\s*{_DAY_TOKEN})?"
    rf"(?:\s*(?:&|and|/)\s*{_DAY_TOKEN})*)\s*:?\s*",
    re.I,
)
_TIME = r"(\d{1,2})(?::(\d{2}))?\s*([ap]\.?m\.?)?"
_RANGE = re.compile(rf"{_TIME}\s*(?:-|–|—|to)\s*{_TIME}", re.I)
_NOON_MIDNIGHT = {"noon": "12:00 pm", "midnight": "12:00 am"}


def _day_index(token: str) -> Optional[int]:
    token = token.strip().lower().rstrip(".")
    if token in _DAY_ALIASES:
        return _DAY_ALIASES[token]
    for alias, idx in _DAY_ALIASES.items():
        if len(token) >= 3 and alias.startswith(token[:3]):
            return idx
    return None


def _parse_days(spec: Optional[str]) -> List[int]:
    if not spec:
        return list(range(7))
    spec = spec.strip().lower()
    if spec.startswith(("daily", "every")):
        return list(range(7))
    days: List[int] = []
    for part in re.split(r"\s*(?:&|and|/)\s*", spec):
        bounds = re.split(r"\s*(?:-|–|to|through|thru)\s*", part)
        start = _day_index(bounds[0])
        if start is None:
            continue
        end = _day_index(bounds[-1]) if len(bounds) > 1 else start
        if end is None:
            end = start
        i = start
        while True:
            if i not in days:
                days.append(i)
            if i == end:
                break
            i = (i + 1) % 7
    return days


def _minutes(hour: str, minute: Optional[str], meridiem: Optional[str]) -> Optional[int]:
    h = int(hour)
    m = int(minute or 0)
    if m > 59:
        return None
    if meridiem:
        mer = meridiem.lower().replace(".", "")
        if h < 1 or h > 12:
            return None
        if mer == "pm" and h != 12:
            h += 12
        elif mer == "am" and h == 12:
            h = 0
    elif h > 24:
        return None
    return (h % 24) * 60 + m


def parse_hours(hours: Optional[str]):
    """Parse an hours string.

    Returns "always" for round-the-clock listings, otherwise a list of
    (weekday, open_minute, close_minute) tuples. close_minute <= open_minute
    means the range runs past midnight. Returns None when nothing parses.
    """
    if not hours or not hours.strip():
        return None
    if _ALWAYS_OPEN.search(hours):
        return "always"
    text = hours
    for word, repl in _NOON_MIDNIGHT.items():
        text = re.sub(word, repl, text, flags=re.I)
    ranges = []
    # "Monday: 7 AM – 10 PM, Tuesday: ..." and "Mon-Fri 7AM-10PM; Sat 8AM-9PM"
    for segment in re.split(r"[;\n]|,(?=\s*[A-Za-z])", text):
        segment = segment.strip()
        if not segment:
            continue
        spec = None
        m = _DAY_SPEC.match(segment)
        if m:
            spec = m.group("spec")
            segment = segment[m.end():]
        days = _parse_days(spec)
        if not days or re.search(r"closed", segment, re.I):
            continue
        r = _RANGE.search(segment)
        if not r:
            continue
        h1, m1, mer1, h2, m2, mer2 = r.groups()
        # "7-10pm" shares the trailing meridiem
        if mer1 is None and mer2 is not None:
            mer1 = mer2
            open_guess = _minutes(h1, m1, mer1)
            close_guess = _minutes(h2, m2, mer2)
            if open_guess is not None and close_guess is not None and open_guess > close_guess:
                mer1 = "am" if mer2.lower().startswith("p") else "pm"
        open_min = _minutes(h1, m1, mer1)
        close_min = _minutes(h2, m2, mer2)
        if open_min is None or close_min is None:
            continue
        for day in days:
            ranges.append((day, open_min, close_min))
    return ranges or None


def is_currently_open(hours: Optional[str], now: datetime) -> bool:
    """True when `now` falls inside one of the listing's opening ranges."""
    parsed = parse_hours(hours)
    if parsed is None:
        return False
    if parsed == "always":
        return True
    weekday = now.weekday()
    minute = now.hour * 60 + now.minute
    yesterday = (weekday - 1) % 7
    for day, open_min, close_min in parsed:
        overnight = close_min <= open_min
        if day == weekday:
            if overnight and minute >= open_min:
                return True
            if not overnight and open_min <= minute < close_min:
                return True
        if day == yesterday and overnight and minute < close_min:
            return True
    return False
