# laundrylocator/constants.py
"""Centralized constants and env-driven defaults.

Change limits and radii here instead of scattering literals across routes and
services.
"""
import os
from dotenv import load_dotenv

from .utils import env_float, env_int

load_dotenv()

SITE_URL = os.getenv("SITE_URL", "https://laundrylocator.com").rstrip("/")
SITE_NAME = "LaundryLocator"

# Proximity search
NEARBY_DEFAULT_RADIUS = env_float("NEARBY_DEFAULT_RADIUS", 10.0)
NEARBY_LIMIT = env_int("NEARBY_LIMIT", 20)
NEARBY_EXPAND_FACTOR = 3

# Listing pages
SEARCH_DEFAULT_LIMIT = 50
SEARCH_MAX_LIMIT = 200
CITY_LISTINGS_LIMIT = 50
BUSINESS_SEARCH_LIMIT = 20
POPULAR_CITIES_DEFAULT = 5

CACHE_TTL_SECONDS = env_int("CACHE_TTL_SECONDS", 300)
CSV_UPLOAD_DIR = os.getenv("CSV_UPLOAD_DIR", "data/csv_uploads")

# Scheduler job ids (must match ids used in scheduler.py add_job)
EXPIRE_SUBSCRIPTIONS_JOB_ID = "expire_subscriptions"

STATE_NAMES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "DC": "District of Columbia", "FL": "Florida", "GA": "Georgia", "HI": "Hawaii",
    "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine",
    "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
    "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island",
    "SC": "South Carolina", "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas",
    "UT": "Utah", "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
}

STATE_ABBRS = {name.lower(): abbr for abbr, name in STATE_NAMES.items()}

def state_name(abbr: str) -> str:
    return STATE_NAMES.get((abbr or "").upper(), abbr)

def state_abbr(value: str) -> str:
    """Two-letter code for an abbreviation or full state name; input echoed otherwise."""
    value = (value or "").strip()
    if value.upper() in STATE_NAMES:
        return value.upper()
    return STATE_ABBRS.get(value.lower(), value)
