# laundrylocator/services.py
from typing import Dict, List, Tuple, Any

from sqlalchemy.orm import Session

from . import crud
from .constants import NEARBY_LIMIT, NEARBY_EXPAND_FACTOR
from .geo import distance, parse_coordinate, latitude_band
from .models import Laundromat
from .utils import logger


def _within(db: Session, lat: float, lng: float, radius: float = None, limit: int = NEARBY_LIMIT):
    if radius is None:
        candidates = crud.laundromats_with_coordinates(db)
    else:
        lat_min, lat_max = latitude_band(lat, radius)
        candidates = crud.laundromats_with_coordinates(db, lat_min, lat_max)
    scored = []
    for obj in candidates:
        obj_lat = parse_coordinate(obj.latitude, 90.0)
        obj_lng = parse_coordinate(obj.longitude, 180.0)
        if obj_lat is None or obj_lng is None:
            continue
        d = distance(lat, lng, obj_lat, obj_lng)
        if radius is None or d < radius:
            scored.append((d, obj.id, obj))
    # id breaks distance ties
    scored.sort(key=lambda t: (t[0], t[1]))
    return [(obj, d) for d, _, obj in scored[:limit]]


def find_nearby(db: Session, lat: float, lng: float, radius_miles: float,
                limit: int = NEARBY_LIMIT) -> List[Tuple[Laundromat, float]]:
    """Listings nearest to (lat, lng), closest first.

    Searches radius_miles first, then NEARBY_EXPAND_FACTOR times that, and
    finally returns the closest `limit` listings regardless of distance.
    """
    results = _within(db, lat, lng, radius_miles, limit)
    if results:
        logger.info("Found %d laundromats within %s miles of (%s, %s)", len(results), radius_miles, lat, lng)
        return results

    expanded = radius_miles * NEARBY_EXPAND_FACTOR
    results = _within(db, lat, lng, expanded, limit)
    if results:
        logger.info("Found %d laundromats with expanded radius %s miles", len(results), expanded)
        return results

    results = _within(db, lat, lng, None, limit)
    logger.info("No laundromats within %s miles of (%s, %s); returning %d closest overall",
                expanded, lat, lng, len(results))
    return results


PROFILE_FIELDS = 8

def profile_completeness(obj: Laundromat) -> int:
    score = sum([
        bool(obj.name),
        bool(obj.address),
        bool(obj.phone),
        bool(obj.website),
        bool(obj.description and len(obj.description) >= 50),
        bool(obj.hours and obj.hours != "Not specified"),
        bool(obj.services),
        bool(obj.photos),
    ])
    return round(score / PROFILE_FIELDS * 100)

def pending_actions(obj: Laundromat) -> List[Dict[str, Any]]:
    actions = []
    if not obj.photos:
        actions.append({
            "id": 1,
            "type": "photo_upload",
            "message": "Add photos of your business to attract more customers",
        })
    if not obj.description or len(obj.description) < 50:
        actions.append({
            "id": 2,
            "type": "description_update",
            "message": "Improve your business description to help customers find you",
        })
    if not obj.services:
        actions.append({
            "id": 3,
            "type": "services_update",
            "message": "List the services you offer so customers can filter for them",
        })
    return actions
