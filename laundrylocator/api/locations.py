# laundrylocator/api/locations.py
"""State and city browse endpoints plus their SEO payloads.

Rollups are aggregated from the laundromats table and cached per app.
"""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import crud, schemas, seo
from ..cache import TTLCache, get_cache
from ..constants import CITY_LISTINGS_LIMIT, POPULAR_CITIES_DEFAULT, STATE_NAMES
from ..db import get_db

router = APIRouter(prefix="/api", tags=["locations"])


def _states(db: Session, cache: TTLCache):
    return cache.get_or_set("states", lambda: crud.state_rollups(db))

def _cities(db: Session, cache: TTLCache, abbr: str = None):
    key = f"cities:{abbr or '*'}"
    return cache.get_or_set(key, lambda: crud.city_rollups(db, abbr))

def _state_or_404(db: Session, slug: str):
    state = crud.get_state(db, slug)
    if not state:
        raise HTTPException(status_code=404, detail="State not found")
    return state

def _city_or_404(db: Session, slug: str):
    city = crud.get_city_by_slug(db, slug)
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    return city


@router.get("/states", response_model=List[schemas.StateOut])
def states(db: Session = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    return _states(db, cache)


@router.get("/states/{slug}", response_model=schemas.StateOut)
def state(slug: str, db: Session = Depends(get_db)):
    return _state_or_404(db, slug)


@router.get("/states/{abbr}/cities", response_model=List[schemas.CityOut])
def state_cities(abbr: str, db: Session = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    if abbr.upper() not in STATE_NAMES:
        raise HTTPException(status_code=404, detail="State not found")
    return _cities(db, cache, abbr.upper())


@router.get("/states/{slug}/seo")
def state_seo(slug: str, db: Session = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    state = _state_or_404(db, slug)
    cities = _cities(db, cache, state["abbr"])
    listings = crud.laundromats_in_state(db, state["abbr"])
    return seo.state_page_content(state["name"], state["abbr"], cities, listings, datetime.now())


@router.get("/popular-cities", response_model=List[schemas.CityOut])
def popular_cities(
    limit: int = Query(POPULAR_CITIES_DEFAULT, ge=1, le=50),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    return _cities(db, cache)[:limit]


@router.get("/cities/{slug}", response_model=schemas.CityOut)
def city(slug: str, db: Session = Depends(get_db)):
    return _city_or_404(db, slug)


@router.get("/cities/{slug}/laundromats", response_model=List[schemas.LaundromatOut])
def city_laundromats(slug: str, db: Session = Depends(get_db)):
    city = _city_or_404(db, slug)
    return crud.laundromats_in_city(db, city["name"], city["state"], CITY_LISTINGS_LIMIT)


@router.get("/cities/{slug}/seo")
def city_seo(slug: str, db: Session = Depends(get_db)):
    city = _city_or_404(db, slug)
    listings = crud.laundromats_in_city(db, city["name"], city["state"], CITY_LISTINGS_LIMIT)
    return seo.city_page_content(city["name"], city["state"], listings, datetime.now())
