# laundrylocator/api/routes.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import crud, schemas, seo
from ..constants import NEARBY_DEFAULT_RADIUS, SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT
from ..db import get_db
from ..services import find_nearby
from ..utils import logger
from .deps import current_user, parse_float_param

router = APIRouter(prefix="/api", tags=["laundromats"])


def _nearby(db: Session, lat: Optional[str], lng: Optional[str], radius: Optional[str]):
    lat_f = parse_float_param("lat", lat)
    lng_f = parse_float_param("lng", lng)
    radius_f = NEARBY_DEFAULT_RADIUS if radius in (None, "") else parse_float_param("radius", radius)
    if not -90 <= lat_f <= 90 or not -180 <= lng_f <= 180:
        raise HTTPException(status_code=400, detail="Coordinates out of range")
    if radius_f <= 0:
        raise HTTPException(status_code=400, detail="Radius must be positive")

    results = find_nearby(db, lat_f, lng_f, radius_f)
    return [
        schemas.LaundromatOut.model_validate(obj).model_copy(update={"distance": round(d, 2)})
        for obj, d in results
    ]


@router.get("/laundromats", response_model=List[schemas.LaundromatOut])
def laundromats(
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    radius: Optional[str] = Query(None),
    q: str = Query(""),
    services: Optional[str] = Query(None),
    rating: Optional[float] = Query(None, ge=0, le=5),
    open_now: bool = Query(False, alias="openNow"),
    limit: int = Query(SEARCH_DEFAULT_LIMIT, ge=1, le=SEARCH_MAX_LIMIT),
    db: Session = Depends(get_db),
):
    if lat is not None or lng is not None:
        return _nearby(db, lat, lng, radius)
    wanted = [s for s in (services or "").split(",") if s.strip()]
    return crud.search_laundromats(
        db, query=q, services=wanted, min_rating=rating, open_now=open_now, now=datetime.now(), limit=limit
    )


@router.get("/nearby-laundromats", response_model=List[schemas.LaundromatOut])
def nearby_laundromats(
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    radius: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return _nearby(db, lat, lng, radius)


@router.get("/featured-laundromats", response_model=List[schemas.LaundromatOut])
def featured_laundromats(limit: int = Query(20, ge=1, le=100), db: Session = Depends(get_db)):
    return crud.get_featured_laundromats(db, limit)


@router.get("/premium-laundromats", response_model=List[schemas.LaundromatOut])
def premium_laundromats(limit: int = Query(20, ge=1, le=100), db: Session = Depends(get_db)):
    return crud.get_premium_laundromats(db, limit)


@router.get("/laundromats/{slug}", response_model=schemas.LaundromatOut)
def get_laundromat(slug: str, db: Session = Depends(get_db)):
    obj = crud.get_laundry_by_slug(db, slug)
    if not obj:
        raise HTTPException(status_code=404, detail="Laundromat not found")
    return crud.record_view(db, obj)


@router.get("/laundromats/{slug}/schema")
def laundromat_schema(slug: str, db: Session = Depends(get_db)):
    obj = crud.get_laundry_by_slug(db, slug)
    if not obj:
        raise HTTPException(status_code=404, detail="Laundromat not found")
    return seo.laundry_business_schema(obj, crud.get_reviews(db, obj.id), datetime.now())


@router.get("/laundromats/{laundromat_id}/reviews", response_model=List[schemas.ReviewOut])
def laundromat_reviews(laundromat_id: int, db: Session = Depends(get_db)):
    if not crud.get_laundromat(db, laundromat_id):
        raise HTTPException(status_code=404, detail="Laundromat not found")
    return crud.get_reviews(db, laundromat_id)


@router.post("/reviews", response_model=schemas.ReviewOut, status_code=201)
def create_review(payload: schemas.ReviewCreate, db: Session = Depends(get_db)):
    if not crud.get_laundromat(db, payload.laundromat_id):
        raise HTTPException(status_code=404, detail="Laundromat not found")
    if not crud.get_user(db, payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    review = crud.create_review(db, payload.model_dump())
    logger.info("Review %s added to laundromat %s", review.id, review.laundromat_id)
    return review


@router.get("/favorites", response_model=List[schemas.LaundromatOut])
def list_favorites(user=Depends(current_user), db: Session = Depends(get_db)):
    return crud.get_user_favorites(db, user.id)


@router.post("/favorites", status_code=201)
def add_favorite(payload: schemas.FavoriteCreate, user=Depends(current_user), db: Session = Depends(get_db)):
    if not crud.get_laundromat(db, payload.laundromat_id):
        raise HTTPException(status_code=404, detail="Laundromat not found")
    fav = crud.add_favorite(db, user.id, payload.laundromat_id)
    return {"id": fav.id, "laundromat_id": fav.laundromat_id}


@router.delete("/favorites/{laundromat_id}")
def remove_favorite(laundromat_id: int, user=Depends(current_user), db: Session = Depends(get_db)):
    if not crud.remove_favorite(db, user.id, laundromat_id):
        raise HTTPException(status_code=404, detail="Favorite not found")
    return {"status": "deleted"}
