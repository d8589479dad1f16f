# laundrylocator/api/business.py
"""Business-owner endpoints: find, add and claim a listing, then manage it."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..constants import BUSINESS_SEARCH_LIMIT
from ..csv_import import normalize_phone, normalize_website
from ..db import get_db
from ..enrich import enrich_record
from ..premium import get_premium_features
from ..services import pending_actions, profile_completeness
from ..slugs import create_unique_slug, generate_slug
from ..utils import logger
from .deps import current_user

router = APIRouter(prefix="/api/business", tags=["business"])


def _owned_or_403(db: Session, laundromat_id: int, user):
    obj = crud.get_laundromat(db, laundromat_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Laundromat not found")
    if obj.owner_id != user.id:
        raise HTTPException(status_code=403, detail="You do not own this listing")
    return obj


@router.get("/search", response_model=List[schemas.LaundromatOut])
def search(q: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return crud.business_search(db, q.strip(), BUSINESS_SEARCH_LIMIT)


@router.post("/add", status_code=201)
def add_business(payload: schemas.BusinessAdd, user=Depends(current_user), db: Session = Depends(get_db)):
    base = generate_slug(payload.name, payload.city, payload.state)
    slug = create_unique_slug(base, lambda s: crud.slug_exists(db, s))
    data = payload.model_dump()
    data["phone"] = normalize_phone(data["phone"])
    enriched = enrich_record(data)
    data.update(
        slug=slug,
        owner_id=user.id,
        seo_tags=", ".join(enriched["seo_tags"]),
        short_summary=enriched["short_summary"],
        premium_score=enriched["premium_score"],
    )
    obj = crud.create_laundromat(db, data)
    crud.assign_owner(db, obj, user)
    logger.info("User %s added laundromat %s (%s)", user.id, obj.id, slug)
    return {"id": obj.id, "slug": obj.slug}


@router.post("/claim", response_model=schemas.LaundromatOut)
def claim(payload: schemas.ClaimRequest, user=Depends(current_user), db: Session = Depends(get_db)):
    obj = crud.get_laundromat(db, payload.laundromat_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Laundromat not found")
    if obj.owner_id is not None and obj.owner_id != user.id:
        raise HTTPException(status_code=409, detail="This listing has already been claimed")
    if obj.owner_id == user.id:
        return obj
    return crud.assign_owner(db, obj, user)


@router.get("/dashboard", response_model=schemas.Dashboard)
def dashboard(user=Depends(current_user), db: Session = Depends(get_db)):
    owned = crud.laundromats_for_owner(db, user.id)
    if not owned:
        raise HTTPException(status_code=404, detail="No laundromat found for this user")
    obj = owned[0]
    sub = crud.active_subscription(db, obj.id)
    if sub:
        summary = schemas.SubscriptionSummary(tier=sub.tier, status=sub.status, next_billing_date=sub.end_date)
    else:
        summary = schemas.SubscriptionSummary(tier="basic", status="active")
    return schemas.Dashboard(
        laundromat=schemas.LaundromatOut.model_validate(obj),
        subscription=summary,
        profile_completeness=profile_completeness(obj),
        pending_actions=pending_actions(obj),
        premium_features=get_premium_features(obj.listing_type),
    )


@router.patch("/laundromats/{laundromat_id}", response_model=schemas.LaundromatOut)
def update_listing(laundromat_id: int, payload: schemas.LaundromatUpdate,
                   user=Depends(current_user), db: Session = Depends(get_db)):
    obj = _owned_or_403(db, laundromat_id, user)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("website"):
        updates["website"] = normalize_website(updates["website"])
        if updates["website"] is None:
            raise HTTPException(status_code=400, detail="Please enter a valid URL")
    if updates.get("phone"):
        updates["phone"] = normalize_phone(updates["phone"])
    features = get_premium_features(obj.listing_type)
    if "photos" in updates and len(updates["photos"] or []) > features["photo_limit"]:
        raise HTTPException(
            status_code=400,
            detail=f"Your {obj.listing_type or 'basic'} listing allows up to {features['photo_limit']} photos",
        )
    if "promotional_text" in updates and not features["highlight_listing"]:
        raise HTTPException(status_code=400, detail="Promotional text requires a featured listing")
    return crud.update_laundromat(db, obj.id, updates)
