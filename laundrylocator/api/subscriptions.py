# laundrylocator/api/subscriptions.py
"""Premium listing subscriptions. Charging the card happens with the billing
provider before these calls; here we only record the plan and flag the listing."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..db import get_db
from ..premium import PREMIUM_PLANS, format_price
from .deps import current_user

router = APIRouter(prefix="/api", tags=["subscriptions"])


@router.get("/premium-plans")
def premium_plans():
    return {
        tier: dict(plan, monthly_display=format_price(plan["monthly_price"]),
                   annual_display=format_price(plan["annual_price"]))
        for tier, plan in PREMIUM_PLANS.items()
    }


@router.post("/subscriptions", response_model=schemas.SubscriptionOut, status_code=201)
def create_subscription(payload: schemas.SubscriptionCreate, user=Depends(current_user),
                        db: Session = Depends(get_db)):
    laundromat = crud.get_laundromat(db, payload.laundromat_id)
    if not laundromat:
        raise HTTPException(status_code=404, detail="Laundromat not found")
    if laundromat.owner_id != user.id:
        raise HTTPException(status_code=403, detail="You do not own this listing")
    if crud.active_subscription(db, laundromat.id):
        raise HTTPException(status_code=409, detail="This listing already has an active subscription")
    return crud.create_subscription(
        db, user.id, laundromat, payload.tier, payload.billing_cycle, payload.auto_renew,
        datetime.now(timezone.utc),
    )


@router.get("/subscriptions")
def list_subscriptions(user=Depends(current_user), db: Session = Depends(get_db)):
    return [
        dict(schemas.SubscriptionOut.model_validate(sub).model_dump(), laundromat_name=laundromat.name)
        for sub, laundromat in crud.get_user_subscriptions(db, user.id)
    ]


@router.post("/subscriptions/{subscription_id}/cancel")
def cancel_subscription(subscription_id: int, user=Depends(current_user), db: Session = Depends(get_db)):
    sub = crud.get_subscription(db, subscription_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")
    if sub.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not your subscription")
    if sub.status != "active":
        raise HTTPException(status_code=400, detail=f"Subscription is already {sub.status}")
    refund = crud.cancel_subscription(db, sub, datetime.now(timezone.utc))
    return {
        "subscription": schemas.SubscriptionOut.model_validate(sub),
        "refund_amount": refund,
        "refund_display": format_price(refund),
    }
