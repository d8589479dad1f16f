# laundrylocator/crud.py
"""Database operations for listings and everything attached to them.

Listing reads/writes, review and favorite bookkeeping, city/state rollups
aggregated from the laundromats table, and subscription lifecycle helpers.
`SqlStorage` adapts these functions to the small storage interface the CSV
import pipeline expects.
"""
from datetime import datetime, timezone
from functools import wraps
from typing import Dict, Any, List, Optional, Tuple

from sqlalchemy import and_, or_, func, case, cast, Float
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from .constants import STATE_NAMES, state_abbr, state_name, SEARCH_DEFAULT_LIMIT
from .geo import DECIMAL_PATTERN, is_currently_open
from .models import Laundromat, Review, Favorite, Subscription, User
from .premium import plan_amount, period_end, calculate_prorated_refund
from .slugs import create_slug, city_slug
from .utils import logger, retry


def _rollback_on_error(f):
    @wraps(f)
    def wrapper(db: Session, *args, **kwargs):
        try:
            return f(db, *args, **kwargs)
        except OperationalError:
            db.rollback()
            raise
    return wrapper

def transient_read(f):
    """Retry a read a few times on dropped connections."""
    return retry(OperationalError, tries=3, delay=0.5, backoff=2)(_rollback_on_error(f))


# --- laundromats ---------------------------------------------------------------

def get_laundromat(db: Session, laundromat_id: int):
    return db.query(Laundromat).filter(Laundromat.id == laundromat_id).first()

@transient_read
def get_laundry_by_slug(db: Session, slug: str):
    return db.query(Laundromat).filter(Laundromat.slug == slug).first()

def slug_exists(db: Session, slug: str) -> bool:
    return db.query(Laundromat.id).filter(Laundromat.slug == slug).first() is not None

def create_laundromat(db: Session, data: Dict[str, Any]) -> Laundromat:
    columns = {c.name for c in Laundromat.__table__.columns}
    obj = Laundromat(**{k: v for k, v in data.items() if k in columns})
    db.add(obj)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(obj)
    return obj

def update_laundromat(db: Session, laundromat_id: int, updates: Dict[str, Any]):
    obj = get_laundromat(db, laundromat_id)
    if not obj:
        return None
    for k, v in updates.items():
        setattr(obj, k, v)
    db.commit()
    db.refresh(obj)
    return obj

def assign_owner(db: Session, obj: Laundromat, user: User) -> Laundromat:
    obj.owner_id = user.id
    user.is_business_owner = True
    if user.role == "user":
        user.role = "owner"
    db.commit()
    db.refresh(obj)
    logger.info("Laundromat %s claimed by user %s", obj.id, user.id)
    return obj

def record_view(db: Session, obj: Laundromat) -> Laundromat:
    obj.view_count = (obj.view_count or 0) + 1
    db.commit()
    db.refresh(obj)
    return obj

def _ranked(q):
    # premium/featured first, then best rated
    return q.order_by(
        Laundromat.is_featured.desc(),
        Laundromat.is_premium.desc(),
        Laundromat.rating.desc().nulls_last(),
        Laundromat.id.asc(),
    )

@transient_read
def search_laundromats(db: Session, query: str = "", services: Optional[List[str]] = None,
                       min_rating: Optional[float] = None, open_now: bool = False,
                       now: Optional[datetime] = None, limit: int = SEARCH_DEFAULT_LIMIT):
    q = db.query(Laundromat)
    if query:
        like = f"%{query.strip()}%"
        q = q.filter(or_(
            Laundromat.name.ilike(like),
            Laundromat.city.ilike(like),
            Laundromat.state.ilike(like),
            Laundromat.zip.ilike(like),
        ))
    if min_rating is not None:
        q = q.filter(Laundromat.rating >= min_rating)
    q = _ranked(q)
    if not services and not open_now:
        return q.limit(limit).all()

    wanted = {s.strip().lower() for s in services or [] if s.strip()}
    results = []
    for obj in q.yield_per(500):
        if wanted and not wanted.issubset({s.lower() for s in obj.services or []}):
            continue
        if open_now and not is_currently_open(obj.hours, now or datetime.now()):
            continue
        results.append(obj)
        if len(results) >= limit:
            break
    return results

def get_featured_laundromats(db: Session, limit: int = 20):
    return (
        db.query(Laundromat)
        .filter(Laundromat.is_featured.is_(True))
        .order_by(Laundromat.featured_rank.is_(None), Laundromat.featured_rank,
                  Laundromat.rating.desc().nulls_last(), Laundromat.id)
        .limit(limit)
        .all()
    )

def get_premium_laundromats(db: Session, limit: int = 20):
    return (
        db.query(Laundromat)
        .filter(Laundromat.is_premium.is_(True))
        .order_by(Laundromat.rating.desc().nulls_last(), Laundromat.id)
        .limit(limit)
        .all()
    )

def laundromats_for_owner(db: Session, owner_id: int):
    return db.query(Laundromat).filter(Laundromat.owner_id == owner_id).order_by(Laundromat.id).all()

def business_search(db: Session, query: str, limit: int):
    like = f"%{query}%"
    return (
        db.query(Laundromat)
        .filter(or_(
            Laundromat.name.ilike(like),
            Laundromat.address.ilike(like),
            Laundromat.city.ilike(like),
            Laundromat.state.ilike(like),
            Laundromat.phone.ilike(like),
        ))
        .order_by(Laundromat.id)
        .limit(limit)
        .all()
    )

def numeric_latitude():
    # CASE keeps postgres from casting text that is not a plain decimal
    return case(
        (Laundromat.latitude.regexp_match(DECIMAL_PATTERN), cast(Laundromat.latitude, Float)),
        else_=None,
    )

@transient_read
def laundromats_with_coordinates(db: Session, lat_min: Optional[float] = None,
                                 lat_max: Optional[float] = None):
    q = db.query(Laundromat).filter(
        Laundromat.latitude.isnot(None), Laundromat.latitude != "",
        Laundromat.longitude.isnot(None), Laundromat.longitude != "",
    )
    if lat_min is not None and lat_max is not None:
        lat = numeric_latitude()
        q = q.filter(lat >= lat_min, lat <= lat_max)
    return q.order_by(Laundromat.id).all()


# --- users, reviews, favorites ----------------------------------------------

def get_user(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()

def create_user(db: Session, username: str, email: str, role: str = "user",
                is_business_owner: bool = False) -> User:
    user = User(username=username, email=email, role=role, is_business_owner=is_business_owner)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def get_reviews(db: Session, laundromat_id: int):
    return (
        db.query(Review)
        .filter(Review.laundromat_id == laundromat_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )

def create_review(db: Session, data: Dict[str, Any]) -> Review:
    review = Review(**data)
    db.add(review)
    db.flush()
    avg, count = (
        db.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.laundromat_id == review.laundromat_id)
        .one()
    )
    laundromat = get_laundromat(db, review.laundromat_id)
    laundromat.rating = round(float(avg), 1) if count else 0.0
    laundromat.review_count = count
    db.commit()
    db.refresh(review)
    return review

def get_user_favorites(db: Session, user_id: int):
    return (
        db.query(Laundromat)
        .join(Favorite, Favorite.laundromat_id == Laundromat.id)
        .filter(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .all()
    )

def add_favorite(db: Session, user_id: int, laundromat_id: int) -> Favorite:
    existing = (
        db.query(Favorite)
        .filter(and_(Favorite.user_id == user_id, Favorite.laundromat_id == laundromat_id))
        .first()
    )
    if existing:
        return existing
    fav = Favorite(user_id=user_id, laundromat_id=laundromat_id)
    db.add(fav)
    db.commit()
    db.refresh(fav)
    return fav

def remove_favorite(db: Session, user_id: int, laundromat_id: int) -> bool:
    deleted = (
        db.query(Favorite)
        .filter(and_(Favorite.user_id == user_id, Favorite.laundromat_id == laundromat_id))
        .delete()
    )
    db.commit()
    return deleted > 0


# --- city / state rollups ----------------------------------------------------

@transient_read
def city_rollups(db: Session, abbr: Optional[str] = None) -> List[Dict[str, Any]]:
    q = db.query(Laundromat.city, Laundromat.state, func.count(Laundromat.id)).group_by(
        Laundromat.city, Laundromat.state
    )
    if abbr:
        q = q.filter(func.upper(Laundromat.state).in_([abbr.upper(), state_name(abbr).upper()]))
    merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
    for city, state, count in q.all():
        code = state_abbr(state)
        key = (city.strip().lower(), code)
        if key in merged:
            merged[key]["laundry_count"] += count
            continue
        merged[key] = {
            "name": city.strip(),
            "state": code,
            "slug": city_slug(city, code),
            "laundry_count": count,
        }
    return sorted(merged.values(), key=lambda c: (-c["laundry_count"], c["name"]))

@transient_read
def state_rollups(db: Session) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    rows = db.query(Laundromat.state, func.count(Laundromat.id)).group_by(Laundromat.state).all()
    for state, count in rows:
        code = state_abbr(state)
        counts[code] = counts.get(code, 0) + count
    return sorted(
        (
            {"name": state_name(code), "abbr": code, "slug": create_slug(state_name(code)), "laundry_count": n}
            for code, n in counts.items()
        ),
        key=lambda s: s["name"],
    )

def get_state(db: Session, slug: str) -> Optional[Dict[str, Any]]:
    """Match a state by slug ("new-york"), abbreviation ("ny") or name."""
    wanted = slug.strip().lower()
    for state in state_rollups(db):
        if wanted in (state["slug"], state["abbr"].lower(), state["name"].lower()):
            return state
    return None

def get_city_by_slug(db: Session, slug: str) -> Optional[Dict[str, Any]]:
    """Resolve "denver-co" style slugs; the trailing part is the state code."""
    parts = slug.strip().lower().split("-")
    if len(parts) < 2 or parts[-1].upper() not in STATE_NAMES:
        return None
    abbr = parts[-1].upper()
    for city in city_rollups(db, abbr):
        if city["slug"] == slug.strip().lower():
            return city
    return None

def laundromats_in_city(db: Session, city: str, state: str, limit: int):
    states = {state.upper(), state_name(state).upper()}
    return (
        db.query(Laundromat)
        .filter(func.lower(Laundromat.city) == city.lower(), func.upper(Laundromat.state).in_(states))
        .order_by(Laundromat.rating.desc().nulls_last(), Laundromat.id)
        .limit(limit)
        .all()
    )

def laundromats_in_state(db: Session, abbr: str):
    states = {abbr.upper(), state_name(abbr).upper()}
    return db.query(Laundromat).filter(func.upper(Laundromat.state).in_(states)).order_by(Laundromat.id).all()

def all_slugs(db: Session, offset: int = 0, limit: int = 5000) -> List[str]:
    rows = db.query(Laundromat.slug).order_by(Laundromat.id).offset(offset).limit(limit).all()
    return [r[0] for r in rows]


# --- subscriptions -------------------------------------------------------------

def _apply_tier(laundromat: Laundromat, tier: str, status: Optional[str], expiry: Optional[datetime]):
    laundromat.listing_type = tier
    laundromat.is_premium = tier in ("premium", "featured")
    laundromat.is_featured = tier == "featured"
    laundromat.subscription_active = tier != "basic"
    laundromat.subscription_status = status
    laundromat.subscription_expiry = expiry

def create_subscription(db: Session, user_id: int, laundromat: Laundromat, tier: str,
                        billing_cycle: str, auto_renew: bool, now: datetime) -> Subscription:
    sub = Subscription(
        laundromat_id=laundromat.id,
        user_id=user_id,
        tier=tier,
        amount=plan_amount(tier, billing_cycle),
        billing_cycle=billing_cycle,
        start_date=now,
        end_date=period_end(now, billing_cycle),
        status="active",
        auto_renew=auto_renew,
    )
    db.add(sub)
    _apply_tier(laundromat, tier, "active", sub.end_date)
    db.commit()
    db.refresh(sub)
    logger.info("Subscription %s created: listing %s -> %s (%s)", sub.id, laundromat.id, tier, billing_cycle)
    return sub

def get_subscription(db: Session, subscription_id: int):
    return db.query(Subscription).filter(Subscription.id == subscription_id).first()

def active_subscription(db: Session, laundromat_id: int):
    return (
        db.query(Subscription)
        .filter(Subscription.laundromat_id == laundromat_id, Subscription.status == "active")
        .order_by(Subscription.start_date.desc(), Subscription.id.desc())
        .first()
    )

def get_user_subscriptions(db: Session, user_id: int):
    return (
        db.query(Subscription, Laundromat)
        .join(Laundromat, Laundromat.id == Subscription.laundromat_id)
        .filter(Subscription.user_id == user_id)
        .order_by(Subscription.start_date.desc(), Subscription.id.desc())
        .all()
    )

def cancel_subscription(db: Session, sub: Subscription, now: datetime) -> int:
    """Cancel and downgrade; returns the prorated refund in cents."""
    refund = 0
    if sub.status == "active":
        refund = calculate_prorated_refund(sub.amount, sub.start_date, sub.end_date, now)
    sub.status = "cancelled"
    sub.auto_renew = False
    db.flush()
    laundromat = get_laundromat(db, sub.laundromat_id)
    if laundromat and active_subscription(db, laundromat.id) is None:
        _apply_tier(laundromat, "basic", "cancelled", None)
    db.commit()
    db.refresh(sub)
    logger.info("Subscription %s cancelled, refund %s cents", sub.id, refund)
    return refund

def expire_subscriptions(db: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    expired = (
        db.query(Subscription)
        .filter(Subscription.status == "active", Subscription.end_date < now)
        .all()
    )
    for sub in expired:
        sub.status = "expired"
    db.flush()
    for sub in expired:
        laundromat = get_laundromat(db, sub.laundromat_id)
        if laundromat and active_subscription(db, laundromat.id) is None:
            _apply_tier(laundromat, "basic", "expired", None)
    db.commit()
    if expired:
        logger.info("Expired %d subscriptions", len(expired))
    return len(expired)


class SqlStorage:
    """Storage interface used by the CSV import, backed by a Session."""

    def __init__(self, db: Session):
        self.db = db

    def get_laundry_by_slug(self, slug: str):
        return get_laundry_by_slug(self.db, slug)

    def create_laundromat(self, data: Dict[str, Any]):
        return create_laundromat(self.db, data)
