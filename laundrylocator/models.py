# laundrylocator/models.py
"""SQLAlchemy ORM models for persisted entities.

Laundromat listings plus the users, reviews, favorites and subscriptions that
hang off them. City and state rollups are not stored; they are aggregated from
the laundromats table on demand.
"""
from sqlalchemy import (
    Column, Integer, Text, Float, Boolean, TIMESTAMP, ForeignKey, JSON,
    UniqueConstraint, func, Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from .db import Base

# JSONB on postgres, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False, unique=True)
    role = Column(Text, nullable=False, default="user")  # user, owner, admin
    is_business_owner = Column(Boolean, default=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class Laundromat(Base):
    __tablename__ = "laundromats"
    id = Column(Integer, primary_key=True, index=True)
    slug = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    state = Column(Text, nullable=False)
    zip = Column(Text, nullable=False, default="")
    phone = Column(Text)
    website = Column(Text)
    # decimal strings, as imported
    latitude = Column(Text)
    longitude = Column(Text)
    hours = Column(Text, nullable=False, default="Not specified")
    services = Column(JSONType, nullable=False, default=list)
    amenities = Column(JSONType, default=list)
    photos = Column(JSONType, default=list)
    description = Column(Text)
    rating = Column(Float, default=0.0)
    review_count = Column(Integer, default=0)
    image_url = Column(Text)

    listing_type = Column(Text, default="basic")  # basic, premium, featured
    is_premium = Column(Boolean, default=False)
    is_featured = Column(Boolean, default=False)
    featured_rank = Column(Integer)
    subscription_active = Column(Boolean, default=False)
    subscription_status = Column(Text)
    subscription_expiry = Column(TIMESTAMP(timezone=True))
    promotional_text = Column(Text)
    verified = Column(Boolean, default=False)
    view_count = Column(Integer, default=0)

    seo_tags = Column(Text)
    short_summary = Column(Text)
    premium_score = Column(Integer, default=0)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class Review(Base):
    __tablename__ = "reviews"
    id = Column(Integer, primary_key=True, index=True)
    laundromat_id = Column(Integer, ForeignKey("laundromats.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "laundromat_id", name="uq_favorites_user_laundromat"),)
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    laundromat_id = Column(Integer, ForeignKey("laundromats.id"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class Subscription(Base):
    __tablename__ = "subscriptions"
    id = Column(Integer, primary_key=True, index=True)
    laundromat_id = Column(Integer, ForeignKey("laundromats.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    tier = Column(Text, nullable=False)  # premium, featured
    amount = Column(Integer, nullable=False)  # cents
    billing_cycle = Column(Text, nullable=False)  # monthly, annually
    start_date = Column(TIMESTAMP(timezone=True), nullable=False)
    end_date = Column(TIMESTAMP(timezone=True), nullable=False)
    status = Column(Text, nullable=False)  # active, cancelled, expired
    auto_renew = Column(Boolean, default=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

Index("idx_laundromats_city_state", Laundromat.city, Laundromat.state)
Index("idx_laundromats_owner", Laundromat.owner_id)
Index("idx_subscriptions_status_end", Subscription.status, Subscription.end_date)
