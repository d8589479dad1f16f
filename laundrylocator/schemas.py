# laundrylocator/schemas.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

from .constants import STATE_NAMES

class LaundromatBase(BaseModel):
    name: str
    address: str
    city: str
    state: str
    zip: str = ""
    phone: Optional[str] = None
    website: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    hours: str = "Not specified"
    services: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    description: Optional[str] = None

class LaundromatCreate(LaundromatBase):
    slug: str
    rating: Optional[float] = None
    review_count: int = 0
    image_url: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    is_premium: bool = False
    is_featured: bool = False
    owner_id: Optional[int] = None
    seo_tags: Optional[str] = None
    short_summary: Optional[str] = None
    premium_score: int = 0

class LaundromatUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[str] = None
    services: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    description: Optional[str] = Field(None, max_length=500)
    photos: Optional[List[str]] = None
    promotional_text: Optional[str] = None

    @field_validator("name", "hours", "services", "amenities")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

class LaundromatOut(LaundromatBase):
    id: int
    slug: str
    rating: Optional[float] = None
    review_count: Optional[int] = None
    image_url: Optional[str] = None
    photos: Optional[List[str]] = None
    listing_type: Optional[str] = None
    is_premium: Optional[bool] = None
    is_featured: Optional[bool] = None
    featured_rank: Optional[int] = None
    subscription_active: Optional[bool] = None
    subscription_expiry: Optional[datetime] = None
    promotional_text: Optional[str] = None
    verified: Optional[bool] = None
    seo_tags: Optional[str] = None
    short_summary: Optional[str] = None
    owner_id: Optional[int] = None
    created_at: Optional[datetime] = None
    distance: Optional[float] = None
    class Config:
        from_attributes = True

class ReviewCreate(BaseModel):
    laundromat_id: int
    user_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

class ReviewOut(BaseModel):
    id: int
    laundromat_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class FavoriteCreate(BaseModel):
    laundromat_id: int

class CityOut(BaseModel):
    name: str
    state: str
    slug: str
    laundry_count: int

class StateOut(BaseModel):
    name: str
    abbr: str
    slug: str
    laundry_count: int

class ImportRequest(BaseModel):
    filename: str

class ImportResult(BaseModel):
    success: bool = True
    total: int = 0
    imported: int = 0
    duplicates: int = 0
    errors: List[str] = Field(default_factory=list)
    message: Optional[str] = None

class BusinessAdd(BaseModel):
    name: str = Field(..., min_length=3)
    address: str = Field(..., min_length=5)
    city: str = Field(..., min_length=2)
    state: str = Field(..., min_length=2, max_length=2)
    zip: str = Field(..., pattern=r"^\d{5}(-\d{4})?$")
    phone: str = Field(..., min_length=7)
    website: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    hours: str = Field(..., min_length=5)

    @field_validator("state")
    @classmethod
    def known_state(cls, v: str) -> str:
        if v.upper() not in STATE_NAMES:
            raise ValueError("Unknown state code")
        return v.upper()

    @field_validator("website")
    @classmethod
    def check_website(cls, v: Optional[str]) -> Optional[str]:
        from .csv_import import normalize_website
        if v is None or not v.strip():
            return None
        url = normalize_website(v)
        if url is None:
            raise ValueError("Please enter a valid URL")
        return url

class ClaimRequest(BaseModel):
    laundromat_id: int

class SubscriptionCreate(BaseModel):
    laundromat_id: int
    tier: str = Field(..., pattern=r"^(premium|featured)$")
    billing_cycle: str = Field("monthly", pattern=r"^(monthly|annually)$")
    auto_renew: bool = True

class SubscriptionOut(BaseModel):
    id: int
    laundromat_id: int
    user_id: int
    tier: str
    amount: int
    billing_cycle: str
    start_date: datetime
    end_date: datetime
    status: str
    auto_renew: Optional[bool] = None
    class Config:
        from_attributes = True

class SubscriptionSummary(BaseModel):
    tier: str
    status: str
    next_billing_date: Optional[datetime] = None

class PendingAction(BaseModel):
    id: int
    type: str
    message: str

class Dashboard(BaseModel):
    laundromat: LaundromatOut
    subscription: SubscriptionSummary
    profile_completeness: int
    pending_actions: List[PendingAction]
    premium_features: Dict[str, Any]
