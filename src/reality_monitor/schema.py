from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List


class Portal(str, Enum):
    SREALITY = "sreality"
    BEZREALITKY = "bezrealitky"


class Category(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    LAND = "land"


class OfferType(str, Enum):
    SALE = "sale"
    RENT = "rent"
    BOTH = "both"


class Listing(BaseModel):
    id: str
    source: Portal
    category: Category
    name: str = ""
    price: Optional[int] = None
    price_per_sqm: Optional[int] = None
    locality: str = ""
    layout: Optional[str] = None
    floor_area: Optional[float] = None
    land_area: Optional[float] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    image_url: Optional[str] = None
    url: str


class EnrichedListing(Listing):
    is_new: bool
    price_changed: bool = False
    previous_price: Optional[int] = None
    days_tracked: int = 0
    price_to_median_ratio: Optional[float] = None
    is_best_deal: bool = False


class HistoryEntry(BaseModel):
    price: Optional[int] = None
    first_seen_at: datetime

    @field_validator("first_seen_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class PageQuery(BaseModel):
    """One pagination combination: (category, offer type, region) plus filters."""

    category: Category
    offer_type: OfferType
    region: Optional[str] = None
    max_price: Optional[int] = None
    min_area: Optional[float] = None


class Page(BaseModel):
    listings: List[Listing] = Field(default_factory=list)
    total_available: int = 0
    next_page_token: Optional[int] = None
