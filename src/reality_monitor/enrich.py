"""Run-over-run enrichment.

Every listing is compared against its stored :class:`HistoryEntry` (new,
price changed, days tracked) and against the run's median price per m².
The median is the element at index ``n // 2`` of the sorted values, i.e.
the upper median for even counts; it must be computed over the whole run,
not per portal.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .config import BEST_DEAL_THRESHOLD
from .schema import EnrichedListing, HistoryEntry, Listing

log = logging.getLogger(__name__)

DAY = timedelta(days=1)

History = Dict[str, HistoryEntry]


class EnrichResult(BaseModel):
    enriched: List[EnrichedListing] = Field(default_factory=list)
    updated_history: History = Field(default_factory=dict)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def run_median(listings: Sequence[Listing]) -> Optional[int]:
    values = sorted(l.price_per_sqm for l in listings if l.price_per_sqm is not None)
    if not values:
        return None
    return values[len(values) // 2]


def enrich(
    listings: Sequence[Listing],
    history: History,
    best_deal_threshold: float = BEST_DEAL_THRESHOLD,
    now: Callable[[], datetime] = utcnow,
) -> EnrichResult:
    ts = now()
    updated: History = dict(history)
    median = run_median(listings)

    enriched: List[EnrichedListing] = []
    for listing in listings:
        prev = history.get(listing.id)
        first_seen = prev.first_seen_at if prev else ts
        updated[listing.id] = HistoryEntry(price=listing.price, first_seen_at=first_seen)

        price_changed = prev is not None and prev.price != listing.price
        ratio: Optional[float] = None
        best_deal = False
        if median and listing.price_per_sqm is not None:
            # half-up to 2 decimals, like price_per_sqm
            ratio = math.floor(listing.price_per_sqm * 100 / median + 0.5) / 100
            best_deal = listing.price_per_sqm < median * best_deal_threshold

        enriched.append(EnrichedListing(
            **listing.model_dump(),
            is_new=prev is None,
            price_changed=price_changed,
            previous_price=prev.price if price_changed else None,
            days_tracked=(ts - first_seen) // DAY,
            price_to_median_ratio=ratio,
            is_best_deal=best_deal,
        ))

    return EnrichResult(enriched=enriched, updated_history=updated)


def log_enrich_stats(
    enriched: Sequence[EnrichedListing],
    logger: logging.Logger | logging.LoggerAdapter = log,
) -> None:
    new_count = sum(1 for l in enriched if l.is_new)
    price_drops = sum(
        1 for l in enriched
        if l.price_changed and l.previous_price is not None
        and l.price is not None and l.price < l.previous_price
    )
    best_deals = sum(1 for l in enriched if l.is_best_deal)
    logger.info(
        "History stats: %d listings, %d new, %d price drops, %d best deals",
        len(enriched), new_count, price_drops, best_deals,
    )
