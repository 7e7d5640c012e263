from __future__ import annotations

from typing import List, Optional, Sequence

from .schema import Listing


def passes_filters(
    listing: Listing,
    max_price: Optional[int] = None,
    min_area: Optional[float] = None,
) -> bool:
    """Price ceiling and area floor. Unknown price or area passes."""
    if max_price is not None and listing.price is not None and listing.price > max_price:
        return False
    if min_area and listing.floor_area is not None and listing.floor_area < min_area:
        return False
    return True


def apply_filters(
    listings: Sequence[Listing],
    max_price: Optional[int] = None,
    min_area: Optional[float] = None,
) -> List[Listing]:
    return [l for l in listings if passes_filters(l, max_price, min_area)]
