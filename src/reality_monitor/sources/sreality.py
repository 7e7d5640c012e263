"""Sreality (sreality.cz) adapter.

Uses the public JSON API behind the site. The list endpoint returns 20
estates per page with price, locality, GPS and images; layout and areas
only come from the per-estate detail endpoint, which is queried for each
estate concurrently.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from .base import PortalAdapter
from ..normalize import calc_price_per_sqm, listing_id, parse_area, positive_or_none, safe_int
from ..regions import build_region_lookup
from ..schema import Category, Listing, OfferType, Page, PageQuery, Portal

log = logging.getLogger(__name__)

API = "https://www.sreality.cz/api/cs/v2/estates"
BASE = "https://www.sreality.cz"
PER_PAGE = 20
AREA_MAX = 1_000_000  # upper bound for the usable_area range filter

CATEGORY_MAIN: Dict[Category, int] = {
    Category.APARTMENT: 1,
    Category.HOUSE: 2,
    Category.LAND: 3,
}
CATEGORY_TYPE: Dict[OfferType, int] = {OfferType.SALE: 1, OfferType.RENT: 2}
CATEGORY_SLUG: Dict[Category, str] = {
    Category.APARTMENT: "byt",
    Category.HOUSE: "dum",
    Category.LAND: "pozemek",
}
OFFER_SLUG: Dict[OfferType, str] = {OfferType.SALE: "prodej", OfferType.RENT: "pronajem"}

REGION_IDS = build_region_lookup({
    "Praha": "10",
    "Středočeský": "20",
    "Jihočeský": "31",
    "Plzeňský": "32",
    "Karlovarský": "41",
    "Ústecký": "42",
    "Liberecký": "51",
    "Královéhradecký": "52",
    "Pardubický": "53",
    "Vysočina": "63",
    "Jihomoravský": "64",
    "Olomoucký": "71",
    "Zlínský": "72",
    "Moravskoslezský": "80",
})

Detail = Tuple[Optional[str], Optional[float], Optional[float]]


def parse_detail(data: dict) -> Detail:
    """Return (layout, floor_area, land_area) from a detail response."""
    layout: Optional[str] = None
    floor_area: Optional[float] = None
    land_area: Optional[float] = None

    raw_items = data.get("items") or []
    items: List[Any] = []
    for item in raw_items:
        if isinstance(item, list):
            items.extend(item)
        else:
            items.append(item)

    for item in items:
        if not isinstance(item, dict) or not item.get("name"):
            continue
        name = str(item["name"]).lower()
        value = item.get("value")
        if name == "dispozice":
            layout = str(value)
        elif "pozemku" in name:
            land_area = parse_area(value)
        elif "plocha" in name:
            floor_area = parse_area(value)

    return layout, floor_area, land_area


def build_params(query: PageQuery, page: int) -> List[Tuple[str, str]]:
    params = [
        ("category_main_cb", str(CATEGORY_MAIN[query.category])),
        ("per_page", str(PER_PAGE)),
        ("page", str(page)),
    ]
    if query.offer_type in CATEGORY_TYPE:
        params.append(("category_type_cb", str(CATEGORY_TYPE[query.offer_type])))
    if query.max_price is not None:
        params.append(("czk_price_summary_order2", f"0|{query.max_price}"))
    if query.min_area is not None:
        params.append(("usable_area", f"{query.min_area:g}|{AREA_MAX}"))
    if query.region is not None:
        params.append(("locality_region_id", query.region))
    return params


class SrealityAdapter(PortalAdapter):
    portal = Portal.SREALITY
    first_page_token = 0
    region_lookup = REGION_IDS
    accept = "application/json"

    def __init__(self, max_concurrency: int = 5, session=None) -> None:
        super().__init__(max_concurrency, session)
        self.session.headers.update({"Referer": f"{BASE}/"})

    def fetch_detail(self, hash_id: Any) -> Detail:
        try:
            return parse_detail(self._get(f"{API}/{hash_id}").json())
        except Exception:
            log.warning("%s Failed to fetch detail for hash_id %s", self.log_prefix, hash_id, exc_info=True)
            return None, None, None

    def fetch_page(self, query: PageQuery, page_token: int) -> Page:
        label = f"{query.category.value}/{query.offer_type.value}/{query.region or 'all'}"
        log.info("%s Fetching page %d (%s)", self.log_prefix, page_token, label)
        data = self._get(API, params=build_params(query, page_token)).json()

        total = safe_int(data.get("result_size")) or 0
        if page_token == self.first_page_token:
            log.info("%s Total available: %d (%s)", self.log_prefix, total, label)

        estates = [e for e in (data.get("_embedded") or {}).get("estates") or [] if isinstance(e, dict)]
        if not estates:
            log.warning("%s Empty estates on page %d (%s), result_size=%d", self.log_prefix, page_token, label, total)
            return Page(total_available=total)

        with ThreadPoolExecutor(max_workers=self.max_concurrency) as pool:
            details = list(pool.map(self.fetch_detail, [e.get("hash_id") for e in estates]))

        listings = [
            self._to_listing(estate, detail, query)
            for estate, detail in zip(estates, details)
        ]
        has_more = total > (page_token + 1) * PER_PAGE
        return Page(
            listings=listings,
            total_available=total,
            next_page_token=page_token + 1 if has_more else None,
        )

    def _to_listing(self, estate: dict, detail: Detail, query: PageQuery) -> Listing:
        layout, floor_area, land_area = detail
        floor_area = positive_or_none(floor_area)
        hash_id = estate.get("hash_id")
        price = safe_int(estate.get("price"))
        gps = estate.get("gps") or {}
        images = (estate.get("_links") or {}).get("images") or []
        image_url = images[0].get("href") if images and isinstance(images[0], dict) else None
        offer_slug = OFFER_SLUG.get(query.offer_type, "prodej")

        return Listing(
            id=listing_id(self.portal, query.category, hash_id),
            source=self.portal,
            category=query.category,
            name=estate.get("name") or "",
            price=price,
            price_per_sqm=calc_price_per_sqm(price, floor_area),
            locality=estate.get("locality") or "",
            layout=layout,
            floor_area=floor_area,
            land_area=positive_or_none(land_area),
            lat=gps.get("lat"),
            lon=gps.get("lon"),
            image_url=image_url,
            url=f"{BASE}/detail/{offer_slug}/{CATEGORY_SLUG[query.category]}/{hash_id}",
        )
