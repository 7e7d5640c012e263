"""Bezrealitky (bezrealitky.cz) adapter.

The site is a Next.js SSR app. Listing data is embedded in
``<script id="__NEXT_DATA__">`` as an Apollo cache: ``ROOT_QUERY`` holds a
``listAdverts(...)`` entry with the page's advert refs and ``totalCount``,
each ref pointing at an ``Advert:<id>`` object in the same cache.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from .base import PageParseError, PortalAdapter
from ..normalize import calc_price_per_sqm, listing_id, parse_area, positive_or_none, safe_int
from ..regions import build_region_lookup
from ..schema import Category, Listing, OfferType, Page, PageQuery, Portal

log = logging.getLogger(__name__)

BASE = "https://www.bezrealitky.cz"
PAGE_SIZE = 15
LISTING_PATH = "/vypis/nabidka-"

ESTATE_SLUG: Dict[Category, str] = {
    Category.HOUSE: "dum",
    Category.APARTMENT: "byt",
    Category.LAND: "pozemek",
}
OFFER_SLUG: Dict[OfferType, str] = {OfferType.SALE: "prodej", OfferType.RENT: "pronajem"}

REGION_SLUGS = build_region_lookup({
    "Praha": "praha",
    "Středočeský": "stredocesky-kraj",
    "Jihočeský": "jihocesky-kraj",
    "Plzeňský": "plzensky-kraj",
    "Karlovarský": "karlovarsky-kraj",
    "Ústecký": "ustecky-kraj",
    "Liberecký": "liberecky-kraj",
    "Královéhradecký": "kralovehradecky-kraj",
    "Pardubický": "pardubicky-kraj",
    "Vysočina": "kraj-vysocina",
    "Jihomoravský": "jihomoravsky-kraj",
    "Olomoucký": "olomoucky-kraj",
    "Zlínský": "zlinsky-kraj",
    "Moravskoslezský": "moravskoslezsky-kraj",
})

DISPOSITION_MAP: Dict[str, str] = {
    "DISP_1_KK": "1+kk",
    "DISP_1_1": "1+1",
    "DISP_2_KK": "2+kk",
    "DISP_2_1": "2+1",
    "DISP_3_KK": "3+kk",
    "DISP_3_1": "3+1",
    "DISP_4_KK": "4+kk",
    "DISP_4_1": "4+1",
    "DISP_5_KK": "5+kk",
    "DISP_5_1": "5+1",
    "DISP_6": "6+",
    "DISP_ROOM": "Pokoj",
}


def _find_by_prefix(obj: dict, prefix: str) -> Any:
    for key, value in obj.items():
        if key.startswith(prefix):
            return value
    return None


def listing_path(offer_slug: str, estate_slug: str, region_slug: Optional[str] = None) -> str:
    path = f"{LISTING_PATH}{offer_slug}/{estate_slug}"
    return f"{path}/{region_slug}" if region_slug else path


def resolve_image(advert: dict, apollo_state: dict) -> Optional[str]:
    """Follow ``mainImage.__ref`` and pick its ``RECORD_MAIN`` url."""
    ref = (advert.get("mainImage") or {}).get("__ref")
    if not ref:
        return None
    image = apollo_state.get(ref)
    if not isinstance(image, dict):
        return None
    for key, value in image.items():
        if key.startswith("url") and "RECORD_MAIN" in key:
            return value
    return None


def extract_page_data(html: str) -> Optional[tuple[dict, List[dict], int]]:
    """Return (apollo_state, advert refs, total count) or None if the page lists nothing."""
    soup = BeautifulSoup(html, "html.parser")
    tag = soup.find("script", id="__NEXT_DATA__")
    if not tag or not tag.string:
        raise PageParseError("__NEXT_DATA__ not found in page")
    try:
        next_data = json.loads(tag.string)
    except json.JSONDecodeError as exc:
        raise PageParseError("Failed to parse __NEXT_DATA__ JSON") from exc

    page_props = (next_data.get("props") or {}).get("pageProps") or {}
    apollo_state = (
        page_props.get("apolloCache")
        or page_props.get("apolloState")
        or page_props.get("initialApolloState")
    )
    if not isinstance(apollo_state, dict):
        raise PageParseError("Apollo state not found in __NEXT_DATA__")

    root_query = apollo_state.get("ROOT_QUERY") or {}
    adverts = _find_by_prefix(root_query, "listAdverts") or {}
    refs = [r for r in adverts.get("list") or [] if isinstance(r, dict)]
    if not refs:
        return None
    return apollo_state, refs, safe_int(adverts.get("totalCount")) or 0


class BezrealitkyAdapter(PortalAdapter):
    portal = Portal.BEZREALITKY
    first_page_token = 1
    region_lookup = REGION_SLUGS

    def page_url(self, query: PageQuery, page: int) -> str:
        path = listing_path(OFFER_SLUG[query.offer_type], ESTATE_SLUG[query.category], query.region)
        return f"{BASE}{path}?page={page}"

    def fetch_page(self, query: PageQuery, page_token: int) -> Page:
        label = f"{query.category.value}/{query.offer_type.value}/{query.region or 'all'}"
        url = self.page_url(query, page_token)
        log.info("%s Fetching page %d (%s): %s", self.log_prefix, page_token, label, url)
        resp = self._get(url)
        return self.parse_page(resp, query, page_token)

    def parse_page(self, response: requests.Response, query: PageQuery, page_token: int) -> Page:
        page_data = extract_page_data(response.text)
        if page_data is None:
            log.warning("%s No adverts on page %d", self.log_prefix, page_token)
            return Page()
        apollo_state, refs, total = page_data
        if page_token == self.first_page_token:
            log.info("%s Total available: %d", self.log_prefix, total)

        listings: List[Listing] = []
        for ref in refs:
            ref_key = ref.get("__ref")
            advert = apollo_state.get(ref_key) if ref_key else None
            if not isinstance(advert, dict):
                continue
            listing = self._to_listing(advert, apollo_state, ref_key, query)
            # adverts without a surface cannot satisfy an area floor
            if query.min_area and listing.floor_area is None:
                continue
            listings.append(listing)

        has_more = total > page_token * PAGE_SIZE
        return Page(
            listings=listings,
            total_available=total,
            next_page_token=page_token + 1 if has_more else None,
        )

    def _to_listing(self, advert: dict, apollo_state: dict, ref_key: str, query: PageQuery) -> Listing:
        price = safe_int(advert.get("price"))
        floor_area = positive_or_none(parse_area(advert.get("surface")))
        native_id = advert.get("id") or ref_key.replace("Advert:", "")
        locality = _find_by_prefix(advert, "address") or ""
        disposition = advert.get("disposition")
        gps = advert.get("gps") or {}
        uri = advert.get("uri")
        if isinstance(uri, str) and uri:
            url = f"{BASE}/{uri.lstrip('/')}"
        else:
            url = f"{BASE}{listing_path(OFFER_SLUG[query.offer_type], ESTATE_SLUG[query.category])}"

        return Listing(
            id=listing_id(self.portal, query.category, native_id),
            source=self.portal,
            category=query.category,
            name=locality,
            price=price,
            price_per_sqm=calc_price_per_sqm(price, floor_area),
            locality=locality,
            layout=DISPOSITION_MAP.get(disposition, disposition) if disposition else None,
            floor_area=floor_area,
            land_area=positive_or_none(parse_area(advert.get("surfaceLand"))),
            lat=gps.get("lat"),
            lon=gps.get("lng"),
            image_url=resolve_image(advert, apollo_state),
            url=url,
        )
