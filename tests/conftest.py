from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest
import requests

from reality_monitor.regions import build_region_lookup
from reality_monitor.schema import Category, Listing, Page, PageQuery, Portal
from reality_monitor.sources.base import PortalAdapter

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def _run_from_project_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests run with the project root as working directory."""
    monkeypatch.chdir(PROJECT_ROOT)


def make_listing(**overrides) -> Listing:
    defaults = dict(
        id="sreality:house:1",
        source=Portal.SREALITY,
        category=Category.HOUSE,
        name="Prodej rodinného domu 200 m²",
        price=5_000_000,
        price_per_sqm=25_000,
        locality="Brno",
        layout="4+1",
        floor_area=200,
        land_area=500,
        lat=49.19,
        lon=16.6,
        image_url=None,
        url="https://www.sreality.cz/detail/prodej/dum/1",
    )
    defaults.update(overrides)
    return Listing(**defaults)


class FakeAdapter(PortalAdapter):
    """Serves canned pages keyed by page token; an Exception entry is raised."""

    portal = Portal.SREALITY
    first_page_token = 0
    region_lookup = build_region_lookup({"Praha": "10", "Jihomoravský": "64"})

    def __init__(
        self,
        pages: Optional[Dict[int, Union[Page, Exception]]] = None,
        per_query: Optional[Dict[Optional[str], Dict[int, Union[Page, Exception]]]] = None,
    ) -> None:
        super().__init__(max_concurrency=2, session=requests.Session())
        self.pages = pages or {}
        self.per_query = per_query
        self.calls: List[tuple] = []

    def fetch_page(self, query: PageQuery, page_token: int) -> Page:
        self.calls.append((query.category, query.offer_type, query.region, page_token))
        pages = self.per_query[query.region] if self.per_query is not None else self.pages
        page = pages.get(page_token, Page())
        if isinstance(page, Exception):
            raise page
        return page


def listings_page(
    count: int,
    start: int = 0,
    total: int = 100,
    next_token: Optional[int] = None,
    **overrides,
) -> Page:
    listings = [
        make_listing(id=f"sreality:house:{start + i}", **overrides)
        for i in range(count)
    ]
    return Page(listings=listings, total_available=total, next_page_token=next_token)
