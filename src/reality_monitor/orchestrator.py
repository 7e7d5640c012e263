from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterator, List, Optional, Tuple

from .config import RunConfig
from .pagination import paginate
from .quota import Quota, allocate
from .schema import Listing, PageQuery, Portal
from .sources import get_adapter
from .sources.base import PortalAdapter

log = logging.getLogger(__name__)


def build_adapters(run: RunConfig) -> Dict[Portal, PortalAdapter]:
    return {
        portal: get_adapter(portal)(max_concurrency=run.max_concurrency)
        for portal in run.portals
    }


class Orchestrator:
    """Runs the pagination controller for every configured portal.

    Portals are scraped one after another; within a portal the
    (category, offer type, region) combinations run concurrently and share
    one quota. The only state carried between portals is the remaining
    global item budget.
    """

    def __init__(
        self,
        run: RunConfig,
        adapters: Optional[Dict[Portal, PortalAdapter]] = None,
        delay: float = 0.5,
        logger: logging.Logger | logging.LoggerAdapter = log,
    ) -> None:
        self.run = run
        self.adapters = adapters if adapters is not None else build_adapters(run)
        self.delay = delay
        self.log = logger

    def queries(self, regions: List[Optional[str]]) -> List[PageQuery]:
        return [
            PageQuery(
                category=category,
                offer_type=offer_type,
                region=region,
                max_price=self.run.max_price,
                min_area=self.run.min_area,
            )
            for category in self.run.categories
            for offer_type in self.run.offer_types
            for region in regions
        ]

    def scrape_portal(self, adapter: PortalAdapter, cap: Optional[int]) -> List[Listing]:
        regions = adapter.resolve_regions(self.run.regions, self.log)
        if regions is None:
            return []

        quota = Quota(cap)
        queries = self.queries(regions)
        with ThreadPoolExecutor(max_workers=self.run.max_concurrency) as pool:
            batches = list(pool.map(
                lambda q: paginate(adapter, q, quota, self.delay, self.log),
                queries,
            ))
        listings = [l for batch in batches for l in batch]
        self.log.info("%s Done. Scraped %d listings.", adapter.log_prefix, len(listings))
        return listings

    def iter_batches(self) -> Iterator[Tuple[Portal, List[Listing]]]:
        """Yield each portal's listings as soon as that portal is finished."""
        per_portal = allocate(self.run.max_items, len(self.run.portals))
        remaining = self.run.max_items

        for portal in self.run.portals:
            cap = per_portal if remaining is None else min(per_portal, remaining)
            if cap == 0:
                self.log.info("[%s] Item budget exhausted, skipping", portal.value)
                yield portal, []
                continue

            listings = self.scrape_portal(self.adapters[portal], cap)
            if remaining is not None:
                remaining -= len(listings)
            yield portal, listings

    def collect(self) -> List[Listing]:
        results: List[Listing] = []
        for _, listings in self.iter_batches():
            results.extend(listings)
        self.log.info("Total listings scraped: %d", len(results))
        return results
