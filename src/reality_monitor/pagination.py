from __future__ import annotations

import logging
import time
from typing import List

from .filters import apply_filters
from .quota import Quota
from .schema import Listing, PageQuery
from .sources.base import PortalAdapter

log = logging.getLogger(__name__)


def paginate(
    adapter: PortalAdapter,
    query: PageQuery,
    quota: Quota,
    delay: float = 0.5,
    logger: logging.Logger | logging.LoggerAdapter = log,
) -> List[Listing]:
    """Fetch pages of one combination in sequence until quota, exhaustion or error.

    Pages are filtered by price ceiling and area floor before they count
    against ``quota``. A failing page ends this combination only; listings
    from earlier pages are kept.
    """
    collected: List[Listing] = []
    fetched = 0
    token = adapter.first_page_token
    label = f"{query.category.value}/{query.offer_type.value}/{query.region or 'all'}"

    while not quota.exhausted:
        try:
            page = adapter.fetch_page(query, token)
        except Exception:
            logger.exception("%s Failed to fetch page %s (%s)", adapter.log_prefix, token, label)
            break

        fetched += len(page.listings)
        kept = apply_filters(page.listings, query.max_price, query.min_area)
        collected.extend(quota.take(kept))
        logger.info(
            "%s Page %s (%s): %d listings, %d kept (combination total: %d)",
            adapter.log_prefix, token, label, len(page.listings), len(kept), len(collected),
        )

        has_more = (
            bool(page.listings)
            and page.next_page_token is not None
            and page.total_available > fetched
        )
        if not has_more or quota.exhausted:
            break
        token = page.next_page_token
        if delay:
            time.sleep(delay)

    return collected
