from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import cloudscraper
import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from ..regions import resolve_regions
from ..schema import Page, PageQuery, Portal

log = logging.getLogger(__name__)


def _create_session(accept: str) -> requests.Session:
    """Create a session that can bypass Cloudflare challenges."""
    scraper = cloudscraper.create_scraper(
        browser={"browser": "chrome", "platform": "darwin", "mobile": False},
    )
    scraper.headers.update({
        "Accept-Language": "cs-CZ,cs;q=0.9,en;q=0.8",
        "Accept": accept,
    })
    return scraper


class PageParseError(Exception):
    """A page came back but its payload has an unexpected shape."""


class PortalAdapter(ABC):
    """One portal: builds its query from a :class:`PageQuery` and parses one page.

    Subclasses set ``portal``, ``first_page_token`` and ``region_lookup``.

    One session is shared by every thread working for this adapter. At most
    ``max_concurrency`` requests are in flight at once, counting page and
    detail requests together.
    """

    portal: Portal
    first_page_token: int = 0
    region_lookup: Dict[str, str] = {}
    accept: str = "text/html,application/xhtml+xml,application/json"

    def __init__(
        self,
        max_concurrency: int = 5,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.session = session or _create_session(self.accept)
        self.max_concurrency = max_concurrency
        self._slots = threading.BoundedSemaphore(max_concurrency)

    @property
    def log_prefix(self) -> str:
        return f"[{self.portal.value}]"

    def resolve_regions(
        self,
        regions: Sequence[str],
        logger: logging.Logger | logging.LoggerAdapter = log,
    ) -> Optional[List[Optional[str]]]:
        """Filter values to paginate over; ``None`` if no given region is known."""
        return resolve_regions(regions, self.region_lookup, self.log_prefix, logger)

    @abstractmethod
    def fetch_page(self, query: PageQuery, page_token: int) -> Page:
        raise NotImplementedError

    @staticmethod
    def _should_retry(exc: BaseException) -> bool:
        """Don't retry on 403/451 (bot-block) – retrying won't help."""
        if isinstance(exc, requests.exceptions.HTTPError) and exc.response is not None:
            if exc.response.status_code in (403, 451):
                return False
        return True

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=2, max=30),
        retry=retry_if_exception(_should_retry.__func__),
        reraise=True,
    )
    def _get(self, url: str, params: Optional[list] = None) -> requests.Response:
        try:
            with self._slots:
                resp = self.session.get(url, params=params, timeout=30)
            resp.raise_for_status()
            return resp
        except cloudscraper.exceptions.CloudflareChallengeError:
            log.warning("%s Cloudflare challenge failed for %s", self.log_prefix, url)
            raise

