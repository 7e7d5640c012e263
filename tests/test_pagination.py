import requests

from reality_monitor.pagination import paginate
from reality_monitor.quota import Quota
from reality_monitor.schema import Category, OfferType, Page, PageQuery
from reality_monitor.sources.sreality import API, SrealityAdapter

from conftest import FakeAdapter, listings_page
from test_sreality import LIST_PAGE, MockSession

QUERY = PageQuery(category=Category.HOUSE, offer_type=OfferType.SALE)


def test_follows_pages_until_no_token():
    adapter = FakeAdapter({
        0: listings_page(2, start=0, total=5, next_token=1),
        1: listings_page(2, start=2, total=5, next_token=2),
        2: listings_page(1, start=4, total=5, next_token=None),
    })
    result = paginate(adapter, QUERY, Quota(None), delay=0)
    assert len(result) == 5
    assert [c[3] for c in adapter.calls] == [0, 1, 2]


def test_stops_when_total_reached_even_with_token():
    adapter = FakeAdapter({
        0: listings_page(3, total=3, next_token=1),
        1: listings_page(3, start=3, total=3),
    })
    result = paginate(adapter, QUERY, Quota(None), delay=0)
    assert len(result) == 3
    assert len(adapter.calls) == 1


def test_stops_at_quota():
    adapter = FakeAdapter({
        0: listings_page(4, total=100, next_token=1),
        1: listings_page(4, start=4, total=100, next_token=2),
    })
    result = paginate(adapter, QUERY, Quota(6), delay=0)
    assert len(result) == 6
    assert len(adapter.calls) == 2


def test_exhausted_quota_fetches_nothing():
    adapter = FakeAdapter({0: listings_page(4)})
    assert paginate(adapter, QUERY, Quota(0), delay=0) == []
    assert adapter.calls == []


def test_error_keeps_earlier_pages(caplog):
    adapter = FakeAdapter({
        0: listings_page(2, total=10, next_token=1),
        1: requests.ConnectionError("boom"),
        2: listings_page(2, start=2, total=10),
    })
    result = paginate(adapter, QUERY, Quota(None), delay=0)
    assert len(result) == 2
    assert len(adapter.calls) == 2
    assert "Failed to fetch page 1" in caplog.text


def test_error_on_first_page_returns_empty():
    adapter = FakeAdapter({0: ValueError("bad json")})
    assert paginate(adapter, QUERY, Quota(None), delay=0) == []


def test_empty_page_stops():
    adapter = FakeAdapter({0: Page(total_available=50, next_page_token=1)})
    assert paginate(adapter, QUERY, Quota(None), delay=0) == []
    assert len(adapter.calls) == 1


def test_filters_before_counting_quota():
    query = PageQuery(category=Category.HOUSE, offer_type=OfferType.SALE, max_price=1_000_000)
    cheap = listings_page(2, start=0, price=900_000)
    expensive = listings_page(3, start=10, price=2_000_000)
    page0 = Page(listings=expensive.listings + cheap.listings, total_available=10, next_page_token=1)
    adapter = FakeAdapter({0: page0, 1: listings_page(2, start=20, total=10, price=500_000)})

    result = paginate(adapter, query, Quota(3), delay=0)
    assert [l.id for l in result] == ["sreality:house:0", "sreality:house:1", "sreality:house:20"]


def test_sleeps_between_pages(monkeypatch):
    sleeps = []
    monkeypatch.setattr("reality_monitor.pagination.time.sleep", sleeps.append)
    adapter = FakeAdapter({
        0: listings_page(1, total=3, next_token=1),
        1: listings_page(1, start=1, total=3, next_token=2),
        2: listings_page(1, start=2, total=3),
    })
    paginate(adapter, QUERY, Quota(None), delay=0.5)
    assert sleeps == [0.5, 0.5]


def test_detail_failure_with_area_floor_keeps_listings(monkeypatch):
    adapter = SrealityAdapter(max_concurrency=2, session=MockSession({API: LIST_PAGE}))
    real_get = adapter._get

    def flaky_get(url, params=None):
        if url != API:
            raise requests.ConnectionError("detail down")
        return real_get(url, params)

    monkeypatch.setattr(adapter, "_get", flaky_get)
    query = PageQuery(category=Category.HOUSE, offer_type=OfferType.SALE, min_area=80)
    result = paginate(adapter, query, Quota(None), delay=0)
    assert [l.id for l in result] == ["sreality:house:111", "sreality:house:222"]
    assert all(l.floor_area is None for l in result)


def test_known_area_below_floor_is_dropped():
    adapter = FakeAdapter({0: Page(
        listings=listings_page(1, start=0, floor_area=60).listings
        + listings_page(1, start=1, floor_area=None).listings,
        total_available=2,
    )})
    query = PageQuery(category=Category.HOUSE, offer_type=OfferType.SALE, min_area=80)
    result = paginate(adapter, query, Quota(None), delay=0)
    assert [l.id for l in result] == ["sreality:house:1"]
