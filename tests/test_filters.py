from reality_monitor.filters import apply_filters, passes_filters

from conftest import make_listing


def test_no_filters_pass_everything():
    assert passes_filters(make_listing())


def test_price_ceiling():
    assert passes_filters(make_listing(price=5_000_000), max_price=5_000_000)
    assert not passes_filters(make_listing(price=5_000_001), max_price=5_000_000)


def test_unknown_price_passes_price_ceiling():
    assert passes_filters(make_listing(price=None), max_price=1)


def test_area_floor():
    assert passes_filters(make_listing(floor_area=120), min_area=120)
    assert not passes_filters(make_listing(floor_area=119.5), min_area=120)


def test_unknown_area_passes_area_floor():
    assert passes_filters(make_listing(floor_area=None), min_area=50)


def test_zero_area_floor_is_no_filter():
    assert passes_filters(make_listing(floor_area=None), min_area=0)


def test_apply_filters_keeps_order():
    listings = [
        make_listing(id="sreality:house:1", price=1),
        make_listing(id="sreality:house:2", price=10),
        make_listing(id="sreality:house:3", price=2),
    ]
    kept = apply_filters(listings, max_price=5)
    assert [l.id for l in kept] == ["sreality:house:1", "sreality:house:3"]
