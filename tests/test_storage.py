import os
import tempfile
from datetime import datetime, timezone

from reality_monitor.schema import HistoryEntry
from reality_monitor.storage import Storage, load_history, save_history, summarize_history

KEY = "LISTING_HISTORY"
FIRST_SEEN = datetime(2026, 10, 1, 8, 30, tzinfo=timezone.utc)


def test_missing_key_loads_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(os.path.join(tmpdir, "test.db"))
        assert load_history(storage, KEY) == {}


def test_round_trip_preserves_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = os.path.join(tmpdir, "test.db")
        storage = Storage(db_path)
        history = {
            "sreality:house:1": HistoryEntry(price=5_000_000, first_seen_at=FIRST_SEEN),
            "bezrealitky:land:7": HistoryEntry(price=None, first_seen_at=FIRST_SEEN),
        }
        save_history(storage, KEY, history)
        storage.close()

        loaded = load_history(Storage(db_path), KEY)
        assert loaded == history
        assert loaded["sreality:house:1"].first_seen_at == FIRST_SEEN


def test_save_overwrites_whole_mapping():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(os.path.join(tmpdir, "test.db"))
        save_history(storage, KEY, {"a:house:1": HistoryEntry(price=1, first_seen_at=FIRST_SEEN)})
        save_history(storage, KEY, {"a:house:2": HistoryEntry(price=2, first_seen_at=FIRST_SEEN)})
        assert set(load_history(storage, KEY)) == {"a:house:2"}


def test_keys_are_independent():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(os.path.join(tmpdir, "test.db"))
        save_history(storage, "one", {"a:house:1": HistoryEntry(price=1, first_seen_at=FIRST_SEEN)})
        assert load_history(storage, "two") == {}
        assert storage.keys() == ["one"]


def test_naive_timestamps_are_read_as_utc():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(os.path.join(tmpdir, "test.db"))
        storage.set_value(KEY, {"a:house:1": {"price": 1, "first_seen_at": "2026-10-01T08:30:00"}})
        assert load_history(storage, KEY)["a:house:1"].first_seen_at == FIRST_SEEN


def test_summarize_history():
    history = {
        "sreality:house:1": HistoryEntry(price=1, first_seen_at=FIRST_SEEN),
        "sreality:land:2": HistoryEntry(price=1, first_seen_at=FIRST_SEEN),
        "bezrealitky:house:3": HistoryEntry(price=1, first_seen_at=FIRST_SEEN),
    }
    assert summarize_history(history) == {"sreality": 2, "bezrealitky": 1}
