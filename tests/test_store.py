from __future__ import annotations

from pathlib import Path

import pytest

from callscreen.core.parser import ParseError
from callscreen.screening.sources import PermissionDenied
from callscreen.store import CallType, MessageBox, SQLiteDataStore

CALLER = "+14155552671"


@pytest.fixture
def store(tmp_path: Path) -> SQLiteDataStore:
    return SQLiteDataStore(tmp_path / "nested" / "data.sqlite3", region="us")


def test_contacts_are_indexed_by_e164(store: SQLiteDataStore) -> None:
    assert store.add_contact("(415) 555-2671", name="Alice") == CALLER
    assert store.lookup(CALLER) is True
    assert store.lookup("+14155552672") is False


def test_add_contact_rejects_garbage(store: SQLiteDataStore) -> None:
    with pytest.raises(ParseError):
        store.add_contact("unknown")


def test_outgoing_calls_only(store: SQLiteDataStore) -> None:
    store.record_call("415 555 2671", CallType.INCOMING)
    assert store.query_outgoing(CALLER) is False
    store.record_call("415 555 2671", CallType.OUTGOING)
    assert store.query_outgoing(CALLER) is True


def test_count_blocked_since_is_strict(store: SQLiteDataStore) -> None:
    for ts in (1_000, 2_000, 3_000):
        store.record_call(CALLER, CallType.BLOCKED, timestamp_ms=ts)
    store.record_call(CALLER, CallType.MISSED, timestamp_ms=4_000)
    assert store.count_blocked_since(CALLER, 0) == 3
    assert store.count_blocked_since(CALLER, 2_000) == 1
    assert store.count_blocked_since(CALLER, 3_000) == 0


def test_message_addresses_are_stored_verbatim(store: SQLiteDataStore) -> None:
    store.record_message("4155552671", MessageBox.SENT)
    assert store.query_sent(CALLER) is False
    store.record_message(CALLER, MessageBox.INBOX)
    assert store.query_received(CALLER) is True
    assert store.query_sent("4155552671") is True


def test_allow_list_lifecycle(store: SQLiteDataStore) -> None:
    first = store.add_allowed("415-555-2671")
    second = store.add_allowed("+44 20 8366 1177")
    assert first.id is not None and second.id is not None
    assert [e.phone_number for e in store.list_active()] == ["415-555-2671", "+44 20 8366 1177"]

    store.set_allowed_active(first.id, False)
    assert [e.id for e in store.list_active()] == [second.id]
    assert [e.is_active for e in store.list_allowed()] == [False, True]

    store.remove_allowed(second.id)
    assert store.list_active() == []
    with pytest.raises(KeyError):
        store.remove_allowed(second.id)
    with pytest.raises(KeyError):
        store.set_allowed_active(999, True)


def test_reads_require_permissions(tmp_path: Path) -> None:
    store = SQLiteDataStore(tmp_path / "data.sqlite3", region="US", granted=["contacts"])
    assert store.lookup(CALLER) is False
    with pytest.raises(PermissionDenied):
        store.query_outgoing(CALLER)
    with pytest.raises(PermissionDenied):
        store.count_blocked_since(CALLER, 0)
    with pytest.raises(PermissionDenied):
        store.query_sent(CALLER)
    with pytest.raises(PermissionDenied):
        store.query_received(CALLER)
    # The allow-list belongs to the app and needs no permission.
    assert store.list_active() == []
