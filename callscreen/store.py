# file: callscreen/store.py
"""
SQLite-backed data sources.

A single SQLite file holds the address book, call log, message log and the
allow-list, so the engine can be exercised outside a phone. Contacts and calls
are keyed by their E.164 dial string (the number-aware index); message
addresses are stored verbatim so message matching stays exact-string.

Reads of the contacts, call log and messages tables require the matching
permission (`contacts`, `call_log`, `sms`); without it they raise
`PermissionDenied`, as a platform provider would.
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator

from callscreen.core.parser import format_e164, parse_number
from callscreen.screening.sources import (
    AllowList,
    AllowListEntry,
    CallLog,
    ContactsIndex,
    MessageLog,
    PermissionDenied,
)

ALL_PERMISSIONS: frozenset[str] = frozenset({"contacts", "call_log", "sms"})


class CallType(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    MISSED = "missed"
    REJECTED = "rejected"
    BLOCKED = "blocked"


class MessageBox(str, Enum):
    INBOX = "inbox"
    SENT = "sent"


def _now_ms() -> int:
    return int(time.time() * 1000)


class SQLiteDataStore(ContactsIndex, CallLog, MessageLog, AllowList):
    def __init__(
        self,
        path: Path,
        *,
        region: str | None = None,
        granted: Iterable[str] = ALL_PERMISSIONS,
    ) -> None:
        self.path = path
        self.region = region.upper() if region else None
        self.granted = frozenset(granted)
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path)
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS contacts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    number TEXT NOT NULL,
                    name TEXT NOT NULL DEFAULT ''
                );
                CREATE INDEX IF NOT EXISTS idx_contacts_number ON contacts(number);

                CREATE TABLE IF NOT EXISTS calls (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    number TEXT NOT NULL,
                    type TEXT NOT NULL,
                    date INTEGER NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_calls_number_type ON calls(number, type, date);

                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    address TEXT NOT NULL,
                    box TEXT NOT NULL,
                    date INTEGER NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_messages_address_box ON messages(address, box);

                CREATE TABLE IF NOT EXISTS allow_numbers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    phone_number TEXT NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at INTEGER NOT NULL
                );
                """)

    def _require(self, permission: str) -> None:
        if permission not in self.granted:
            raise PermissionDenied(f"{permission} permission not granted")

    def _dial_string(self, number: str) -> str:
        return format_e164(parse_number(number, self.region))

    def _exists(self, sql: str, params: tuple[object, ...]) -> bool:
        with self._connect() as conn:
            return conn.execute(sql, params).fetchone() is not None

    # Writes

    def add_contact(self, number: str, *, name: str = "") -> str:
        dial = self._dial_string(number)
        with self._connect() as conn:
            conn.execute("INSERT INTO contacts(number, name) VALUES (?, ?)", (dial, name))
        return dial

    def record_call(
        self, number: str, call_type: CallType, *, timestamp_ms: int | None = None
    ) -> str:
        dial = self._dial_string(number)
        date = _now_ms() if timestamp_ms is None else int(timestamp_ms)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO calls(number, type, date) VALUES (?, ?, ?)",
                (dial, CallType(call_type).value, date),
            )
        return dial

    def record_message(
        self, address: str, box: MessageBox, *, timestamp_ms: int | None = None
    ) -> None:
        date = _now_ms() if timestamp_ms is None else int(timestamp_ms)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO messages(address, box, date) VALUES (?, ?, ?)",
                (address, MessageBox(box).value, date),
            )

    def add_allowed(self, phone_number: str) -> AllowListEntry:
        created = datetime.now(tz=timezone.utc).replace(microsecond=0)
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO allow_numbers(phone_number, is_active, created_at) VALUES (?, 1, ?)",
                (phone_number, int(created.timestamp())),
            )
            row_id = cur.lastrowid
        return AllowListEntry(phone_number=phone_number, is_active=True, id=row_id, created_at=created)

    def set_allowed_active(self, entry_id: int, active: bool) -> None:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE allow_numbers SET is_active = ? WHERE id = ?", (int(active), entry_id)
            )
            if cur.rowcount == 0:
                raise KeyError(entry_id)

    def remove_allowed(self, entry_id: int) -> None:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM allow_numbers WHERE id = ?", (entry_id,))
            if cur.rowcount == 0:
                raise KeyError(entry_id)

    def list_allowed(self, *, active_only: bool = False) -> list[AllowListEntry]:
        sql = "SELECT id, phone_number, is_active, created_at FROM allow_numbers"
        if active_only:
            sql += " WHERE is_active = 1"
        with self._connect() as conn:
            rows = conn.execute(sql + " ORDER BY id").fetchall()
        return [
            AllowListEntry(
                phone_number=phone_number,
                is_active=bool(is_active),
                id=int(row_id),
                created_at=datetime.fromtimestamp(int(created_at), tz=timezone.utc),
            )
            for row_id, phone_number, is_active, created_at in rows
        ]

    # Data source contracts

    def lookup(self, dial_string: str) -> bool:
        self._require("contacts")
        return self._exists("SELECT 1 FROM contacts WHERE number = ? LIMIT 1", (dial_string,))

    def query_outgoing(self, dial_string: str) -> bool:
        self._require("call_log")
        return self._exists(
            "SELECT 1 FROM calls WHERE number = ? AND type = ? LIMIT 1",
            (dial_string, CallType.OUTGOING.value),
        )

    def count_blocked_since(self, dial_string: str, timestamp_ms: int) -> int:
        self._require("call_log")
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM calls WHERE number = ? AND type = ? AND date > ?",
                (dial_string, CallType.BLOCKED.value, int(timestamp_ms)),
            ).fetchone()
        return int(row[0])

    def query_sent(self, address: str) -> bool:
        self._require("sms")
        return self._exists(
            "SELECT 1 FROM messages WHERE address = ? AND box = ? LIMIT 1",
            (address, MessageBox.SENT.value),
        )

    def query_received(self, address: str) -> bool:
        self._require("sms")
        return self._exists(
            "SELECT 1 FROM messages WHERE address = ? AND box = ? LIMIT 1",
            (address, MessageBox.INBOX.value),
        )

    def list_active(self) -> list[AllowListEntry]:
        return self.list_allowed(active_only=True)
