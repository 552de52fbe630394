from __future__ import annotations

from dataclasses import dataclass, field

import phonenumbers
import pytest
from phonenumbers.phonenumberutil import PhoneNumberFormat, PhoneNumberType

from callscreen.screening.sources import (
    AllowList,
    AllowListEntry,
    CallLog,
    ContactsIndex,
    DataSources,
    MessageLog,
    PermissionDenied,
    RegionProvider,
)

NOW_S = 1_700_000_000.0
NOW_MS = int(NOW_S * 1000)


def example_e164(region: str, number_type: int) -> str:
    example = phonenumbers.example_number_for_type(region, number_type)
    assert example is not None
    return phonenumbers.format_number(example, PhoneNumberFormat.E164)


@dataclass
class FakeWorld:
    """In-memory data sources that record every read they serve."""

    region: str | None = None
    contacts: set[str] = field(default_factory=set)
    outgoing: set[str] = field(default_factory=set)
    blocked: dict[str, list[int]] = field(default_factory=dict)
    sent: set[str] = field(default_factory=set)
    received: set[str] = field(default_factory=set)
    allowed: list[AllowListEntry] = field(default_factory=list)
    denied: set[str] = field(default_factory=set)
    reads: list[tuple[str, str]] = field(default_factory=list)

    def record(self, source: str, method: str) -> None:
        self.reads.append((source, method))
        if source in self.denied:
            raise PermissionDenied(f"{source} denied")

    def sources_read(self) -> set[str]:
        return {source for source, _ in self.reads}

    def sources(self) -> DataSources:
        world = self

        class _Region(RegionProvider):
            def current_region(self) -> str | None:
                world.record("region", "current_region")
                return world.region

        class _Contacts(ContactsIndex):
            def lookup(self, dial_string: str) -> bool:
                world.record("contacts", "lookup")
                return dial_string in world.contacts

        class _Calls(CallLog):
            def query_outgoing(self, dial_string: str) -> bool:
                world.record("call_log", "query_outgoing")
                return dial_string in world.outgoing

            def count_blocked_since(self, dial_string: str, timestamp_ms: int) -> int:
                world.record("call_log", "count_blocked_since")
                return sum(1 for ts in world.blocked.get(dial_string, []) if ts > timestamp_ms)

        class _Messages(MessageLog):
            def query_sent(self, address: str) -> bool:
                world.record("message_log", "query_sent")
                return address in world.sent

            def query_received(self, address: str) -> bool:
                world.record("message_log", "query_received")
                return address in world.received

        class _Allowed(AllowList):
            def list_active(self) -> list[AllowListEntry]:
                world.record("allow_list", "list_active")
                return [e for e in world.allowed if e.is_active]

        return DataSources(
            region=_Region(),
            contacts=_Contacts(),
            call_log=_Calls(),
            message_log=_Messages(),
            allow_list=_Allowed(),
        )


@pytest.fixture
def world() -> FakeWorld:
    return FakeWorld()


@pytest.fixture
def gb_mobile() -> str:
    return example_e164("GB", PhoneNumberType.MOBILE)


@pytest.fixture
def gb_toll_free() -> str:
    return example_e164("GB", PhoneNumberType.TOLL_FREE)


@pytest.fixture
def us_fixed() -> str:
    return example_e164("US", PhoneNumberType.FIXED_LINE)
