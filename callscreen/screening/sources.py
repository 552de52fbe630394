# file: callscreen/screening/sources.py
"""
Interfaces for the data sources consulted during screening.

The engine never talks to a platform provider directly. Each heuristic reads
through one of these contracts, and any read may be refused by the host with
`PermissionDenied`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence


class PermissionDenied(PermissionError):
    """Raised by a data source when the host has not granted read access."""


@dataclass(frozen=True, slots=True)
class AllowListEntry:
    """
    A user-approved number.

    Fields:
        phone_number: Number as the user entered it (not normalized).
        is_active: Inactive entries are kept by the store but never consulted.
        id: Store identifier, if persisted.
        created_at: When the entry was added, if known.
    """

    phone_number: str
    is_active: bool = True
    id: int | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "phone_number": self.phone_number,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class RegionProvider(ABC):
    @abstractmethod
    def current_region(self) -> str | None:
        """Return the registered network country as an ISO code, or None/empty if unknown."""

        raise NotImplementedError


class StaticRegionProvider(RegionProvider):
    def __init__(self, region: str | None) -> None:
        self._region = region.upper() if region else None

    def current_region(self) -> str | None:
        return self._region


class ContactsIndex(ABC):
    @abstractmethod
    def lookup(self, dial_string: str) -> bool:
        """Return True if the address book's phone lookup index knows `dial_string`."""

        raise NotImplementedError


class CallLog(ABC):
    @abstractmethod
    def query_outgoing(self, dial_string: str) -> bool:
        """Return True if an outgoing call to `dial_string` was logged."""

        raise NotImplementedError

    @abstractmethod
    def count_blocked_since(self, dial_string: str, timestamp_ms: int) -> int:
        """Count blocked calls from `dial_string` strictly after `timestamp_ms`."""

        raise NotImplementedError


class MessageLog(ABC):
    @abstractmethod
    def query_sent(self, address: str) -> bool:
        """Return True if a sent message has exactly this address."""

        raise NotImplementedError

    @abstractmethod
    def query_received(self, address: str) -> bool:
        """Return True if a received message has exactly this address."""

        raise NotImplementedError


class AllowList(ABC):
    @abstractmethod
    def list_active(self) -> Sequence[AllowListEntry]:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class DataSources:
    region: RegionProvider
    contacts: ContactsIndex
    call_log: CallLog
    message_log: MessageLog
    allow_list: AllowList
