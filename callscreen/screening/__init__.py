"""Call screening decision engine."""

from __future__ import annotations

from .engine import ScreeningEngine, ScreeningResult
from .heuristics import ScreeningContext
from .options import Configuration, Contact, Group, Message
from .sources import (
    AllowList,
    AllowListEntry,
    CallLog,
    ContactsIndex,
    DataSources,
    MessageLog,
    PermissionDenied,
    RegionProvider,
    StaticRegionProvider,
)

__all__ = [
    "ScreeningEngine",
    "ScreeningResult",
    "ScreeningContext",
    "Configuration",
    "Contact",
    "Group",
    "Message",
    "AllowList",
    "AllowListEntry",
    "CallLog",
    "ContactsIndex",
    "DataSources",
    "MessageLog",
    "PermissionDenied",
    "RegionProvider",
    "StaticRegionProvider",
]
