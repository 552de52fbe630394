"""Screening preferences: flag enums and the immutable configuration snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, TypeVar


class Flag(str, Enum):
    """
    A named option inside one heuristic category.

    Members are evaluated in declaration order. `bit` is the member's value in
    the legacy integer bitmask encoding.
    """

    @property
    def bit(self) -> int:
        return 1 << list(type(self)).index(self)

    @classmethod
    def from_mask(cls: type[F], mask: int) -> frozenset[F]:
        return frozenset(m for m in cls if mask & m.bit)

    @classmethod
    def ordered(cls: type[F], flags: Iterable[F]) -> list[F]:
        selected = set(flags)
        return [m for m in cls if m in selected]


F = TypeVar("F", bound=Flag)


class Contact(Flag):
    CALL = "call"
    MESSAGE = "message"


class Group(Flag):
    TOLL_FREE = "toll_free"
    MOBILE = "mobile"
    LOCAL = "local"
    NOT_LOCAL = "not_local"
    LOCAL_MOBILE = "local_mobile"


class Message(Flag):
    INBOX = "inbox"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class Configuration:
    """
    Snapshot of the screening preferences for one decision.

    Category gates switch whole heuristics on or off; the flag sets select the
    sub-checks that run inside an enabled category.
    """

    contacted_checked: bool = False
    contacted: frozenset[Contact] = field(
        default_factory=lambda: frozenset({Contact.CALL, Contact.MESSAGE})
    )
    groups_checked: bool = False
    groups: frozenset[Group] = field(default_factory=lambda: frozenset({Group.LOCAL}))
    repeated_checked: bool = False
    repeated_minutes: int = 5
    repeated_count: int = 3
    messages_checked: bool = False
    messages: frozenset[Message] = field(default_factory=lambda: frozenset({Message.INBOX}))

    def to_dict(self) -> dict[str, object]:
        return {
            "contacted_checked": self.contacted_checked,
            "contacted": [f.value for f in Contact.ordered(self.contacted)],
            "groups_checked": self.groups_checked,
            "groups": [f.value for f in Group.ordered(self.groups)],
            "repeated_checked": self.repeated_checked,
            "repeated_minutes": self.repeated_minutes,
            "repeated_count": self.repeated_count,
            "messages_checked": self.messages_checked,
            "messages": [f.value for f in Message.ordered(self.messages)],
        }
