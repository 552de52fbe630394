# file: callscreen/screening/heuristics.py
"""
Heuristic evaluators.

Each heuristic answers one question ("was this number ever called?", "is it a
local mobile?", ...) against one data source and returns a bool. A read the
host refuses (`PermissionDenied`) is treated as "no match": missing evidence
never turns into an allow.
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import Callable, TypeVar

from callscreen.core.classify import NumberFacts, NumberType
from callscreen.core.parser import CanonicalNumber, ParseError, format_e164, numbers_equal, parse_number
from callscreen.screening.options import Configuration, Contact, Group, Message
from callscreen.screening.sources import DataSources, PermissionDenied

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScreeningContext:
    """
    Per-decision state shared by the heuristics.

    The home region and the classification facts are resolved on first use, so
    a decision that never needs them never reads the region provider.
    """

    def __init__(
        self,
        number: CanonicalNumber,
        *,
        config: Configuration,
        sources: DataSources,
        now_ms: int,
        region: str | None = None,
    ) -> None:
        self.number = number
        self.config = config
        self.sources = sources
        self.now_ms = now_ms
        self.dial_string = format_e164(number)
        self._region = region

    @cached_property
    def home_region(self) -> str | None:
        region = self._region if self._region is not None else self.sources.region.current_region()
        return region.upper() if region else None

    @cached_property
    def facts(self) -> NumberFacts:
        return NumberFacts(self.number, lambda: self.home_region)


def _read(source: str, read: Callable[[], T], default: T) -> T:
    try:
        return read()
    except PermissionDenied as exc:
        logger.info(
            "%s not readable, treating as no match: %s", source, exc, extra={"source": source}
        )
        return default


def check_contacts(ctx: ScreeningContext) -> bool:
    return _read("contacts", lambda: ctx.sources.contacts.lookup(ctx.dial_string), False)


def check_contacted_call(ctx: ScreeningContext) -> bool:
    return _read("call_log", lambda: ctx.sources.call_log.query_outgoing(ctx.dial_string), False)


def check_contacted_message(ctx: ScreeningContext) -> bool:
    # Exact address equality, unlike the number-aware call log index.
    return _read("message_log", lambda: ctx.sources.message_log.query_sent(ctx.dial_string), False)


_CONTACTED_CHECKS: dict[Contact, Callable[[ScreeningContext], bool]] = {
    Contact.CALL: check_contacted_call,
    Contact.MESSAGE: check_contacted_message,
}


def check_contacted(ctx: ScreeningContext) -> bool:
    for flag in Contact.ordered(ctx.config.contacted):
        if _CONTACTED_CHECKS[flag](ctx):
            return True
    return False


def _group_matches(group: Group, facts: NumberFacts) -> bool:
    if group is Group.TOLL_FREE:
        return facts.number_type is NumberType.TOLL_FREE
    if group is Group.MOBILE:
        return facts.is_mobile
    if group is Group.LOCAL:
        return facts.is_local
    if group is Group.NOT_LOCAL:
        return not facts.is_local
    return facts.is_local and facts.is_mobile


def check_groups(ctx: ScreeningContext) -> bool:
    for group in Group.ordered(ctx.config.groups):
        if _group_matches(group, ctx.facts):
            return True
    return False


def check_repeated(ctx: ScreeningContext) -> bool:
    """
    Match when this call would be the `repeated_count`-th blocked attempt
    within the last `repeated_minutes` minutes.
    """

    since_ms = ctx.now_ms - ctx.config.repeated_minutes * 60 * 1000
    try:
        count = ctx.sources.call_log.count_blocked_since(ctx.dial_string, since_ms)
    except PermissionDenied as exc:
        logger.info(
            "call_log not readable, skipping repeated check: %s", exc, extra={"source": "call_log"}
        )
        return False
    return count >= ctx.config.repeated_count - 1


def check_messages_inbox(ctx: ScreeningContext) -> bool:
    if not ctx.facts.is_mobile:
        return False
    return _read(
        "message_log", lambda: ctx.sources.message_log.query_received(ctx.dial_string), False
    )


def check_messages_text(ctx: ScreeningContext) -> bool:
    for entry in _read("allow_list", ctx.sources.allow_list.list_active, ()):
        try:
            allowed = parse_number(entry.phone_number, ctx.home_region)
        except ParseError as exc:
            logger.info(
                "Skipping unparseable allow-list entry %r: %s",
                entry.phone_number,
                exc,
                extra={"source": "allow_list"},
            )
            continue
        if numbers_equal(ctx.number, allowed):
            return True
    return False


_MESSAGE_CHECKS: dict[Message, Callable[[ScreeningContext], bool]] = {
    Message.INBOX: check_messages_inbox,
    Message.TEXT: check_messages_text,
}


def check_messages(ctx: ScreeningContext) -> bool:
    for flag in Message.ordered(ctx.config.messages):
        if _MESSAGE_CHECKS[flag](ctx):
            return True
    return False
