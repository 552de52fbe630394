from __future__ import annotations

import logging

from callscreen.core.parser import parse_number
from callscreen.screening.engine import ScreeningEngine
from callscreen.screening.options import Configuration, Contact, Group, Message
from callscreen.screening.sources import AllowListEntry

from conftest import NOW_MS, NOW_S, FakeWorld

CALLER = "+14155552671"

ALL_ON = Configuration(
    contacted_checked=True,
    contacted=frozenset(Contact),
    groups_checked=True,
    groups=frozenset(Group),
    repeated_checked=True,
    messages_checked=True,
    messages=frozenset(Message),
)


def _engine(world: FakeWorld) -> ScreeningEngine:
    return ScreeningEngine(world.sources(), clock=lambda: NOW_S)


def test_allow_list_text_allows_with_other_sources_empty(world: FakeWorld) -> None:
    world.region = "US"
    world.allowed.append(AllowListEntry(phone_number="415.555.2671"))
    config = Configuration(messages_checked=True, messages=frozenset({Message.TEXT}))
    assert _engine(world).decide(parse_number(CALLER), config) is True


def test_unknown_number_with_all_gates_off_is_silenced(world: FakeWorld) -> None:
    assert _engine(world).decide(parse_number(CALLER), Configuration()) is False
    assert world.reads == [("contacts", "lookup")]


def test_disabled_gates_issue_no_reads(world: FakeWorld, gb_mobile: str) -> None:
    world.region = "US"
    config = Configuration(
        contacted_checked=False,
        repeated_checked=False,
        groups_checked=True,
        groups=frozenset({Group.LOCAL}),
    )
    assert _engine(world).decide(parse_number(gb_mobile), config) is False
    assert "call_log" not in world.sources_read()
    assert "message_log" not in world.sources_read()
    assert "allow_list" not in world.sources_read()


def test_contacts_short_circuits_everything(world: FakeWorld) -> None:
    world.contacts.add(CALLER)
    assert _engine(world).decide(parse_number(CALLER), ALL_ON) is True
    assert world.reads == [("contacts", "lookup")]


def test_contacts_match_ignores_disabled_category(world: FakeWorld) -> None:
    world.contacts.add(CALLER)
    world.outgoing.add(CALLER)
    result = _engine(world).evaluate(parse_number(CALLER), Configuration())
    assert result.allowed is True
    assert result.matched_by == "contacts"
    assert world.sources_read() == {"contacts"}


def test_evaluation_order_reports_first_match(world: FakeWorld, gb_mobile: str) -> None:
    world.region = "GB"
    world.outgoing.add(gb_mobile)
    world.received.add(gb_mobile)
    result = _engine(world).evaluate(parse_number(gb_mobile), ALL_ON)
    assert result.matched_by == "contacted"
    assert "allow_list" not in world.sources_read()


def test_denied_permission_continues_with_next_heuristic(world: FakeWorld, gb_mobile: str) -> None:
    world.denied.update({"contacts", "call_log", "message_log"})
    world.allowed.append(AllowListEntry(phone_number=gb_mobile))
    config = Configuration(
        contacted_checked=True,
        repeated_checked=True,
        repeated_count=1,
        messages_checked=True,
        messages=frozenset({Message.INBOX, Message.TEXT}),
    )
    result = _engine(world).evaluate(parse_number(gb_mobile), config)
    assert result.allowed is True
    assert result.matched_by == "messages"


def test_denied_everywhere_biases_to_silence(world: FakeWorld, gb_mobile: str) -> None:
    world.denied.update({"contacts", "call_log", "message_log"})
    world.contacts.add(gb_mobile)
    world.outgoing.add(gb_mobile)
    world.received.add(gb_mobile)
    config = Configuration(
        contacted_checked=True,
        repeated_checked=True,
        messages_checked=True,
        messages=frozenset({Message.INBOX}),
    )
    assert _engine(world).decide(parse_number(gb_mobile), config) is False


def test_groups_scenario(world: FakeWorld, gb_mobile: str) -> None:
    world.region = "GB"
    number = parse_number(gb_mobile)
    local_mobile = Configuration(groups_checked=True, groups=frozenset({Group.LOCAL_MOBILE}))
    toll_free = Configuration(groups_checked=True, groups=frozenset({Group.TOLL_FREE}))
    assert _engine(world).decide(number, local_mobile) is True
    assert _engine(world).decide(number, toll_free) is False


def test_repeated_uses_engine_clock(world: FakeWorld) -> None:
    world.blocked[CALLER] = [NOW_MS - 60_000, NOW_MS - 120_000]
    config = Configuration(repeated_checked=True, repeated_minutes=5, repeated_count=3)
    assert _engine(world).decide(parse_number(CALLER), config) is True

    late = ScreeningEngine(world.sources(), clock=lambda: NOW_S + 10 * 60)
    assert late.decide(parse_number(CALLER), config) is False


def test_region_is_not_read_unless_needed(world: FakeWorld) -> None:
    world.outgoing.add(CALLER)
    config = Configuration(contacted_checked=True)
    assert _engine(world).decide(parse_number(CALLER), config) is True
    assert "region" not in world.sources_read()


def test_no_state_is_shared_between_decisions(world: FakeWorld) -> None:
    engine = _engine(world)
    config = Configuration(contacted_checked=True)
    assert engine.decide(parse_number(CALLER), config) is False
    world.outgoing.add(CALLER)
    assert engine.decide(parse_number(CALLER), config) is True


def test_screen_parses_with_region_hint(world: FakeWorld) -> None:
    world.region = "us"
    world.contacts.add(CALLER)
    result = _engine(world).screen("(415) 555-2671", Configuration())
    assert result.allowed is True
    assert result.e164 == CALLER
    assert result.number == "(415) 555-2671"
    assert world.reads.count(("region", "current_region")) == 1


def test_screen_unparseable_number_is_silenced(world: FakeWorld, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="callscreen.screening.engine"):
        result = _engine(world).screen("Private", ALL_ON)
    assert result.allowed is False
    assert result.e164 is None
    assert result.error
    assert world.sources_read() == {"region"}
    assert "unparseable" in caplog.text


def test_screen_national_number_without_region_is_silenced(world: FakeWorld) -> None:
    world.contacts.add(CALLER)
    result = _engine(world).screen("4155552671", ALL_ON)
    assert result.allowed is False
    assert result.error is not None
