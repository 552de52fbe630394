# file: callscreen/screening/engine.py
"""
Screening decision engine.

The verdict is a short-circuit OR over the heuristics, in this fixed order:

    contacts
    or (contacted_checked and contacted)
    or (groups_checked and groups)
    or (repeated_checked and repeated)
    or (messages_checked and messages)

A category whose gate is off is skipped entirely, so its data source is never
read. Nothing is cached between decisions.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from callscreen.core.parser import CanonicalNumber, ParseError, format_e164, parse_number
from callscreen.screening.heuristics import (
    ScreeningContext,
    check_contacted,
    check_contacts,
    check_groups,
    check_messages,
    check_repeated,
)
from callscreen.screening.options import Configuration
from callscreen.screening.sources import DataSources

logger = logging.getLogger(__name__)

Heuristic = Callable[[ScreeningContext], bool]


@dataclass(frozen=True, slots=True)
class ScreeningResult:
    """
    Outcome of one screening decision.

    Fields:
        number: Raw caller input.
        e164: Canonical dial string, or None if the input did not parse.
        allowed: The verdict (True lets the call through).
        matched_by: Name of the heuristic that matched, if any.
        error: Parse failure message, if any.
    """

    number: str
    e164: str | None
    allowed: bool
    matched_by: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "number": self.number,
            "e164": self.e164,
            "allowed": self.allowed,
            "matched_by": self.matched_by,
            "error": self.error,
        }


def _gated(config: Configuration) -> list[tuple[str, bool, Heuristic]]:
    return [
        ("contacts", True, check_contacts),
        ("contacted", config.contacted_checked, check_contacted),
        ("groups", config.groups_checked, check_groups),
        ("repeated", config.repeated_checked, check_repeated),
        ("messages", config.messages_checked, check_messages),
    ]


class ScreeningEngine:
    def __init__(self, sources: DataSources, *, clock: Callable[[], float] = time.time) -> None:
        self._sources = sources
        self._clock = clock

    def _run(
        self, number: CanonicalNumber, config: Configuration, *, region: str | None = None
    ) -> str | None:
        ctx = ScreeningContext(
            number,
            config=config,
            sources=self._sources,
            now_ms=int(self._clock() * 1000),
            region=region,
        )
        for name, enabled, heuristic in _gated(config):
            if enabled and heuristic(ctx):
                return name
        return None

    def decide(self, number: CanonicalNumber, config: Configuration) -> bool:
        """Return True if the call from `number` should be allowed."""

        return self._run(number, config) is not None

    def evaluate(
        self, number: CanonicalNumber, config: Configuration, *, region: str | None = None
    ) -> ScreeningResult:
        """Like `decide`, but also report which heuristic matched."""

        matched = self._run(number, config, region=region)
        e164 = format_e164(number)
        logger.debug(
            "screened %s: allowed=%s matched_by=%s",
            e164,
            matched is not None,
            matched,
            extra={"e164": e164, "allowed": matched is not None, "matched_by": matched},
        )
        return ScreeningResult(
            number=number.raw_input or e164,
            e164=e164,
            allowed=matched is not None,
            matched_by=matched,
        )

    def screen(self, raw: str, config: Configuration) -> ScreeningResult:
        """
        Parse a raw caller number and evaluate it.

        An unparseable number cannot be verified against any heuristic, so it is
        silenced without reading any data source besides the region provider.
        """

        region = self._sources.region.current_region() or ""
        try:
            number = parse_number(raw, region)
        except ParseError as exc:
            logger.info(
                "Silencing unparseable caller %r: %s", raw, exc, extra={"caller": raw, "allowed": False}
            )
            return ScreeningResult(number=raw, e164=None, allowed=False, error=str(exc))
        return self.evaluate(number, config, region=region)
