# file: callscreen/core/classify.py
"""
Deterministic number classification helpers.

All functions in this module are pure and do not perform I/O. They use the
numbering-plan metadata embedded in the `phonenumbers` library (derived from
libphonenumber), never the device's own carrier.
"""

from __future__ import annotations

from enum import Enum
from functools import cached_property
from typing import Callable

import phonenumbers
from phonenumbers.phonenumberutil import PhoneNumberType, number_type

from callscreen.core.parser import CanonicalNumber


class NumberType(str, Enum):
    MOBILE = "mobile"
    TOLL_FREE = "toll_free"
    GEOGRAPHIC = "geographic"
    UNKNOWN = "unknown"


# FIXED_LINE_OR_MOBILE (e.g. NANP ranges) is geographic: it is never mobile.
_TYPE_MAP: dict[int, NumberType] = {
    PhoneNumberType.MOBILE: NumberType.MOBILE,
    PhoneNumberType.TOLL_FREE: NumberType.TOLL_FREE,
    PhoneNumberType.FIXED_LINE: NumberType.GEOGRAPHIC,
    PhoneNumberType.FIXED_LINE_OR_MOBILE: NumberType.GEOGRAPHIC,
}


def classify(number: CanonicalNumber) -> NumberType:
    """Return the numeric type of `number` according to its national numbering plan."""

    nt = int(number_type(number.to_phonenumber()))
    return _TYPE_MAP.get(nt, NumberType.UNKNOWN)


def is_local(number: CanonicalNumber, home_region: str | None) -> bool:
    """
    Return True if `number` is valid and assigned within `home_region`.

    An empty or unknown home region yields False.
    """

    if not home_region:
        return False
    return bool(phonenumbers.is_valid_number_for_region(number.to_phonenumber(), home_region.upper()))


class NumberFacts:
    """
    Classification facts for one screening decision.

    Each fact is computed on first access and memoized; facts no heuristic asks
    for are never computed. `home_region` may be a callable so the region is
    only looked up when locality is actually asked for.
    """

    def __init__(
        self,
        number: CanonicalNumber,
        home_region: str | None | Callable[[], str | None],
    ) -> None:
        self.number = number
        self._home_region = home_region

    @cached_property
    def home_region(self) -> str | None:
        region = self._home_region() if callable(self._home_region) else self._home_region
        return region.upper() if region else None

    @cached_property
    def number_type(self) -> NumberType:
        return classify(self.number)

    @cached_property
    def is_mobile(self) -> bool:
        return self.number_type is NumberType.MOBILE

    @cached_property
    def is_local(self) -> bool:
        return is_local(self.number, self.home_region)
