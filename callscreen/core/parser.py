# file: callscreen/core/parser.py
"""
Phone number parsing and normalization.

This module provides small wrappers around `phonenumbers` that:
- tidy caller-ID input (trim, `00` international prefix),
- parse with an optional region hint into an immutable `CanonicalNumber`,
- render the canonical E.164 dial string,
- compare two numbers using libphonenumber EXACT_MATCH semantics only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import phonenumbers
from phonenumbers import NumberParseException
from phonenumbers.phonenumber import PhoneNumber
from phonenumbers.phonenumberutil import MatchType, PhoneNumberFormat


class ParseError(ValueError):
    """Raised when a raw caller number cannot be turned into a canonical number."""


class MissingCountryError(ParseError):
    """Raised when a number is missing a country code and no region hint is provided."""


_IDD_00 = re.compile(r"^00")
_DIGIT = re.compile(r"\d")


def sanitize_number(raw: str) -> str:
    """
    Tidy phone number input before handing it to `phonenumbers`.

    - Trims whitespace.
    - Converts an international dialing prefix `00` into `+`.

    Separators, vanity letters and extension markers ("ext. 5") are left in
    place; `phonenumbers` maps letters to digits and splits off extensions.
    """

    s = raw.strip()
    return _IDD_00.sub("+", s, count=1)


@dataclass(frozen=True, slots=True)
class CanonicalNumber:
    """
    A parsed caller number.

    `country_code` and `national_number` identify the subscriber. `leading_zeros`
    counts significant leading zeros of the national number (e.g. Italian fixed
    lines), which libphonenumber takes into account for an exact match, as is
    `extension`: two numbers with different extensions never match exactly.
    The E.164 dial string never carries the extension.
    """

    country_code: int
    national_number: int
    raw_input: str | None = None
    leading_zeros: int = 0
    extension: str | None = None

    def to_phonenumber(self) -> PhoneNumber:
        return PhoneNumber(
            country_code=self.country_code,
            national_number=self.national_number,
            italian_leading_zero=True if self.leading_zeros else None,
            number_of_leading_zeros=self.leading_zeros if self.leading_zeros > 1 else None,
            extension=self.extension,
        )

    @classmethod
    def from_phonenumber(cls, pn: PhoneNumber, *, raw_input: str | None = None) -> "CanonicalNumber":
        if pn.country_code is None or pn.national_number is None:
            raise ParseError("Parsed phone number is missing its country code or national number.")
        zeros = 0
        if pn.italian_leading_zero:
            zeros = pn.number_of_leading_zeros or 1
        return cls(
            country_code=int(pn.country_code),
            national_number=int(pn.national_number),
            raw_input=raw_input if raw_input is not None else pn.raw_input,
            leading_zeros=zeros,
            extension=pn.extension or None,
        )


def parse_number(raw: str, region_hint: str | None = None) -> CanonicalNumber:
    """
    Parse a caller number.

    Args:
        raw: Caller-ID or user-entered input. Separators, vanity letters
            ("1-800-FLOWERS") and extensions ("ext. 5") are accepted.
        region_hint: ISO 3166-1 alpha-2 region (e.g., "US") used when `raw`
            does not include a leading `+` country code.

    Raises:
        ParseError: if the input has no digits or `phonenumbers` rejects the
            input (including an unknown region hint).
        MissingCountryError: if `raw` has no leading `+` and no `region_hint`.
    """

    prepared = sanitize_number(raw)
    if not _DIGIT.search(prepared):
        raise ParseError(f"No digits in {raw!r}.")

    if not prepared.startswith("+") and not region_hint:
        raise MissingCountryError(
            "Missing country code. Provide an E.164 number (e.g., +14155552671) "
            "or a region hint (e.g., US)."
        )

    region = region_hint.upper() if region_hint else None
    try:
        parsed = phonenumbers.parse(prepared, region, keep_raw_input=True)
    except NumberParseException as exc:
        raise ParseError(str(exc)) from exc
    return CanonicalNumber.from_phonenumber(parsed, raw_input=raw)


def format_e164(number: CanonicalNumber) -> str:
    """Return the canonical dial string (`+<country code><national number>`)."""

    return phonenumbers.format_number(number.to_phonenumber(), PhoneNumberFormat.E164)


def numbers_equal(a: CanonicalNumber, b: CanonicalNumber) -> bool:
    """True iff both numbers denote the same subscriber (EXACT_MATCH only)."""

    match = phonenumbers.is_number_match(a.to_phonenumber(), b.to_phonenumber())
    return match == MatchType.EXACT_MATCH
