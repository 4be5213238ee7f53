"""
Compact human-readable amounts and their inverse parser.

Amounts shown in the planner span femto- to tera-scale, so each decade
maps onto a fixed bucket that picks a suffix glyph and a display
precision. Milli- is skipped on purpose: ``m`` reads too much like ``M``.

    >>> format_amount(1500)
    '1.5K'
    >>> try_parse_amount("12K")
    (True, 12000.0)
"""
from __future__ import annotations

import decimal
import math
from decimal import Decimal
from typing import NamedTuple, Optional, Tuple

MICRO = "µ"
# Greek small mu, accepted on input because it looks identical to MICRO
GREEK_MU = "μ"

MAX_PARSED_AMOUNT = 1e15
POWER_SCALE = 1e6  # power amounts arrive in megawatts


class FormatBucket(NamedTuple):
    """One decade of the display table."""
    suffix: Optional[str]
    multiplier: float
    digits: int  # maximum fractional digits, trailing zeros dropped


# Indexed by floor(log10(amount)) + 8, bucket 8 covers [1, 10)
FORMAT_SPEC: Tuple[FormatBucket, ...] = (
    FormatBucket(MICRO, 1e6, 2),
    FormatBucket(MICRO, 1e6, 2),
    FormatBucket(MICRO, 1e6, 1),
    FormatBucket(MICRO, 1e6, 0),
    FormatBucket(MICRO, 1e6, 0),
    FormatBucket(None, 1e0, 4),
    FormatBucket(None, 1e0, 3),
    FormatBucket(None, 1e0, 2),
    FormatBucket(None, 1e0, 1),
    FormatBucket(None, 1e0, 0),
    FormatBucket(None, 1e0, 0),
    FormatBucket("K", 1e-3, 1),
    FormatBucket("K", 1e-3, 0),
    FormatBucket("K", 1e-3, 0),
    FormatBucket("M", 1e-6, 1),
    FormatBucket("M", 1e-6, 0),
    FormatBucket("M", 1e-6, 0),
    FormatBucket("G", 1e-9, 1),
    FormatBucket("G", 1e-9, 0),
    FormatBucket("G", 1e-9, 0),
    FormatBucket("T", 1e-12, 1),
    FormatBucket("T", 1e-12, 0),
)

BUCKET_OFFSET = 8

# Characters that may appear in the numeric part of an amount
NUMERIC_CHARS = frozenset("0123456789.-e")

SUFFIX_MULTIPLIERS = {
    "k": 1e3,
    "m": 1e6,
    "g": 1e9,
    "t": 1e12,
    MICRO: 1e-6,
    GREEK_MU: 1e-6,
}


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def round_value(value: float) -> int:
    """Round to the nearest integer, ties to even."""
    return int(round(value))


def bucket_index(amount: float) -> int:
    """Return the FORMAT_SPEC index for a positive amount."""
    if math.isinf(amount):
        return len(FORMAT_SPEC) - 1
    return clamp(math.floor(math.log10(amount)) + BUCKET_OFFSET, 0, len(FORMAT_SPEC) - 1)


# Wide enough to hold any finite float at exponent 0
_DECIMAL_CONTEXT = decimal.Context(prec=400, rounding=decimal.ROUND_HALF_UP)


def _format_decimal(value: float, multiplier: float, digits: int) -> str:
    """Scale ``value`` and render it with at most ``digits`` decimals, ties away from zero."""
    scaled = _DECIMAL_CONTEXT.multiply(Decimal(repr(value)), Decimal(repr(multiplier)))
    rounded = scaled.quantize(Decimal(1).scaleb(-digits), context=_DECIMAL_CONTEXT)
    text = format(rounded, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_amount(amount: float, is_power: bool = False) -> str:
    """
    Format an amount for display.

    Parameters
    ----------
    amount : float
        Value to render. NaN renders as ``"-"`` and infinity as ``"inf"``
        without any suffix.
    is_power : bool
        Amount is in megawatts; it is rescaled to watts and suffixed with ``W``.

    Returns
    -------
    str
        e.g. ``"1.5K"``, ``"-2.5M"``, ``"120µ"``, ``"3MW"``
    """
    if math.isnan(amount):
        return "-"
    if amount == 0:
        return "0"

    parts = []
    if amount < 0:
        parts.append("-")
        amount = -amount
    if is_power:
        amount *= POWER_SCALE
    if math.isinf(amount):
        parts.append("inf")
        return "".join(parts)

    bucket = FORMAT_SPEC[bucket_index(amount)]
    parts.append(_format_decimal(amount, bucket.multiplier, bucket.digits))
    if bucket.suffix is not None:
        parts.append(bucket.suffix)
    if is_power:
        parts.append("W")
    return "".join(parts)


def format_percentage(value: float) -> str:
    """Format a ratio as a whole percentage, e.g. 0.256 -> ``"26%"``."""
    if math.isnan(value):
        return "-"
    return f"{round_value(value * 100)}%"


def _parse_literal(literal: str, multiplier: float) -> Tuple[bool, float]:
    try:
        amount = float(literal) * multiplier
    except ValueError:
        return False, 0.0
    if not math.isfinite(amount) or abs(amount) > MAX_PARSED_AMOUNT:
        return False, 0.0
    return True, amount


def try_parse_amount(text: str, is_power: bool = False) -> Tuple[bool, float]:
    """
    Parse text typed by the user back into an amount.

    The numeric part is read up to the first character that is not a digit,
    ``.``, ``-`` or ``e``. That character must be a magnitude suffix
    (``k``, ``m``, ``g``, ``t`` in either case, or ``µ``); anything after it
    is ignored, which lets ``"1.5MW"`` parse as power. Malformed literals
    are rejected by ``float`` itself.

    Returns
    -------
    tuple[bool, float]
        ``(True, amount)`` on success, ``(False, 0.0)`` when the text is
        malformed, has an unknown suffix, or exceeds 1e15 in magnitude.
    """
    text = text.strip()
    for index, char in enumerate(text):
        if char in NUMERIC_CHARS:
            continue
        if index == 0:
            return False, 0.0
        multiplier = SUFFIX_MULTIPLIERS.get(char.lower())
        if multiplier is None:
            return False, 0.0
        if is_power:
            multiplier /= POWER_SCALE
        return _parse_literal(text[:index], multiplier)

    return _parse_literal(text, 1.0)
