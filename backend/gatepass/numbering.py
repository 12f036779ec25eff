# Overview: Gate pass number format, day keys and sequence arithmetic shared by client and server.

"""
Gate pass numbering.

FORMAT: SDLGP + DDMMYYYY + "-" + zero-padded sequence, e.g. SDLGP05032024-0007

- The DDMMYYYY day key comes from the pass date's own calendar fields
  (no timezone conversion).
- Sequences restart at 1 every day and increase by 1.
- Padding is a minimum width of 4. Past 9999 the sequence simply gets
  wider (SDLGP05032024-10000); there is no cap and no overflow error.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from .time_utils import DateLike, parse_date_like


PASS_NUMBER_PREFIX = "SDLGP"
SEQUENCE_WIDTH = 4
DAY_KEY_LENGTH = 8


class FormatError(ValueError):
    """Raised when a date value cannot be turned into a day key."""


def date_key(value: DateLike) -> str:
    """Return DDMMYYYY for a date, datetime or parseable date string."""
    try:
        parsed = parse_date_like(value)
    except ValueError as exc:
        raise FormatError(f"Invalid pass date {value!r}: {exc}") from exc
    if isinstance(parsed, datetime):
        parsed = parsed.date()
    return f"{parsed.day:02d}{parsed.month:02d}{parsed.year:04d}"


def pass_prefix(value: DateLike) -> str:
    """Prefix shared by every pass number issued on the given day."""
    return f"{PASS_NUMBER_PREFIX}{date_key(value)}-"


def format_pass_number(value: DateLike, sequence: int) -> str:
    return f"{pass_prefix(value)}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(pass_number: Optional[str], prefix: str) -> Optional[int]:
    """
    Integer sequence of a pass number carrying the given prefix.

    Returns None for a missing number, a foreign prefix or a suffix that is
    not a positive ASCII base-10 integer.
    """
    if not pass_number or not pass_number.startswith(prefix):
        return None
    suffix = pass_number[len(prefix):].strip()
    if not (suffix.isascii() and suffix.isdigit()):
        return None
    sequence = int(suffix, 10)
    if sequence <= 0:
        return None
    return sequence


def next_pass_number(value: DateLike, last_issued: Optional[str] = None) -> str:
    """
    Next pass number for the day of ``value``.

    ``last_issued`` is the highest number already issued that day; when it
    is absent, belongs to another day or has an unusable suffix the
    sequence starts over at 1.
    """
    prefix = pass_prefix(value)
    last = parse_sequence(last_issued, prefix)
    sequence = 1 if last is None else last + 1
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"


def highest_pass_number(pass_numbers: Iterable[Optional[str]], value: DateLike) -> Optional[str]:
    """
    Pick the pass number with the numerically highest sequence for a day.

    Comparison is by integer sequence, never by string, so a change in
    padding width cannot reorder results.
    """
    prefix = pass_prefix(value)
    best_number = None
    best_sequence = 0
    for number in pass_numbers:
        sequence = parse_sequence(number, prefix)
        if sequence is not None and sequence > best_sequence:
            best_number = number
            best_sequence = sequence
    return best_number


def day_key_of(pass_number: str) -> Optional[str]:
    """Extract DDMMYYYY from a well-formed pass number."""
    start = len(PASS_NUMBER_PREFIX)
    if not pass_number.startswith(PASS_NUMBER_PREFIX):
        return None
    key = pass_number[start:start + DAY_KEY_LENGTH]
    if len(key) != DAY_KEY_LENGTH or not key.isdigit():
        return None
    return key
