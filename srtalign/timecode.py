"""
SRT timecode arithmetic.

Every conversion goes through whole milliseconds so that values such as
``00:00:00,999 + 0.001s`` land exactly on ``00:00:01,000`` instead of
drifting through floating point remainders.
"""

import logging
import math
import re

from .exceptions import InvalidTimecodeError

logger = logging.getLogger(__name__)

# Hours take two or more digits without a superfluous leading zero so that
# format(parse(t)) == t holds for every accepted string.
TIMECODE_PATTERN = re.compile(r'^(\d{2}|[1-9]\d{2,}):([0-5]\d):([0-5]\d),(\d{3})$')

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE


def seconds_to_ms(seconds: float) -> int:
    """Rounds seconds to whole milliseconds, halves rounding up."""
    return int(math.floor(seconds * MS_PER_SECOND + 0.5))


def is_valid_timecode(text: str) -> bool:
    return isinstance(text, str) and TIMECODE_PATTERN.match(text) is not None


def timecode_to_ms(text: str) -> int:
    """
    Converts a strict ``HH:MM:SS,mmm`` timecode to total milliseconds.

    Raises:
        InvalidTimecodeError: If the text has any other shape.
    """
    match = TIMECODE_PATTERN.match(text) if isinstance(text, str) else None
    if match is None:
        raise InvalidTimecodeError(f"Invalid timecode {text!r}, expected HH:MM:SS,mmm")
    hours, minutes, seconds, millis = (int(part) for part in match.groups())
    return hours * MS_PER_HOUR + minutes * MS_PER_MINUTE + seconds * MS_PER_SECOND + millis


def ms_to_timecode(total_ms: int) -> str:
    """
    Formats total milliseconds as ``HH:MM:SS,mmm`` using integer arithmetic only.

    Raises:
        InvalidTimecodeError: For negative values, which have no SRT form.
    """
    if total_ms < 0:
        raise InvalidTimecodeError(f"Cannot format negative time ({total_ms} ms)")
    hours, rest = divmod(total_ms, MS_PER_HOUR)
    minutes, rest = divmod(rest, MS_PER_MINUTE)
    seconds, millis = divmod(rest, MS_PER_SECOND)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def parse_timecode(text: str) -> float:
    """
    Converts an SRT timecode to seconds.

    Example:
        >>> parse_timecode("00:01:30,500")
        90.5
    """
    return timecode_to_ms(text) / MS_PER_SECOND


def format_timecode(seconds: float) -> str:
    """
    Converts seconds to an SRT timecode.

    Example:
        >>> format_timecode(90.5)
        '00:01:30,500'
    """
    return ms_to_timecode(seconds_to_ms(seconds))


def add_seconds(timecode: str, delta_seconds: float) -> str:
    """
    Adds delta_seconds (possibly negative) to a timecode.

    The result is not clamped; a negative result raises
    InvalidTimecodeError and callers clamp where it matters.
    """
    return ms_to_timecode(timecode_to_ms(timecode) + seconds_to_ms(delta_seconds))


def reduce_by_one_millisecond(timecode: str) -> str:
    """Subtracts exactly 1 ms, never going below zero."""
    return ms_to_timecode(max(0, timecode_to_ms(timecode) - 1))


def duration_between(start: str, end: str) -> float:
    """Seconds from start to end; negative when end precedes start."""
    return (timecode_to_ms(end) - timecode_to_ms(start)) / MS_PER_SECOND


def split_point(start: str, end: str, ratio: float) -> str:
    """Timecode at ``ratio`` of the way from start to end, in whole milliseconds."""
    start_ms = timecode_to_ms(start)
    span_ms = timecode_to_ms(end) - start_ms
    return ms_to_timecode(start_ms + int(math.floor(ratio * span_ms + 0.5)))


def format_duration(seconds: float) -> str:
    """Display form of a duration: ``4.5s`` or ``1m 23.0s``."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - minutes * 60:.1f}s"


# --- Free-text input -------------------------------------------------------
#
# Best-effort convenience parser for what people type into a timecode box.
# It never raises: when nothing sensible can be made of the input the input
# is returned unchanged, and callers detect failure with is_valid_timecode().

_NON_TIMECODE_CHARS = re.compile(r'[^\d:,]')
_LEADING_INT = re.compile(r'^\d+')


def _leading_int(part: str) -> int:
    match = _LEADING_INT.match(part)
    return int(match.group()) if match else 0


def parse_user_timecode_input(raw: str) -> str:
    """
    Normalizes loosely typed timecode input.

    Interpretation rules, applied in order:

    * an already valid timecode is returned as-is;
    * a bare digit run below 100 is seconds, below 10000 is ``MMSS``,
      below 1,000,000 is ``HHMMSS``;
    * ``MM:SS`` and ``HH:MM:SS`` forms are read part by part, missing or
      non-numeric parts counting as zero;
    * anything else is returned unchanged.

    Example:
        >>> parse_user_timecode_input("130")
        '00:01:30,000'
    """
    if is_valid_timecode(raw):
        return raw

    cleaned = _NON_TIMECODE_CHARS.sub('', raw)

    if cleaned.isdigit():
        number = int(cleaned)
        if number < 100:
            return format_timecode(number)
        if number < 10000:
            return format_timecode((number // 100) * 60 + number % 100)
        if number < 1000000:
            hours, rest = divmod(number, 10000)
            return format_timecode(hours * 3600 + (rest // 100) * 60 + rest % 100)

    parts = cleaned.split(':')
    if len(parts) == 2:
        minutes, seconds = (_leading_int(part) for part in parts)
        return format_timecode(minutes * 60 + seconds)
    if len(parts) == 3:
        hours, minutes, seconds = (_leading_int(part) for part in parts)
        return format_timecode(hours * 3600 + minutes * 60 + seconds)

    logger.debug(f"Could not interpret timecode input {raw!r}")
    return raw
