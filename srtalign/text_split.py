"""Word-boundary text splitting and text-quality heuristics."""

import re
from typing import List, NamedTuple

MIN_SPLITTABLE_CHARS = 10

LEADING_PUNCTUATION = '.,;:!?…'
CLOSING_BRACKETS = ')]}»'
OPENING_BRACKETS = '([{«'
BRACKET_PAIRS = {')': '(', ']': '[', '}': '{'}

_WHITESPACE_RUN = re.compile(r'\s+')


class BalancedSplit(NamedTuple):
    first_part: str
    second_part: str
    first_ratio: float


def _best_boundary(words: List[str], total_chars: int) -> int:
    """Index of the word boundary whose first part is closest to half of total_chars."""
    target = total_chars / 2
    best_index = 0
    best_distance = float('inf')
    for i in range(1, len(words)):
        distance = abs(len(' '.join(words[:i])) - target)
        # Strictly smaller: the first boundary with the minimal distance wins
        if distance < best_distance:
            best_distance = distance
            best_index = i
    return best_index


def split_balanced(text: str) -> BalancedSplit:
    """
    Splits text into two halves of roughly equal character length.

    Line breaks are flowed into spaces first. The ratio of the first part is
    what callers use to divide the cue's time span. A single word cannot be
    split and comes back whole with an empty second part and ratio 1.0.

    Example:
        >>> split_balanced("one two three four")
        BalancedSplit(first_part='one two', second_part='three four', first_ratio=0.4117647058823529)
    """
    flowed = text.replace('\r', '').replace('\n', ' ').strip()
    words = flowed.split(' ')
    if len(words) == 1:
        return BalancedSplit(text, '', 1.0)

    index = _best_boundary(words, len(flowed))
    first_part = ' '.join(words[:index])
    second_part = ' '.join(words[index:])

    total = len(first_part) + len(second_part)
    first_ratio = len(first_part) / total if total > 0 else 0.5
    return BalancedSplit(first_part, second_part, first_ratio)


def split_line_to_fit(line: str, max_line_chars: int) -> List[str]:
    """
    Breaks one over-long line into at most two balanced lines.

    Not recursive: a very long line may still exceed the budget after one
    call. A single word that is too long is returned unsplit.
    """
    if len(line) <= max_line_chars:
        return [line]

    words = line.strip().split(' ')
    if len(words) == 1:
        return [line]

    index = _best_boundary(words, len(line))
    parts = [' '.join(words[:index]), ' '.join(words[index:])]
    return [part for part in parts if part.strip()]


def is_splittable(text: str) -> bool:
    """At least two words and more than ten characters of content."""
    words = text.replace('\n', ' ').strip().split(' ')
    return len(words) >= 2 and len(text.strip()) > MIN_SPLITTABLE_CHARS


def has_long_line(text: str, max_line_chars: int) -> bool:
    return any(len(line) > max_line_chars for line in text.split('\n'))


def normalize_whitespace(text: str) -> str:
    """Collapses every whitespace run (line breaks included) to one space."""
    return _WHITESPACE_RUN.sub(' ', text).strip()


def normalize_line_breaks(text: str) -> str:
    """Removes blank and whitespace-only lines from cue text.

    A blank line ends a cue in SRT, so cue text must never contain one.
    """
    lines = text.replace('\r', '').split('\n')
    return '\n'.join(line for line in lines if line.strip())


def has_dangling_formatting(text: str) -> bool:
    """
    Flags fragments that look cut at the wrong point: text starting with
    punctuation or a closing bracket, or ending with an opening bracket.
    """
    stripped = text.strip()
    if not stripped:
        return False
    return (
        stripped[0] in LEADING_PUNCTUATION
        or stripped[0] in CLOSING_BRACKETS
        or stripped[-1] in OPENING_BRACKETS
    )


def has_unbalanced_brackets(text: str) -> bool:
    """True when (), [] or {} do not pair up in order."""
    stack = []
    for char in text:
        if char in '([{':
            stack.append(char)
        elif char in BRACKET_PAIRS:
            if not stack or stack.pop() != BRACKET_PAIRS[char]:
                return True
    return bool(stack)
