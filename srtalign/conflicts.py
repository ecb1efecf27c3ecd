"""Overlap and zero-gap detection across a subtitle timeline."""

import logging
from typing import List, Sequence, Set, Tuple

from .models import Segment
from .timecode import timecode_to_ms

logger = logging.getLogger(__name__)


def _spans_conflict(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    # Touching cues count: players must never show two cues with zero gap.
    overlapping = start_a < end_b and start_b < end_a
    touching = end_a == start_b or end_b == start_a
    return overlapping or touching


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """
    True when two timecode ranges overlap or are exactly adjacent.

    Example:
        >>> overlaps("00:00:00,000", "00:00:01,000", "00:00:01,000", "00:00:02,000")
        True
    """
    return _spans_conflict(
        timecode_to_ms(start_a), timecode_to_ms(end_a),
        timecode_to_ms(start_b), timecode_to_ms(end_b),
    )


def has_conflict(segment: Segment, all_segments: Sequence[Segment]) -> bool:
    """True if segment conflicts with any other member of all_segments."""
    start, end = timecode_to_ms(segment.start_time), timecode_to_ms(segment.end_time)
    for other in all_segments:
        if other.key == segment.key:
            continue
        if _spans_conflict(start, end, timecode_to_ms(other.start_time), timecode_to_ms(other.end_time)):
            return True
    return False


def conflicting_keys(segments: Sequence[Segment]) -> Set[str]:
    """
    Keys of every segment that conflicts with at least one other.

    Pairwise over the whole document: moving one cue can change its relation
    to any other cue, not only its neighbours.
    """
    spans: List[Tuple[str, int, int]] = [
        (seg.key, timecode_to_ms(seg.start_time), timecode_to_ms(seg.end_time))
        for seg in segments
    ]
    flagged: Set[str] = set()
    for i, (key_a, start_a, end_a) in enumerate(spans):
        for key_b, start_b, end_b in spans[i + 1:]:
            if _spans_conflict(start_a, end_a, start_b, end_b):
                flagged.add(key_a)
                flagged.add(key_b)
    if flagged:
        logger.debug(f"{len(flagged)} of {len(spans)} segments have timecode conflicts")
    return flagged
