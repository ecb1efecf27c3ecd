"""Whole-timeline recomputation of derived flags, renumbering and selection."""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .conflicts import conflicting_keys
from .models import Segment, ValidationLimits
from .text_split import has_dangling_formatting, has_long_line, has_unbalanced_brackets

logger = logging.getLogger(__name__)


def annotate(segment: Segment, limits: ValidationLimits) -> Segment:
    """Recomputes the length and duration flags of one segment."""
    duration = segment.duration
    return replace(
        segment,
        is_long=segment.char_count > limits.max_total_chars,
        is_too_short=duration < limits.min_duration_seconds,
        is_too_long=duration > limits.max_duration_seconds,
    )


def refresh(segments: Sequence[Segment], limits: ValidationLimits) -> List[Segment]:
    """
    Returns the timeline with every derived flag recomputed in one pass.

    Always run over the complete document: a partial refresh would leave
    conflict flags computed against a stale set.
    """
    annotated = [annotate(seg, limits) for seg in segments]
    conflicts = conflicting_keys(annotated)
    return [replace(seg, has_timecode_conflict=seg.key in conflicts) for seg in annotated]


def renumber(segments: Sequence[Segment]) -> List[Segment]:
    """Assigns dense display ids 1..N in list order."""
    return [seg if seg.id == i else replace(seg, id=i) for i, seg in enumerate(segments, start=1)]


def find_index(segments: Sequence[Segment], segment_id: int) -> Optional[int]:
    for i, seg in enumerate(segments):
        if seg.id == segment_id:
            return i
    return None


def index_by_key(segments: Sequence[Segment]) -> Dict[str, int]:
    return {seg.key: i for i, seg in enumerate(segments)}


@dataclass(frozen=True)
class SegmentFilter:
    """Which problem categories a bulk operation should look at."""
    long_total: bool = False
    long_lines: bool = False
    too_short: bool = False
    too_long: bool = False
    conflicts: bool = False

    @property
    def is_active(self) -> bool:
        return any((self.long_total, self.long_lines, self.too_short, self.too_long, self.conflicts))

    def matches(self, segment: Segment, limits: ValidationLimits) -> bool:
        if not self.is_active:
            return True
        line_exceeded = has_long_line(segment.text, limits.max_line_chars)
        if self.long_total and self.long_lines:
            return segment.is_long or line_exceeded
        if self.long_total:
            return segment.is_long
        if self.long_lines:
            return line_exceeded
        if self.too_short:
            return segment.is_too_short
        if self.too_long:
            return segment.is_too_long
        return segment.has_timecode_conflict


def select(segments: Sequence[Segment], segment_filter: SegmentFilter,
           limits: ValidationLimits) -> List[Segment]:
    """The filtered subset bulk operations act on; everything when no filter is active."""
    return [seg for seg in segments if segment_filter.matches(seg, limits)]


def selected_ids(segments: Sequence[Segment], segment_filter: SegmentFilter,
                 limits: ValidationLimits) -> List[int]:
    return [seg.id for seg in select(segments, segment_filter, limits)]


def issue_summary(segments: Sequence[Segment], limits: ValidationLimits) -> Dict[str, int]:
    """Number of segments per problem category."""
    return {
        'segments': len(segments),
        'long_total': sum(1 for seg in segments if seg.is_long),
        'long_lines': sum(1 for seg in segments if has_long_line(seg.text, limits.max_line_chars)),
        'too_short': sum(1 for seg in segments if seg.is_too_short),
        'too_long': sum(1 for seg in segments if seg.is_too_long),
        'conflicts': sum(1 for seg in segments if seg.has_timecode_conflict),
        'dangling': sum(1 for seg in segments if has_dangling_formatting(seg.text)),
        'unbalanced': sum(1 for seg in segments if has_unbalanced_brackets(seg.text)),
        'empty': sum(1 for seg in segments if seg.is_empty),
    }
