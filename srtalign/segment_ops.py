"""
Split, merge and edit operations on a subtitle timeline.

Every function takes the current list of segments and returns a new list;
segments are replaced, never mutated. Structural operations renumber the
display ids. All of them finish with a full refresh of the derived flags.
An unknown id or an unmet precondition returns the timeline unchanged.
"""

import logging
import re
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .exceptions import InvalidTimecodeError
from .models import CLEAN, Dirty, Segment, ValidationLimits, new_key
from .text_split import (
    is_splittable,
    normalize_line_breaks,
    normalize_whitespace,
    split_balanced,
    split_line_to_fit,
)
from .timecode import (
    is_valid_timecode,
    ms_to_timecode,
    parse_user_timecode_input,
    reduce_by_one_millisecond,
    seconds_to_ms,
    split_point,
    timecode_to_ms,
)
from .timeline import annotate, find_index, refresh, renumber

logger = logging.getLogger(__name__)

_BR_TAG = re.compile(r'<br\s*/?>', re.IGNORECASE)

START = 'start'
END = 'end'


def _rebuild(segments: Sequence[Segment], limits: ValidationLimits) -> List[Segment]:
    return refresh(renumber(segments), limits)


# --- Split / merge --------------------------------------------------------

def _split_reference(text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    if text is None:
        return None, None
    split = split_balanced(text)
    return split.first_part, split.second_part


def split_segment(segment: Segment, limits: ValidationLimits) -> Optional[Tuple[Segment, Segment]]:
    """
    Splits one segment in two at its most balanced word boundary.

    The time span is divided at the same ratio as the text, so
    ``first.end_time == second.start_time`` and the outer edges are kept.
    The paired original text is split the same way to stay aligned.

    Returns:
        The (first, second) pair, or None when the text is not splittable.
    """
    if not is_splittable(segment.text):
        return None
    split = split_balanced(segment.text)
    if not split.second_part:
        return None

    middle = split_point(segment.start_time, segment.end_time, split.first_ratio)
    first_original, second_original = _split_reference(segment.original_text)

    first = replace(
        segment,
        text=split.first_part,
        end_time=middle,
        original_text=first_original,
        edit_state=CLEAN,
    )
    second = replace(
        segment,
        id=segment.id + 1,
        text=split.second_part,
        start_time=middle,
        original_text=second_original,
        edit_state=CLEAN,
        key=new_key(),
    )
    return annotate(first, limits), annotate(second, limits)


def split_in_document(segments: Sequence[Segment], segment_id: int,
                      limits: ValidationLimits) -> List[Segment]:
    """Replaces the segment with its split pair, renumbering the document."""
    index = find_index(segments, segment_id)
    if index is None:
        return list(segments)
    pair = split_segment(segments[index], limits)
    if pair is None:
        logger.info(f"Segment #{segment_id} cannot be split: not enough content")
        return list(segments)
    logger.debug(f"Split segment #{segment_id} into {pair[0].text!r} / {pair[1].text!r}")
    return _rebuild([*segments[:index], *pair, *segments[index + 1:]], limits)


def _merge_reference(first: Optional[str], second: Optional[str]) -> Optional[str]:
    if first is None and second is None:
        return None
    return normalize_whitespace(f"{first or ''} {second or ''}")


def merge_with_next(segment: Segment, next_segment: Segment, limits: ValidationLimits) -> Segment:
    """
    Joins two segments into one spanning from the first start to the second end.

    Text is flowed onto a single line. Time order is not checked: merging is
    a content operation.
    """
    merged = replace(
        segment,
        text=normalize_whitespace(f"{segment.text} {next_segment.text}"),
        start_time=segment.start_time,
        end_time=next_segment.end_time,
        original_text=_merge_reference(segment.original_text, next_segment.original_text),
        edit_state=CLEAN,
    )
    return annotate(merged, limits)


def merge_in_document(segments: Sequence[Segment], segment_id: int,
                      limits: ValidationLimits) -> List[Segment]:
    """Merges the segment with the one after it; no-op for the last segment."""
    index = find_index(segments, segment_id)
    if index is None or index == len(segments) - 1:
        return list(segments)
    merged = merge_with_next(segments[index], segments[index + 1], limits)
    return _rebuild([*segments[:index], merged, *segments[index + 2:]], limits)


def bulk_split(segments: Sequence[Segment], selected_ids: Iterable[int],
               limits: ValidationLimits) -> List[Segment]:
    """Splits every splittable segment among selected_ids."""
    selected = set(selected_ids)
    result: List[Segment] = []
    split_count = 0
    for seg in segments:
        pair = split_segment(seg, limits) if seg.id in selected else None
        if pair is None:
            result.append(seg)
        else:
            result.extend(pair)
            split_count += 1
    if not split_count:
        logger.info("No splittable segments in the selection")
        return list(segments)
    logger.info(f"Bulk split {split_count} segments into {split_count * 2}")
    return _rebuild(result, limits)


def merge_pairs(selected_ids: Iterable[int]) -> List[int]:
    """
    Heads of the pairs a bulk merge will join.

    Sorted ids are walked two at a time; a pair forms only when the ids are
    exactly consecutive, otherwise the walk moves on by one id.

    Example:
        >>> merge_pairs([7, 1, 2, 4, 5, 6])
        [1, 4, 6]
    """
    ids = sorted(set(selected_ids))
    heads: List[int] = []
    i = 0
    while i < len(ids) - 1:
        if ids[i + 1] == ids[i] + 1:
            heads.append(ids[i])
            i += 2
        else:
            i += 1
    return heads


def bulk_merge(segments: Sequence[Segment], selected_ids: Iterable[int],
               limits: ValidationLimits) -> List[Segment]:
    """
    Merges consecutive selected segments pairwise.

    Only ids that are direct neighbours are joined, so two unrelated cues
    that both match a filter are never merged across the gap between them.
    """
    heads = set(merge_pairs(selected_ids))
    if not heads:
        return list(segments)

    result: List[Segment] = []
    i = 0
    while i < len(segments):
        seg = segments[i]
        if seg.id in heads and i + 1 < len(segments) and segments[i + 1].id == seg.id + 1:
            result.append(merge_with_next(seg, segments[i + 1], limits))
            i += 2
        else:
            result.append(seg)
            i += 1
    logger.info(f"Bulk merged {len(segments) - len(result)} segment pairs")
    return _rebuild(result, limits)


def delete_segment(segments: Sequence[Segment], segment_id: int,
                   limits: ValidationLimits) -> List[Segment]:
    """Removes an empty segment; segments with text are left alone."""
    index = find_index(segments, segment_id)
    if index is None:
        return list(segments)
    if not segments[index].is_empty:
        logger.info(f"Segment #{segment_id} is not empty, refusing to delete it")
        return list(segments)
    return _rebuild([*segments[:index], *segments[index + 1:]], limits)


# --- Per-segment edits ------------------------------------------------------

def _edit(segments: Sequence[Segment], segment_id: int, limits: ValidationLimits,
          change: Callable[[Segment], Optional[Segment]]) -> List[Segment]:
    """Applies change to one segment and records the old value for undo."""
    index = find_index(segments, segment_id)
    if index is None:
        return list(segments)
    current = segments[index]
    updated = change(current)
    if updated is None:
        return list(segments)
    result = list(segments)
    result[index] = replace(updated, edit_state=Dirty.of(current))
    return refresh(result, limits)


def _edit_many(segments: Sequence[Segment], selected_ids: Iterable[int], limits: ValidationLimits,
               change: Callable[[Segment], Optional[Segment]]) -> List[Segment]:
    selected = set(selected_ids)
    result: List[Segment] = []
    changed = 0
    for seg in segments:
        updated = change(seg) if seg.id in selected else None
        if updated is None:
            result.append(seg)
        else:
            result.append(replace(updated, edit_state=Dirty.of(seg)))
            changed += 1
    if not changed:
        return list(segments)
    logger.info(f"Updated {changed} of {len(selected)} selected segments")
    return refresh(result, limits)


def update_text(segments: Sequence[Segment], segment_id: int, new_text: str,
                limits: ValidationLimits) -> List[Segment]:
    """Replaces a segment's text; ``<br>`` tags become line breaks, blank lines are dropped."""
    text = normalize_line_breaks(_BR_TAG.sub('\n', new_text))
    return _edit(segments, segment_id, limits, lambda seg: replace(seg, text=text))


def update_timecode(segments: Sequence[Segment], segment_id: int, start: str, end: str,
                    limits: ValidationLimits) -> List[Segment]:
    """
    Sets new start and end times from free-text input.

    An inverted span is accepted as a transient editing state.

    Raises:
        InvalidTimecodeError: If either value cannot be interpreted.
    """
    normalized = []
    for raw in (start, end):
        value = parse_user_timecode_input(raw)
        if not is_valid_timecode(value):
            raise InvalidTimecodeError(f"Could not interpret {raw!r} as a timecode (HH:MM:SS,mmm)")
        normalized.append(value)
    new_start, new_end = normalized
    return _edit(segments, segment_id, limits,
                 lambda seg: replace(seg, start_time=new_start, end_time=new_end))


def nudge_timecode(segments: Sequence[Segment], segment_id: int, edge: str, delta_seconds: float,
                   limits: ValidationLimits) -> List[Segment]:
    """Moves the start or end edge by delta_seconds, never below zero."""
    if edge not in (START, END):
        raise ValueError(f"edge must be {START!r} or {END!r}, not {edge!r}")

    def shift(seg: Segment) -> Segment:
        attr = 'start_time' if edge == START else 'end_time'
        total_ms = max(0, timecode_to_ms(getattr(seg, attr)) + seconds_to_ms(delta_seconds))
        return replace(seg, **{attr: ms_to_timecode(total_ms)})

    return _edit(segments, segment_id, limits, shift)


def undo_segment(segments: Sequence[Segment], segment_id: int,
                 limits: ValidationLimits) -> List[Segment]:
    """Restores text and times recorded by the segment's last edit."""
    index = find_index(segments, segment_id)
    if index is None or not isinstance(segments[index].edit_state, Dirty):
        return list(segments)
    current = segments[index]
    previous = current.edit_state.previous
    result = list(segments)
    result[index] = replace(
        current,
        text=previous.text,
        start_time=previous.start_time,
        end_time=previous.end_time,
        edit_state=CLEAN,
    )
    return refresh(result, limits)


# --- Bulk repairs -------------------------------------------------------------

def split_long_lines(segments: Sequence[Segment], selected_ids: Iterable[int],
                     limits: ValidationLimits) -> List[Segment]:
    """Breaks every over-long line of the selected segments in two."""
    def change(seg: Segment) -> Optional[Segment]:
        lines = seg.lines
        if not any(len(line) > limits.max_line_chars for line in lines):
            return None
        new_lines = [part for line in lines for part in split_line_to_fit(line, limits.max_line_chars)]
        return replace(seg, text='\n'.join(new_lines))

    return _edit_many(segments, selected_ids, limits, change)


def remove_line_breaks(segments: Sequence[Segment], selected_ids: Iterable[int],
                       limits: ValidationLimits) -> List[Segment]:
    """Flows multi-line selected segments onto one line."""
    def change(seg: Segment) -> Optional[Segment]:
        if '\n' not in seg.text:
            return None
        return replace(seg, text=seg.text.replace('\r', '').replace('\n', ' '))

    return _edit_many(segments, selected_ids, limits, change)


def fix_timecode_conflicts(segments: Sequence[Segment], selected_ids: Iterable[int],
                           limits: ValidationLimits) -> List[Segment]:
    """
    Pulls the end of every selected conflicting segment back by 1 ms.

    This resolves zero-gap adjacency; true overlaps longer than 1 ms remain
    flagged after the refresh.
    """
    def change(seg: Segment) -> Optional[Segment]:
        if not seg.has_timecode_conflict:
            return None
        return replace(seg, end_time=reduce_by_one_millisecond(seg.end_time))

    return _edit_many(segments, selected_ids, limits, change)
