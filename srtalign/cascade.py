"""
Cascade duration planner.

Brings segments that are shorter than the minimum duration up to it by
borrowing time from later segments: first from their slack (duration above
the minimum), then from idle gaps further down the timeline. Planning is
greedy and deterministic; a plan either covers every short segment or is
refused as a whole.
"""

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import EXTEND, MOVE, SHORTEN, CascadePlan, CascadeStep, Segment, ValidationLimits
from .timecode import MS_PER_SECOND, add_seconds, seconds_to_ms, timecode_to_ms
from .timeline import index_by_key, refresh

logger = logging.getLogger(__name__)

Span = Tuple[int, int]


def _seconds(ms: int) -> float:
    return ms / MS_PER_SECOND


class CascadePlanner:
    """Plans and applies minimum-duration repairs across a timeline."""

    def __init__(self, min_duration_seconds: float):
        """
        Args:
            min_duration_seconds: Duration every segment should reach.
        """
        self.min_duration_seconds = min_duration_seconds
        self.min_ms = seconds_to_ms(min_duration_seconds)

    def _step(self, segment: Segment, action: str, amount_ms: int, reason: str) -> CascadeStep:
        return CascadeStep(
            segment_id=segment.id,
            segment_key=segment.key,
            action=action,
            time_change=_seconds(amount_ms),
            reason=reason,
        )

    def _borrow_slack(self, segments: Sequence[Segment], spans: List[Span], index: int,
                      remaining: int, steps: List[CascadeStep]) -> int:
        """Takes time from the slack of later segments; returns what is still missing."""
        short = segments[index]
        for j in range(index + 1, len(segments)):
            if remaining <= 0:
                break
            start, end = spans[j]
            slack = (end - start) - self.min_ms
            if slack <= 0:
                continue
            take = min(remaining, slack)
            donor = segments[j]
            steps.append(self._step(short, EXTEND, take,
                                    f"Extend by {_seconds(take):.3f}s using slack of segment #{donor.id}"))
            steps.append(self._step(donor, SHORTEN, take,
                                    f"Start {_seconds(take):.3f}s later to give time to segment #{short.id}"))
            remaining -= take
        return remaining

    def _borrow_gaps(self, segments: Sequence[Segment], spans: List[Span], index: int,
                     remaining: int, steps: List[CascadeStep]) -> int:
        """
        Takes time from idle gaps after the short segment.

        Using the gap after segment k means the segments between the short
        one and k are moved later into that gap, keeping their durations.
        """
        short = segments[index]
        for k in range(index, len(segments) - 1):
            if remaining <= 0:
                break
            gap = max(0, spans[k + 1][0] - spans[k][1])
            if gap <= 0:
                continue
            take = min(remaining, gap)
            anchor = segments[k]
            steps.append(self._step(short, EXTEND, take,
                                    f"Extend by {_seconds(take):.3f}s into the gap after segment #{anchor.id}"))
            for m in range(index + 1, k + 1):
                steps.append(self._step(segments[m], MOVE, take,
                                        f"Move {_seconds(take):.3f}s later into the gap after segment #{anchor.id}"))
            remaining -= take
        return remaining

    def calculate_plan(self, segments: Sequence[Segment],
                       target_ids: Optional[Iterable[int]] = None) -> CascadePlan:
        """
        Computes the steps that bring every short segment up to the minimum.

        Durations, slack and gaps are read from the given snapshot. A donor
        is not protected from being borrowed from again by a later short
        segment in the same pass.

        Args:
            segments: The full, ordered timeline.
            target_ids: Restrict the repair to these short segments. Donors
                        and gaps are still taken from the whole timeline.

        Returns:
            A feasible plan, or an infeasible one naming the blocking segment.
        """
        targets = set(target_ids) if target_ids is not None else None
        spans = [(timecode_to_ms(seg.start_time), timecode_to_ms(seg.end_time)) for seg in segments]
        steps: List[CascadeStep] = []

        for i, seg in enumerate(segments):
            if targets is not None and seg.id not in targets:
                continue
            duration = spans[i][1] - spans[i][0]
            if duration >= self.min_ms:
                continue

            needed = self.min_ms - duration
            remaining = self._borrow_slack(segments, spans, i, needed, steps)
            if remaining > 0:
                remaining = self._borrow_gaps(segments, spans, i, remaining, steps)
            if remaining > 0:
                # Whole milliseconds: anything left is at least the 1 ms tolerance
                reason = (
                    f"Segment #{seg.id} needs {_seconds(needed):.3f}s more to reach "
                    f"{self.min_duration_seconds:g}s, but only {_seconds(needed - remaining):.3f}s "
                    f"of slack or gaps is available after it"
                )
                logger.warning(f"Cascade fix not possible: {reason}")
                return CascadePlan.infeasible(reason)

        total_affected = len({step.segment_key for step in steps})
        logger.info(f"Cascade plan: {len(steps)} steps affecting {total_affected} segments")
        return CascadePlan(steps=steps, total_affected=total_affected, can_be_fixed=True)

    def apply_plan(self, segments: Sequence[Segment], plan: CascadePlan,
                   limits: ValidationLimits) -> List[Segment]:
        """
        Replays a feasible plan in order and refreshes the whole timeline.

        An infeasible plan is refused and the input is returned unchanged.
        Steps whose segment no longer exists are skipped.
        """
        if not plan.can_be_fixed:
            logger.warning(f"Refusing to apply an infeasible cascade plan: {plan.reason}")
            return list(segments)

        positions = index_by_key(segments)
        working = list(segments)
        for step in plan.steps:
            index = positions.get(step.segment_key)
            if index is None:
                logger.debug(f"Skipping cascade step for missing segment #{step.segment_id}")
                continue
            seg = working[index]
            if step.action == EXTEND:
                seg = replace(seg, end_time=add_seconds(seg.end_time, step.time_change))
            elif step.action == SHORTEN:
                seg = replace(seg, start_time=add_seconds(seg.start_time, step.time_change))
            elif step.action == MOVE:
                seg = replace(seg,
                              start_time=add_seconds(seg.start_time, step.time_change),
                              end_time=add_seconds(seg.end_time, step.time_change))
            else:
                logger.warning(f"Unknown cascade action {step.action!r} for segment #{step.segment_id}")
                continue
            working[index] = seg

        logger.info(f"Applied cascade plan to {plan.total_affected} segments")
        return refresh(working, limits)


def describe_plan(plan: CascadePlan) -> List[str]:
    """Human-readable preview of a plan, one line per step."""
    if not plan.can_be_fixed:
        return [f"Cannot fix automatically: {plan.reason}"]
    if not plan.steps:
        return ["No segments are below the minimum duration."]
    lines = [f"Can fix using cascade adjustment ({plan.total_affected} segments affected):"]
    for step in plan.steps:
        lines.append(f"  #{step.segment_id:<5} {step.action:<8} {step.time_change:.3f}s  {step.reason}")
    return lines
