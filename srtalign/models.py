"""Data models for SrtAlign."""

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

from .exceptions import ConfigurationError
from .timecode import duration_between

def new_key() -> str:
    """Returns a fresh opaque segment identity."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Clean:
    """Segment has no pending single-level undo."""


@dataclass(frozen=True)
class Dirty:
    """Segment was edited; previous holds the value before the edit."""
    previous: 'Segment'

    @classmethod
    def of(cls, segment: 'Segment') -> 'Dirty':
        # Only one level is kept, so the snapshot itself is always clean
        return cls(previous=replace(segment, edit_state=CLEAN))


CLEAN = Clean()
EditState = Union[Clean, Dirty]


@dataclass(frozen=True)
class Segment:
    """
    One subtitle cue.

    ``id`` is the display index (dense, 1..N, reassigned after structural
    changes); ``key`` is the stable identity and never takes part in
    equality. ``char_count`` and ``duration`` are always derived from the
    text and timecodes; the four flags are recomputed by
    :func:`srtalign.timeline.refresh` after every mutation.
    """
    id: int
    start_time: str
    end_time: str
    text: str
    is_long: bool = False
    is_too_short: bool = False
    is_too_long: bool = False
    has_timecode_conflict: bool = False
    original_text: Optional[str] = None
    source_file: Optional[str] = None
    edit_state: EditState = CLEAN
    key: str = field(default_factory=new_key, compare=False)

    @property
    def char_count(self) -> int:
        """Characters in the text, line breaks excluded."""
        return len(self.text.replace('\r', '').replace('\n', ''))

    @property
    def duration(self) -> float:
        """Seconds between start and end; negative for an inverted span."""
        return duration_between(self.start_time, self.end_time)

    @property
    def lines(self) -> List[str]:
        return self.text.split('\n')

    @property
    def can_undo(self) -> bool:
        return isinstance(self.edit_state, Dirty)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def to_plain_data(self) -> Dict[str, Any]:
        """JSON-compatible representation used by the session store."""
        data = {
            'key': self.key,
            'id': self.id,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'text': self.text,
            'original_text': self.original_text,
            'source_file': self.source_file,
            'previous': None,
        }
        if isinstance(self.edit_state, Dirty):
            previous = self.edit_state.previous
            data['previous'] = {
                'start_time': previous.start_time,
                'end_time': previous.end_time,
                'text': previous.text,
            }
        return data

    @classmethod
    def from_plain_data(cls, data: Dict[str, Any]) -> 'Segment':
        """Rebuilds a segment; flags are left for the caller's refresh pass."""
        segment = cls(
            id=int(data['id']),
            start_time=data['start_time'],
            end_time=data['end_time'],
            text=data.get('text', ''),
            original_text=data.get('original_text'),
            source_file=data.get('source_file'),
            key=data.get('key') or new_key(),
        )
        previous = data.get('previous')
        if previous:
            snapshot = replace(segment, start_time=previous['start_time'],
                               end_time=previous['end_time'], text=previous['text'])
            segment = replace(segment, edit_state=Dirty.of(snapshot))
        return segment


@dataclass(frozen=True)
class ValidationLimits:
    """Formatting and timing limits the caller validates segments against."""
    max_total_chars: int = 74
    max_line_chars: int = 37
    min_duration_seconds: float = 1.0
    max_duration_seconds: float = 7.0

    def __post_init__(self):
        if self.max_total_chars <= 0 or self.max_line_chars <= 0:
            raise ConfigurationError("Character limits must be positive.")
        if self.min_duration_seconds < 0 or self.max_duration_seconds <= 0:
            raise ConfigurationError("Duration limits must be positive.")
        if self.min_duration_seconds > self.max_duration_seconds:
            raise ConfigurationError(
                f"min_duration_seconds ({self.min_duration_seconds}) exceeds "
                f"max_duration_seconds ({self.max_duration_seconds})."
            )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ValidationLimits':
        """
        Builds limits from a loaded configuration mapping.

        Raises:
            ConfigurationError: If a value is missing a numeric form or the
                                limits are inconsistent.
        """
        defaults = cls()
        try:
            return cls(
                max_total_chars=int(config.get('max_total_chars', defaults.max_total_chars)),
                max_line_chars=int(config.get('max_line_chars', defaults.max_line_chars)),
                min_duration_seconds=float(config.get('min_duration_seconds', defaults.min_duration_seconds)),
                max_duration_seconds=float(config.get('max_duration_seconds', defaults.max_duration_seconds)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid limit value in configuration: {e}") from e

    def to_plain_data(self) -> Dict[str, Any]:
        return {
            'max_total_chars': self.max_total_chars,
            'max_line_chars': self.max_line_chars,
            'min_duration_seconds': self.min_duration_seconds,
            'max_duration_seconds': self.max_duration_seconds,
        }


EXTEND = 'extend'
SHORTEN = 'shorten'
MOVE = 'move'


@dataclass(frozen=True)
class CascadeStep:
    """A single timing change of a cascade plan."""
    segment_id: int
    segment_key: str
    action: str # EXTEND | SHORTEN | MOVE
    time_change: float # seconds, millisecond resolution
    reason: str


@dataclass(frozen=True)
class CascadePlan:
    """Result of cascade planning: either a full set of steps or a refusal."""
    steps: List[CascadeStep] = field(default_factory=list)
    total_affected: int = 0
    can_be_fixed: bool = True
    reason: Optional[str] = None

    @classmethod
    def infeasible(cls, reason: str) -> 'CascadePlan':
        return cls(steps=[], total_affected=0, can_be_fixed=False, reason=reason)
