"""Editing sessions: subtitle documents with document-level undo."""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from . import segment_ops
from .cascade import CascadePlanner
from .models import CascadePlan, Segment, ValidationLimits
from .srt_codec import SRTCodec
from .timeline import SegmentFilter, find_index, issue_summary, refresh, select, selected_ids

if TYPE_CHECKING:
    from .shortener import TextShortener

logger = logging.getLogger(__name__)


class SubtitleDocument:
    """
    One translated subtitle file being edited.

    Bulk repairs and cascade fixes keep a snapshot of the timeline taken
    just before they run, so the last one can be reverted with undo().
    Structural edits (split, merge, delete) and manual text edits drop that
    snapshot: restoring it afterwards would silently discard them.
    """

    def __init__(self, name: str, segments: Sequence[Segment], limits: ValidationLimits):
        self.name = name
        self.limits = limits
        self.segments: List[Segment] = refresh(segments, limits)
        self._snapshot: Optional[List[Segment]] = None

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def can_undo(self) -> bool:
        return self._snapshot is not None

    def undo(self) -> bool:
        """Restores the timeline from before the last bulk operation."""
        if self._snapshot is None:
            return False
        self.segments = refresh(self._snapshot, self.limits)
        self._snapshot = None
        logger.info(f"{self.name}: reverted last bulk operation")
        return True

    def _bulk(self, result: List[Segment]) -> List[Segment]:
        if result != self.segments:
            self._snapshot = self.segments
            self.segments = result
        return self.segments

    def _structural(self, result: List[Segment]) -> List[Segment]:
        self._snapshot = None
        self.segments = result
        return self.segments

    def segment(self, segment_id: int) -> Optional[Segment]:
        index = find_index(self.segments, segment_id)
        return None if index is None else self.segments[index]

    def set_limits(self, limits: ValidationLimits) -> None:
        self.limits = limits
        self.segments = refresh(self.segments, limits)

    def issues(self) -> Dict[str, int]:
        return issue_summary(self.segments, self.limits)

    def select(self, segment_filter: Optional[SegmentFilter] = None) -> List[Segment]:
        return select(self.segments, segment_filter or SegmentFilter(), self.limits)

    def _ids(self, segment_filter: Optional[SegmentFilter]) -> List[int]:
        return selected_ids(self.segments, segment_filter or SegmentFilter(), self.limits)

    # --- Original text --------------------------------------------------------

    def attach_original(self, originals: Sequence[Segment]) -> None:
        """Pairs reference text with segments by position, not by id."""
        if len(originals) != len(self.segments):
            logger.warning(
                f"{self.name}: original has {len(originals)} segments, "
                f"translation has {len(self.segments)}; pairing by position"
            )
        self.segments = [
            replace(seg, original_text=originals[i].text if i < len(originals) else None)
            for i, seg in enumerate(self.segments)
        ]

    # --- Structural edits -------------------------------------------------------

    def split(self, segment_id: int) -> List[Segment]:
        return self._structural(segment_ops.split_in_document(self.segments, segment_id, self.limits))

    def merge_with_next(self, segment_id: int) -> List[Segment]:
        return self._structural(segment_ops.merge_in_document(self.segments, segment_id, self.limits))

    def delete(self, segment_id: int) -> List[Segment]:
        return self._structural(segment_ops.delete_segment(self.segments, segment_id, self.limits))

    # --- Per-segment edits ------------------------------------------------------

    def update_text(self, segment_id: int, new_text: str) -> List[Segment]:
        return self._structural(segment_ops.update_text(self.segments, segment_id, new_text, self.limits))

    def update_timecode(self, segment_id: int, start: str, end: str) -> List[Segment]:
        self.segments = segment_ops.update_timecode(self.segments, segment_id, start, end, self.limits)
        return self.segments

    def nudge(self, segment_id: int, edge: str, delta_seconds: float) -> List[Segment]:
        self.segments = segment_ops.nudge_timecode(self.segments, segment_id, edge, delta_seconds, self.limits)
        return self.segments

    def undo_segment(self, segment_id: int) -> List[Segment]:
        self.segments = segment_ops.undo_segment(self.segments, segment_id, self.limits)
        return self.segments

    # --- Bulk repairs -----------------------------------------------------------

    def bulk_split(self, segment_filter: Optional[SegmentFilter] = None) -> List[Segment]:
        return self._bulk(segment_ops.bulk_split(self.segments, self._ids(segment_filter), self.limits))

    def bulk_merge(self, segment_filter: Optional[SegmentFilter] = None) -> List[Segment]:
        return self._bulk(segment_ops.bulk_merge(self.segments, self._ids(segment_filter), self.limits))

    def split_long_lines(self, segment_filter: Optional[SegmentFilter] = None) -> List[Segment]:
        return self._bulk(segment_ops.split_long_lines(self.segments, self._ids(segment_filter), self.limits))

    def remove_line_breaks(self, segment_filter: Optional[SegmentFilter] = None) -> List[Segment]:
        return self._bulk(segment_ops.remove_line_breaks(self.segments, self._ids(segment_filter), self.limits))

    def fix_timecode_conflicts(self, segment_filter: Optional[SegmentFilter] = None) -> List[Segment]:
        return self._bulk(segment_ops.fix_timecode_conflicts(self.segments, self._ids(segment_filter), self.limits))

    # --- Cascade ------------------------------------------------------------------

    def plan_cascade(self, segment_filter: Optional[SegmentFilter] = None) -> CascadePlan:
        """Previews the minimum-duration repair; the timeline is not touched."""
        planner = CascadePlanner(self.limits.min_duration_seconds)
        target_ids = self._ids(segment_filter) if segment_filter is not None else None
        return planner.calculate_plan(self.segments, target_ids)

    def apply_cascade(self, plan: CascadePlan) -> List[Segment]:
        planner = CascadePlanner(self.limits.min_duration_seconds)
        return self._bulk(planner.apply_plan(self.segments, plan, self.limits))

    # --- Shortening assistant -------------------------------------------------------

    def apply_shortening(self, segment_id: int, shortener: 'TextShortener') -> Optional[str]:
        """
        Replaces a segment's text with the shortener's suggestion.

        The suggestion is stored as a regular text edit, so it can be undone
        per segment; it is validated like any other text and may still be
        flagged as too long.

        Returns:
            The suggestion, or None for an unknown segment id.

        Raises:
            ShorteningError: If the shortener fails.
        """
        current = self.segment(segment_id)
        if current is None:
            return None
        suggestion = shortener.shorten(current.text, self.limits.max_total_chars)
        if len(suggestion) > self.limits.max_total_chars:
            logger.info(f"{self.name}: suggestion for segment #{segment_id} is still "
                        f"{len(suggestion)} characters")
        self.update_text(segment_id, suggestion)
        return suggestion

    # --- Persistence --------------------------------------------------------------

    def to_plain_data(self) -> Dict[str, Any]:
        return {'name': self.name, 'segments': [seg.to_plain_data() for seg in self.segments]}


class EditorSession:
    """All documents being edited, keyed by source filename, plus shared limits."""

    def __init__(self, limits: Optional[ValidationLimits] = None):
        self.limits = limits or ValidationLimits()
        self.codec = SRTCodec()
        self.documents: Dict[str, SubtitleDocument] = {}
        self.originals: Dict[str, List[Segment]] = {}

    def load_translated(self, content: str, name: str) -> SubtitleDocument:
        """Parses a translated file into a new document, replacing one of the same name."""
        segments = self.codec.parse(content, source_file=name, limits=self.limits)
        document = SubtitleDocument(name, segments, self.limits)
        if name in self.originals:
            document.attach_original(self.originals[name])
        self.documents[name] = document
        logger.info(f"Loaded {len(document)} segments for {name}")
        return document

    def load_original(self, content: str, name: str) -> List[Segment]:
        """
        Parses the source-language file for the document called name.

        Args:
            content: SRT text of the original.
            name: Name of the translated document it belongs to.
        """
        segments = self.codec.parse(content, source_file=name, limits=self.limits)
        self.originals[name] = segments
        if name in self.documents:
            self.documents[name].attach_original(segments)
        return segments

    def add_document(self, document: SubtitleDocument,
                     original: Optional[Sequence[Segment]] = None) -> None:
        """Registers an already loaded document under its name."""
        document.set_limits(self.limits)
        self.documents[document.name] = document
        if original is not None:
            self.originals[document.name] = list(original)

    def document(self, name: str) -> SubtitleDocument:
        try:
            return self.documents[name]
        except KeyError:
            raise KeyError(f"No document named {name!r} in this session") from None

    def segments_for_file(self, name: str) -> List[Segment]:
        document = self.documents.get(name)
        return list(document.segments) if document else []

    def export(self, name: str) -> str:
        return self.codec.serialize(self.document(name).segments)

    def set_limits(self, limits: ValidationLimits) -> None:
        """Applies new limits and revalidates every document."""
        self.limits = limits
        for document in self.documents.values():
            document.set_limits(limits)

    def clear(self) -> None:
        self.documents.clear()
        self.originals.clear()

    def to_plain_data(self) -> Dict[str, Any]:
        documents = []
        for name, document in self.documents.items():
            data = document.to_plain_data()
            data['original'] = [seg.to_plain_data() for seg in self.originals.get(name, [])]
            documents.append(data)
        return {'documents': documents, 'config': self.limits.to_plain_data()}

    @classmethod
    def from_plain_data(cls, data: Dict[str, Any]) -> 'EditorSession':
        """
        Rebuilds a session saved with to_plain_data().

        Raises:
            ConfigurationError: If the saved limits are inconsistent.
            KeyError, TypeError, ValueError: If the data is malformed.
        """
        session = cls(ValidationLimits(**data.get('config', {})))
        for entry in data.get('documents', []):
            name = entry['name']
            segments = [Segment.from_plain_data(item) for item in entry.get('segments', [])]
            original = [Segment.from_plain_data(item) for item in entry.get('original', [])]
            if original:
                session.originals[name] = refresh(original, session.limits)
            session.documents[name] = SubtitleDocument(name, segments, session.limits)
        return session
