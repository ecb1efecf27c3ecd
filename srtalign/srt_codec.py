"""Reading and writing SubRip (.srt) subtitle files."""

import logging
import os
import re
from typing import List, Optional, Sequence

from .exceptions import FileSystemError, SrtFormatError
from .models import Segment, ValidationLimits
from .text_split import normalize_line_breaks
from .timecode import is_valid_timecode
from .timeline import refresh
from .utils import UTF8_BOM, read_text, write_text

logger = logging.getLogger(__name__)

_BLOCK_SEPARATOR = re.compile(r'\r?\n(?:[ \t]*\r?\n)+')
_LINE_BREAK = re.compile(r'\r?\n')
_ID_LINE = re.compile(r'^\d+$')
TIMECODE_ARROW = '-->'


class SRTCodec:
    """Parses SRT text into segments and serializes segments back to SRT."""

    def _parse_block(self, block: str, source_file: Optional[str]) -> Optional[Segment]:
        lines = _LINE_BREAK.split(block)
        id_line = next((line for line in lines if _ID_LINE.match(line.strip())), None)
        timecode_index = next((i for i, line in enumerate(lines) if TIMECODE_ARROW in line), None)
        if id_line is None or timecode_index is None:
            logger.warning(f"Skipping invalid SRT block (missing id or timecode line): {block[:60]!r}")
            return None

        parts = [part.strip() for part in lines[timecode_index].split(TIMECODE_ARROW)]
        if len(parts) != 2 or not all(is_valid_timecode(part) for part in parts):
            logger.warning(f"Skipping SRT block with malformed timecodes: {lines[timecode_index]!r}")
            return None

        return Segment(
            id=int(id_line.strip()),
            start_time=parts[0],
            end_time=parts[1],
            text=normalize_line_breaks('\n'.join(lines[timecode_index + 1:])),
            source_file=source_file,
        )

    def parse(self, raw_text: str, source_file: Optional[str] = None,
              limits: Optional[ValidationLimits] = None) -> List[Segment]:
        """
        Parses SRT content into validated segments.

        Blocks without an id line or a timecode line, or whose timecodes are
        not strict ``HH:MM:SS,mmm``, are skipped. Ids are kept as written.

        Args:
            raw_text: The full file content.
            source_file: Name recorded on every segment.
            limits: Limits used for the derived flags; defaults when omitted.

        Returns:
            Segments in file order with every flag computed.
        """
        limits = limits or ValidationLimits()
        content = raw_text.lstrip(UTF8_BOM).strip('\r\n')
        if not content.strip():
            return []

        segments = []
        skipped = 0
        for block in _BLOCK_SEPARATOR.split(content):
            if not block.strip():
                continue
            segment = self._parse_block(block, source_file)
            if segment is None:
                skipped += 1
            else:
                segments.append(segment)

        if skipped:
            logger.warning(f"Skipped {skipped} invalid blocks while parsing {source_file or 'SRT input'}")
        logger.debug(f"Parsed {len(segments)} segments from {source_file or 'SRT input'}")
        return refresh(segments, limits)

    def serialize(self, segments: Sequence[Segment]) -> str:
        """Formats segments as SRT text; the result always ends with a newline."""
        blocks = [
            f"{seg.id}\n{seg.start_time} {TIMECODE_ARROW} {seg.end_time}\n{normalize_line_breaks(seg.text)}"
            for seg in segments
        ]
        return '\n\n'.join(blocks) + '\n'

    def read_file(self, path: str, limits: Optional[ValidationLimits] = None) -> List[Segment]:
        """
        Loads an SRT file; segments are tagged with the file's base name.

        Raises:
            FileNotFoundError: If the file does not exist.
            SrtFormatError: If the file cannot be read or holds no valid block.
        """
        try:
            content, encoding = read_text(path)
        except FileSystemError as e:
            raise SrtFormatError(f"Could not read subtitle file {path}: {e}") from e

        segments = self.parse(content, source_file=os.path.basename(path), limits=limits)
        if content.strip() and not segments:
            raise SrtFormatError(f"No valid subtitle blocks found in {path}")
        logger.info(f"Loaded {len(segments)} segments from {path} ({encoding})")
        return segments

    def write_file(self, segments: Sequence[Segment], path: str) -> None:
        """
        Writes segments as UTF-8 with a byte-order mark.

        Raises:
            SrtFormatError: If the file cannot be written.
        """
        try:
            write_text(path, self.serialize(segments), with_bom=True)
        except FileSystemError as e:
            raise SrtFormatError(f"Could not write subtitle file {path}: {e}") from e
        logger.info(f"Successfully wrote {len(segments)} subtitle blocks to {path}")

    @staticmethod
    def edited_filename(path: str, suffix: str = '_edited') -> str:
        """
        Example:
            >>> SRTCodec.edited_filename("movie.srt")
            'movie_edited.srt'
        """
        base, ext = os.path.splitext(path)
        return f"{base}{suffix}{ext or '.srt'}"
