"""Command-Line Interface handler for SrtAlign."""

import argparse
import logging
import os
import sys
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .cascade import describe_plan
from .config_loader import ConfigLoader
from .exceptions import ConfigurationError, ShorteningError, SrtAlignError
from .log_setup import setup_logging
from .models import ValidationLimits
from .session import EditorSession, SubtitleDocument
from .session_store import SessionStore
from .srt_codec import SRTCodec
from .timeline import SegmentFilter

if TYPE_CHECKING:
    from .shortener import TextShortener

logger = logging.getLogger(__name__) # Get logger for this module

LIMIT_OVERRIDES = {
    'max_total_chars': 'max_total_chars',
    'max_line_chars': 'max_line_chars',
    'min_duration': 'min_duration_seconds',
    'max_duration': 'max_duration_seconds',
}

ISSUE_LABELS = [
    ('long_total', "Too many characters"),
    ('long_lines', "Lines over the line limit"),
    ('too_short', "Shorter than the minimum duration"),
    ('too_long', "Longer than the maximum duration"),
    ('conflicts', "Overlapping or touching timecodes"),
]


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command and by the batch script."""
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to the configuration YAML file. Built-in defaults are used when omitted."
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level for console and file output."
    )
    parser.add_argument("--max-total-chars", type=int, default=None,
                        help="Override the character limit per segment.")
    parser.add_argument("--max-line-chars", type=int, default=None,
                        help="Override the character limit per line.")
    parser.add_argument("--min-duration", type=float, default=None,
                        help="Override the minimum duration in seconds.")
    parser.add_argument("--max-duration", type=float, default=None,
                        help="Override the maximum duration in seconds.")


def add_repair_arguments(parser: argparse.ArgumentParser) -> None:
    """Repair switches, applied in the order they are declared here."""
    parser.add_argument("--split-lines", action="store_true",
                        help="Break lines that exceed the line limit.")
    parser.add_argument("--remove-breaks", action="store_true",
                        help="Flow multi-line segments onto a single line.")
    parser.add_argument("--shorten", action="store_true",
                        help="Ask the text-shortening model for a shorter wording of segments over the character limit.")
    parser.add_argument("--split-long", action="store_true",
                        help="Split segments over the character limit into two segments.")
    parser.add_argument("--cascade", action="store_true",
                        help="Extend segments below the minimum duration by borrowing from later ones.")
    parser.add_argument("--fix-conflicts", action="store_true",
                        help="Pull back segment ends that touch the next segment.")


def load_settings(args: argparse.Namespace, log_file: str = 'srtalign.log') -> Dict[str, Any]:
    """
    Sets up logging, loads the configuration and applies CLI overrides.

    Exits the process when the configuration cannot be loaded.
    """
    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    # Console only until the configuration names the log directory
    setup_logging(log_level=log_level, log_dir=None)

    try:
        config = ConfigLoader().load_config(args.config)
    except FileNotFoundError:
        logger.critical(f"Configuration file not found: {args.config}")
        sys.exit(1)
    except ConfigurationError as e:
        logger.critical(f"Failed to load configuration from {args.config}: {e}")
        sys.exit(1)

    setup_logging(log_level=log_level, log_dir=config.get('log_dir'),
                  log_file=config.get('log_file', log_file))

    for arg_name, config_key in LIMIT_OVERRIDES.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            logger.info(f"Overriding {config_key} from config with CLI argument: {value}")
            config[config_key] = value
    return config


def build_shortener(config: Dict[str, Any]) -> 'TextShortener':
    """Loads the model-backed shortener; only needed for --shorten."""
    from .shortener import HuggingFaceShortener
    return HuggingFaceShortener(
        model_name=config.get('shortener_model', 'google/flan-t5-base'),
        device=config.get('device', 'cpu'),
    )


def shorten_long_segments(document: SubtitleDocument, shortener: 'TextShortener') -> int:
    """Replaces the text of every over-limit segment with a shorter suggestion."""
    shortened = 0
    for seg in document.select(SegmentFilter(long_total=True)):
        try:
            document.apply_shortening(seg.id, shortener)
            shortened += 1
        except ShorteningError as e:
            logger.warning(f"{document.name}: could not shorten segment #{seg.id}: {e}")
    return shortened


def apply_repairs(document: SubtitleDocument, args: argparse.Namespace,
                  shortener: Optional['TextShortener'] = None) -> List[str]:
    """
    Runs the requested repairs on a document.

    Args:
        document: The document to repair in place.
        args: Parsed repair switches (see add_repair_arguments).
        shortener: Required when args.shorten is set.

    Returns:
        A short description of each repair that ran.
    """
    done = []
    if args.split_lines:
        document.split_long_lines(SegmentFilter(long_lines=True))
        done.append("split long lines")
    if args.remove_breaks:
        document.remove_line_breaks()
        done.append("removed line breaks")
    if args.shorten and shortener is not None:
        count = shorten_long_segments(document, shortener)
        done.append(f"shortened {count} segments")
    if args.split_long:
        document.bulk_split(SegmentFilter(long_total=True))
        done.append("split long segments")
    if args.cascade:
        plan = document.plan_cascade()
        if plan.can_be_fixed:
            document.apply_cascade(plan)
            done.append(f"cascade fix ({plan.total_affected} segments)")
        else:
            logger.warning(f"{document.name}: cascade fix skipped: {plan.reason}")
    if args.fix_conflicts:
        document.fix_timecode_conflicts(SegmentFilter(conflicts=True))
        done.append("fixed timecode conflicts")
    return done


def format_report(document: SubtitleDocument) -> List[str]:
    """Per-category issue counts followed by the affected segment ids."""
    issues = document.issues()
    lines = [f"{document.name}: {issues['segments']} segments"]
    for key, label in ISSUE_LABELS:
        ids = [seg.id for seg in document.select(SegmentFilter(**{key: True}))]
        line = f"  {label}: {issues[key]}"
        if ids:
            shown = ', '.join(f"#{i}" for i in ids[:20])
            line += f" ({shown}{', ...' if len(ids) > 20 else ''})"
        lines.append(line)
    for key, label in (('dangling', "Dangling punctuation"), ('unbalanced', "Unbalanced brackets"),
                       ('empty', "Empty segments")):
        if issues[key]:
            lines.append(f"  {label}: {issues[key]}")
    return lines


def has_issues(document: SubtitleDocument) -> bool:
    issues = document.issues()
    return any(issues[key] for key, _ in ISSUE_LABELS)


class CLIHandler:
    """Parses arguments and runs the SrtAlign commands."""

    def __init__(self):
        self.parser = self._create_parser()
        self.codec = SRTCodec()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="SrtAlign: check and repair the layout and timing of translated SRT subtitles.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter # Show defaults in help
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        check = subparsers.add_parser("check", help="Report segments that break the limits.")
        check.add_argument("file", help="Path to the SRT file.")
        add_common_arguments(check)

        fix = subparsers.add_parser("fix", help="Apply repairs and write an edited copy.")
        fix.add_argument("file", help="Path to the translated SRT file.")
        fix.add_argument("--original", default=None,
                         help="Path to the source-language SRT file, kept alongside for split/merge.")
        fix.add_argument("-o", "--output", default=None,
                         help="Output path. Defaults to the input name with the configured suffix.")
        fix.add_argument("--save-session", action="store_true",
                         help="Store the edited document in the configured session file.")
        add_repair_arguments(fix)
        add_common_arguments(fix)

        plan = subparsers.add_parser("plan", help="Preview the minimum-duration cascade fix.")
        plan.add_argument("file", help="Path to the SRT file.")
        add_common_arguments(plan)

        return parser

    def _load_document(self, path: str, limits: ValidationLimits) -> SubtitleDocument:
        segments = self.codec.read_file(path, limits=limits)
        return SubtitleDocument(os.path.basename(path), segments, limits)

    def _check(self, args: argparse.Namespace, limits: ValidationLimits) -> int:
        document = self._load_document(args.file, limits)
        for line in format_report(document):
            print(line)
        return 1 if has_issues(document) else 0

    def _plan(self, args: argparse.Namespace, limits: ValidationLimits) -> int:
        document = self._load_document(args.file, limits)
        plan = document.plan_cascade()
        for line in describe_plan(plan):
            print(line)
        return 0 if plan.can_be_fixed else 1

    def _fix(self, args: argparse.Namespace, limits: ValidationLimits, config: Dict[str, Any]) -> int:
        document = self._load_document(args.file, limits)
        original = None
        if args.original:
            original = self.codec.read_file(args.original, limits=limits)
            document.attach_original(original)

        shortener = build_shortener(config) if args.shorten else None
        done = apply_repairs(document, args, shortener)
        if not done:
            logger.warning("No repair options given; writing the file unchanged.")

        output = args.output or SRTCodec.edited_filename(args.file, config.get('output_suffix', '_edited'))
        self.codec.write_file(document.segments, output)
        logger.info(f"{document.name}: {', '.join(done) or 'no changes'} -> {output}")

        if args.save_session:
            session = EditorSession(limits)
            session.add_document(document, original)
            store = SessionStore(config.get('session_file', '.srtalign/session.json'),
                                 max_age_hours=config.get('session_max_age_hours', 24))
            store.save(session)

        for line in format_report(document):
            print(line)
        return 0

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the command."""
        args = self.parser.parse_args(argv)
        config = load_settings(args)

        try:
            limits = ValidationLimits.from_config(config)
            if args.command == "check":
                exit_code = self._check(args, limits)
            elif args.command == "plan":
                exit_code = self._plan(args, limits)
            else:
                exit_code = self._fix(args, limits, config)
        except FileNotFoundError as e:
            logger.critical(str(e))
            sys.exit(1)
        except SrtAlignError as e:
            logger.error(f"A SrtAlign error occurred: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2) # Use a different exit code for unexpected crashes
        sys.exit(exit_code)
