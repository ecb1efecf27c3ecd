#!/usr/bin/env python3
"""
SrtAlign Batch Processing Entry Point

Applies the same repairs to every SRT file in a directory, smallest file
first, and writes the results to an Edited subfolder.
"""

import argparse
import logging
import os
import sys
import time
from typing import List, Tuple

# Progress bar library
from tqdm import tqdm

from srtalign.cli import add_common_arguments, add_repair_arguments, apply_repairs, build_shortener, load_settings
from srtalign.exceptions import SrtAlignError, FileSystemError
from srtalign.models import ValidationLimits
from srtalign.session import SubtitleDocument
from srtalign.srt_codec import SRTCodec
from srtalign.utils import ensure_dir_exists

logger = logging.getLogger(__name__)

OUTPUT_SUBDIR = "Edited"

def find_and_sort_subtitles(input_dir: str) -> List[Tuple[str, int]]:
    """
    Finds all .srt files in the input directory and sorts them by size.

    Args:
        input_dir: The directory to search for subtitle files.

    Returns:
        A list of (filepath, filesize) tuples, smallest first.

    Raises:
        FileNotFoundError: If the input directory doesn't exist.
        ValueError: If the input path is not a directory.
    """
    if not os.path.exists(input_dir):
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not os.path.isdir(input_dir):
        raise ValueError(f"Input path is not a directory: {input_dir}")

    subtitles = []
    logger.info(f"Scanning directory for SRT files: {input_dir}")
    for filename in os.listdir(input_dir):
        if filename.lower().endswith(".srt"):
            filepath = os.path.join(input_dir, filename)
            try:
                if os.path.isfile(filepath):
                    subtitles.append((filepath, os.path.getsize(filepath)))
            except OSError as e:
                logger.warning(f"Could not access file {filepath}: {e}. Skipping.")

    subtitles.sort(key=lambda item: (item[1], item[0]))
    logger.info(f"Found {len(subtitles)} SRT files. Sorted by size (smallest first).")
    return subtitles


def process_file(codec: SRTCodec, path: str, output_dir: str, limits: ValidationLimits,
                 args: argparse.Namespace, shortener=None) -> List[str]:
    """Repairs one file and writes it under output_dir with the same name."""
    name = os.path.basename(path)
    document = SubtitleDocument(name, codec.read_file(path, limits=limits), limits)
    done = apply_repairs(document, args, shortener)
    codec.write_file(document.segments, os.path.join(output_dir, name))
    return done


def run_batch_processing(argv=None):
    """Parses arguments, sets up, and runs the batch repair."""
    parser = argparse.ArgumentParser(
        description="SrtAlign Batch: repair every SRT file in a directory.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "-i", "--input-dir",
        required=True,
        help="Directory containing the SRT files."
    )
    add_repair_arguments(parser)
    add_common_arguments(parser)
    args = parser.parse_args(argv)

    config = load_settings(args, log_file='srtalign_batch.log')
    try:
        limits = ValidationLimits.from_config(config)
    except SrtAlignError as e:
        logger.critical(f"Invalid limits: {e}")
        sys.exit(1)

    try:
        sorted_paths = [item[0] for item in find_and_sort_subtitles(args.input_dir)]
    except (FileNotFoundError, ValueError) as e:
        logger.critical(f"Input directory error: {e}")
        sys.exit(1)
    if not sorted_paths:
        logger.warning(f"No .srt files found in {args.input_dir}. Exiting.")
        sys.exit(0)

    output_dir = os.path.join(args.input_dir, OUTPUT_SUBDIR)
    try:
        ensure_dir_exists(output_dir)
    except FileSystemError as e:
        logger.critical(f"Could not create output directory: {e}")
        sys.exit(1)

    # The model is loaded once for the whole batch
    shortener = None
    if args.shorten:
        try:
            shortener = build_shortener(config)
        except SrtAlignError as e:
            logger.critical(f"Failed to initialize the shortener: {e}")
            sys.exit(1)

    codec = SRTCodec()
    total_files = len(sorted_paths)
    files_processed = 0
    files_failed = 0
    batch_start_time = time.time()

    logger.info(f"--- Starting batch repair for {total_files} files ---")
    with tqdm(total=total_files, unit="file", desc="Starting Batch") as pbar:
        for path in sorted_paths:
            filename = os.path.basename(path)
            pbar.set_description(f"Processing: {filename[:30]}...")
            try:
                done = process_file(codec, path, output_dir, limits, args, shortener)
                logger.info(f"{filename}: {', '.join(done) or 'no changes'}")
                files_processed += 1
            except SrtAlignError as e:
                logger.error(f"SrtAlign failed for '{filename}': {e}")
                files_failed += 1
            except KeyboardInterrupt:
                logger.warning("Batch process interrupted by user (Ctrl+C). Exiting.")
                sys.exit(1)
            except Exception as e:
                logger.error(f"An unexpected error occurred processing '{filename}': {e}", exc_info=True)
                files_failed += 1
            finally:
                pbar.update(1)

    logger.info("--- Batch repair finished ---")
    logger.info(f"Total time: {time.time() - batch_start_time:.2f} seconds")
    logger.info(f"Successfully processed: {files_processed}/{total_files} files")
    logger.info(f"Failed: {files_failed}/{total_files} files")

    sys.exit(1 if files_failed > 0 else 0)


if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("SrtAlign requires Python 3.8 or later.\n")
        sys.exit(1)

    run_batch_processing()
