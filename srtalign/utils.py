"""File system helpers shared by the codec, the session store and the CLI."""

import os
import logging
from typing import Tuple

from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

UTF8_BOM = '\ufeff'
FALLBACK_ENCODING = 'latin-1'

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists, creating it when missing.

    Raises:
        FileSystemError: If the directory cannot be created or the path
                         exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def ensure_parent_dir(file_path: str) -> None:
    """Creates the directory holding file_path, if it names one."""
    parent = os.path.dirname(file_path)
    if parent:
        ensure_dir_exists(parent)

def read_text(path: str) -> Tuple[str, str]:
    """
    Reads a subtitle text file, tolerating a UTF-8 BOM and legacy encodings.

    Returns:
        A (content, encoding) tuple. Content never starts with a BOM.

    Raises:
        FileNotFoundError: If the file does not exist.
        FileSystemError: If the file cannot be read.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Subtitle file not found: {path}")
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except OSError as e:
        logger.error(f"Could not read {path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not read {path}: {e}") from e

    try:
        content, encoding = raw.decode('utf-8-sig'), 'utf-8'
    except UnicodeDecodeError:
        logger.warning(f"{path} is not valid UTF-8, decoding as {FALLBACK_ENCODING}")
        content, encoding = raw.decode(FALLBACK_ENCODING), FALLBACK_ENCODING
    return content.lstrip(UTF8_BOM), encoding

def write_text(path: str, content: str, with_bom: bool = True) -> None:
    """
    Writes text as UTF-8, prefixed with a byte-order mark for player compatibility.

    Raises:
        FileSystemError: If the file or its directory cannot be written.
    """
    ensure_parent_dir(path)
    try:
        with open(path, 'w', encoding='utf-8', newline='') as f:
            if with_bom:
                f.write(UTF8_BOM)
            f.write(content)
    except OSError as e:
        logger.error(f"Could not write {path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not write {path}: {e}") from e
