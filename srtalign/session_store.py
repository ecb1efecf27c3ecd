"""Saves and restores editing sessions as a JSON snapshot on disk."""

import json
import logging
import os
import time
from typing import Any, Dict, Optional

from .exceptions import FileSystemError, SrtAlignError
from .session import EditorSession
from .utils import read_text, write_text

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


class SessionStore:
    """
    Single-slot persistence for an EditorSession.

    Storage problems never interrupt editing: every failure is logged as a
    warning and reported through the return value.
    """

    def __init__(self, path: str, max_age_hours: float = 24):
        self.path = path
        self.max_age_hours = max_age_hours

    def save(self, session: EditorSession) -> bool:
        payload = {'timestamp': time.time(), 'session': session.to_plain_data()}
        try:
            write_text(self.path, json.dumps(payload, ensure_ascii=False), with_bom=False)
        except (FileSystemError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save session to {self.path}: {e}")
            return False
        logger.debug(f"Session saved to {self.path}")
        return True

    def _read(self) -> Optional[Dict[str, Any]]:
        if not os.path.isfile(self.path):
            return None
        try:
            content, _ = read_text(self.path)
            payload = json.loads(content)
        except (FileSystemError, FileNotFoundError, ValueError) as e:
            logger.warning(f"Failed to read session from {self.path}: {e}")
            return None
        if not isinstance(payload, dict) or not isinstance(payload.get('timestamp'), (int, float)):
            logger.warning(f"Ignoring malformed session snapshot at {self.path}")
            return None
        return payload

    def _is_expired(self, payload: Dict[str, Any]) -> bool:
        return time.time() - payload['timestamp'] > self.max_age_hours * SECONDS_PER_HOUR

    def load(self) -> Optional[EditorSession]:
        """
        Restores the saved session.

        Returns:
            The session, or None when nothing usable is stored. Expired
            snapshots are deleted.
        """
        payload = self._read()
        if payload is None:
            return None
        if self._is_expired(payload):
            logger.info(f"Session snapshot at {self.path} is older than {self.max_age_hours}h, discarding it")
            self.clear()
            return None
        try:
            session = EditorSession.from_plain_data(payload.get('session') or {})
        except (SrtAlignError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to restore session from {self.path}: {e}")
            return None
        logger.info(f"Restored session with {len(session.documents)} documents from {self.path}")
        return session

    def clear(self) -> None:
        try:
            if os.path.exists(self.path):
                os.remove(self.path)
        except OSError as e:
            logger.warning(f"Failed to clear session at {self.path}: {e}")

    def has_session(self) -> bool:
        return self.load() is not None

    def age_minutes(self) -> Optional[int]:
        """Whole minutes since the stored snapshot was saved; None without a usable one."""
        payload = self._read()
        if payload is None or self._is_expired(payload):
            return None
        return int((time.time() - payload['timestamp']) // 60)
