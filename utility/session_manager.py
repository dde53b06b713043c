from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict

from utility.languages import Tone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThemePreference:
    """The only value kept across reconnects of the same session."""
    dark: bool = False

    @property
    def css_class(self) -> str:
        return "dark" if self.dark else ""


@dataclass
class SessionData:
    """Store per-page session state"""
    session_id: str
    created_at: datetime
    last_accessed: datetime

    # Selections
    source_lang: str = "Italian"
    target_lang: str = "Greek"
    tone: str = Tone.FORMAL.value

    # Last values rendered on the page
    status: str = ""
    recognized_text: str = ""
    translation: str = ""
    translation_ok: bool = True

    theme: ThemePreference = field(default_factory=ThemePreference)

    def touch(self):
        """Update last accessed time"""
        self.last_accessed = datetime.now()

    def is_expired(self, ttl_hours: int = 2) -> bool:
        """Check if session has expired"""
        return datetime.now() - self.last_accessed > timedelta(hours=ttl_hours)


class SessionManager:
    """Manage page sessions with automatic cleanup"""

    def __init__(self, ttl_hours: int = 2, cleanup_interval: int = 300, start_cleanup: bool = True):
        self.sessions: Dict[str, SessionData] = {}
        self.ttl_hours = ttl_hours
        self.cleanup_interval = cleanup_interval  # seconds
        self._lock = threading.Lock()
        if start_cleanup:
            self._start_cleanup_thread()

    def get_or_create_session(self, session_id: str) -> SessionData:
        """Get existing session or create new one"""
        with self._lock:
            if session_id in self.sessions:
                session = self.sessions[session_id]
                if session.is_expired(self.ttl_hours):
                    # Expired session, create new one
                    self._cleanup_session(session_id)
                    session = self._create_session(session_id)
                else:
                    session.touch()
            else:
                session = self._create_session(session_id)

            return session

    def set_theme(self, session_id: str, dark: bool) -> ThemePreference:
        session = self.get_or_create_session(session_id)
        session.theme = ThemePreference(dark=dark)
        return session.theme

    def _create_session(self, session_id: str) -> SessionData:
        """Create a new session"""
        now = datetime.now()
        session = SessionData(
            session_id=session_id,
            created_at=now,
            last_accessed=now
        )
        self.sessions[session_id] = session
        logger.info("Created new session: %s", session_id)
        return session

    def _cleanup_session(self, session_id: str):
        """Clean up a single session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            logger.info("Cleaned up session: %s", session_id)

    def cleanup_expired_sessions(self):
        """Remove all expired sessions"""
        with self._lock:
            expired = [
                sid for sid, session in self.sessions.items()
                if session.is_expired(self.ttl_hours)
            ]
            for sid in expired:
                self._cleanup_session(sid)

            if expired:
                logger.info("Cleaned up %d expired session(s)", len(expired))

    def _start_cleanup_thread(self):
        """Start background thread for automatic cleanup"""

        def cleanup_loop():
            while True:
                time.sleep(self.cleanup_interval)
                self.cleanup_expired_sessions()

        thread = threading.Thread(target=cleanup_loop, daemon=True)
        thread.start()

    def get_session_count(self) -> int:
        """Get number of active sessions"""
        with self._lock:
            return len(self.sessions)
