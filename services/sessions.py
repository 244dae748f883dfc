"""In-memory registry of live interview sessions."""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional

from agents.interviewer import ChatTurn
from config.settings import settings
from observability import log_event
from topic_tree import TopicTreeStore


class InterviewSession:
    """Live state for one session. Mutate only while holding ``lock``."""

    def __init__(self, session_id: str, user_id: str, store: TopicTreeStore, now: float) -> None:
        self.session_id = session_id
        self.user_id = user_id
        self.store = store
        self.history: List[ChatTurn] = []
        self.lock = threading.RLock()
        self.last_seen = now
        self.closed = False

    @property
    def state(self):
        return self.store.state


class SessionRegistry:
    """Lock-guarded insert-if-absent map with idle eviction.

    The registry only serializes creation and lookup; per-session mutation is guarded by
    each session's own lock.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, InterviewSession] = {}

    def get_or_create(self, session_id: str, user_id: str) -> InterviewSession:
        self.evict_expired()
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = InterviewSession(session_id, user_id, TopicTreeStore.initialize(session_id), now)
                self._sessions[session_id] = session
            session.last_seen = now
            return session

    def get(self, session_id: str) -> Optional[InterviewSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_seen = self._clock()
            return session

    def close(self, session_id: str) -> Optional[InterviewSession]:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.closed = True
        return session

    def evict_expired(self, now: Optional[float] = None) -> List[str]:
        current = self._clock() if now is None else now
        with self._lock:
            expired = [sid for sid, sess in self._sessions.items() if current - sess.last_seen > self._ttl]
            for sid in expired:
                self._sessions.pop(sid).closed = True
        for sid in expired:
            log_event("session.evicted", sid, reason="ttl")
        return expired

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["InterviewSession", "SessionRegistry"]
