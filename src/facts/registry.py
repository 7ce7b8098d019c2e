import logging
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import Request

from .session import Session

logger = logging.getLogger(__name__)


# --- Service Layer: Session Registry ---
class SessionRegistry:
    """Process-wide token -> Session map guarded by a single lock.

    Tokens are ``"<seed>:<counter>"`` where the seed is taken once from the
    clock when the registry is built and the counter only ever grows, so a
    token is never reissued while the process lives. Sessions are never
    evicted.

    The lock covers map structure only. Grading a session happens outside of
    it, under that session's own reentrant lock, which routes also hold
    across their missing-answer check so concurrent requests on one token
    agree on whether to restart.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = time.time_ns() % 1_000_000_000 if seed is None else seed
        self._count = 0
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(self) -> str:
        return self._new_session().token

    def _new_session(self) -> Session:
        with self._lock:
            session = Session(f"{self.seed}:{self._count}")
            self._count += 1
            self._sessions[session.token] = session
        logger.info(f"New session: {session.token}")
        return session

    def lookup(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        with self._lock:
            return self._sessions.get(token)

    def resolve_or_create(self, token: Optional[str]) -> Tuple[Session, bool]:
        """Return ``(session, created)`` for ``token``, starting a new one
        when the token is missing or unknown."""
        session = self.lookup(token)
        if session is not None:
            return session, False
        if token:
            logger.info(f"Unknown session {token}, starting over")
        return self._new_session(), True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, token: str) -> bool:
        with self._lock:
            return token in self._sessions


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry
