import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.patch import apply_config_patches
from core.spec import ConfigPatch, Specification
from exceptions.custom_errors import (
    SessionNotFoundError,
    SolutionNotFoundError,
    error_detail,
)

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SOLVED = "solved"
    ERROR = "error"


@dataclass
class Session:
    """
    A specification plus its cached build/solve artifacts.

    The specification is the source of truth. `model` and `solution` are caches
    and are cleared whenever the specification changes or a build/solve fails.
    """

    id: str
    spec: Specification
    status: SessionStatus = SessionStatus.CREATED
    model: Any = None
    solution: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    build_count: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "template": self.spec.template,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    def _invalidate(self) -> None:
        self.model = None
        self.solution = None

    def _transition(self, status: SessionStatus) -> None:
        logger.info(f"Model '{self.id}': {self.status.value} → {status.value}")
        self.status = status
        self.updated_at = datetime.now()


class SessionStore:
    """
    Thread-safe session table.

    The store lock only guards lookup, insert and delete. Each session has its
    own lock held for the whole of a patch or a build-then-solve, so requests on
    one id are serialized while other ids proceed.
    """

    def __init__(self, build_fn: Callable[[Specification], Any], solve_fn: Callable[[Any], Dict[str, Any]]):
        self.build_fn = build_fn
        self.solve_fn = solve_fn
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, spec: Specification) -> Session:
        with self._lock:
            session_id = f"model_{next(self._ids)}"
            session = Session(id=session_id, spec=spec)
            self._sessions[session_id] = session
        logger.info(f"📋 Created model '{session_id}' from template '{spec.template}'")
        return session

    def get(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info(f"🗑️ Deleted model '{session_id}'")

    def patch(self, session_id: str, patches: Iterable[ConfigPatch]) -> Session:
        """Apply patches atomically; on failure the session is left as it was."""
        session = self.get(session_id)
        with session.lock:
            updated = apply_config_patches(session.spec, patches)
            session.spec = updated
            session._invalidate()
            session.error = None
            session._transition(SessionStatus.UPDATED)
        return session

    def solve(self, session_id: str) -> Dict[str, Any]:
        """
        Build the model if no cached one exists, solve it and cache the result.

        Build or solve failures move the session to `error`, clear its caches and
        re-raise.
        """
        session = self.get(session_id)
        with session.lock:
            try:
                if session.model is None:
                    session.model = self.build_fn(session.spec)
                    session.build_count += 1
                else:
                    logger.info(f"♻️ Reusing cached model for '{session_id}'")
                solution = self.solve_fn(session.model)
            except Exception as e:
                logger.error(f"❌ Solve failed for '{session_id}': {e}")
                session._invalidate()
                session.error = error_detail(e)
                session._transition(SessionStatus.ERROR)
                raise

            session.solution = solution
            session.error = None
            session._transition(SessionStatus.SOLVED)
            return solution

    def get_solution(self, session_id: str) -> Dict[str, Any]:
        session = self.get(session_id)
        with session.lock:
            if session.solution is None:
                raise SolutionNotFoundError(session_id)
            return session.solution
