"""Lifetime of ordering sessions held by the service"""

import uuid
import logging
from datetime import datetime
from dataclasses import dataclass
from typing import Callable, Optional

from .host import HostContext
from ..services.chrome import ChromeAdapter, ChromeState
from ..services.controller import SessionController

logger = logging.getLogger(__name__)


@dataclass
class OrderSession:
    """One user's ordering session and the chrome it drives"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    host: HostContext
    controller: SessionController
    chrome: ChromeState
    adapter: ChromeAdapter

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()

    def close(self) -> None:
        self.adapter.detach()
        self.controller.notifier.close()


SessionFactory = Callable[[HostContext], tuple[SessionController, ChromeState, ChromeAdapter]]


class SessionManager:
    """Manages ordering sessions"""

    def __init__(self):
        self.sessions: dict[str, OrderSession] = {}

    def create_session(self, host: HostContext, factory: SessionFactory) -> OrderSession:
        """Create a new session wired by factory"""
        controller, chrome, adapter = factory(host)
        now = datetime.utcnow()
        session = OrderSession(
            session_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            host=host,
            controller=controller,
            chrome=chrome,
            adapter=adapter,
        )
        adapter.attach()
        self.sessions[session.session_id] = session
        logger.debug(f"Created session {session.session_id} (embedded={host.is_embedded})")
        return session

    def get_session(self, session_id: str) -> Optional[OrderSession]:
        """Get session by ID"""
        session = self.sessions.get(session_id)
        if session:
            session.touch()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove sessions idle for longer than max_age_hours"""
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            self.delete_session(sid)
        return len(old_sessions)


# Singleton instance
session_manager = SessionManager()
