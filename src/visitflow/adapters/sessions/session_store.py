"""In-memory registry of open visit form sessions."""

import time
from typing import Callable, Dict, List, Optional

from ...application.use_cases.visit_form_session import VisitFormSession
from ...core.structured_logger import get_logger
from ..notifications.collecting_channel import CollectingNotificationChannel
from ..queue.form_queue_fields import FormQueueFieldsProvider

logger = get_logger("visitflow.sessions")

DEFAULT_IDLE_TIMEOUT_SECONDS = 1800.0


class SessionEntry:
    """A session together with the per-session adapters the API reads."""

    def __init__(
        self,
        session: VisitFormSession,
        channel: CollectingNotificationChannel,
        queue_fields: FormQueueFieldsProvider,
        last_access: float = 0.0,
    ) -> None:
        self.session = session
        self.channel = channel
        self.queue_fields = queue_fields
        self.last_access = last_access


class VisitFormSessionStore:
    """Sessions are never shared between patients or surfaces.

    Sessions left idle for longer than ``idle_timeout_seconds`` are discarded
    on the next ``add`` or ``get``. A session with a remote call in flight is
    never evicted.
    """

    def __init__(
        self,
        idle_timeout_seconds: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: Dict[str, SessionEntry] = {}
        self._idle_timeout = idle_timeout_seconds
        self._clock = clock

    def add(self, entry: SessionEntry) -> None:
        self.evict_expired()
        entry.last_access = self._clock()
        self._entries[entry.session.session_id] = entry

    def get(self, session_id: str) -> Optional[SessionEntry]:
        self.evict_expired()
        entry = self._entries.get(session_id)
        if entry is not None:
            entry.last_access = self._clock()
        return entry

    def remove(self, session_id: str) -> Optional[SessionEntry]:
        return self._entries.pop(session_id, None)

    def evict_expired(self) -> List[str]:
        """Discard idle sessions; returns the evicted session ids."""
        now = self._clock()
        expired = [
            session_id
            for session_id, entry in self._entries.items()
            if now - entry.last_access > self._idle_timeout and not entry.session.state.is_in_flight
        ]
        for session_id in expired:
            entry = self._entries.pop(session_id)
            logger.info(
                "Visit form expired",
                session_id=session_id,
                patient_uuid=entry.session.patient_uuid,
                idle_seconds=round(now - entry.last_access, 1),
            )
            entry.session.discard()
        return expired

    def __len__(self) -> int:
        return len(self._entries)
