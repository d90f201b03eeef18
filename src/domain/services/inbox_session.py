"""Per-user inbox sessions.

A session is the owning context of one user's live feeds: it bundles the
aggregation engine with the action and selection controllers, and tears
everything down when the user signs out.
"""

import asyncio
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from domain.repositories.social_backend import ISocialBackend
from domain.services.action_coordinator import ActionCoordinator, Notice, SingleFlight
from domain.services.inbox_service import InboxService
from domain.services.selection import SelectionController

logger = structlog.get_logger()

MAX_PENDING_NOTICES = 20


@dataclass
class InboxSession:
    """Inbox state and action entry points for one signed-in user."""

    owner_id: str
    inbox: InboxService
    actions: ActionCoordinator
    selection: SelectionController
    notices: deque[Notice] = field(default_factory=lambda: deque(maxlen=MAX_PENDING_NOTICES))

    @classmethod
    def open(
        cls,
        backend: ISocialBackend,
        owner_id: str,
        alert_display_seconds: float = 5.0,
    ) -> "InboxSession":
        notices: deque[Notice] = deque(maxlen=MAX_PENDING_NOTICES)
        flights = SingleFlight()
        inbox = InboxService(backend, alert_display_seconds=alert_display_seconds)
        session = cls(
            owner_id=owner_id,
            inbox=inbox,
            actions=ActionCoordinator(backend, owner_id, on_notice=notices.append, flights=flights),
            selection=SelectionController(
                backend,
                owner_id,
                visible_ids=lambda: [item.id for item in inbox.view.post_notifications],
                flights=flights,
                on_notice=notices.append,
            ),
            notices=notices,
        )
        inbox.start(owner_id)
        return session

    def close(self) -> None:
        self.inbox.stop()
        self.selection.reset()
        self.notices.clear()

    def take_notices(self) -> list[Notice]:
        """Pop every notice raised since the last call."""
        pending = list(self.notices)
        self.notices.clear()
        return pending


class InboxSessionRegistry:
    """One session per signed-in user, opened lazily and evicted when idle."""

    def __init__(
        self,
        backend: ISocialBackend,
        alert_display_seconds: float = 5.0,
        idle_timeout_seconds: float = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self._alert_display_seconds = alert_display_seconds
        self._idle_timeout = idle_timeout_seconds
        self._clock = clock
        self._sessions: dict[str, InboxSession] = {}
        self._last_access: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, owner_id: object) -> bool:
        return owner_id in self._sessions

    def get(self, owner_id: str) -> InboxSession | None:
        session = self._sessions.get(owner_id)
        if session is not None:
            self._last_access[owner_id] = self._clock()
        return session

    def get_or_open(self, owner_id: str) -> InboxSession:
        session = self._sessions.get(owner_id)
        if session is None:
            session = InboxSession.open(self._backend, owner_id, self._alert_display_seconds)
            self._sessions[owner_id] = session
            logger.info("inbox_session_opened", owner_id=owner_id, active_sessions=len(self))
        self._last_access[owner_id] = self._clock()
        return session

    def close(self, owner_id: str) -> bool:
        session = self._sessions.pop(owner_id, None)
        self._last_access.pop(owner_id, None)
        if session is None:
            return False
        session.close()
        logger.info("inbox_session_closed", owner_id=owner_id, active_sessions=len(self))
        return True

    def close_all(self) -> None:
        for owner_id in list(self._sessions):
            self.close(owner_id)

    def close_idle(self) -> list[str]:
        """Close every session not touched within the idle timeout."""
        cutoff = self._clock() - self._idle_timeout
        idle = [owner_id for owner_id, seen in self._last_access.items() if seen <= cutoff]
        for owner_id in idle:
            logger.info("inbox_session_evicted", owner_id=owner_id)
            self.close(owner_id)
        return idle

    async def run_idle_sweeper(self, interval_seconds: float = 60.0) -> None:
        """Evict idle sessions every ``interval_seconds`` until cancelled."""
        interval = max(1.0, interval_seconds)
        while True:
            await asyncio.sleep(interval)
            try:
                self.close_idle()
            except Exception:
                logger.exception("inbox_sweep_failed")
