"""Selection mode and batch deletion over post activity."""

from collections.abc import Callable, Sequence

import structlog

from domain.entities.inbox import SelectionSnapshot
from domain.repositories.social_backend import ISocialBackend
from domain.services.action_coordinator import (
    ActionFamily,
    ActionOutcome,
    ActionStatus,
    Notice,
    NoticeSink,
    SingleFlight,
    run_single_flight,
)

logger = structlog.get_logger()


class SelectionController:
    """Multi-select over the post-notification list.

    Batch deletion shares the single-flight discipline of the other actions
    (the ``clearing`` marker). A failed delete keeps the selection so the
    user can retry without selecting again.
    """

    def __init__(
        self,
        backend: ISocialBackend,
        owner_id: str,
        visible_ids: Callable[[], Sequence[str]],
        flights: SingleFlight | None = None,
        on_notice: NoticeSink | None = None,
    ) -> None:
        self._backend = backend
        self._owner_id = owner_id
        self._visible_ids = visible_ids
        self._flights = flights or SingleFlight()
        self._on_notice = on_notice
        self._selection_mode = False
        # dict keeps insertion order for the delete call
        self._selected: dict[str, None] = {}

    @property
    def selection_mode(self) -> bool:
        return self._selection_mode

    @property
    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    @property
    def clearing(self) -> bool:
        return self._flights.current(ActionFamily.DELETE_NOTIFICATIONS) is not None

    @property
    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            selection_mode=self._selection_mode,
            selected_ids=self.selected_ids,
        )

    def toggle_mode(self) -> bool:
        """Flip selection mode; any existing selection is dropped."""
        self._selection_mode = not self._selection_mode
        self._selected.clear()
        return self._selection_mode

    def toggle(self, notification_id: str) -> bool:
        """Flip membership of one id. Returns True if it is now selected."""
        if notification_id in self._selected:
            del self._selected[notification_id]
            return False
        self._selected[notification_id] = None
        return True

    def reset(self) -> None:
        self._selection_mode = False
        self._selected.clear()

    async def delete_selected(self) -> ActionOutcome:
        """Delete every selected notification in one backend call."""
        return await self._delete(list(self._selected))

    async def clear_all(self) -> ActionOutcome:
        """Delete every visible post notification, selected or not."""
        return await self._delete(list(self._visible_ids()))

    async def _delete(self, ids: list[str]) -> ActionOutcome:
        if not ids:
            logger.debug("batch_delete_skipped", reason="empty_selection")
            return ActionOutcome(ActionFamily.DELETE_NOTIFICATIONS, ActionStatus.SKIPPED)

        outcome = await run_single_flight(
            self._flights,
            ActionFamily.DELETE_NOTIFICATIONS,
            ",".join(ids),
            lambda: self._backend.delete_notifications(self._owner_id, ids),
            failure_message="Failed to delete notifications",
            notify=self._notify,
        )
        if outcome.completed:
            logger.info("notifications_deleted", count=len(ids))
            self.reset()
        return outcome

    def _notify(self, notice: Notice) -> None:
        if self._on_notice is None:
            return
        try:
            self._on_notice(notice)
        except Exception:
            logger.exception("notice_sink_failed")
