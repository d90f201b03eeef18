"""Unit tests for SelectionController."""

import pytest

from domain.entities.feed import MutationResult
from domain.services.action_coordinator import (
    ActionFamily,
    ActionStatus,
    Notice,
    NoticeLevel,
    SingleFlight,
)
from domain.services.selection import SelectionController
from tests.unit.conftest import OWNER_ID, FakeSocialBackend


@pytest.fixture
def visible() -> list[str]:
    return ["p1", "p2", "p3"]


@pytest.fixture
def notices() -> list[Notice]:
    return []


@pytest.fixture
def selection(
    backend: FakeSocialBackend, visible: list[str], notices: list[Notice]
) -> SelectionController:
    return SelectionController(
        backend, OWNER_ID, visible_ids=lambda: visible, on_notice=notices.append
    )


class TestToggles:
    def test_toggle_mode_clears_selection(self, selection: SelectionController):
        selection.toggle_mode()
        selection.toggle("p1")

        assert selection.toggle_mode() is False
        assert selection.selected_ids == frozenset()

    def test_toggle_flips_membership(self, selection: SelectionController):
        assert selection.toggle("p1") is True
        assert selection.toggle("p2") is True
        assert selection.toggle("p1") is False

        assert selection.snapshot.selected_ids == frozenset({"p2"})


class TestDeleteSelected:
    @pytest.mark.asyncio
    async def test_empty_selection_is_a_no_op(
        self, selection: SelectionController, backend: FakeSocialBackend
    ):
        outcome = await selection.delete_selected()

        assert outcome.status == ActionStatus.SKIPPED
        backend.delete_notifications.assert_not_called()

    @pytest.mark.asyncio
    async def test_success_resets_mode_and_selection(
        self, selection: SelectionController, backend: FakeSocialBackend
    ):
        selection.toggle_mode()
        selection.toggle("p2")
        selection.toggle("p1")

        outcome = await selection.delete_selected()

        assert outcome.completed
        backend.delete_notifications.assert_awaited_once_with(OWNER_ID, ["p2", "p1"])
        assert selection.selection_mode is False
        assert selection.selected_ids == frozenset()
        assert selection.clearing is False

    @pytest.mark.asyncio
    async def test_failure_keeps_mode_and_selection(
        self,
        selection: SelectionController,
        backend: FakeSocialBackend,
        notices: list[Notice],
    ):
        backend.delete_notifications.return_value = MutationResult.failed("Failed to delete")
        selection.toggle_mode()
        selection.toggle("p1")
        selection.toggle("p3")

        outcome = await selection.delete_selected()

        assert outcome.status == ActionStatus.FAILED
        assert selection.selection_mode is True
        assert selection.selected_ids == frozenset({"p1", "p3"})
        assert selection.clearing is False
        assert notices[0].level == NoticeLevel.ERROR


class TestClearAll:
    @pytest.mark.asyncio
    async def test_deletes_every_visible_id_without_selection_mode(
        self, selection: SelectionController, backend: FakeSocialBackend
    ):
        outcome = await selection.clear_all()

        assert outcome.completed
        backend.delete_notifications.assert_awaited_once_with(OWNER_ID, ["p1", "p2", "p3"])

    @pytest.mark.asyncio
    async def test_nothing_visible_is_skipped(
        self, backend: FakeSocialBackend
    ):
        selection = SelectionController(backend, OWNER_ID, visible_ids=lambda: [])

        outcome = await selection.clear_all()

        assert outcome.status == ActionStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_skipped_while_another_delete_is_in_flight(
        self, backend: FakeSocialBackend, visible: list[str]
    ):
        flights = SingleFlight()
        selection = SelectionController(
            backend, OWNER_ID, visible_ids=lambda: visible, flights=flights
        )

        flights.try_acquire(ActionFamily.DELETE_NOTIFICATIONS, "other")

        outcome = await selection.clear_all()

        assert outcome.status == ActionStatus.SKIPPED
        assert selection.clearing is True
        backend.delete_notifications.assert_not_called()
