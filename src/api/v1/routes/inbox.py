"""Inbox API routes."""

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import Inbox, get_inbox_registry
from api.v1.schemas.common import ErrorResponse, MessageResponse
from api.v1.schemas.inbox import (
    AcceptFriendRequestRequest,
    ActionResponse,
    InboxResponse,
    SelectionModeResponse,
    SelectionToggleResponse,
)
from core.config import settings
from core.exceptions import ActionFailedError, FriendRequestNotFoundError
from core.rate_limit import limiter
from domain.services.action_coordinator import ActionOutcome, ActionStatus
from domain.services.inbox_session import InboxSession, InboxSessionRegistry

router = APIRouter(prefix="/inbox", tags=["inbox"])


def _action_response(outcome: ActionOutcome) -> ActionResponse:
    """Render an outcome; a failed action becomes a 502."""
    if outcome.status == ActionStatus.FAILED:
        raise ActionFailedError(
            action=outcome.family.value,
            message=outcome.message or "Action failed",
            target_id=outcome.target_id,
        )
    return ActionResponse.from_outcome(outcome)


def _inbox_response(session: InboxSession) -> InboxResponse:
    return InboxResponse.build(
        view=session.inbox.view,
        markers=session.actions.markers,
        selection=session.selection.snapshot,
        notices=session.take_notices(),
    )


# --- Inbox ---


@router.get(
    "",
    response_model=InboxResponse,
    summary="Get the aggregated inbox",
    responses={
        200: {"description": "Friend requests, group invitations and post activity"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_inbox(request: Request, session: Inbox) -> InboxResponse:
    """Open the inbox session if needed and return the current view.

    The first call waits briefly for the initial snapshots of both feeds.
    """
    await session.inbox.wait_until_loaded(settings.inbox_load_timeout_seconds)
    return _inbox_response(session)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close the inbox session",
    responses={
        204: {"description": "Feeds closed and state cleared"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def close_inbox(
    request: Request,
    user: CurrentUser,
    registry: InboxSessionRegistry = Depends(get_inbox_registry),
) -> None:
    """Stop the live feeds of the signed-in user."""
    registry.close(user.id)


@router.post(
    "/refresh",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Resubscribe to the live feeds",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def refresh_inbox(request: Request, session: Inbox) -> MessageResponse:
    """Replace both subscriptions. Current lists stay until new snapshots arrive."""
    session.inbox.refresh()
    return MessageResponse(message="Inbox refresh started")


# --- Friend requests ---


@router.post(
    "/friend-requests/{request_id}/accept",
    response_model=ActionResponse,
    summary="Accept a friend request",
    responses={
        200: {"description": "Accepted, or skipped while another accept is running"},
        404: {
            "model": ErrorResponse,
            "description": "Request not in the inbox and no sender given",
        },
        502: {"model": ErrorResponse, "description": "Backend rejected the action"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def accept_friend_request(
    request: Request,
    request_id: str,
    session: Inbox,
    body: AcceptFriendRequestRequest | None = None,
) -> ActionResponse:
    """Accept a pending friend request addressed to the signed-in user."""
    from_user_id = body.from_user_id if body else None
    if not from_user_id:
        match = next(
            (r for r in session.inbox.view.requests_with_data if r.id == request_id), None
        )
        if match is None:
            raise FriendRequestNotFoundError(request_id)
        from_user_id = match.from_user_id

    outcome = await session.actions.accept_friend_request(request_id, from_user_id)
    return _action_response(outcome)


@router.post(
    "/friend-requests/{request_id}/decline",
    response_model=ActionResponse,
    summary="Decline a friend request",
    responses={
        502: {"model": ErrorResponse, "description": "Backend rejected the action"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def decline_friend_request(
    request: Request, request_id: str, session: Inbox
) -> ActionResponse:
    outcome = await session.actions.decline_friend_request(request_id)
    return _action_response(outcome)


# --- Group invitations ---


@router.post(
    "/group-invitations/{notification_id}/accept",
    response_model=ActionResponse,
    summary="Accept a group invitation",
    responses={
        200: {"description": "Accepted, or skipped when no group is known"},
        502: {"model": ErrorResponse, "description": "Backend rejected the action"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def accept_group_invitation(
    request: Request, notification_id: str, session: Inbox
) -> ActionResponse:
    """Join the group named on the invitation.

    Skipped while the invitation is not in the inbox, since its group is unknown.
    """
    match = next(
        (i for i in session.inbox.view.invitations_with_data if i.id == notification_id),
        None,
    )
    group_id = match.group_id if match else None

    outcome = await session.actions.accept_group_invitation(notification_id, group_id)
    return _action_response(outcome)


@router.post(
    "/group-invitations/{notification_id}/decline",
    response_model=ActionResponse,
    summary="Decline a group invitation",
    responses={
        502: {"model": ErrorResponse, "description": "Backend rejected the action"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def decline_group_invitation(
    request: Request, notification_id: str, session: Inbox
) -> ActionResponse:
    outcome = await session.actions.decline_group_invitation(notification_id)
    return _action_response(outcome)


# --- Notifications ---


@router.post(
    "/notifications/read-all",
    response_model=ActionResponse,
    summary="Mark every notification as read",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def mark_all_notifications_read(request: Request, session: Inbox) -> ActionResponse:
    outcome = await session.actions.mark_all_read()
    return _action_response(outcome)


@router.post(
    "/notifications/clear",
    response_model=ActionResponse,
    summary="Delete every visible post notification",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def clear_notifications(request: Request, session: Inbox) -> ActionResponse:
    """Delete all post activity currently shown, regardless of selection."""
    outcome = await session.selection.clear_all()
    return _action_response(outcome)


@router.post(
    "/notifications/{notification_id}/read",
    response_model=ActionResponse,
    summary="Mark a notification as read",
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def mark_notification_read(
    request: Request, notification_id: str, session: Inbox
) -> ActionResponse:
    outcome = await session.actions.mark_read(notification_id)
    return _action_response(outcome)


# --- Selection ---


@router.post(
    "/selection/mode",
    response_model=SelectionModeResponse,
    summary="Toggle selection mode",
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def toggle_selection_mode(request: Request, session: Inbox) -> SelectionModeResponse:
    """Enter or leave selection mode. The selection is cleared either way."""
    return SelectionModeResponse(selection_mode=session.selection.toggle_mode())


@router.post(
    "/selection/delete",
    response_model=ActionResponse,
    summary="Delete the selected notifications",
    responses={
        200: {"description": "Deleted, or skipped when nothing is selected"},
        502: {"model": ErrorResponse, "description": "Delete failed; the selection is kept"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_selected(request: Request, session: Inbox) -> ActionResponse:
    outcome = await session.selection.delete_selected()
    return _action_response(outcome)


@router.post(
    "/selection/{notification_id}",
    response_model=SelectionToggleResponse,
    summary="Select or unselect a notification",
)
@limiter.limit("120/minute")  # type: ignore[untyped-decorator]
async def toggle_selected(
    request: Request, notification_id: str, session: Inbox
) -> SelectionToggleResponse:
    selected = session.selection.toggle(notification_id)
    return SelectionToggleResponse(
        id=notification_id,
        selected=selected,
        selected_ids=sorted(session.selection.selected_ids),
    )


# --- Alert ---


@router.post(
    "/alert/dismiss",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Dismiss the current alert",
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def dismiss_alert(request: Request, session: Inbox) -> None:
    session.inbox.dismiss_alert()
