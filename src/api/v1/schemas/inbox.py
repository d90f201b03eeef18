"""Pydantic schemas for the Inbox API."""

from datetime import datetime

from pydantic import BaseModel, Field

from domain.entities.inbox import (
    ActionMarkers,
    AggregatedView,
    EnrichedFriendRequest,
    EnrichedGroupInvitation,
    NotificationAlert,
    PostNotificationItem,
    SelectionSnapshot,
    SenderSummary,
)
from domain.entities.notification import NotificationTypes
from domain.services.action_coordinator import ActionOutcome, Notice
from domain.services.routing import FRIEND_REQUEST_KIND, Route, route_for


class RouteResponse(BaseModel):
    """Named screen to open when an item is tapped."""

    name: str
    params: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_route(cls, route: Route | None) -> "RouteResponse | None":
        if route is None:
            return None
        return cls(name=route.name, params=dict(route.params))


class SenderResponse(BaseModel):
    name: str
    username: str
    avatar_url: str | None = None

    @classmethod
    def from_entity(cls, sender: SenderSummary) -> "SenderResponse":
        return cls(name=sender.name, username=sender.username, avatar_url=sender.avatar_url)


class GroupSummaryResponse(BaseModel):
    id: str
    name: str


class FriendRequestResponse(BaseModel):
    """Pending friend request with sender details."""

    id: str
    from_user_id: str
    to_user_id: str
    status: str
    created_at: datetime
    from_user: SenderResponse
    route: RouteResponse | None = None

    @classmethod
    def from_entity(cls, item: EnrichedFriendRequest) -> "FriendRequestResponse":
        return cls(
            id=item.id,
            from_user_id=item.from_user_id,
            to_user_id=item.to_user_id,
            status=item.status.value,
            created_at=item.created_at,
            from_user=SenderResponse.from_entity(item.sender),
            route=RouteResponse.from_route(route_for(FRIEND_REQUEST_KIND, item)),
        )


class GroupInvitationResponse(BaseModel):
    """Unread group invitation with sender and group details."""

    id: str
    from_user_id: str
    group_id: str | None = None
    message: str | None = None
    created_at: datetime
    from_user: SenderResponse
    group: GroupSummaryResponse | None = None
    can_accept: bool
    route: RouteResponse | None = None

    @classmethod
    def from_entity(cls, item: EnrichedGroupInvitation) -> "GroupInvitationResponse":
        return cls(
            id=item.id,
            from_user_id=item.from_user_id,
            group_id=item.group_id,
            message=item.message,
            created_at=item.created_at,
            from_user=SenderResponse.from_entity(item.sender),
            group=(
                GroupSummaryResponse(id=item.group.id, name=item.group.name)
                if item.group
                else None
            ),
            can_accept=item.can_accept,
            route=RouteResponse.from_route(route_for(NotificationTypes.GROUP_INVITATION, item)),
        )


class PostNotificationResponse(BaseModel):
    """Like / comment / tag / mention on one of the user's posts."""

    id: str
    type: str
    from_user_id: str
    post_id: str
    read: bool
    created_at: datetime
    message: str | None = None
    from_user: SenderResponse
    route: RouteResponse | None = None

    @classmethod
    def from_entity(cls, item: PostNotificationItem) -> "PostNotificationResponse":
        return cls(
            id=item.id,
            type=item.type,
            from_user_id=item.from_user_id,
            post_id=item.post_id,
            read=item.read,
            created_at=item.created_at,
            message=item.message,
            from_user=SenderResponse.from_entity(item.from_user),
            route=RouteResponse.from_route(route_for(item.type, item)),
        )


class AlertResponse(BaseModel):
    """The in-app alert for the newest unseen activity."""

    id: str
    type: str
    message: str
    from_user_name: str
    from_user_avatar: str | None = None
    created_at: datetime
    route: RouteResponse | None = None

    @classmethod
    def from_entity(cls, alert: NotificationAlert) -> "AlertResponse":
        return cls(
            id=alert.id,
            type=alert.type,
            message=alert.message,
            from_user_name=alert.from_user_name,
            from_user_avatar=alert.from_user_avatar,
            created_at=alert.created_at,
            route=RouteResponse.from_route(route_for(alert.type, alert)),
        )


class MarkersResponse(BaseModel):
    processing_request_id: str | None = None
    processing_invitation_id: str | None = None
    processing_read_id: str | None = None
    marking_all_read: bool = False
    clearing: bool = False


class SelectionResponse(BaseModel):
    selection_mode: bool
    selected_ids: list[str]

    @classmethod
    def from_entity(cls, selection: SelectionSnapshot) -> "SelectionResponse":
        return cls(
            selection_mode=selection.selection_mode,
            selected_ids=sorted(selection.selected_ids),
        )


class NoticeResponse(BaseModel):
    level: str
    title: str
    message: str

    @classmethod
    def from_entity(cls, notice: Notice) -> "NoticeResponse":
        return cls(level=notice.level.value, title=notice.title, message=notice.message)


class InboxResponse(BaseModel):
    """Aggregated inbox for the signed-in user."""

    friend_requests: list[FriendRequestResponse]
    group_invitations: list[GroupInvitationResponse]
    post_notifications: list[PostNotificationResponse]
    has_notifications: bool
    unread_count: int
    loading: bool
    alert: AlertResponse | None = None
    markers: MarkersResponse
    selection: SelectionResponse
    notices: list[NoticeResponse] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        view: AggregatedView,
        markers: ActionMarkers,
        selection: SelectionSnapshot,
        notices: list[Notice],
    ) -> "InboxResponse":
        return cls(
            friend_requests=[FriendRequestResponse.from_entity(r) for r in view.requests_with_data],
            group_invitations=[
                GroupInvitationResponse.from_entity(i) for i in view.invitations_with_data
            ],
            post_notifications=[
                PostNotificationResponse.from_entity(p) for p in view.post_notifications
            ],
            has_notifications=view.has_notifications,
            unread_count=view.unread_count,
            loading=view.loading,
            alert=AlertResponse.from_entity(view.alert) if view.alert else None,
            markers=MarkersResponse(
                processing_request_id=markers.processing_request_id,
                processing_invitation_id=markers.processing_invitation_id,
                processing_read_id=markers.processing_read_id,
                marking_all_read=markers.marking_all_read,
                clearing=markers.clearing,
            ),
            selection=SelectionResponse.from_entity(selection),
            notices=[NoticeResponse.from_entity(n) for n in notices],
        )


class AcceptFriendRequestRequest(BaseModel):
    """Body for accepting a friend request."""

    from_user_id: str | None = None


class ActionResponse(BaseModel):
    """Outcome of an inbox action."""

    action: str
    status: str
    target_id: str | None = None
    message: str | None = None

    @classmethod
    def from_outcome(cls, outcome: ActionOutcome) -> "ActionResponse":
        return cls(
            action=outcome.family.value,
            status=outcome.status.value,
            target_id=outcome.target_id,
            message=outcome.message,
        )


class SelectionModeResponse(BaseModel):
    selection_mode: bool


class SelectionToggleResponse(BaseModel):
    id: str
    selected: bool
    selected_ids: list[str]
