"""Integration tests for the Inbox API."""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from domain.entities.notification import NotificationTypes
from domain.entities.profile import Profile
from domain.services.inbox_session import InboxSessionRegistry
from domain.services.social_graph_service import SocialGraphService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.backend.sqlalchemy_backend import SQLAlchemySocialBackend
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

INBOX_URL = "/api/v1/inbox"


@pytest.fixture
def service(uow_factory: Callable[[], SQLAlchemyUnitOfWork]) -> SocialGraphService:
    return SocialGraphService(uow_factory)


@pytest.fixture
async def registry(service: SocialGraphService) -> AsyncGenerator[InboxSessionRegistry, None]:
    backend = SQLAlchemySocialBackend(service, poll_interval=0.05)
    sessions = InboxSessionRegistry(backend, alert_display_seconds=60)
    yield sessions
    sessions.close_all()
    backend.close()


@pytest.fixture
async def inbox_client(
    session_factory: async_sessionmaker[AsyncSession],
    registry: InboxSessionRegistry,
    seed_profiles: Callable[..., Awaitable[None]],
    test_user: TokenUser,
    auth_provider: JWTAuthProvider,
    auth_headers: dict[str, str],
) -> AsyncGenerator[AsyncClient, None]:
    """
    Authenticated client whose inbox runs on the test database.

    Sets up:
    - the signed-in user plus two other profiles
    - the auth provider that signed ``auth_headers``
    - an inbox registry with fast polling feeds
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import get_inbox_registry
    from infrastructure.database.session import get_async_session
    from main import create_app

    app = create_app()

    await seed_profiles(
        Profile(id=test_user.id, name=test_user.display_name, username="tester"),
        Profile(id="alice", name="Alice", username="alice", photo_url="alice.png"),
        Profile(id="bob", name="Bob", username="bob"),
    )

    async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_inbox_registry] = lambda: registry
    app.dependency_overrides[get_async_session] = override_get_async_session

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers=auth_headers
    ) as c:
        yield c

    app.dependency_overrides.clear()


async def _eventually(
    client: AsyncClient, predicate: Callable[[dict[str, Any]], bool], timeout: float = 2.0
) -> dict[str, Any]:
    """Poll the inbox until ``predicate`` holds for its body."""
    deadline = asyncio.get_running_loop().time() + timeout
    while True:
        response = await client.get(INBOX_URL)
        assert response.status_code == 200
        body = response.json()
        if predicate(body):
            return body
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"inbox never reached expected state: {body}")
        await asyncio.sleep(0.05)


def _assert_error(response: Response, status_code: int, error_code: str) -> dict[str, Any]:
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["error_code"] == error_code
    return body


class TestReadInbox:
    @pytest.mark.asyncio
    async def test_requires_token(self, inbox_client: AsyncClient) -> None:
        response = await inbox_client.get(INBOX_URL, headers={"Authorization": ""})

        _assert_error(response, 401, "UNAUTHORIZED")

    @pytest.mark.asyncio
    async def test_rejects_bad_token(self, inbox_client: AsyncClient) -> None:
        response = await inbox_client.get(
            INBOX_URL, headers={"Authorization": "Bearer not.a.token"}
        )

        _assert_error(response, 401, "INVALID_TOKEN")

    @pytest.mark.asyncio
    async def test_empty_inbox(self, inbox_client: AsyncClient) -> None:
        body = await _eventually(inbox_client, lambda b: not b["loading"])

        assert body["friend_requests"] == []
        assert body["group_invitations"] == []
        assert body["post_notifications"] == []
        assert body["has_notifications"] is False
        assert body["unread_count"] == 0
        assert body["alert"] is None
        assert body["selection"] == {"selection_mode": False, "selected_ids": []}

    @pytest.mark.asyncio
    async def test_aggregates_every_category(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        await service.send_friend_request("alice", test_user.id)
        group = await service.create_group("Hikers", created_by="bob")
        await service.send_group_invitation(group.id, "bob", test_user.id)
        await service.create_notification(
            test_user.id, NotificationTypes.COMMENT, "alice", post_id="post-1"
        )

        body = await _eventually(
            inbox_client, lambda b: len(b["friend_requests"]) == 1 and b["group_invitations"]
        )

        [request] = body["friend_requests"]
        assert request["id"] == f"alice_{test_user.id}"
        assert request["from_user"] == {
            "name": "Alice",
            "username": "alice",
            "avatar_url": "alice.png",
        }
        assert request["route"] == {"name": "UserProfile", "params": {"user_id": "alice"}}

        [invitation] = body["group_invitations"]
        assert invitation["group"] == {"id": group.id, "name": "Hikers"}
        assert invitation["message"] == 'invited you to join "Hikers"'
        assert invitation["can_accept"] is True
        assert invitation["from_user"]["name"] == "Bob"

        [post] = body["post_notifications"]
        assert post["type"] == "comment"
        assert post["route"] == {"name": "PostDetail", "params": {"post_id": "post-1"}}

        assert body["has_notifications"] is True
        assert body["unread_count"] == 3
        assert body["alert"]["message"] == "Alice commented on your post"


class TestFriendRequestActions:
    @pytest.mark.asyncio
    async def test_accept_removes_request_and_reports_notice(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        request_id = f"alice_{test_user.id}"
        await service.send_friend_request("alice", test_user.id)
        await _eventually(inbox_client, lambda b: len(b["friend_requests"]) == 1)

        response = await inbox_client.post(f"{INBOX_URL}/friend-requests/{request_id}/accept")

        assert response.status_code == 200
        assert response.json() == {
            "action": "accept_friend_request",
            "status": "completed",
            "target_id": request_id,
            "message": "Friend request accepted!",
        }
        body = await _eventually(inbox_client, lambda b: b["friend_requests"] == [])
        assert (await service.get_profile(test_user.id)).friends == ["alice"]
        assert body["markers"]["processing_request_id"] is None

    @pytest.mark.asyncio
    async def test_accept_unknown_request_without_sender(self, inbox_client: AsyncClient) -> None:
        await _eventually(inbox_client, lambda b: not b["loading"])

        response = await inbox_client.post(f"{INBOX_URL}/friend-requests/nobody_x/accept")

        _assert_error(response, 404, "FRIEND_REQUEST_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_rejected_accept_is_bad_gateway_with_notice(
        self, inbox_client: AsyncClient, test_user: TokenUser
    ) -> None:
        request_id = f"bob_{test_user.id}"

        response = await inbox_client.post(
            f"{INBOX_URL}/friend-requests/{request_id}/accept", json={"from_user_id": "bob"}
        )

        body = _assert_error(response, 502, "ACTION_FAILED")
        assert body["message"] == "Friend request not found"
        assert body["details"] == {"action": "accept_friend_request", "target_id": request_id}

        inbox = (await inbox_client.get(INBOX_URL)).json()
        assert inbox["notices"] == [
            {"level": "error", "title": "Error", "message": "Friend request not found"}
        ]

    @pytest.mark.asyncio
    async def test_decline(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        request_id = f"bob_{test_user.id}"
        await service.send_friend_request("bob", test_user.id)
        await _eventually(inbox_client, lambda b: len(b["friend_requests"]) == 1)

        response = await inbox_client.post(f"{INBOX_URL}/friend-requests/{request_id}/decline")

        assert response.json()["status"] == "completed"
        await _eventually(inbox_client, lambda b: b["friend_requests"] == [])
        assert await service.list_pending_friend_requests(test_user.id) == []

    @pytest.mark.asyncio
    async def test_cannot_act_on_request_between_other_users(
        self, inbox_client: AsyncClient, service: SocialGraphService
    ) -> None:
        await service.send_friend_request("alice", "bob")

        accepted = await inbox_client.post(
            f"{INBOX_URL}/friend-requests/alice_bob/accept", json={"from_user_id": "alice"}
        )
        declined = await inbox_client.post(f"{INBOX_URL}/friend-requests/alice_bob/decline")

        assert _assert_error(accepted, 502, "ACTION_FAILED")["message"] == "Friend request not found"
        assert _assert_error(declined, 502, "ACTION_FAILED")["message"] == "Friend request not found"
        assert (await service.get_profile("alice")).friends == []
        assert [r.id for r in await service.list_pending_friend_requests("bob")] == ["alice_bob"]


class TestGroupInvitationActions:
    @pytest.mark.asyncio
    async def test_accept_uses_group_from_invitation(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        group = await service.create_group("Hikers", created_by="bob")
        invitation = await service.send_group_invitation(group.id, "bob", test_user.id)
        await _eventually(inbox_client, lambda b: len(b["group_invitations"]) == 1)

        response = await inbox_client.post(
            f"{INBOX_URL}/group-invitations/{invitation.id}/accept"
        )

        assert response.json()["status"] == "completed"
        await _eventually(inbox_client, lambda b: b["group_invitations"] == [])
        assert test_user.id in (await service.get_group(group.id)).members

    @pytest.mark.asyncio
    async def test_accept_of_unknown_invitation_ignores_body_group(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        group = await service.create_group("Inner circle", created_by="alice")
        await _eventually(inbox_client, lambda b: not b["loading"])

        response = await inbox_client.post(
            f"{INBOX_URL}/group-invitations/bogus/accept", json={"group_id": group.id}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "skipped"
        assert test_user.id not in (await service.get_group(group.id)).members

    @pytest.mark.asyncio
    async def test_accept_without_known_group_is_skipped(self, inbox_client: AsyncClient) -> None:
        await _eventually(inbox_client, lambda b: not b["loading"])

        response = await inbox_client.post(f"{INBOX_URL}/group-invitations/unknown/accept")

        assert response.status_code == 200
        assert response.json()["status"] == "skipped"

    @pytest.mark.asyncio
    async def test_decline(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        group = await service.create_group("Hikers", created_by="bob")
        invitation = await service.send_group_invitation(group.id, "bob", test_user.id)
        await _eventually(inbox_client, lambda b: len(b["group_invitations"]) == 1)

        response = await inbox_client.post(
            f"{INBOX_URL}/group-invitations/{invitation.id}/decline"
        )

        assert response.json()["status"] == "completed"
        await _eventually(inbox_client, lambda b: b["group_invitations"] == [])
        assert test_user.id not in (await service.get_group(group.id)).members


class TestNotificationActions:
    async def _seed_likes(
        self, service: SocialGraphService, user_id: str, count: int
    ) -> list[str]:
        ids = []
        for i in range(count):
            notification = await service.create_notification(
                user_id, NotificationTypes.LIKE, "alice", post_id=f"post-{i}"
            )
            ids.append(notification.id)
        return ids

    @pytest.mark.asyncio
    async def test_mark_one_then_all_read(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        first, *_ = await self._seed_likes(service, test_user.id, 3)
        await _eventually(inbox_client, lambda b: b["unread_count"] == 3)

        one = await inbox_client.post(f"{INBOX_URL}/notifications/{first}/read")
        assert one.json()["status"] == "completed"
        await _eventually(inbox_client, lambda b: b["unread_count"] == 2)

        every = await inbox_client.post(f"{INBOX_URL}/notifications/read-all")
        assert every.json()["status"] == "completed"
        body = await _eventually(inbox_client, lambda b: b["unread_count"] == 0)
        assert [p["read"] for p in body["post_notifications"]] == [True, True, True]

    @pytest.mark.asyncio
    async def test_selection_delete(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        keep, drop = await self._seed_likes(service, test_user.id, 2)
        await _eventually(inbox_client, lambda b: len(b["post_notifications"]) == 2)

        mode = await inbox_client.post(f"{INBOX_URL}/selection/mode")
        toggled = await inbox_client.post(f"{INBOX_URL}/selection/{drop}")
        assert mode.json() == {"selection_mode": True}
        assert toggled.json() == {"id": drop, "selected": True, "selected_ids": [drop]}

        deleted = await inbox_client.post(f"{INBOX_URL}/selection/delete")

        assert deleted.json()["status"] == "completed"
        body = await _eventually(inbox_client, lambda b: len(b["post_notifications"]) == 1)
        assert body["post_notifications"][0]["id"] == keep
        assert body["selection"] == {"selection_mode": False, "selected_ids": []}

    @pytest.mark.asyncio
    async def test_delete_with_empty_selection_is_skipped(self, inbox_client: AsyncClient) -> None:
        response = await inbox_client.post(f"{INBOX_URL}/selection/delete")

        assert response.status_code == 200
        assert response.json()["status"] == "skipped"

    @pytest.mark.asyncio
    async def test_clear_all(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        await self._seed_likes(service, test_user.id, 3)
        await _eventually(inbox_client, lambda b: len(b["post_notifications"]) == 3)

        response = await inbox_client.post(f"{INBOX_URL}/notifications/clear")

        assert response.json()["status"] == "completed"
        await _eventually(inbox_client, lambda b: b["post_notifications"] == [])
        assert await service.list_notifications(test_user.id) == []


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_dismiss_alert(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        await service.create_notification(
            test_user.id, NotificationTypes.MENTION, "alice", post_id="post-1"
        )
        await _eventually(inbox_client, lambda b: b["alert"] is not None)

        response = await inbox_client.post(f"{INBOX_URL}/alert/dismiss")

        assert response.status_code == 204
        body = (await inbox_client.get(INBOX_URL)).json()
        assert body["alert"] is None
        assert len(body["post_notifications"]) == 1

    @pytest.mark.asyncio
    async def test_refresh_keeps_lists(
        self, inbox_client: AsyncClient, service: SocialGraphService, test_user: TokenUser
    ) -> None:
        await service.create_notification(
            test_user.id, NotificationTypes.LIKE, "alice", post_id="post-1"
        )
        await _eventually(inbox_client, lambda b: len(b["post_notifications"]) == 1)

        response = await inbox_client.post(f"{INBOX_URL}/refresh")

        assert response.status_code == 202
        assert response.json() == {"message": "Inbox refresh started"}
        body = await _eventually(inbox_client, lambda b: not b["loading"])
        assert len(body["post_notifications"]) == 1

    @pytest.mark.asyncio
    async def test_close_ends_session(
        self, inbox_client: AsyncClient, registry: InboxSessionRegistry, test_user: TokenUser
    ) -> None:
        await inbox_client.get(INBOX_URL)
        assert test_user.id in registry

        response = await inbox_client.delete(INBOX_URL)

        assert response.status_code == 204
        assert test_user.id not in registry

    @pytest.mark.asyncio
    async def test_detailed_health_reports_sessions(
        self, inbox_client: AsyncClient, registry: InboxSessionRegistry
    ) -> None:
        await inbox_client.get(INBOX_URL)

        response = await inbox_client.get("/health/detailed")

        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "healthy"
        assert body["inbox_sessions"] == 1
