"""Unit tests for EnrichmentResolver."""

from unittest.mock import AsyncMock

import pytest

from domain.entities.group import Group
from domain.entities.inbox import PLACEHOLDER_SENDER
from domain.entities.profile import Profile
from domain.services.enrichment import EnrichmentResolver, sender_from_profile
from tests.unit.conftest import FakeSocialBackend, make_invitation, make_request


@pytest.fixture
def resolver(backend: FakeSocialBackend) -> EnrichmentResolver:
    return EnrichmentResolver(backend)


class TestSenderFromProfile:
    def test_prefers_photo_url_over_avatar(self):
        profile = Profile(id="u", name="Ann", username="ann", avatar="a.png", photo_url="p.png")

        assert sender_from_profile(profile).avatar_url == "p.png"

    def test_falls_back_to_avatar_then_none(self):
        with_avatar = Profile(id="u", name="Ann", username="ann", avatar="a.png")
        bare = Profile(id="u", name="Ann", username="ann", avatar="", photo_url="")

        assert sender_from_profile(with_avatar).avatar_url == "a.png"
        assert sender_from_profile(bare).avatar_url is None

    def test_missing_names_use_placeholders(self):
        sender = sender_from_profile(Profile(id="u"))

        assert sender.name == "Unknown User"
        assert sender.username == "unknown"


class TestResolveSender:
    @pytest.mark.asyncio
    async def test_missing_profile_gives_placeholder(
        self, resolver: EnrichmentResolver, backend: FakeSocialBackend
    ):
        sender = await resolver.resolve_sender("ghost")

        assert sender == PLACEHOLDER_SENDER
        assert sender.name == "Unknown User"
        assert sender.username == "unknown"
        assert sender.avatar_url is None

    @pytest.mark.asyncio
    async def test_raising_lookup_gives_placeholder(
        self, resolver: EnrichmentResolver, backend: FakeSocialBackend
    ):
        backend.failing_lookups.add("flaky")

        sender = await resolver.resolve_sender("flaky")

        assert sender.is_placeholder

    @pytest.mark.asyncio
    async def test_found_profile(self, resolver: EnrichmentResolver, backend: FakeSocialBackend):
        backend.profiles["ann"] = Profile(id="ann", name="Ann", username="ann_b", avatar="a.png")

        sender = await resolver.resolve_sender("ann")

        assert sender.name == "Ann"
        assert sender.username == "ann_b"
        assert sender.avatar_url == "a.png"


class TestResolveGroup:
    @pytest.mark.asyncio
    async def test_no_group_id_skips_lookup(self):
        backend = AsyncMock()
        resolver = EnrichmentResolver(backend)

        assert await resolver.resolve_group(None) is None
        backend.get_group_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_unnamed_group_uses_placeholder_name(
        self, resolver: EnrichmentResolver, backend: FakeSocialBackend
    ):
        backend.groups["g"] = Group(id="g", name="", created_by="x")

        group = await resolver.resolve_group("g")

        assert group is not None
        assert group.name == "Unknown Group"

    @pytest.mark.asyncio
    async def test_failed_lookup_gives_none(
        self, resolver: EnrichmentResolver, backend: FakeSocialBackend
    ):
        backend.failing_lookups.add("g")

        assert await resolver.resolve_group("g") is None


class TestBatches:
    @pytest.mark.asyncio
    async def test_friend_requests_keep_order_and_never_drop_items(
        self, resolver: EnrichmentResolver, backend: FakeSocialBackend
    ):
        backend.profiles["a"] = Profile(id="a", name="Ann", username="ann")
        backend.failing_lookups.add("b")
        backend.lookup_delays["a"] = 0.02

        enriched = await resolver.enrich_friend_requests(
            [make_request("a", minutes=2), make_request("b", minutes=1), make_request("c")]
        )

        assert [r.from_user_id for r in enriched] == ["a", "b", "c"]
        assert enriched[0].sender.name == "Ann"
        assert enriched[1].sender.is_placeholder
        assert enriched[2].sender.is_placeholder

    @pytest.mark.asyncio
    async def test_group_invitations_resolve_sender_and_group(
        self, resolver: EnrichmentResolver, backend: FakeSocialBackend
    ):
        backend.profiles["inviter"] = Profile(id="inviter", name="Ivy", username="ivy")
        backend.groups["group-1"] = Group(id="group-1", name="Hikers", created_by="inviter")

        [invitation, orphan] = await resolver.enrich_group_invitations(
            [make_invitation("i1"), make_invitation("i2", group_id=None)]
        )

        assert invitation.sender.name == "Ivy"
        assert invitation.group is not None and invitation.group.name == "Hikers"
        assert invitation.can_accept
        assert orphan.group is None
        assert not orphan.can_accept
