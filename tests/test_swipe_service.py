"""Unit tests for SwipeService — like/dislike state machine and mutual
match resolution."""
import asyncio
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from conftest import NOW, make_profile
from nearmatch.exceptions import (
    AlreadyInteracted,
    InvalidFilter,
    NotFound,
    StoreUnavailable,
    TargetUnavailable,
)
from nearmatch.services.swipe_service import SwipeService
from nearmatch.store.records import TempSkipEntry, pair_key


@pytest.fixture
def swipes(store, settings, clock):
    return SwipeService(store, settings=settings, clock=clock)


@pytest.fixture
def pair(store):
    alice, bob = make_profile(display_name="Alice"), make_profile(display_name="Bob", gender="male")
    store.add_profile(alice)
    store.add_profile(bob)
    return alice, bob


class TestStateMachine:
    @pytest.mark.asyncio
    async def test_like_without_reciprocation(self, swipes, store, pair):
        alice, bob = pair
        outcome = await swipes.record_swipe(alice.id, bob.id, "like")

        assert outcome.is_match is False
        assert outcome.match is None
        assert store.liked_log(alice.id) == [bob.id]
        assert store.count_matches() == 0

    @pytest.mark.asyncio
    async def test_dislike_recorded(self, swipes, store, pair):
        alice, bob = pair
        outcome = await swipes.record_swipe(alice.id, bob.id, "dislike")

        assert outcome.is_match is False
        profile = await store.get_profile(alice.id)
        assert bob.id in profile.disliked
        assert bob.id not in profile.liked

    @pytest.mark.asyncio
    @pytest.mark.parametrize("first,second", [
        ("like", "like"),
        ("like", "dislike"),
        ("dislike", "like"),
        ("dislike", "dislike"),
    ])
    async def test_decisions_are_final(self, swipes, store, pair, first, second):
        alice, bob = pair
        await swipes.record_swipe(alice.id, bob.id, first)

        with pytest.raises(AlreadyInteracted):
            await swipes.record_swipe(alice.id, bob.id, second)

        profile = await store.get_profile(alice.id)
        assert profile.liked.isdisjoint(profile.disliked)
        assert len(store.liked_log(alice.id)) == (1 if first == "like" else 0)

    @pytest.mark.asyncio
    async def test_target_state_untouched(self, swipes, store, pair):
        alice, bob = pair
        await swipes.record_swipe(alice.id, bob.id, "like")

        target = await store.get_profile(bob.id)
        assert target.liked == frozenset()
        assert target.disliked == frozenset()

    @pytest.mark.asyncio
    async def test_temp_skip_does_not_block_swipe(self, swipes, store):
        bob = make_profile(gender="male")
        alice = make_profile(temp_skips=(TempSkipEntry(bob.id, NOW - timedelta(minutes=5)),))
        store.add_profile(alice)
        store.add_profile(bob)

        outcome = await swipes.record_swipe(alice.id, bob.id, "like")
        assert outcome.is_match is False
        assert store.liked_log(alice.id) == [bob.id]


class TestMutualMatch:
    @pytest.mark.asyncio
    async def test_second_like_creates_match(self, swipes, store, pair):
        alice, bob = pair
        await swipes.record_swipe(alice.id, bob.id, "like")
        outcome = await swipes.record_swipe(bob.id, alice.id, "like")

        assert outcome.is_match is True
        assert outcome.match.involves(alice.id)
        assert outcome.match.involves(bob.id)
        assert outcome.match.pair_key == pair_key(alice.id, bob.id)
        assert outcome.match.matched_at == NOW
        assert store.count_matches() == 1

    @pytest.mark.asyncio
    async def test_match_carries_partner_card(self, swipes, store, pair):
        alice, bob = pair
        await swipes.record_swipe(alice.id, bob.id, "like")
        outcome = await swipes.record_swipe(bob.id, alice.id, "like")

        assert outcome.partner.id == alice.id
        assert outcome.partner.display_name == "Alice"
        assert outcome.partner.photos == alice.photos
        assert outcome.partner.is_online is False

    @pytest.mark.asyncio
    async def test_plain_like_has_no_partner(self, swipes, pair):
        alice, bob = pair
        outcome = await swipes.record_swipe(alice.id, bob.id, "like")
        assert outcome.partner is None

    @pytest.mark.asyncio
    async def test_like_after_dislike_is_not_a_match(self, swipes, store, pair):
        alice, bob = pair
        await swipes.record_swipe(alice.id, bob.id, "dislike")
        outcome = await swipes.record_swipe(bob.id, alice.id, "like")

        assert outcome.is_match is False
        assert store.count_matches() == 0

    def test_pair_key_is_order_independent(self):
        x, y = uuid.uuid4(), uuid.uuid4()
        assert pair_key(x, y) == pair_key(y, x)

    @pytest.mark.asyncio
    async def test_concurrent_reciprocal_likes_share_one_match(self, swipes, store, pair):
        alice, bob = pair
        first, second = await asyncio.gather(
            swipes.record_swipe(alice.id, bob.id, "like"),
            swipes.record_swipe(bob.id, alice.id, "like"),
        )

        assert store.count_matches() == 1
        assert first.is_match and second.is_match
        assert first.match.id == second.match.id

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_likes_append_once(self, swipes, store, pair):
        alice, bob = pair
        results = await asyncio.gather(
            swipes.record_swipe(alice.id, bob.id, "like"),
            swipes.record_swipe(alice.id, bob.id, "like"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, AlreadyInteracted) for r in results) == 1
        assert store.liked_log(alice.id) == [bob.id]


class TestRejections:
    @pytest.mark.asyncio
    async def test_banned_target(self, swipes, store):
        alice, banned = make_profile(), make_profile(is_banned=True)
        store.add_profile(alice)
        store.add_profile(banned)

        with pytest.raises(TargetUnavailable):
            await swipes.record_swipe(alice.id, banned.id, "like")
        assert store.liked_log(alice.id) == []

    @pytest.mark.asyncio
    async def test_unknown_target(self, swipes, pair):
        alice, _ = pair
        with pytest.raises(NotFound):
            await swipes.record_swipe(alice.id, uuid.uuid4(), "like")

    @pytest.mark.asyncio
    async def test_unknown_seeker(self, swipes, pair):
        _, bob = pair
        with pytest.raises(NotFound):
            await swipes.record_swipe(uuid.uuid4(), bob.id, "like")

    @pytest.mark.asyncio
    async def test_self_swipe(self, swipes, pair):
        alice, _ = pair
        with pytest.raises(InvalidFilter):
            await swipes.record_swipe(alice.id, alice.id, "like")

    @pytest.mark.asyncio
    async def test_unknown_action(self, swipes, pair):
        alice, bob = pair
        with pytest.raises(InvalidFilter):
            await swipes.record_swipe(alice.id, bob.id, "superlike")

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, swipes, store, pair):
        alice, bob = pair
        store.append_interaction = AsyncMock(side_effect=StoreUnavailable("down"))

        with pytest.raises(StoreUnavailable):
            await swipes.record_swipe(alice.id, bob.id, "like")
