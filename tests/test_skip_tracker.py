"""Unit tests for SkipTracker — temp-skip recording, expiry and pruning."""
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from conftest import NOW, make_profile
from nearmatch.exceptions import InvalidFilter, NotFound, StoreUnavailable
from nearmatch.services.candidate_filter import DiscoveryFilters
from nearmatch.services.discovery_service import DiscoveryService
from nearmatch.services.skip_tracker import SkipTracker
from nearmatch.store.records import TempSkipEntry


@pytest.fixture
def tracker(store, settings, clock):
    return SkipTracker(store, settings=settings, clock=clock)


@pytest.fixture
def target(store):
    profile = make_profile(display_name="Target")
    store.add_profile(profile)
    return profile


class TestRecordTempSkip:
    @pytest.mark.asyncio
    async def test_skip_recorded_with_expiry(self, tracker, store, seeker, target):
        skipped_at = await tracker.record_temp_skip(seeker.id, target.id)

        assert skipped_at == NOW
        assert tracker.expires_at(skipped_at) == NOW + timedelta(hours=3)
        assert store.temp_skip_log(seeker.id) == [TempSkipEntry(target.id, NOW)]

    @pytest.mark.asyncio
    async def test_repeat_skip_appends(self, tracker, store, clock, seeker, target):
        await tracker.record_temp_skip(seeker.id, target.id)
        clock.advance(minutes=30)
        await tracker.record_temp_skip(seeker.id, target.id)
        assert len(store.temp_skip_log(seeker.id)) == 2

    @pytest.mark.asyncio
    async def test_expired_entries_pruned(self, tracker, store, clock, seeker, target):
        await tracker.record_temp_skip(seeker.id, target.id)
        other = make_profile()
        store.add_profile(other)

        clock.advance(hours=3)
        await tracker.record_temp_skip(seeker.id, other.id)

        assert store.temp_skip_log(seeker.id) == [TempSkipEntry(other.id, clock())]

    @pytest.mark.asyncio
    async def test_prune_failure_does_not_fail_skip(self, tracker, store, seeker, target):
        store.prune_temp_skips = AsyncMock(side_effect=StoreUnavailable("down"))

        skipped_at = await tracker.record_temp_skip(seeker.id, target.id)
        assert skipped_at == NOW
        assert len(store.temp_skip_log(seeker.id)) == 1

    @pytest.mark.asyncio
    async def test_swipe_state_untouched(self, tracker, store, seeker, target):
        await tracker.record_temp_skip(seeker.id, target.id)
        profile = await store.get_profile(seeker.id)
        assert profile.liked == frozenset()
        assert profile.disliked == frozenset()


class TestRejections:
    @pytest.mark.asyncio
    async def test_self_skip(self, tracker, seeker):
        with pytest.raises(InvalidFilter):
            await tracker.record_temp_skip(seeker.id, seeker.id)

    @pytest.mark.asyncio
    async def test_unknown_target(self, tracker, seeker):
        with pytest.raises(NotFound):
            await tracker.record_temp_skip(seeker.id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_unknown_seeker(self, tracker, target):
        with pytest.raises(NotFound):
            await tracker.record_temp_skip(uuid.uuid4(), target.id)


class TestCooldownInDiscovery:
    """A skipped profile disappears for three hours, then comes back."""

    @pytest.mark.asyncio
    async def test_hidden_then_visible(self, tracker, store, settings, clock, seeker, target):
        discovery = DiscoveryService(store, settings=settings, clock=clock)

        await tracker.record_temp_skip(seeker.id, target.id)

        clock.advance(hours=2, minutes=59)
        result = await discovery.discover(seeker.id, DiscoveryFilters())
        assert target.id not in [c.profile.id for c in result.candidates]

        clock.advance(minutes=1)
        result = await discovery.discover(seeker.id, DiscoveryFilters())
        assert target.id in [c.profile.id for c in result.candidates]
