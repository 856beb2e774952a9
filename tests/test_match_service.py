"""Unit tests for MatchService — listing, lookup and unmatch."""
import uuid
from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import NOW, make_profile
from nearmatch.exceptions import NotFound
from nearmatch.services.match_service import MatchService
from nearmatch.store.records import pair_key


@pytest.fixture
def matches(store, settings, clock):
    return MatchService(store, settings=settings, clock=clock)


async def _match(store, a, b, at=NOW):
    return await store.create_match_if_absent(pair_key(a.id, b.id), (a.id, b.id), at)


@pytest.fixture
def people(store):
    profiles = [make_profile(display_name=name) for name in ("Asha", "Bina", "Chandra")]
    for p in profiles:
        store.add_profile(p)
    return profiles


class TestListMatches:
    @pytest.mark.asyncio
    async def test_newest_first(self, matches, store, people):
        asha, bina, chandra = people
        older = await _match(store, asha, bina, NOW - timedelta(days=1))
        newer = await _match(store, asha, chandra, NOW)

        listed = await matches.list_matches(asha.id)
        assert [m.id for m in listed] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_recent_conversation_first(self, matches, store, people):
        asha, bina, chandra = people
        chatty = await _match(store, asha, bina, NOW - timedelta(days=3))
        quiet = await _match(store, asha, chandra, NOW)
        store._matches[chatty.id] = replace(chatty, last_message=NOW - timedelta(hours=1))

        listed = await matches.list_matches(asha.id)
        assert [m.id for m in listed] == [chatty.id, quiet.id]

    @pytest.mark.asyncio
    async def test_only_participants_see_match(self, matches, store, people):
        asha, bina, chandra = people
        await _match(store, asha, bina)
        assert await matches.list_matches(chandra.id) == []

    @pytest.mark.asyncio
    async def test_other_participant(self, matches, store, people):
        asha, bina, _ = people
        match = await _match(store, asha, bina)
        assert match.other_participant(asha.id) == bina.id
        assert match.other_participant(bina.id) == asha.id


class TestMatchSummaries:
    @pytest.mark.asyncio
    async def test_partner_card_attached(self, matches, store):
        asha = make_profile(display_name="Asha")
        bina = make_profile(
            display_name="Bina",
            photos=("https://cdn.example.com/bina.jpg",),
            last_active=NOW - timedelta(minutes=2),
        )
        store.add_profile(asha)
        store.add_profile(bina)
        created = await _match(store, asha, bina)

        [summary] = await matches.list_match_summaries(asha.id)

        assert summary.match.id == created.id
        assert summary.other_user_id == bina.id
        assert summary.partner.display_name == "Bina"
        assert summary.partner.photos == ("https://cdn.example.com/bina.jpg",)
        assert summary.partner.is_online is True

    @pytest.mark.asyncio
    async def test_offline_partner(self, matches, store, people):
        asha, bina, _ = people
        await _match(store, asha, bina)

        [summary] = await matches.list_match_summaries(bina.id)
        assert summary.partner.id == asha.id
        assert summary.partner.is_online is False

    @pytest.mark.asyncio
    async def test_missing_partner_profile(self, matches, store, people):
        asha, bina, _ = people
        await _match(store, asha, bina)
        del store._profiles[bina.id]

        [summary] = await matches.list_match_summaries(asha.id)
        assert summary.other_user_id == bina.id
        assert summary.partner is None


class TestGetMatch:
    @pytest.mark.asyncio
    async def test_participant_can_read(self, matches, store, people):
        asha, bina, _ = people
        created = await _match(store, asha, bina)
        fetched = await matches.get_match(created.id, bina.id)
        assert fetched == created

    @pytest.mark.asyncio
    async def test_outsider_gets_not_found(self, matches, store, people):
        asha, bina, chandra = people
        created = await _match(store, asha, bina)
        with pytest.raises(NotFound):
            await matches.get_match(created.id, chandra.id)

    @pytest.mark.asyncio
    async def test_unknown_match(self, matches, people):
        with pytest.raises(NotFound):
            await matches.get_match(uuid.uuid4(), people[0].id)


class TestUnmatch:
    @pytest.mark.asyncio
    async def test_deactivates_and_hides(self, matches, store, people):
        asha, bina, _ = people
        created = await _match(store, asha, bina)

        result = await matches.unmatch(created.id, asha.id)

        assert result.is_active is False
        assert await matches.list_matches(asha.id) == []
        assert store.count_matches() == 1

    @pytest.mark.asyncio
    async def test_repeat_unmatch_is_noop(self, matches, store, people):
        asha, bina, _ = people
        created = await _match(store, asha, bina)
        await matches.unmatch(created.id, asha.id)
        again = await matches.unmatch(created.id, bina.id)
        assert again.is_active is False

    @pytest.mark.asyncio
    async def test_recreate_after_unmatch_returns_same_record(self, store, people):
        asha, bina, _ = people
        created = await _match(store, asha, bina)
        await store.deactivate_match(created.id)
        again = await _match(store, asha, bina)
        assert again.id == created.id
