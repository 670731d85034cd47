"""
Tests for the SQLite deal store, identity dedup and the activity recorder.
"""

import pytest

from dealscout.errors import DuplicateDeal
from dealscout.models.items import Deal
from dealscout.services.activity import ActivityRecorder
from dealscout.services.database import Database, SearchConfig
from dealscout.tools.dedup import DedupGate
from dealscout.tools.scoring import score_post
from tests.helpers import make_item


def deal_for(item) -> Deal:
    return Deal.from_item(item, score_post(item.title, item.body))


class TestDealStore:
    async def test_create_and_find(self, database):
        deal = deal_for(make_item(external_id="p1"))
        await database.create(deal)

        found = await database.find_by_identity("reddit", "p1")
        assert found is not None
        assert found.id == deal.id
        assert found.seller_signals == deal.seller_signals
        assert found.revenue == 60000
        assert found.contact_handle == "u/founder"

    async def test_identity_index_rejects_duplicates(self, database):
        await database.create(deal_for(make_item(external_id="p1")))
        with pytest.raises(DuplicateDeal):
            await database.create(deal_for(make_item(external_id="p1")))

    async def test_same_external_id_other_source_is_allowed(self, database):
        await database.create(deal_for(make_item(external_id="p1")))
        await database.create(deal_for(make_item(external_id="p1", source="newsletter", origin_url="https://n.example/p/p1")))
        assert len(await database.list_deals()) == 2

    async def test_url_only_deals_are_not_constrained(self, database):
        await database.create(deal_for(make_item(external_id=None, origin_url="https://a.example/1")))
        await database.create(deal_for(make_item(external_id=None, origin_url="https://a.example/2")))
        assert len(await database.list_deals()) == 2

    async def test_list_deals_by_source(self, database):
        await database.create(deal_for(make_item(external_id="p1")))
        await database.create(deal_for(make_item(external_id="w1", source="producthunt", origin_url="https://ph.example/w1")))
        deals = await database.list_deals(source="producthunt")
        assert [d.external_id for d in deals] == ["w1"]


class TestDedupGate:
    async def test_external_id_match(self, database):
        await database.create(deal_for(make_item(external_id="p1")))
        gate = DedupGate(database)

        assert await gate.is_duplicate(make_item(external_id="p1").identity) is True
        assert await gate.is_duplicate(make_item(external_id="p2").identity) is False

    async def test_external_id_decides_over_url(self, database):
        """A new id under an already stored URL is still a new deal."""
        await database.create(deal_for(make_item(external_id="p1", origin_url="https://reddit.com/x")))
        identity = make_item(external_id="p2", origin_url="https://reddit.com/x").identity
        assert await DedupGate(database).is_duplicate(identity) is False

    async def test_url_only_identity(self, database):
        await database.create(deal_for(make_item(external_id=None, origin_url="https://a.example/post")))
        gate = DedupGate(database)

        assert await gate.is_duplicate(make_item(external_id=None, origin_url="https://a.example/post").identity) is True

    async def test_similar_content_under_other_url_is_not_duplicate(self, database):
        await database.create(deal_for(make_item(external_id=None, origin_url="https://a.example/post")))
        other = make_item(external_id=None, origin_url="https://b.example/post")
        assert await DedupGate(database).is_duplicate(other.identity) is False

    async def test_no_identity_at_all(self, database):
        identity = make_item(external_id=None, origin_url="").identity
        assert await DedupGate(database).is_duplicate(identity) is False


class TestSearchConfigs:
    async def test_single_default(self, database):
        first = await database.create_search_config(SearchConfig(
            name="SaaS", sources=[{"kind": "reddit", "subreddits": ["SaaS"]}], is_default=True,
        ))
        second = await database.create_search_config(SearchConfig(
            name="Shops", sources=[{"kind": "reddit", "subreddits": ["shopify"]}], is_default=True,
        ))
        configs = {c.id: c for c in await database.list_search_configs()}

        assert configs[second.id].is_default is True
        assert configs[first.id].is_default is False

    async def test_delete(self, database):
        config = await database.create_search_config(SearchConfig(name="x", sources=[], keywords=["exit"]))
        assert await database.delete_search_config(config.id) is True
        assert await database.delete_search_config(config.id) is False


class TestActivityRecorder:
    async def test_records_actions(self, database):
        recorder = ActivityRecorder(database)
        assert await recorder.record("scan_started", "1 sources") is True
        rows = await recorder.recent()
        assert rows[0][0] == "scan_started"

    async def test_failure_never_raises(self, tmp_path):
        # A directory cannot be opened as a database file
        recorder = ActivityRecorder(Database(db_path=tmp_path))
        assert await recorder.record("scan_failed", "boom") is False
