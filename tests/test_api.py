"""
Tests for the HTTP API and the command-line entry point.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from dealscout import api
from dealscout.feeds_config import DEFAULT_KEYWORDS, DEFAULT_SUBREDDITS
from dealscout.main import build_request, parse_args
from dealscout.models.events import CompleteEvent, ErrorEvent, NewDealEvent, parse_event
from dealscout.models.scan import NewsletterQuery, ProductHuntQuery, RedditQuery, ScanRequest
from dealscout.services.database import Database
from dealscout.services.llm import LLMService
from dealscout.tools.analyzer import AnalyzerFactory
from dealscout.workflows.scanner import DealScanner
from tests.helpers import StaticAdapter, StaticAdapterFactory, make_item


@pytest.fixture
def client(tmp_path, monkeypatch):
    store = Database(db_path=tmp_path / "api.db")
    scanner = DealScanner(
        store,
        StaticAdapterFactory(reddit=StaticAdapter([make_item(external_id="p1")])),
        AnalyzerFactory(LLMService(base_url="", enabled=False)),
    )
    monkeypatch.setattr(api, "db", store)
    monkeypatch.setattr(api, "scanner", scanner)
    with TestClient(api.app) as test_client:
        yield test_client


def read_events(response):
    return [parse_event(line) for line in response.text.splitlines() if line.strip()]


class TestScanEndpoint:
    def test_streams_ndjson_until_complete(self, client):
        response = client.post("/api/scan", json={
            "sources": [{"kind": "reddit", "subreddits": ["SaaS"]}],
            "keywords": ["selling"],
        })

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        events = read_events(response)
        assert isinstance(events[-1], CompleteEvent)
        assert sum(isinstance(e, NewDealEvent) for e in events) == 1

        deals = client.get("/api/deals").json()
        assert [d["external_id"] for d in deals] == ["p1"]

    def test_empty_request_streams_an_error(self, client):
        response = client.post("/api/scan", json={"sources": []})
        events = read_events(response)
        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)

    def test_unknown_source_kind_is_rejected(self, client):
        response = client.post("/api/scan", json={"sources": [{"kind": "hackernews"}]})
        assert response.status_code == 422


class TestStreamHangUp:
    """A client that disconnects mid-scan leaves an audit row behind."""

    REQUEST = ScanRequest(sources=[RedditQuery(subreddits=["SaaS"])], keywords=["selling"])

    def make_scanner(self, database, analyzers, gate):
        items = [make_item(external_id=f"p{n}") for n in range(3)]
        return DealScanner(database, StaticAdapterFactory(reddit=StaticAdapter(items, gate=gate)), analyzers)

    async def test_scan_stops_at_next_emit_and_records_abort(self, database, offline_analyzers):
        gate = asyncio.Event()
        scanner = self.make_scanner(database, offline_analyzers, gate)

        lines = api.stream_scan(self.REQUEST, scanner)
        first = await lines.__anext__()
        gate.set()
        await lines.aclose()

        assert parse_event(first).message.startswith("🚀")
        actions = [row[0] for row in await scanner.recorder.recent()]
        assert actions == ["scan_aborted", "scan_started"]
        assert await database.list_deals() == []
        assert scanner.active == set()

    async def test_stuck_scan_is_cancelled_and_still_records_abort(self, database, offline_analyzers, monkeypatch):
        monkeypatch.setattr(api.settings, "SCAN_ABORT_GRACE_SECONDS", 0.05)
        scanner = self.make_scanner(database, offline_analyzers, asyncio.Event())

        lines = api.stream_scan(self.REQUEST, scanner)
        await lines.__anext__()
        await lines.aclose()

        actions = [row[0] for row in await scanner.recorder.recent()]
        assert actions == ["scan_aborted", "scan_started"]
        assert scanner.active == set()


class TestOtherEndpoints:
    def test_status(self, client):
        body = client.get("/api/status").json()
        assert body["status"] == "ok"
        assert body["ai_enabled"] in (True, False)
        assert body["active_scans"] == []

    def test_search_config_crud(self, client):
        created = client.post("/api/search-configs", json={
            "name": "SaaS pack",
            "sources": [{"kind": "reddit", "subreddits": ["r/SaaS"]}],
            "keywords": ["exit", " "],
            "is_default": True,
        }).json()
        assert created["sources"][0]["subreddits"] == ["SaaS"]
        assert created["keywords"] == ["exit"]

        listed = client.get("/api/search-configs").json()
        assert [c["id"] for c in listed] == [created["id"]]

        assert client.delete(f"/api/search-configs/{created['id']}").status_code == 200
        assert client.delete(f"/api/search-configs/{created['id']}").status_code == 404

    def test_subreddit_packs(self, client):
        packs = client.get("/api/subreddit-packs").json()
        assert set(packs) == {"saas", "ecommerce", "service"}


class TestCommandLine:
    def test_defaults_scan_reddit(self):
        request = build_request(parse_args([]))
        [source] = request.sources
        assert isinstance(source, RedditQuery)
        assert source.subreddits == DEFAULT_SUBREDDITS
        assert request.keywords == DEFAULT_KEYWORDS

    def test_explicit_sources(self):
        request = build_request(parse_args([
            "--topic", "saas", "--newsletter", "--keyword", "exit", "--min-revenue", "50000",
        ]))
        assert [type(s) for s in request.sources] == [ProductHuntQuery, NewsletterQuery]
        assert request.sources[0].topics == ["saas"]
        assert request.keywords == ["exit"]
        assert request.min_revenue == 50000
