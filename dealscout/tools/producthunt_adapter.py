import feedparser
from typing import AsyncIterator, List, Optional
from datetime import datetime, timezone
from dealscout.config import settings
from dealscout.errors import SourceFetchError
from dealscout.models.items import RawItem
from dealscout.models.scan import ProductHuntQuery
from dealscout.services.logger import logger
from dealscout.tools.base_adapter import SourceAdapter, SectionTally, Emit
from dealscout.tools.text import strip_markup, normalize_whitespace, clean_author

MAIN_FEED_TOPICS = {"all", "home", ""}

def topic_slug(topic: str) -> str:
    return "-".join(topic.strip().lower().split())

class ProductHuntAdapter(SourceAdapter):
    name = "producthunt"

    # Every launch is a candidate; the AI rubric does the judging
    applies_relevance_filter = False

    def feed_url(self, topic: str) -> str:
        slug = topic_slug(topic)
        if slug in MAIN_FEED_TOPICS:
            return f"{settings.PRODUCTHUNT_BASE_URL}/feed"
        return f"{settings.PRODUCTHUNT_BASE_URL}/topics/{slug}/feed.rss"

    async def fetch(self, query: ProductHuntQuery, emit: Emit, tally: Optional[SectionTally] = None) -> AsyncIterator[RawItem]:
        tally = self._start_tally(tally)
        logger.info(f"Fetching Product Hunt: {len(query.topics)} topics")

        async with self._make_client() as client:
            for topic in query.topics:
                await emit(f"📡 Fetching {topic} (RSS)...")
                entries = await self._topic_entries(client, topic, emit)
                if entries is None:
                    tally.failed += 1
                    continue
                tally.reachable += 1
                if not entries:
                    await emit(f"ℹ️ No items found for {topic}. Skipping.")
                    continue

                for entry in entries[:query.limit]:
                    yield self._from_entry(entry, topic)

    async def _topic_entries(self, client, topic: str, emit: Emit) -> List[dict] | None:
        """Entries for one topic, falling back to the main feed once. None when both fail."""
        try:
            entries = await self._parse_feed(client, self.feed_url(topic))
            await emit(f"✅ Got {len(entries)} products from {topic}")
            return entries
        except SourceFetchError as e:
            logger.warning(f"Product Hunt topic {topic} failed: {e}")
            await emit(f"⚠️ Error fetching {topic} feed: {e.detail}", level="warning")

        if topic_slug(topic) in MAIN_FEED_TOPICS:
            return None

        # Topic feeds are often blocked while the main feed is not
        await emit("🔄 Falling back to main Product Hunt feed...")
        try:
            entries = await self._parse_feed(client, self.feed_url("all"))
            await emit(f"✅ Retrieved {len(entries)} products from main feed (fallback)")
            return entries
        except SourceFetchError as e:
            logger.warning(f"Product Hunt main feed fallback failed: {e}")
            await emit(f"❌ Main feed fallback also failed: {e.detail}", level="error")
            return None

    async def _parse_feed(self, client, url: str) -> List[dict]:
        resp = await self._get(client, url, headers={"Accept": "application/rss+xml,application/xml;q=0.9,*/*;q=0.8"})
        feed = feedparser.parse(resp.content)
        if feed.bozo and not feed.entries:
            raise SourceFetchError(self.name, f"{url} is not a readable feed")
        return list(feed.entries)

    def _from_entry(self, entry, topic: str) -> RawItem:
        published = entry.get('published_parsed') or entry.get('updated_parsed')
        dt = datetime(*published[:6], tzinfo=timezone.utc) if published else datetime.now(timezone.utc)

        content = entry.get('summary', '') or entry.get('description', '')
        if not content and entry.get('content'):
            content = entry['content'][0].get('value', '')

        return RawItem(
            external_id=entry.get('id') or None,
            title=normalize_whitespace(entry.get('title')) or "Untitled",
            body=strip_markup(content),
            source="producthunt",
            source_name=topic,
            author_handle=clean_author(entry.get('author')),
            origin_url=entry.get('link', ''),
            published_at=dt,
            metadata={"topic": topic},
        )
