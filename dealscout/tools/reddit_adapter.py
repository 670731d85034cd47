import feedparser
from typing import AsyncIterator, Optional
from datetime import datetime, timezone
from dealscout.config import settings
from dealscout.errors import SourceFetchError
from dealscout.models.items import RawItem
from dealscout.models.scan import RedditQuery
from dealscout.services.logger import logger
from dealscout.tools.base_adapter import SourceAdapter, SectionTally, Emit
from dealscout.tools.text import strip_markup, normalize_whitespace, clean_author

MAX_PAGE_SIZE = 100

class RedditAdapter(SourceAdapter):
    name = "reddit"

    async def fetch(self, query: RedditQuery, emit: Emit, tally: Optional[SectionTally] = None) -> AsyncIterator[RawItem]:
        tally = self._start_tally(tally)
        logger.info(f"Fetching Reddit: {len(query.subreddits)} subreddits ({query.feed})")

        async with self._make_client() as client:
            for subreddit in query.subreddits:
                await emit(f"📡 Fetching r/{subreddit}...")
                count = 0
                try:
                    if query.feed == "rss":
                        pages = self._rss_posts(client, subreddit, query)
                    else:
                        pages = self._json_posts(client, subreddit, query)
                    async for item in pages:
                        count += 1
                        yield item
                    tally.reachable += 1
                    await emit(f"✅ Got {count} posts from r/{subreddit}")
                except SourceFetchError as e:
                    # Posts from earlier pages were already yielded; count the section as partial
                    if count:
                        tally.reachable += 1
                    else:
                        tally.failed += 1
                    logger.warning(f"Failed to fetch r/{subreddit}: {e}")
                    await emit(f"⚠️ Failed to fetch r/{subreddit}: {e.detail}", level="warning")

    async def _json_posts(self, client, subreddit: str, query: RedditQuery) -> AsyncIterator[RawItem]:
        after = None
        yielded = 0
        while yielded < query.limit:
            params = {"limit": min(query.limit - yielded, MAX_PAGE_SIZE), "raw_json": 1}
            if query.sort == "top":
                params["t"] = query.timeframe
            if after:
                params["after"] = after

            resp = await self._get(client, f"{settings.REDDIT_BASE_URL}/r/{subreddit}/{query.sort}.json", params=params)
            try:
                payload = resp.json()
            except ValueError as e:
                raise SourceFetchError(self.name, f"r/{subreddit} returned invalid JSON") from e

            listing = self._listing(payload, subreddit)
            children = listing["children"]
            if not children:
                break

            for child in children:
                data = child.get("data") or {}
                if not data.get("is_self"):
                    continue # Text posts only; link posts carry no seller narrative
                yield self._from_json(data, subreddit)
                yielded += 1
                if yielded >= query.limit:
                    break

            after = listing.get("after")
            if not after:
                break

    def _listing(self, payload, subreddit: str) -> dict:
        """The `data` of a listing page, with `children` a list of post dicts."""
        listing = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(listing, dict):
            raise SourceFetchError(self.name, f"r/{subreddit} returned an unexpected listing shape")
        children = listing.get("children") or []
        if not isinstance(children, list) or not all(
            isinstance(child, dict) and isinstance(child.get("data") or {}, dict) for child in children
        ):
            raise SourceFetchError(self.name, f"r/{subreddit} returned an unexpected listing shape")
        return {**listing, "children": children}

    def _from_json(self, data: dict, subreddit: str) -> RawItem:
        created = data.get("created_utc")
        published = datetime.fromtimestamp(created, tz=timezone.utc) if created else datetime.now(timezone.utc)
        permalink = data.get("permalink") or ""
        return RawItem(
            external_id=str(data["id"]) if data.get("id") else None,
            title=normalize_whitespace(data.get("title")),
            body=strip_markup(data.get("selftext")),
            source="reddit",
            source_name=f"r/{data.get('subreddit') or subreddit}",
            author_handle=clean_author(data.get("author")),
            origin_url=f"https://reddit.com{permalink}" if permalink else (data.get("url") or ""),
            published_at=published,
            metadata={"score": data.get("score", 0), "comments": data.get("num_comments", 0)},
        )

    async def _rss_posts(self, client, subreddit: str, query: RedditQuery) -> AsyncIterator[RawItem]:
        resp = await self._get(
            client,
            f"{settings.REDDIT_BASE_URL}/r/{subreddit}/{query.sort}.rss",
            params={"limit": min(query.limit, MAX_PAGE_SIZE)},
        )
        feed = feedparser.parse(resp.content)
        if feed.bozo and not feed.entries:
            raise SourceFetchError(self.name, f"r/{subreddit} feed could not be parsed")

        for entry in feed.entries[:query.limit]:
            published = entry.get('updated_parsed') or entry.get('published_parsed')
            dt = datetime(*published[:6], tzinfo=timezone.utc) if published else datetime.now(timezone.utc)

            # Content in Reddit RSS is HTML in 'content' or 'summary'
            content = entry.get('content', [{'value': ''}])[0].get('value') or entry.get('summary', '')
            entry_id = entry.get('id') or ""
            link = entry.get('link', '')

            yield RawItem(
                external_id=entry_id.removeprefix("t3_") or None,
                title=normalize_whitespace(entry.get('title', '')),
                body=strip_markup(content),
                source="reddit",
                source_name=f"r/{subreddit}",
                author_handle=clean_author(entry.get('author')),
                origin_url=link,
                published_at=dt,
                metadata={"score": 0, "comments": 0, "feed": "rss"},
            )

