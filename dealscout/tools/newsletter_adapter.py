import re
from typing import AsyncIterator, Dict, Optional
from datetime import datetime, timezone
from dealscout.config import settings
from dealscout.errors import SourceFetchError
from dealscout.models.items import RawItem
from dealscout.models.scan import NewsletterQuery
from dealscout.services.logger import logger
from dealscout.tools.base_adapter import SourceAdapter, SectionTally, Emit
from dealscout.tools.text import strip_markup, normalize_whitespace, clean_author

CONTACT_PATTERNS = {
    "twitter": re.compile(r"https?://(?:www\.)?(?:twitter\.com|x\.com)/(?!intent|share|home)[A-Za-z0-9_]+", re.I),
    "linkedin": re.compile(r"https?://(?:www\.)?linkedin\.com/(?:in|company)/[A-Za-z0-9_-]+", re.I),
    "discord": re.compile(r"https?://(?:www\.)?(?:discord\.gg|discord\.com/invite)/[A-Za-z0-9]+", re.I),
}

def extract_contacts(html: str) -> Dict[str, str]:
    contacts = {}
    for kind, pattern in CONTACT_PATTERNS.items():
        match = pattern.search(html)
        if match:
            contacts[kind] = match.group(0)
    return contacts

def _parse_date(value) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(timezone.utc)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

class NewsletterAdapter(SourceAdapter):
    """Substack-style publication archive (JSON API paged by offset)."""
    name = "newsletter"

    # Archive posts are all business write-ups; keywords are informational only
    applies_relevance_filter = False

    def __init__(self, *args, base_url: str | None = None, deep_fetch: bool | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = (base_url or settings.NEWSLETTER_BASE_URL).rstrip("/")
        self.deep_fetch = settings.NEWSLETTER_DEEP_FETCH if deep_fetch is None else deep_fetch

    @property
    def publication(self) -> str:
        host = self.base_url.split("://", 1)[-1]
        return host.removeprefix("www.")

    async def fetch(self, query: NewsletterQuery, emit: Emit, tally: Optional[SectionTally] = None) -> AsyncIterator[RawItem]:
        tally = self._start_tally(tally)
        seen_links = set()
        collected = 0
        api_url = f"{self.base_url}/api/v1/archive"
        await emit(f"📡 Fetching {self.publication} archive (up to {query.max_posts} posts)...")

        async with self._make_client() as client:
            for offset in range(0, query.max_posts, query.page_size):
                limit = min(query.page_size, query.max_posts - offset)
                await emit(f"📥 Fetching posts {offset + 1} to {offset + limit}...")
                try:
                    resp = await self._get(client, api_url, params={
                        "sort": "new", "search": query.search, "offset": offset, "limit": limit,
                    })
                    posts = resp.json()
                except (SourceFetchError, ValueError) as e:
                    # A lost page is skipped; later offsets may still answer
                    tally.failed += 1
                    detail = e.detail if isinstance(e, SourceFetchError) else "invalid JSON"
                    logger.warning(f"Newsletter archive offset {offset} failed: {detail}")
                    await emit(f"⚠️ Error fetching archive at offset {offset}: {detail}", level="warning")
                    continue

                tally.reachable += 1
                if not isinstance(posts, list) or not posts:
                    break

                for post in posts:
                    if not isinstance(post, dict):
                        logger.warning(f"Newsletter archive offset {offset}: skipping malformed entry {post!r:.80}")
                        continue
                    item = self._from_post(post)
                    if item is None or item.origin_url in seen_links:
                        continue
                    seen_links.add(item.origin_url)
                    collected += 1
                    yield item

        await emit(f"✅ Collected {collected} unique articles from {self.publication}")

    def _from_post(self, post: dict) -> RawItem | None:
        slug = post.get("slug")
        link = post.get("canonical_url") or (f"{self.base_url}/p/{slug}" if slug else "")
        if not link:
            return None
        body = post.get("subtitle") or post.get("description") or ""
        author = post.get("author_name")
        if not author:
            bylines = post.get("publishedBylines") or []
            author = bylines[0].get("name") if bylines and isinstance(bylines[0], dict) else None
        return RawItem(
            external_id=slug or None,
            title=normalize_whitespace(post.get("title")) or "Untitled",
            body=strip_markup(body),
            source="newsletter",
            source_name=self.publication,
            author_handle=clean_author(author),
            origin_url=link,
            published_at=_parse_date(post.get("post_date")),
            metadata={"post_id": post.get("id")},
        )

    async def enrich(self, item: RawItem, emit: Emit) -> RawItem:
        """Deep fetch the article page for seller contact links."""
        if not self.deep_fetch or not item.origin_url:
            return item
        await emit(f"🔍 Deep scanning: {item.origin_url}")
        async with self._make_client() as client:
            try:
                resp = await self._get(client, item.origin_url)
            except SourceFetchError as e:
                logger.debug(f"Deep fetch failed for {item.origin_url}: {e}")
                return item
        contacts = extract_contacts(resp.text)
        if not contacts:
            return item
        return item.model_copy(update={"metadata": {**item.metadata, "contacts": contacts}})
