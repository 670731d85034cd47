from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from dealscout.config import settings


class RedditQuery(BaseModel):
    kind: Literal["reddit"] = "reddit"
    subreddits: List[str]
    limit: int = Field(default_factory=lambda: settings.REDDIT_POSTS_PER_SUBREDDIT, ge=1, le=1000)
    sort: Literal["new", "hot", "top"] = "new"
    timeframe: Literal["hour", "day", "week", "month", "year", "all"] = "week"
    feed: Literal["json", "rss"] = "json"

    @field_validator("subreddits")
    @classmethod
    def _strip_prefix(cls, v: List[str]) -> List[str]:
        cleaned = []
        for name in v:
            name = name.strip()
            if name.lower().startswith("r/"):
                name = name[2:]
            if name:
                cleaned.append(name)
        return cleaned


class ProductHuntQuery(BaseModel):
    kind: Literal["producthunt"] = "producthunt"
    topics: List[str] = Field(default_factory=lambda: ["all"])
    limit: int = Field(default_factory=lambda: settings.PRODUCTHUNT_ITEMS_PER_TOPIC, ge=1, le=1000)


class NewsletterQuery(BaseModel):
    kind: Literal["newsletter"] = "newsletter"
    max_posts: int = Field(default_factory=lambda: settings.NEWSLETTER_MAX_POSTS, ge=1)
    page_size: int = Field(default_factory=lambda: settings.NEWSLETTER_PAGE_SIZE, ge=1, le=50)
    search: str = ""


SourceQuery = Annotated[Union[RedditQuery, ProductHuntQuery, NewsletterQuery], Field(discriminator="kind")]


class ScanRequest(BaseModel):
    sources: List[SourceQuery] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    min_revenue: Optional[float] = Field(default=None, ge=0)

    @field_validator("keywords")
    @classmethod
    def _clean_keywords(cls, v: List[str]) -> List[str]:
        return [k.strip() for k in v if k and k.strip()]


class ScanState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FILTERING = "filtering"
    SCORING = "scoring"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


class ScanSummary(BaseModel):
    items_scanned: int = 0
    items_matched: int = 0
    deals_created: int = 0
