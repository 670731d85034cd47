
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, Dict, Any, List, Literal
from datetime import datetime, timezone
import uuid

SourceKind = Literal["reddit", "producthunt", "newsletter"]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class DealIdentity(BaseModel):
    """What makes a deal unique: (source, external_id), else the exact origin URL."""
    model_config = ConfigDict(frozen=True)

    source: str
    external_id: Optional[str] = None
    origin_url: str = ""

    def describe(self) -> str:
        if self.external_id:
            return f"{self.source}:{self.external_id}"
        return self.origin_url

class RawItem(BaseModel):
    external_id: Optional[str] = None # Post id, guid or slug; unique per source
    title: str
    body: str = ""
    source: SourceKind
    source_name: str # e.g. r/SaaS, a topic, the publication
    author_handle: str = "anonymous"
    origin_url: str = ""
    published_at: datetime = Field(default_factory=utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def identity(self) -> DealIdentity:
        return DealIdentity(source=self.source, external_id=self.external_id, origin_url=self.origin_url)

    @property
    def text(self) -> str:
        return f"{self.title} {self.body}"

    def short_title(self, length: int = 40) -> str:
        return self.title if len(self.title) <= length else self.title[:length] + "..."

class ScoreRecord(BaseModel):
    """Analysis of one item. AI and heuristic scoring both produce exactly this shape."""
    model_config = ConfigDict(frozen=True)

    viability_score: int
    motivation_score: int
    deal_quality: int
    industry: str = "Other"
    business_type: str = "General Business"
    risk_flags: List[str] = Field(default_factory=list)
    seller_signals: List[str] = Field(default_factory=list)
    estimated_revenue_display: str = "Not mentioned"
    estimated_revenue_annualized: float = 0
    revenue_type: str = "Unknown"
    valuation_min: float = 0
    valuation_max: float = 0
    summary: str = ""
    business_name: Optional[str] = None
    origin: Literal["ai", "heuristic"] = "heuristic"

    @field_validator("viability_score", "motivation_score", "deal_quality", mode="before")
    @classmethod
    def _clamp_score(cls, v):
        return max(0, min(100, int(round(float(v or 0)))))

    @field_validator("estimated_revenue_annualized", "valuation_min", "valuation_max", mode="before")
    @classmethod
    def _non_negative(cls, v):
        return max(0.0, float(v or 0))

    @model_validator(mode="before")
    @classmethod
    def _ordered_valuation(cls, data):
        if isinstance(data, dict):
            lo, hi = data.get("valuation_min"), data.get("valuation_max")
            if lo and hi and float(lo) > float(hi):
                data = {**data, "valuation_min": hi, "valuation_max": lo}
        return data

    def with_risk_flag(self, flag: str) -> "ScoreRecord":
        if flag in self.risk_flags:
            return self
        return self.model_copy(update={"risk_flags": [*self.risk_flags, flag]})

class AnalysisUnavailable(BaseModel):
    """AI analysis could not produce a ScoreRecord. The cause is informational only."""
    reason: str

class Deal(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    source: str
    external_id: Optional[str] = None
    source_name: Optional[str] = None
    origin_url: str = ""
    author_handle: Optional[str] = None
    status: str = "new_leads"
    industry: Optional[str] = None
    business_type: Optional[str] = None
    revenue: float = 0
    revenue_display: Optional[str] = None
    revenue_type: Optional[str] = None
    valuation_min: float = 0
    valuation_max: float = 0
    viability_score: int = 0
    motivation_score: int = 0
    deal_quality: int = 0
    risk_flags: List[str] = Field(default_factory=list)
    seller_signals: List[str] = Field(default_factory=list)
    summary: str = ""
    analysis_origin: str = "heuristic"
    contact_handle: Optional[str] = None
    contact_twitter: Optional[str] = None
    contact_linkedin: Optional[str] = None
    contact_discord: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def identity(self) -> DealIdentity:
        return DealIdentity(source=self.source, external_id=self.external_id, origin_url=self.origin_url)

    @classmethod
    def from_item(cls, item: RawItem, score: ScoreRecord) -> "Deal":
        contacts = item.metadata.get("contacts", {})
        name = score.business_name if score.business_name and score.business_name != "Unknown Business" else item.title
        handle = item.author_handle
        if item.source == "reddit" and handle != "anonymous":
            handle = f"u/{handle}"
        return cls(
            name=name[:200],
            description=item.body[:2000],
            source=item.source,
            external_id=item.external_id,
            source_name=item.source_name,
            origin_url=item.origin_url,
            author_handle=item.author_handle,
            industry=score.industry,
            business_type=score.business_type,
            revenue=score.estimated_revenue_annualized,
            revenue_display=score.estimated_revenue_display,
            revenue_type=score.revenue_type,
            valuation_min=score.valuation_min,
            valuation_max=score.valuation_max,
            viability_score=score.viability_score,
            motivation_score=score.motivation_score,
            deal_quality=score.deal_quality,
            risk_flags=list(score.risk_flags),
            seller_signals=list(score.seller_signals),
            summary=score.summary,
            analysis_origin=score.origin,
            contact_handle=handle,
            contact_twitter=contacts.get("twitter"),
            contact_linkedin=contacts.get("linkedin"),
            contact_discord=contacts.get("discord"),
            published_at=item.published_at,
        )
