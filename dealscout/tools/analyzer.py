from abc import ABC, abstractmethod
from typing import List, Optional, Union
from pydantic import BaseModel, Field, ValidationError
from dealscout.config import settings
from dealscout.models.items import RawItem, ScoreRecord, AnalysisUnavailable
from dealscout.services.llm import LLMService, LLMUnavailable, llm as default_llm
from dealscout.services.logger import logger
from dealscout.tools.scoring import parse_revenue_string

AI_UNAVAILABLE_FLAG = "AI analysis unavailable"

JSON_CONTRACT = """
Provide your analysis in this exact JSON format (strict JSON):
{{
  "business_name": "Name if mentioned, otherwise 'Unknown Business'",
  "industry": "SaaS/E-commerce/Service/Content/Agency/Other",
  "estimated_revenue": "$X MRR or $X/year or 'Not mentioned'",
  "revenue_type": "MRR/ARR/Annual/Unknown",
  "valuation_range": {{"min": number in USD, "max": number in USD}},
  "viability_score": number 0-100,
  "motivation_score": number 0-100,
  "deal_quality": number 0-100,
  "risk_flags": ["array of identified risks"],
  "seller_signals": ["array of signals suggesting motivation to sell"],
  "ai_summary": "2-3 sentence investment thesis",
  "business_type": "Primary type: SaaS/E-commerce/Service/Content/Agency"
}}

Only return valid JSON. Do not include markdown formatting or introductory text.
"""

class ValuationRange(BaseModel):
    min: float = 0
    max: float = 0

class AIDealAnalysis(BaseModel):
    """The JSON object the AI capability must return."""
    business_name: Optional[str] = None
    industry: str
    estimated_revenue: str = "Not mentioned"
    revenue_type: str = "Unknown"
    valuation_range: ValuationRange = Field(default_factory=ValuationRange)
    viability_score: float
    motivation_score: float
    deal_quality: float
    risk_flags: List[str] = Field(default_factory=list)
    seller_signals: List[str] = Field(default_factory=list)
    ai_summary: str
    business_type: str

    def to_score_record(self) -> ScoreRecord:
        revenue = parse_revenue_string(self.estimated_revenue)
        revenue_type = self.revenue_type if self.revenue_type and self.revenue_type != "Unknown" else revenue.revenue_type
        return ScoreRecord(
            viability_score=self.viability_score,
            motivation_score=self.motivation_score,
            deal_quality=self.deal_quality,
            industry=self.industry,
            business_type=self.business_type,
            risk_flags=self.risk_flags,
            seller_signals=self.seller_signals,
            estimated_revenue_display=revenue.display,
            estimated_revenue_annualized=revenue.annualized,
            revenue_type=revenue_type,
            valuation_min=self.valuation_range.min,
            valuation_max=self.valuation_range.max,
            summary=self.ai_summary,
            business_name=self.business_name,
            origin="ai",
        )

class BaseDealAnalyzer(ABC):
    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm or default_llm

    @abstractmethod
    def get_source_name(self) -> str:
        pass

    @abstractmethod
    def get_prompt_template(self) -> str:
        pass

    def build_prompt(self, item: RawItem) -> str:
        return self.get_prompt_template().format(
            title=item.title,
            content=item.body[:settings.AI_CONTENT_CHAR_LIMIT],
            source_name=item.source_name,
            author=item.author_handle,
        ) + JSON_CONTRACT.format()

    async def analyze(self, item: RawItem) -> Union[ScoreRecord, AnalysisUnavailable]:
        """
        One call to the AI capability. Every failure mode (no endpoint, network,
        non-JSON reply, reply not matching the contract) comes back as
        AnalysisUnavailable so callers handle a single fallback path.
        """
        if not self.llm.is_configured:
            return AnalysisUnavailable(reason="AI endpoint not configured")
        try:
            data = await self.llm.generate_json(self.build_prompt(item))
            return AIDealAnalysis.model_validate(data).to_score_record()
        except LLMUnavailable as e:
            return AnalysisUnavailable(reason=str(e))
        except ValidationError as e:
            logger.warning(f"[{self.get_source_name()}] AI response did not match schema: {e.error_count()} errors")
            return AnalysisUnavailable(reason="AI response did not match the expected schema")
        except ValueError as e:
            return AnalysisUnavailable(reason=f"Malformed AI response: {e}")
        except Exception as e:
            logger.error(f"[{self.get_source_name()}] AI analysis failed: {e!r}")
            return AnalysisUnavailable(reason=f"AI call failed: {type(e).__name__}")


class RedditDealAnalyzer(BaseDealAnalyzer):
    def get_source_name(self) -> str:
        return "reddit"

    def get_prompt_template(self) -> str:
        return """
You are a private equity analyst evaluating a Reddit post for potential business acquisition opportunities.

Analyze this post and extract business intelligence. If the post is not about selling a business
or doesn't contain relevant information, still provide your best assessment.

Post Title: "{title}"
Post Content: "{content}"
Subreddit: {source_name}
Author: u/{author}

Valuation Guidelines:
- SaaS: 3-5x ARR
- E-commerce: 2-4x Annual Profit
- Service Business: 1-3x Annual Revenue
- Content/Media: 2-3x Annual Revenue

Viability Score Factors:
- Mentions specific revenue numbers (+30)
- Has recurring revenue (+20)
- Profitable (+20)
- Business age > 2 years (+15)
- Has team/employees (+10)
- Mentions growth (+5)

Motivation Score Factors:
- Mentions "selling" or "exit" (+40)
- Mentions "burned out" or "tired" (+25)
- Mentions "moving on" or "new project" (+20)
- Asking for valuation advice (+15)
"""


class ProductHuntAnalyzer(BaseDealAnalyzer):
    def get_source_name(self) -> str:
        return "producthunt"

    def get_prompt_template(self) -> str:
        return """
You are a private equity analyst screening a Product Hunt launch as a possible acquisition target.

Product: "{title}"
Description: "{content}"
Topic: {source_name}
Maker: {author}

Scoring rules for launches:
- Viability: reward evidence of traction, paying users, revenue or a clear business model.
  A novel idea without traction is NOT viable; penalise me-too products and thin wrappers (max 40).
- Motivation: launches rarely signal a sale. Keep motivation_score at 20 or below unless the
  maker explicitly mentions selling, exiting or looking for a buyer.
- deal_quality: weight novelty and defensibility heavily; a crowded category caps it at 50.
- Unknown revenue must be reported as "Not mentioned" with a 0 valuation range.
"""


class NewsletterAnalyzer(BaseDealAnalyzer):
    def get_source_name(self) -> str:
        return "newsletter"

    def get_prompt_template(self) -> str:
        return """
You are a private equity analyst reading an indie business newsletter article ({source_name}).

Title: "{title}"
Excerpt: "{content}"
Author: {author}

Focus on whether a business is FOR SALE or the founder is open to offers:
- Explicit "for sale", "acquired", "looking for a buyer" or listing language drives motivation_score above 60.
- Founder interviews without sale language keep motivation_score below 40.
- Extract any MRR/ARR/revenue figures exactly as written; use "Not mentioned" when absent.
- Viability follows revenue evidence, profitability, business age and growth.
"""


class AnalyzerFactory:
    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm

    def get_analyzer(self, source: str) -> BaseDealAnalyzer:
        if source == "reddit":
            return RedditDealAnalyzer(self.llm)
        elif source == "producthunt":
            return ProductHuntAnalyzer(self.llm)
        elif source == "newsletter":
            return NewsletterAnalyzer(self.llm)
        else:
            raise ValueError(f"Unknown source: {source}")
