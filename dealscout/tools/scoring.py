"""
Local deal scoring.

Keyword and regex rules that turn a post into a full ScoreRecord without any
external call. This is what ingestion falls back to whenever AI analysis is
unavailable, so it must never raise on odd input.
"""
import re
from typing import List, NamedTuple, Optional, Tuple

from dealscout.models.items import ScoreRecord

VIABILITY_WEIGHT = 0.6
MOTIVATION_WEIGHT = 0.4


class PatternFamily(NamedTuple):
    label: str
    patterns: List[re.Pattern]
    points: int


def _compile(*patterns: str) -> List[re.Pattern]:
    return [re.compile(p, re.I) for p in patterns]


VIABILITY_PATTERNS = [
    PatternFamily("revenue", _compile(
        r"\$[\d,.]+k?\s*(?:mrr|arr|monthly|revenue)", r"[\d,.]+k?\s*(?:mrr|arr)\b", r"revenue\s*[:=]?\s*\$?[\d,]+",
    ), 30),
    PatternFamily("recurring", _compile(r"recurring\s*revenue", r"subscription", r"saas", r"\bmrr\b", r"\barr\b"), 20),
    PatternFamily("profitable", _compile(r"profitable", r"profit\s*margin", r"positive\s*cash", r"making\s*money"), 20),
    PatternFamily("established", _compile(
        r"\d+\s*years?\s*(?:old|running|in\s*business)", r"established", r"since\s*20\d\d",
    ), 15),
    PatternFamily("team", _compile(r"team\s*of\s*\d+", r"employees", r"contractors", r"developers"), 10),
    PatternFamily("growth", _compile(r"growing", r"growth", r"increasing", r"doubled", r"tripled"), 5),
]

# Labels double as the seller signal strings, in detection order
MOTIVATION_PATTERNS = [
    PatternFamily("Owner is selling or planning an exit", _compile(
        r"selling", r"for\s*sale", r"looking\s*to\s*sell", r"want\s*to\s*sell", r"\bexit",
    ), 40),
    PatternFamily("Owner burnout", _compile(r"burned?\s*out", r"burnout", r"exhausted", r"tired", r"overwhelmed"), 25),
    PatternFamily("Owner moving on", _compile(
        r"moving\s*on", r"new\s*project", r"other\s*opportunities", r"focusing\s*on", r"starting\s*something",
    ), 20),
    PatternFamily("Asking about valuation", _compile(
        r"how\s*much.*worth", r"valuation", r"what.*business.*worth", r"pricing.*business",
    ), 15),
]

RISK_PATTERNS = [
    (re.compile(r"seo\s*(?:traffic|dependent|driven)", re.I), "SEO-dependent traffic"),
    (re.compile(r"google\s*(?:ads?|traffic|dependent)", re.I), "Google Ads dependent"),
    (re.compile(r"facebook\s*ads?", re.I), "Facebook Ads dependent"),
    (re.compile(r"amazon\s*(?:fba|seller|dependent)", re.I), "Amazon platform dependency"),
    (re.compile(r"single\s*client", re.I), "Single client dependency"),
    (re.compile(r"one\s*customer", re.I), "Customer concentration risk"),
    (re.compile(r"legal\s*(?:issue|problem|dispute)", re.I), "Legal issues mentioned"),
    (re.compile(r"lawsuit", re.I), "Lawsuit mentioned"),
    (re.compile(r"declining", re.I), "Declining revenue signals"),
    (re.compile(r"struggling", re.I), "Business struggling"),
    (re.compile(r"competitor", re.I), "Competition concerns"),
]


class Industry(NamedTuple):
    name: str
    business_type: str
    multiplier: Tuple[float, float]


INDUSTRY_PATTERNS = [
    (re.compile(r"saas|software\s*as\s*a\s*service", re.I), Industry("SaaS", "SaaS", (3, 5))),
    (re.compile(r"ecommerce|e-commerce|shopify|amazon\s*fba", re.I), Industry("E-commerce", "E-commerce", (2, 4))),
    (re.compile(r"agency|marketing|seo\s*agency|web\s*design", re.I), Industry("Agency", "Agency", (1.5, 3))),
    (re.compile(r"content|blog|newsletter|media", re.I), Industry("Content/Media", "Content/Media", (2, 3))),
    (re.compile(r"service|consulting|freelance", re.I), Industry("Service", "Service", (1, 3))),
    (re.compile(r"\bapp\b|mobile|\bios\b|android", re.I), Industry("Mobile App", "Mobile App", (2, 4))),
]
DEFAULT_INDUSTRY = Industry("Other", "General Business", (1.5, 3))

_AMOUNT = r"\$?\s*(\d[\d,]*(?:\.\d+)?)\s*(k)?"
MRR_RE = re.compile(_AMOUNT + r"\s*mrr\b", re.I)
ARR_RE = re.compile(_AMOUNT + r"\s*arr\b", re.I)
REVENUE_RE = re.compile(r"revenue[:\s]*" + _AMOUNT, re.I)

UNKNOWN_REVENUE = "Not mentioned"


class RevenueEstimate(NamedTuple):
    display: str
    annualized: float
    revenue_type: str


def _amount(number: str, k_suffix: Optional[str]) -> float:
    value = float(number.replace(",", "") or 0)
    # Small bare figures are shorthand for thousands ("$5 MRR" means $5k)
    if k_suffix or value < 100:
        value *= 1000
    return value


def _money(value: float) -> str:
    return f"${value:,.0f}"


def extract_revenue(text: str) -> RevenueEstimate:
    match = MRR_RE.search(text)
    if match:
        monthly = _amount(match.group(1), match.group(2))
        return RevenueEstimate(f"{_money(monthly)} MRR", monthly * 12, "MRR")

    match = ARR_RE.search(text)
    if match:
        yearly = _amount(match.group(1), match.group(2))
        return RevenueEstimate(f"{_money(yearly)} ARR", yearly, "ARR")

    match = REVENUE_RE.search(text)
    if match:
        yearly = _amount(match.group(1), match.group(2))
        return RevenueEstimate(f"{_money(yearly)}/year", yearly, "Annual")

    return RevenueEstimate(UNKNOWN_REVENUE, 0, "Unknown")


_SCALED_AMOUNT = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*(k|m|mm|million|b|billion)?\b", re.I)
_SCALES = {"k": 1e3, "m": 1e6, "mm": 1e6, "million": 1e6, "b": 1e9, "billion": 1e9}


def parse_revenue_string(display: Optional[str]) -> RevenueEstimate:
    """Annualize a free-form revenue string such as "$30k MRR" or "$1.2M/year"."""
    if not display or display.strip().lower() in ("not mentioned", "unknown", "n/a"):
        return RevenueEstimate(UNKNOWN_REVENUE, 0, "Unknown")

    match = _SCALED_AMOUNT.search(display)
    if not match:
        return RevenueEstimate(display, 0, "Unknown")

    value = float(match.group(1).replace(",", "")) * _SCALES.get((match.group(2) or "").lower(), 1)
    lowered = display.lower()
    if "mrr" in lowered or "/mo" in lowered or "month" in lowered:
        return RevenueEstimate(display, value * 12, "MRR")
    if "arr" in lowered:
        return RevenueEstimate(display, value, "ARR")
    return RevenueEstimate(display, value, "Annual")


def detect_industry(text: str) -> Industry:
    for pattern, industry in INDUSTRY_PATTERNS:
        if pattern.search(text):
            return industry
    return DEFAULT_INDUSTRY


def _family_score(text: str, families: List[PatternFamily]) -> Tuple[int, List[str]]:
    total = 0
    matched = []
    for family in families:
        if any(p.search(text) for p in family.patterns):
            total += family.points
            matched.append(family.label)
    return min(total, 100), matched


def detect_risks(text: str) -> List[str]:
    return [flag for pattern, flag in RISK_PATTERNS if pattern.search(text)]


def deal_quality(viability: int, motivation: int) -> int:
    return int(round(VIABILITY_WEIGHT * viability + MOTIVATION_WEIGHT * motivation))


def quality_tier(quality: int) -> str:
    if quality >= 70:
        return "promising"
    if quality >= 50:
        return "potential"
    return "early-stage"


def build_summary(industry: str, revenue_display: str, quality: int, motivation: int, seller_signals: List[str]) -> str:
    tier = quality_tier(quality)
    owner = "appears motivated to sell" if motivation >= 60 else "may be open to discussions"
    revenue = "revenue not disclosed" if revenue_display == UNKNOWN_REVENUE else revenue_display
    summary = f"{tier.capitalize()} {industry} opportunity with {revenue}. Owner {owner}."
    if seller_signals:
        summary += f" Key signals: {', '.join(s.lower() for s in seller_signals[:2])}."
    return summary


def score_post(title: Optional[str], body: Optional[str]) -> ScoreRecord:
    text = f"{title or ''} {body or ''}".lower()

    viability, _ = _family_score(text, VIABILITY_PATTERNS)
    motivation, seller_signals = _family_score(text, MOTIVATION_PATTERNS)
    quality = deal_quality(viability, motivation)

    revenue = extract_revenue(text)
    industry = detect_industry(text)

    valuation_min = valuation_max = 0.0
    if revenue.annualized > 0:
        valuation_min = round(revenue.annualized * industry.multiplier[0])
        valuation_max = round(revenue.annualized * industry.multiplier[1])

    return ScoreRecord(
        viability_score=viability,
        motivation_score=motivation,
        deal_quality=quality,
        industry=industry.name,
        business_type=industry.business_type,
        risk_flags=detect_risks(text),
        seller_signals=seller_signals,
        estimated_revenue_display=revenue.display,
        estimated_revenue_annualized=revenue.annualized,
        revenue_type=revenue.revenue_type,
        valuation_min=valuation_min,
        valuation_max=valuation_max,
        summary=build_summary(industry.name, revenue.display, quality, motivation, seller_signals),
        origin="heuristic",
    )
