from typing import Iterable, Sequence

# Keywords that indicate a business-related post
RELEVANCE_KEYWORDS = [
    "selling", "exit", "mrr", "arr", "revenue", "profitable", "business",
    "saas", "ecommerce", "agency", "service", "startup", "side project",
    "acquisition", "buyer", "valuation", "bootstrap", "indie",
]

# Phrases that read like opinion or general advice rather than a deal
IRRELEVANCE_INDICATORS = [
    "mental model", "lessons learned", "advice", "thoughts on", "opinion",
    "guide", "how to", "mistakes to avoid", "my story", "my journey",
    "what is", "why you should", "top tips", "best way to", "should not be",
]

# Phrases that strongly indicate a transaction
COMMERCIAL_SIGNALS = [
    "selling", "for sale", "looking to sell", "acquisition", "exit",
    "buy my business", "valuation", "takeover", "dm me if interested",
]

NEGATIVE_VETO_THRESHOLD = 2
STANDALONE_RELEVANCE_HITS = 3


def _count_hits(text: str, phrases: Iterable[str]) -> int:
    return sum(1 for phrase in phrases if phrase in text)


def matches_keyword(text: str, keywords: Sequence[str]) -> bool:
    """Case-insensitive substring match of any non-blank keyword."""
    text = text.lower()
    for keyword in keywords or []:
        if not isinstance(keyword, str):
            continue
        normalized = keyword.strip().lower()
        if normalized and normalized in text:
            return True
    return False


def is_relevant(title: str, body: str, user_keywords: Sequence[str] = ()) -> bool:
    """
    Cheap gate before deep analysis.

    1. An operator keyword match admits the post outright.
    2. Two or more advice/opinion phrases without any commercial phrase reject it.
    3. A commercial phrase plus one relevance keyword, or three relevance keywords, admit it.
    """
    text = f"{title or ''} {body or ''}".lower()

    if matches_keyword(text, user_keywords):
        return True

    has_commercial = _count_hits(text, COMMERCIAL_SIGNALS) > 0
    if _count_hits(text, IRRELEVANCE_INDICATORS) >= NEGATIVE_VETO_THRESHOLD and not has_commercial:
        return False

    relevance_hits = _count_hits(text, RELEVANCE_KEYWORDS)
    if has_commercial and relevance_hits >= 1:
        return True
    if relevance_hits >= STANDALONE_RELEVANCE_HITS:
        return True

    return False
