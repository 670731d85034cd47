import re
from typing import Optional

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")

# Reddit and Substack placeholders for missing authors
_MISSING_AUTHORS = {"", "[deleted]", "[removed]", "none", "null"}


def normalize_whitespace(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def strip_markup(text: Optional[str]) -> str:
    """Drop HTML tags and entities, then collapse whitespace."""
    if not text:
        return ""
    if "<" in text or "&" in text:
        text = BeautifulSoup(text, "html.parser").get_text(separator=" ")
    return normalize_whitespace(text.replace("\xa0", " "))


def clean_author(author: Optional[str]) -> str:
    author = normalize_whitespace(author)
    if author.lower() in _MISSING_AUTHORS:
        return "anonymous"
    # feedparser gives Reddit authors as "/u/name"
    for prefix in ("/u/", "u/"):
        if author.startswith(prefix):
            return author[len(prefix):]
    return author
