from typing import Dict, Type

from dealscout.errors import InvalidScanRequest
from dealscout.tools.base_adapter import SourceAdapter
from dealscout.tools.newsletter_adapter import NewsletterAdapter
from dealscout.tools.producthunt_adapter import ProductHuntAdapter
from dealscout.tools.reddit_adapter import RedditAdapter

ADAPTERS: Dict[str, Type[SourceAdapter]] = {
    "reddit": RedditAdapter,
    "producthunt": ProductHuntAdapter,
    "newsletter": NewsletterAdapter,
}


class AdapterFactory:
    """Builds one adapter instance per source kind; each owns its rate limiter."""

    def __init__(self, **adapter_kwargs):
        self._kwargs = adapter_kwargs
        self._instances: Dict[str, SourceAdapter] = {}

    def get_adapter(self, kind: str) -> SourceAdapter:
        if kind not in ADAPTERS:
            raise InvalidScanRequest(f"Unknown source: {kind}")
        if kind not in self._instances:
            self._instances[kind] = ADAPTERS[kind](**self._kwargs)
        return self._instances[kind]
