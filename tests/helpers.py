"""Test doubles shared across the suite."""
import asyncio
from datetime import datetime, timezone
from typing import List, Optional

from dealscout.models.items import RawItem
from dealscout.services.progress import ProgressStream
from dealscout.tools.base_adapter import SourceAdapter


class StaticAdapter(SourceAdapter):
    """Adapter that yields a fixed list of items without touching the network."""

    def __init__(
        self,
        items: List[RawItem],
        name: str = "reddit",
        reachable: bool = True,
        relevance_filter: bool = True,
        gate: Optional[asyncio.Event] = None,
    ):
        super().__init__(request_delay=0, backoff_seconds=0)
        self.name = name
        self.items = items
        self.reachable = reachable
        self.applies_relevance_filter = relevance_filter
        # When set, every item waits on the gate and yields to the event loop first
        self.gate = gate
        self.fetch_calls = 0

    async def fetch(self, query, emit, tally=None):
        tally = self._start_tally(tally)
        self.fetch_calls += 1
        if self.reachable:
            tally.reachable += 1
        else:
            tally.failed += 1
        for item in self.items:
            if self.gate is not None:
                await self.gate.wait()
                await asyncio.sleep(0)
            yield item


class StaticAdapterFactory:
    def __init__(self, **adapters: SourceAdapter):
        self.adapters = adapters

    def get_adapter(self, kind: str) -> SourceAdapter:
        return self.adapters[kind]


def make_item(
    external_id: Optional[str] = "abc123",
    title: str = "Selling my SaaS at $5k MRR",
    body: str = "Profitable, 3 years old. I'm burned out and moving on.",
    source: str = "reddit",
    origin_url: Optional[str] = None,
    **kwargs,
) -> RawItem:
    return RawItem(
        external_id=external_id,
        title=title,
        body=body,
        source=source,
        source_name=kwargs.pop("source_name", "r/SaaS"),
        author_handle=kwargs.pop("author_handle", "founder"),
        origin_url=origin_url if origin_url is not None else f"https://reddit.com/r/SaaS/comments/{external_id}/",
        published_at=kwargs.pop("published_at", datetime(2024, 5, 1, tzinfo=timezone.utc)),
        **kwargs,
    )


async def drain(sink: ProgressStream) -> list:
    return [event async for event in sink.events()]


class EmitRecorder:
    """Stands in for the scanner's log callback and keeps every message."""

    def __init__(self):
        self.messages = []

    async def __call__(self, message: str, level: str = "info"):
        self.messages.append((level, message))

    def text(self) -> str:
        return "\n".join(m for _, m in self.messages)
