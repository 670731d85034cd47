import asyncio
from typing import AsyncIterator

from dealscout.errors import ScanAborted
from dealscout.models.events import to_json_line

_END = object()


class ProgressStream:
    """
    Push channel between one running scan and its subscriber.

    The scan calls emit() as each stage completes; the subscriber iterates
    events() or lines(). close() is the subscriber hanging up: the next emit()
    raises ScanAborted so the scan stops instead of working unobserved.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def finished(self) -> bool:
        return self._finished

    async def emit(self, event) -> None:
        if self._closed:
            raise ScanAborted("progress stream closed by subscriber")
        if self._finished:
            raise RuntimeError("emit() after finish()")
        await self._queue.put(event)

    def finish(self) -> None:
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(_END)

    def close(self) -> None:
        self._closed = True
        self.finish()

    async def events(self) -> AsyncIterator:
        while True:
            event = await self._queue.get()
            if event is _END:
                return
            yield event

    async def lines(self) -> AsyncIterator[str]:
        async for event in self.events():
            yield to_json_line(event)
