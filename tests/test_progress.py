"""
Tests for the progress stream and the NDJSON event format.
"""

import asyncio
import json

import pytest

from dealscout.errors import ScanAborted
from dealscout.models.events import CompleteEvent, LogEvent, NewDealEvent, StatusEvent, parse_event, to_json_line
from dealscout.models.scan import ScanSummary
from dealscout.services.progress import ProgressStream


class TestProgressStream:
    async def test_events_in_emit_order(self):
        sink = ProgressStream()
        await sink.emit(StatusEvent(message="start"))
        await sink.emit(LogEvent(message="working"))
        sink.finish()

        events = [e async for e in sink.events()]
        assert [e.message for e in events] == ["start", "working"]

    async def test_consumer_sees_events_while_scan_runs(self):
        sink = ProgressStream()
        seen = []

        async def producer():
            for n in range(3):
                await sink.emit(LogEvent(message=str(n)))
                await asyncio.sleep(0)
            sink.finish()

        task = asyncio.create_task(producer())
        async for event in sink.events():
            seen.append(event.message)
        await task
        assert seen == ["0", "1", "2"]

    async def test_emit_after_close_aborts(self):
        sink = ProgressStream()
        sink.close()
        assert sink.closed is True
        with pytest.raises(ScanAborted):
            await sink.emit(LogEvent(message="late"))

    async def test_emit_after_finish_is_a_bug(self):
        sink = ProgressStream()
        sink.finish()
        with pytest.raises(RuntimeError):
            await sink.emit(LogEvent(message="late"))

    async def test_lines_are_ndjson(self):
        sink = ProgressStream()
        await sink.emit(CompleteEvent(summary=ScanSummary(items_scanned=3, items_matched=2, deals_created=1)))
        sink.finish()

        [line] = [line async for line in sink.lines()]
        assert line.endswith("\n")
        payload = json.loads(line)
        assert payload["type"] == "complete"
        assert payload["summary"]["deals_created"] == 1


class TestEventFormat:
    def test_parse_event_uses_type_tag(self):
        line = to_json_line(NewDealEvent(
            deal_id="d1", name="InvoiceBot", source="reddit",
            deal_quality=77, viability_score=85, analysis_origin="heuristic",
        ))
        event = parse_event(line)
        assert isinstance(event, NewDealEvent)
        assert event.deal_quality == 77

    def test_log_level_defaults_to_info(self):
        assert parse_event('{"type": "log", "message": "hi"}').level == "info"
