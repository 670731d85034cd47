import asyncio
from typing import Optional, Set
from dealscout.errors import DuplicateDeal, InvalidScanRequest, PersistenceError, ScanAborted
from dealscout.models.events import CompleteEvent, ErrorEvent, LogEvent, NewDealEvent, StatusEvent
from dealscout.models.items import AnalysisUnavailable, Deal, RawItem, ScoreRecord
from dealscout.models.scan import NewsletterQuery, ProductHuntQuery, RedditQuery, ScanRequest, ScanState, ScanSummary
from dealscout.services.activity import ActivityRecorder
from dealscout.services.database import Database, db
from dealscout.services.logger import logger
from dealscout.services.progress import ProgressStream
from dealscout.tools.analyzer import AI_UNAVAILABLE_FLAG, AnalyzerFactory
from dealscout.tools.base_adapter import SectionTally, SourceAdapter
from dealscout.tools.dedup import DealStore, DedupGate
from dealscout.tools.registry import AdapterFactory
from dealscout.tools.relevance import is_relevant, matches_keyword
from dealscout.tools.scoring import score_post

class ScanRun:
    """One scan in flight: its request, its subscriber, its counters and its state."""

    def __init__(self, request: ScanRequest, sink: ProgressStream):
        self.request = request
        self.sink = sink
        self.summary = ScanSummary()
        self.state = ScanState.IDLE

    async def status(self, message: str):
        await self.sink.emit(StatusEvent(message=message))

    async def log(self, message: str, level: str = "info"):
        await self.sink.emit(LogEvent(message=message, level=level))

class DealScanner:
    """
    Runs scans: each source in request order, each item in fetch order.

    adapter -> relevance -> identity check -> (enrich) -> AI or heuristic score
    -> revenue floor -> persist -> newDeal event. Item-level failures become log
    events; only a bad request or no reachable source fails the scan.

    One scanner serves concurrent scans. Everything a scan owns lives on its
    ScanRun, never on the scanner.
    """

    def __init__(
        self,
        store: DealStore,
        adapters: Optional[AdapterFactory] = None,
        analyzers: Optional[AnalyzerFactory] = None,
        recorder: Optional[ActivityRecorder] = None,
    ):
        self.store = store
        self.dedup = DedupGate(store)
        self.adapters = adapters or AdapterFactory()
        self.analyzers = analyzers or AnalyzerFactory()
        if recorder is None and isinstance(store, Database):
            recorder = ActivityRecorder(store)
        self.recorder = recorder
        self.active: Set[ScanRun] = set()

    async def run(self, request: ScanRequest, sink: ProgressStream) -> ScanSummary:
        scan = await self.execute(ScanRun(request, sink))
        return scan.summary

    async def execute(self, scan: ScanRun) -> ScanRun:
        self.active.add(scan)
        try:
            await self._execute(scan)
        finally:
            self.active.discard(scan)
            scan.sink.finish()
        return scan

    async def _execute(self, scan: ScanRun):
        request, summary = scan.request, scan.summary
        try:
            try:
                self.validate(request)
            except InvalidScanRequest as e:
                await self._fail(scan, str(e))
                return

            await self._record("scan_started", f"{len(request.sources)} sources")
            await scan.status(f"🚀 Starting scan of {len(request.sources)} source(s)...")
            await scan.log(f"Keywords: {', '.join(request.keywords) if request.keywords else 'None (heuristics only)'}")
            if request.min_revenue:
                await scan.log(f"Filters: Min Revenue ${request.min_revenue:,.0f}")

            reachable = 0
            for query in request.sources:
                adapter = self.adapters.get_adapter(query.kind)
                if await self._scan_source(scan, adapter, query):
                    reachable += 1

            if reachable == 0:
                await self._fail(scan, "No source could be reached")
                return

            scan.state = ScanState.COMPLETED
            await scan.status("✅ Scan complete!")
            await scan.sink.emit(CompleteEvent(summary=summary))
            logger.info(
                f"Scan complete: scanned={summary.items_scanned} matched={summary.items_matched} "
                f"created={summary.deals_created}"
            )
            await self._record("scan_completed", summary.model_dump_json())
        except ScanAborted:
            scan.state = ScanState.FAILED
            logger.warning(f"Scan aborted by subscriber after {summary.items_scanned} items")
            await self._record("scan_aborted", summary.model_dump_json())
        except asyncio.CancelledError:
            scan.state = ScanState.FAILED
            logger.warning(f"Scan cancelled after {summary.items_scanned} items")
            await self._record("scan_aborted", summary.model_dump_json())
            raise
        except Exception as e:
            logger.exception(f"Scan failed: {e}")
            try:
                await self._fail(scan, f"Scan failed: {e}")
            except ScanAborted:
                pass

    def validate(self, request: ScanRequest):
        if not request.sources:
            raise InvalidScanRequest("No sources provided")
        for query in request.sources:
            if isinstance(query, RedditQuery) and not query.subreddits:
                raise InvalidScanRequest("No subreddits provided")
            if isinstance(query, ProductHuntQuery) and not query.topics:
                raise InvalidScanRequest("No Product Hunt topics provided")
            if not isinstance(query, (RedditQuery, ProductHuntQuery, NewsletterQuery)):
                raise InvalidScanRequest(f"Unsupported source config: {query!r}")

    async def _scan_source(self, scan: ScanRun, adapter: SourceAdapter, query) -> bool:
        """Process one source to completion. Returns whether any part of it was reachable."""
        summary = scan.summary
        scan.state = ScanState.FETCHING
        await scan.status(f"📊 Scanning {adapter.name}...")
        before = summary.model_copy()
        tally = SectionTally()
        try:
            async for item in adapter.fetch(query, scan.log, tally):
                summary.items_scanned += 1
                try:
                    await self._process_item(scan, adapter, item)
                except ScanAborted:
                    raise
                except Exception as e:
                    logger.opt(exception=e).error(f"Error processing {item.identity.describe()}")
                    await scan.log(f"❌ ERROR: \"{item.short_title(30)}\" - {e}", level="error")
                finally:
                    scan.state = ScanState.FETCHING
        except ScanAborted:
            raise
        except Exception as e:
            logger.opt(exception=e).error(f"{adapter.name} source failed")
            await scan.log(f"❌ {adapter.name} failed: {e}", level="error")
            return summary.items_scanned > before.items_scanned

        await scan.log(
            f"{adapter.name}: {summary.items_scanned - before.items_scanned} scanned, "
            f"{summary.items_matched - before.items_matched} matched, "
            f"{summary.deals_created - before.deals_created} new deals"
        )
        return tally.reachable > 0

    async def _process_item(self, scan: ScanRun, adapter: SourceAdapter, item: RawItem):
        request, summary = scan.request, scan.summary
        scan.state = ScanState.FILTERING
        if adapter.applies_relevance_filter:
            if not is_relevant(item.title, item.body, request.keywords):
                return
        elif request.keywords and not matches_keyword(item.text, request.keywords):
            logger.debug(f"No keyword match for \"{item.short_title(20)}\" (analyzing anyway)")
        summary.items_matched += 1

        if await self.dedup.is_duplicate(item.identity):
            await scan.log(f"⏭️ Skipping duplicate: {item.short_title()}")
            return

        item = await adapter.enrich(item, scan.log)

        scan.state = ScanState.SCORING
        await scan.log(f"🤖 AI analyzing: \"{item.short_title()}\"")
        score = await self._score(scan, item)

        if request.min_revenue and score.estimated_revenue_annualized < request.min_revenue:
            await scan.log(
                f"Skipping \"{item.short_title(20)}\" - Revenue ${score.estimated_revenue_annualized:,.0f} "
                f"< ${request.min_revenue:,.0f}"
            )
            return

        scan.state = ScanState.PERSISTING
        # URL-only identities have no store-level constraint; look again right before the insert
        if not item.external_id and await self.dedup.is_duplicate(item.identity):
            await scan.log(f"⏭️ Skipping duplicate: {item.short_title()}")
            return

        deal = Deal.from_item(item, score)
        try:
            await self.store.create(deal)
        except DuplicateDeal:
            await scan.log(f"⏭️ Skipping duplicate: {item.short_title()}")
            return
        except PersistenceError as e:
            logger.error(f"Database error: {e}")
            await scan.log(f"❌ Failed to save deal: {e}", level="error")
            return

        summary.deals_created += 1
        await scan.sink.emit(NewDealEvent(
            deal_id=deal.id,
            name=deal.name,
            source=deal.source,
            deal_quality=deal.deal_quality,
            viability_score=deal.viability_score,
            analysis_origin=deal.analysis_origin,
        ))
        emoji = "🔥" if deal.viability_score >= 70 else "✨"
        await scan.log(f"{emoji} NEW DEAL: \"{item.short_title()}\" | Quality: {deal.deal_quality}/100")

    async def _score(self, scan: ScanRun, item: RawItem) -> ScoreRecord:
        analysis = await self.analyzers.get_analyzer(item.source).analyze(item)
        if isinstance(analysis, AnalysisUnavailable):
            logger.info(f"AI unavailable for {item.identity.describe()}: {analysis.reason}")
            await scan.log(f"⚠️ AI unavailable, using heuristic scoring for \"{item.short_title()}\"", level="warning")
            return score_post(item.title, item.body).with_risk_flag(AI_UNAVAILABLE_FLAG)
        return analysis

    async def _fail(self, scan: ScanRun, message: str):
        scan.state = ScanState.FAILED
        logger.error(message)
        await self._record("scan_failed", message)
        await scan.sink.emit(ErrorEvent(message=message))

    async def _record(self, action: str, details: str):
        if self.recorder is not None:
            await self.recorder.record(action, details)

scanner = DealScanner(db)
