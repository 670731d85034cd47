import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from typing import List, Optional

from dealscout.config import settings
from dealscout.feeds_config import SUBREDDIT_PACKS
from dealscout.models.items import Deal
from dealscout.models.scan import ScanRequest, SourceQuery
from dealscout.services.database import SearchConfig, db
from dealscout.services.logger import logger
from dealscout.services.progress import ProgressStream
from dealscout.workflows.scanner import DealScanner, scanner

@asynccontextmanager
async def lifespan(app: FastAPI):
    await db.init()
    yield

app = FastAPI(title="DealScout API", lifespan=lifespan)

# Allow CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # For dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

class SearchConfigIn(BaseModel):
    name: str
    sources: List[SourceQuery]
    keywords: List[str] = Field(default_factory=list)
    min_revenue: Optional[float] = Field(default=None, ge=0)
    is_default: bool = False

def get_scanner() -> DealScanner:
    return scanner

async def stream_scan(request: ScanRequest, deal_scanner: DealScanner):
    """Run one scan as a task and relay its events as NDJSON lines until it finishes."""
    sink = ProgressStream()
    task = asyncio.create_task(deal_scanner.run(request, sink))
    try:
        async for line in sink.lines():
            yield line
    finally:
        # Client gone or stream done: the scan stops at its next emit
        sink.close()
        if not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=settings.SCAN_ABORT_GRACE_SECONDS)
            except asyncio.TimeoutError:
                task.cancel()
                logger.info("Scan stream closed by client, scan cancelled")
        try:
            await task
        except asyncio.CancelledError:
            pass

@app.get("/api/status")
async def get_status():
    deal_scanner = get_scanner()
    return {
        "status": "ok",
        "version": "1.0.0",
        "ai_enabled": settings.AI_ANALYSIS_ENABLED and bool(settings.OLLAMA_BASE_URL),
        "active_scans": [scan.state.value for scan in deal_scanner.active],
    }

@app.post("/api/scan")
async def start_scan(request: ScanRequest):
    return StreamingResponse(stream_scan(request, get_scanner()), media_type="application/x-ndjson")

@app.get("/api/deals", response_model=List[Deal])
async def list_deals(limit: int = 100, source: Optional[str] = None):
    return await db.list_deals(limit=max(1, min(limit, 500)), source=source)

@app.get("/api/subreddit-packs")
async def get_subreddit_packs():
    return SUBREDDIT_PACKS

@app.get("/api/search-configs", response_model=List[SearchConfig])
async def list_search_configs():
    return await db.list_search_configs()

@app.post("/api/search-configs", response_model=SearchConfig)
async def create_search_config(body: SearchConfigIn):
    config = SearchConfig(
        name=body.name,
        sources=[s.model_dump() for s in body.sources],
        keywords=[k.strip() for k in body.keywords if k.strip()],
        min_revenue=body.min_revenue,
        is_default=body.is_default,
    )
    return await db.create_search_config(config)

@app.delete("/api/search-configs/{config_id}")
async def delete_search_config(config_id: str):
    if not await db.delete_search_config(config_id):
        raise HTTPException(status_code=404, detail="Search config not found")
    return {"success": True}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
