import aiosqlite
import sqlite3
from dealscout.config import settings
from dealscout.errors import DuplicateDeal, PersistenceError
from dealscout.models.items import Deal
from dealscout.services.logger import logger
from pathlib import Path
from pydantic import BaseModel, Field
from typing import List, Optional
import json
import uuid

INIT_SQL = """
CREATE TABLE IF NOT EXISTS deals (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    source TEXT NOT NULL,
    external_id TEXT,
    source_name TEXT,
    origin_url TEXT,
    author_handle TEXT,
    status TEXT NOT NULL DEFAULT 'new_leads',
    industry TEXT,
    business_type TEXT,
    revenue FLOAT,
    revenue_display TEXT,
    revenue_type TEXT,
    valuation_min FLOAT,
    valuation_max FLOAT,
    viability_score INTEGER,
    motivation_score INTEGER,
    deal_quality INTEGER,
    risk_flags JSON,
    seller_signals JSON,
    summary TEXT,
    analysis_origin TEXT,
    contact_handle TEXT,
    contact_twitter TEXT,
    contact_linkedin TEXT,
    contact_discord TEXT,
    published_at TIMESTAMP,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_deals_identity
    ON deals (source, external_id) WHERE external_id IS NOT NULL;

CREATE INDEX IF NOT EXISTS idx_deals_origin_url ON deals (origin_url);

CREATE TABLE IF NOT EXISTS search_configs (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    sources JSON NOT NULL,
    keywords JSON NOT NULL,
    min_revenue FLOAT,
    is_default INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    action TEXT NOT NULL,
    details TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

DEAL_COLUMNS = [
    "id", "name", "description", "source", "external_id", "source_name", "origin_url",
    "author_handle", "status", "industry", "business_type", "revenue", "revenue_display",
    "revenue_type", "valuation_min", "valuation_max", "viability_score", "motivation_score",
    "deal_quality", "risk_flags", "seller_signals", "summary", "analysis_origin",
    "contact_handle", "contact_twitter", "contact_linkedin", "contact_discord",
    "published_at", "created_at",
]
JSON_COLUMNS = {"risk_flags", "seller_signals"}

class SearchConfig(BaseModel):
    """A saved scan preset."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    sources: List[dict]
    keywords: List[str] = Field(default_factory=list)
    min_revenue: Optional[float] = None
    is_default: bool = False

def _deal_from_row(row: aiosqlite.Row) -> Deal:
    data = dict(row)
    for col in JSON_COLUMNS:
        data[col] = json.loads(data[col]) if data.get(col) else []
    return Deal.model_validate({k: v for k, v in data.items() if v is not None})

class Database:
    """SQLite-backed deal store. Any object with find_by_identity/find_by_url/create fits the scanner."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or settings.database_path

    async def init(self):
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.executescript(INIT_SQL)
            await db.commit()
        logger.info(f"Database initialized at {self.db_path}")

    def get_connection(self):
        return aiosqlite.connect(self.db_path)

    async def find_by_identity(self, source: str, external_id: str) -> Optional[Deal]:
        async with self.get_connection() as conn:
            conn.row_factory = aiosqlite.Row
            cursor = await conn.execute(
                "SELECT * FROM deals WHERE source = ? AND external_id = ? LIMIT 1", (source, external_id)
            )
            row = await cursor.fetchone()
            return _deal_from_row(row) if row else None

    async def find_by_url(self, origin_url: str) -> Optional[Deal]:
        async with self.get_connection() as conn:
            conn.row_factory = aiosqlite.Row
            cursor = await conn.execute("SELECT * FROM deals WHERE origin_url = ? LIMIT 1", (origin_url,))
            row = await cursor.fetchone()
            return _deal_from_row(row) if row else None

    async def create(self, deal: Deal) -> Deal:
        """Insert a deal. Raises DuplicateDeal if the identity index rejects it."""
        data = deal.model_dump(mode="json")
        values = [json.dumps(data[c]) if c in JSON_COLUMNS else data[c] for c in DEAL_COLUMNS]
        placeholders = ", ".join("?" for _ in DEAL_COLUMNS)
        async with self.get_connection() as conn:
            try:
                await conn.execute(
                    f"INSERT INTO deals ({', '.join(DEAL_COLUMNS)}) VALUES ({placeholders})", values
                )
                await conn.commit()
            except sqlite3.IntegrityError as e:
                raise DuplicateDeal(f"{deal.identity.describe()} already stored") from e
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to save deal {deal.name[:40]}: {e}") from e
        return deal

    async def list_deals(self, limit: int = 100, source: Optional[str] = None) -> List[Deal]:
        query = "SELECT * FROM deals"
        params: list = []
        if source:
            query += " WHERE source = ?"
            params.append(source)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)
        async with self.get_connection() as conn:
            conn.row_factory = aiosqlite.Row
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [_deal_from_row(r) for r in rows]

    async def list_search_configs(self) -> List[SearchConfig]:
        async with self.get_connection() as conn:
            conn.row_factory = aiosqlite.Row
            cursor = await conn.execute("SELECT * FROM search_configs ORDER BY created_at DESC")
            rows = await cursor.fetchall()
        return [
            SearchConfig(
                id=r["id"], name=r["name"], sources=json.loads(r["sources"]),
                keywords=json.loads(r["keywords"]), min_revenue=r["min_revenue"],
                is_default=bool(r["is_default"]),
            )
            for r in rows
        ]

    async def create_search_config(self, config: SearchConfig) -> SearchConfig:
        async with self.get_connection() as conn:
            # Only one default preset at a time
            if config.is_default:
                await conn.execute("UPDATE search_configs SET is_default = 0 WHERE is_default = 1")
            await conn.execute(
                """
                INSERT INTO search_configs (id, name, sources, keywords, min_revenue, is_default)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (config.id, config.name, json.dumps(config.sources), json.dumps(config.keywords),
                 config.min_revenue, int(config.is_default))
            )
            await conn.commit()
        return config

    async def delete_search_config(self, config_id: str) -> bool:
        async with self.get_connection() as conn:
            cursor = await conn.execute("DELETE FROM search_configs WHERE id = ?", (config_id,))
            await conn.commit()
            return cursor.rowcount > 0

db = Database()
