"""Shared fixtures for DealScout tests."""
import pytest

from dealscout.services.database import Database
from dealscout.services.llm import LLMService
from dealscout.tools.analyzer import AnalyzerFactory


@pytest.fixture
async def database(tmp_path):
    """An initialized SQLite store under tmp_path."""
    db = Database(db_path=tmp_path / "deals.db")
    await db.init()
    return db


@pytest.fixture
def offline_analyzers():
    """Analyzers whose AI endpoint is disabled, so every item takes the heuristic path."""
    return AnalyzerFactory(LLMService(base_url="", enabled=False))
