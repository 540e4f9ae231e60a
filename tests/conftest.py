"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import pytest
from typing import Dict, List

from linkwise.analysis.tfidf import TermScore
from linkwise.database import init_db, reset_engine
from linkwise.models import KeywordMetrics, SearchPerformanceMetric, performance_key
from linkwise.scoring import ScoringPage
from linkwise.utils.config import Settings


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database per test."""
    monkeypatch.delenv("POSTGRES_URL", raising=False)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'linkwise_test.db'}")
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture
def settings() -> Settings:
    """Settings with no external credentials."""
    return Settings(
        _env_file=None,
        FIRECRAWL_API_KEY=None,
        DATAFORSEO_LOGIN=None,
        DATAFORSEO_PASSWORD=None,
        GSC_ACCESS_TOKEN=None,
        GSC_REFRESH_TOKEN=None,
    )


# ============================================================================
# Running-shoes scenario
# ============================================================================

PAGE_A_URL = "https://shop.example.com/guides/marathon-training"
PAGE_B_URL = "https://shop.example.com/products/running-shoes"
PAGE_C_URL = "https://shop.example.com/about"


def make_term(keyword: str, score: float, count: int = 3, df: int = 1) -> TermScore:
    return TermScore(
        keyword=keyword,
        tf_idf_score=score,
        term_frequency=count,
        document_frequency=df,
    )


@pytest.fixture
def shoe_pages() -> List[ScoringPage]:
    """
    A links to B on "shoes"; C mentions nothing relevant.
    """
    return [
        ScoringPage(
            page_id="page-a",
            url=PAGE_A_URL,
            content="Marathon training plans. Pick the right shoes before your first long run.",
            keywords=[make_term("shoes", 0.35), make_term("marathon", 0.30)],
        ),
        ScoringPage(
            page_id="page-b",
            url=PAGE_B_URL,
            content="Running shoes for every distance. Our shoes are tested by runners.",
            keywords=[make_term("running", 0.25)],
        ),
        ScoringPage(
            page_id="page-c",
            url=PAGE_C_URL,
            content="We are a small team of runners based in Portland.",
            keywords=[],
        ),
    ]


@pytest.fixture
def shoe_keyword_metrics() -> Dict[str, KeywordMetrics]:
    return {
        "shoes": KeywordMetrics(keyword="shoes", search_volume=1000, keyword_difficulty=9.0),
    }


@pytest.fixture
def shoe_search_metrics() -> Dict[str, SearchPerformanceMetric]:
    """A ranks for "shoes"; B gets impressions at position 20."""
    metrics = [
        SearchPerformanceMetric(query="shoes", page_url=PAGE_A_URL, impressions=50, clicks=2, position=12.0),
        SearchPerformanceMetric(query="running shoes", page_url=PAGE_B_URL, impressions=2000, clicks=80, position=20.0),
    ]
    return {performance_key(m.query, m.page_url): m for m in metrics}
