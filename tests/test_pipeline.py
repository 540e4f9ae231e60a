"""
Integration tests for the internal-linking pipeline.

External services are replaced with mocks; the database is a temporary
SQLite file.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from linkwise.database import (
    create_analysis_run,
    get_analysis_run,
    list_analyses,
    list_opportunities,
    list_pages,
)
from linkwise.database.repository import RunAlreadyInProgressError
from linkwise.integrations.firecrawl import CrawlError, CrawledPage
from linkwise.models import EnrichmentResult
from linkwise.pipeline import (
    AnalysisInputError,
    InternalLinkingPipeline,
    run_internal_linking_analysis,
)

from tests.conftest import PAGE_A_URL, PAGE_B_URL, PAGE_C_URL

PROJECT = "project-1"
SITE = "https://shop.example.com"


def crawled_site():
    return [
        CrawledPage(url=PAGE_A_URL, title="Marathon training", content="Shoes, shoes, marathon."),
        CrawledPage(url=PAGE_B_URL, title="Running shoes", content="Running shoes for every runner"),
        CrawledPage(url=PAGE_C_URL, title="About", content="About our team in Portland"),
    ]


@pytest.fixture
def clients():
    mock = MagicMock()
    mock.firecrawl = None
    mock.dataforseo = None
    mock.search_console = None
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def crawler():
    mock = MagicMock()
    mock.crawl = AsyncMock(return_value=crawled_site())
    return mock


class TestPipelineSuccess:
    """Test the full crawl → score → persist flow."""

    @pytest.mark.asyncio
    async def test_running_shoes_end_to_end(
        self, db, settings, clients, crawler, shoe_keyword_metrics, shoe_search_metrics
    ):
        with patch(
            "linkwise.pipeline.fetch_keyword_metrics",
            AsyncMock(return_value=EnrichmentResult.enriched(shoe_keyword_metrics)),
        ), patch(
            "linkwise.pipeline.fetch_search_performance",
            AsyncMock(return_value=EnrichmentResult.enriched(shoe_search_metrics)),
        ):
            pipeline = InternalLinkingPipeline(clients, settings=settings, crawler=crawler)
            result = await pipeline.run(PROJECT, SITE, "Shoe audit")

        assert result["success"] is True
        assert result["pages_crawled"] == 3
        assert result["keywords_extracted"] > 0
        assert result["opportunities_found"] == 1

        top = result["top_opportunities"][0]
        assert top["source_url"] == PAGE_A_URL
        assert top["target_url"] == PAGE_B_URL
        assert top["keyword"] == "shoes"
        assert top["suggested_anchor_text"] == "Learn more about shoes"
        assert top["estimated_traffic_lift"] == 200
        assert top["priority_score"] == pytest.approx(5000.0 * 416.0)

        run = get_analysis_run(result["analysis_id"])
        assert run["status"] == "completed"
        assert run["analysis_name"] == "Shoe audit"
        assert run["total_opportunities_found"] == 1
        assert run["results_summary"]["top_opportunities"][0]["keyword"] == "shoes"
        assert run["results_summary"]["enrichment"] == {
            "keyword_metrics": True,
            "search_performance": True,
        }

        stored = list_opportunities(PROJECT)
        assert len(stored) == 1
        assert stored[0]["implementation_status"] == "pending"
        assert len(list_pages(PROJECT)) == 3

    @pytest.mark.asyncio
    async def test_keywords_extracted_counts_unique_keywords(self, db, settings, clients, crawler):
        """'shoes' scores on pages A and B but is counted once."""
        pipeline = InternalLinkingPipeline(clients, settings=settings, crawler=crawler)
        result = await pipeline.run(PROJECT, SITE)

        assert result["keywords_extracted"] == 8
        run = get_analysis_run(result["analysis_id"])
        assert run["total_keywords_extracted"] == 8

    @pytest.mark.asyncio
    async def test_degraded_mode_completes_without_enrichment(self, db, settings, clients, crawler):
        """No credentials for DataForSEO or Search Console: no crash, no opportunities."""
        pipeline = InternalLinkingPipeline(clients, settings=settings, crawler=crawler)
        result = await pipeline.run(PROJECT, SITE)

        assert result["success"] is True
        assert result["pages_crawled"] == 3
        assert result["opportunities_found"] == 0
        assert result["top_opportunities"] == []

        run = get_analysis_run(result["analysis_id"])
        assert run["status"] == "completed"
        assert run["results_summary"]["enrichment"] == {
            "keyword_metrics": False,
            "search_performance": False,
        }


class TestPipelineFailures:
    """Test fatal errors and run bookkeeping."""

    @pytest.mark.asyncio
    async def test_missing_input(self, db, settings, clients, crawler):
        pipeline = InternalLinkingPipeline(clients, settings=settings, crawler=crawler)
        with pytest.raises(AnalysisInputError):
            await pipeline.run("", SITE)
        crawler.crawl.assert_not_called()

    @pytest.mark.asyncio
    async def test_crawl_failure_marks_run_failed(self, db, settings, clients, crawler):
        crawler.crawl.side_effect = CrawlError("Firecrawl crawl crawl-1 failed")
        pipeline = InternalLinkingPipeline(clients, settings=settings, crawler=crawler)

        with pytest.raises(CrawlError):
            await pipeline.run(PROJECT, SITE)

        runs = list_analyses(PROJECT)
        assert runs[0]["status"] == "failed"
        assert "crawl-1 failed" in runs[0]["error_message"]

    @pytest.mark.asyncio
    async def test_zero_pages_is_fatal(self, db, settings, clients, crawler):
        crawler.crawl.return_value = []
        pipeline = InternalLinkingPipeline(clients, settings=settings, crawler=crawler)

        with pytest.raises(CrawlError, match="No pages crawled"):
            await pipeline.run(PROJECT, SITE)

    @pytest.mark.asyncio
    async def test_concurrent_run_refused(self, db, settings, clients, crawler):
        create_analysis_run(PROJECT, SITE)

        pipeline = InternalLinkingPipeline(clients, settings=settings, crawler=crawler)
        with pytest.raises(RunAlreadyInProgressError):
            await pipeline.run(PROJECT, SITE)


class TestRunInternalLinkingAnalysis:
    """Test the caller-facing payload wrapper."""

    @pytest.mark.asyncio
    async def test_missing_input_payload(self, db, settings, clients):
        result = await run_internal_linking_analysis("", "", clients=clients, settings=settings)
        assert result == {"success": False, "error": "projectId and siteUrl are required"}

    @pytest.mark.asyncio
    async def test_missing_firecrawl_key_payload(self, db, settings, clients):
        result = await run_internal_linking_analysis(
            PROJECT, SITE, clients=clients, settings=settings
        )

        assert result["success"] is False
        assert "FIRECRAWL_API_KEY" in result["error"]
        clients.close.assert_not_called()
