"""
Tests for the FastAPI application.
"""

import pytest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from api.analyze import app
from linkwise.database import (
    create_analysis_run,
    store_opportunities,
    store_page_keywords,
    upsert_page,
)
from linkwise.database.repository import RunAlreadyInProgressError
from linkwise.analysis.tfidf import TermScore
from linkwise.integrations.firecrawl import CrawlError, CrawledPage
from linkwise.scoring import LinkOpportunity

PROJECT = "project-1"
SITE = "https://example.com"


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def stored_opportunity(db):
    run_id = create_analysis_run(PROJECT, SITE)
    a = upsert_page(PROJECT, CrawledPage(url=f"{SITE}/a", title="A", content="shoes"))
    b = upsert_page(PROJECT, CrawledPage(url=f"{SITE}/b", title="B", content="shoes"))
    store_page_keywords(PROJECT, a, [TermScore("shoes", 0.4, 3, 2), TermScore("laces", 0.12, 1, 1)])
    store_opportunities(PROJECT, run_id, [LinkOpportunity(
        source_page_id=str(a), source_url=f"{SITE}/a",
        target_page_id=str(b), target_url=f"{SITE}/b",
        keyword="shoes", keyword_score=5000.0, page_score=416.0, priority_score=2080000.0,
        suggested_anchor_text="Learn more about shoes", estimated_traffic_lift=200,
    )])
    return {"run_id": run_id, "source_page_id": a}


def mock_pipeline(run):
    pipeline = patch("api.analyze.InternalLinkingPipeline")
    mocked = pipeline.start()
    mocked.return_value.run = run
    return pipeline


class TestAnalyzeEndpoint:
    """Test POST /api/internal-linking/analyze."""

    def test_missing_input_is_400(self, client):
        response = client.post("/api/internal-linking/analyze", json={"siteUrl": SITE})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "projectId and siteUrl are required"}

    def test_success_payload(self, client):
        payload = {
            "success": True,
            "analysis_id": "run-1",
            "pages_crawled": 3,
            "keywords_extracted": 20,
            "opportunities_found": 1,
            "top_opportunities": [],
            "message": "Analyzed 3 pages and found 1 internal linking opportunities",
        }
        pipeline = mock_pipeline(AsyncMock(return_value=payload))
        try:
            response = client.post(
                "/api/internal-linking/analyze",
                json={"projectId": PROJECT, "siteUrl": SITE, "analysisName": "Audit"},
            )
        finally:
            pipeline.stop()

        assert response.status_code == 200
        assert response.json() == payload

    def test_run_in_progress_is_409(self, client):
        pipeline = mock_pipeline(AsyncMock(side_effect=RunAlreadyInProgressError(PROJECT, "run-1")))
        try:
            response = client.post(
                "/api/internal-linking/analyze", json={"projectId": PROJECT, "siteUrl": SITE}
            )
        finally:
            pipeline.stop()

        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_crawl_failure_is_500(self, client):
        pipeline = mock_pipeline(AsyncMock(side_effect=CrawlError("Firecrawl crawl crawl-1 failed")))
        try:
            response = client.post(
                "/api/internal-linking/analyze", json={"projectId": PROJECT, "siteUrl": SITE}
            )
        finally:
            pipeline.stop()

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Firecrawl crawl crawl-1 failed"}


class TestReadEndpoints:
    """Test the internal-linking read and workflow endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_list_analyses(self, client, stored_opportunity):
        response = client.get(f"/api/internal-linking/projects/{PROJECT}/analyses")

        assert response.status_code == 200
        runs = response.json()
        assert len(runs) == 1
        assert runs[0]["id"] == str(stored_opportunity["run_id"])
        assert runs[0]["status"] == "running"

    def test_list_opportunities(self, client, stored_opportunity):
        response = client.get(f"/api/internal-linking/projects/{PROJECT}/opportunities")

        assert response.status_code == 200
        opps = response.json()
        assert len(opps) == 1
        assert opps[0]["keyword"] == "shoes"
        assert opps[0]["implementation_status"] == "pending"

    def test_filter_opportunities_by_status(self, client, stored_opportunity):
        response = client.get(
            f"/api/internal-linking/projects/{PROJECT}/opportunities",
            params={"status": "implemented"},
        )
        assert response.status_code == 200
        assert response.json() == []

    def test_invalid_status_filter_is_422(self, client, stored_opportunity):
        response = client.get(
            f"/api/internal-linking/projects/{PROJECT}/opportunities",
            params={"status": "done"},
        )
        assert response.status_code == 422

    def test_pages_and_keywords(self, client, stored_opportunity):
        pages = client.get(f"/api/internal-linking/projects/{PROJECT}/pages").json()
        assert {p["url"] for p in pages} == {f"{SITE}/a", f"{SITE}/b"}

        page_id = stored_opportunity["source_page_id"]
        response = client.get(f"/api/internal-linking/projects/{PROJECT}/pages/{page_id}/keywords")
        assert response.status_code == 200
        assert [k["keyword"] for k in response.json()] == ["shoes", "laces"]

    def test_update_opportunity_status(self, client, stored_opportunity):
        opp = client.get(f"/api/internal-linking/projects/{PROJECT}/opportunities").json()[0]

        response = client.patch(
            f"/api/internal-linking/opportunities/{opp['id']}",
            json={"implementation_status": "rejected"},
        )

        assert response.status_code == 200
        assert response.json()["implementation_status"] == "rejected"

    def test_update_unknown_opportunity_is_404(self, client):
        response = client.patch(
            "/api/internal-linking/opportunities/00000000-0000-0000-0000-000000000000",
            json={"implementation_status": "implemented"},
        )
        assert response.status_code == 404
