"""
Internal Linking Analysis Pipeline

Runs one analysis for a project, in strict data order:

1. Crawl the site (fatal on failure or zero pages)
2. Tokenize + TF-IDF over the crawl corpus, top keywords per page
3. Keyword metrics (DataForSEO)      } concurrent, degrade to empty
4. Search performance (Search Console) }
5. Score link opportunities
6. Rank, persist the top opportunities, complete the run

Usage:
    async with ExternalAPIClients() as clients:
        result = await run_internal_linking_analysis(
            project_id="project-1",
            site_url="https://example.com",
            clients=clients,
        )
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID

from linkwise.analysis import build_corpus, score_document
from linkwise.collector.enrichment import fetch_keyword_metrics, fetch_search_performance
from linkwise.database import repository
from linkwise.integrations.config import ExternalAPIClients
from linkwise.integrations.firecrawl import CrawlError, CrawledPage, SiteCrawler
from linkwise.models import EnrichmentResult
from linkwise.scoring import (
    OpportunityScorer,
    ScoringPage,
    ScoringThresholds,
    build_results_summary,
    rank_opportunities,
    select_for_persistence,
)
from linkwise.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AnalysisInputError(ValueError):
    """Raised when project_id or site_url is missing."""


@dataclass
class StoredPage:
    """A crawled page after it has been upserted."""
    page_id: UUID
    crawled: CrawledPage
    keywords: List = field(default_factory=list)


class InternalLinkingPipeline:
    """
    Orchestrates one internal-linking analysis run.

    run() raises AnalysisInputError and RunAlreadyInProgressError before a
    run exists. Any later exception marks the run failed and is re-raised.
    """

    def __init__(
        self,
        clients: ExternalAPIClients,
        settings: Optional[Settings] = None,
        crawler: Optional[SiteCrawler] = None,
    ):
        self.clients = clients
        self.settings = settings or get_settings()
        self.thresholds = ScoringThresholds.from_settings(self.settings)
        self._crawler = crawler

    @property
    def crawler(self) -> SiteCrawler:
        if self._crawler is None:
            firecrawl = self.clients.firecrawl
            if firecrawl is None:
                raise CrawlError("FIRECRAWL_API_KEY not configured")
            self._crawler = SiteCrawler(
                firecrawl, poll_timeout=float(self.settings.CRAWL_POLL_TIMEOUT)
            )
        return self._crawler

    async def run(
        self,
        project_id: str,
        site_url: str,
        analysis_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run the full analysis.

        Returns:
            Success payload with counts and the top opportunities
        """
        if not project_id or not site_url:
            raise AnalysisInputError("projectId and siteUrl are required")

        run_id = repository.create_analysis_run(
            project_id,
            site_url,
            analysis_name=analysis_name,
            stale_minutes=self.settings.STALE_RUN_MINUTES,
        )

        try:
            return await self._execute(run_id, project_id, site_url)
        except Exception as e:
            logger.error(f"Analysis {run_id} for {site_url} failed: {e}")
            repository.fail_run(run_id, str(e))
            raise

    async def _execute(self, run_id: UUID, project_id: str, site_url: str) -> Dict[str, Any]:
        # Step 1: crawl
        crawled = await self.crawler.crawl(site_url)
        if not crawled:
            raise CrawlError(f"No pages crawled from {site_url}")

        pages = self._store_pages(project_id, crawled)
        if not pages:
            raise CrawlError(f"None of the {len(crawled)} crawled pages could be stored")

        # Step 2: TF-IDF
        keywords_extracted = self._extract_keywords(project_id, pages)

        # Steps 3 + 4: enrichment
        all_keywords = {term.keyword for page in pages for term in page.keywords}
        keyword_result, search_result = await asyncio.gather(
            fetch_keyword_metrics(
                self.clients.dataforseo,
                all_keywords,
                location_name=self.settings.KEYWORD_LOCATION,
                language_name=self.settings.KEYWORD_LANGUAGE,
            ),
            fetch_search_performance(self.clients.search_console, site_url),
        )
        self._store_enrichment(project_id, keyword_result, search_result)

        # Step 5: scoring
        incoming = repository.count_incoming_links(p.page_id for p in pages)
        scoring_pages = [
            ScoringPage(
                page_id=str(p.page_id),
                url=p.crawled.url,
                content=p.crawled.content,
                keywords=p.keywords,
                incoming_links=incoming.get(str(p.page_id), 0),
            )
            for p in pages
        ]
        scorer = OpportunityScorer(keyword_result.data, search_result.data, self.thresholds)
        opportunities = scorer.generate(scoring_pages)

        # Step 6: rank + persist
        ranked = rank_opportunities(opportunities)
        repository.store_opportunities(
            project_id,
            run_id,
            select_for_persistence(ranked, self.thresholds.persisted_opportunities),
        )

        summary = build_results_summary(
            ranked,
            limit=self.thresholds.summary_opportunities,
            enrichment={
                "keyword_metrics": keyword_result.available,
                "search_performance": search_result.available,
            },
        )
        repository.complete_run(
            run_id,
            pages_crawled=len(pages),
            keywords_extracted=keywords_extracted,
            opportunities_found=len(opportunities),
            results_summary=summary,
        )

        return {
            "success": True,
            "analysis_id": str(run_id),
            "pages_crawled": len(pages),
            "keywords_extracted": keywords_extracted,
            "opportunities_found": len(opportunities),
            "top_opportunities": [
                o.to_dict() for o in ranked[: self.thresholds.summary_opportunities]
            ],
            "message": (
                f"Analyzed {len(pages)} pages and found {len(opportunities)} "
                f"internal linking opportunities"
            ),
        }

    def _store_pages(self, project_id: str, crawled: List[CrawledPage]) -> List[StoredPage]:
        stored = []
        for page in crawled:
            try:
                page_id = repository.upsert_page(project_id, page)
            except Exception as e:
                logger.warning(f"Failed to store page {page.url}: {e}")
                continue
            stored.append(StoredPage(page_id=page_id, crawled=page))

        logger.info(f"Stored {len(stored)}/{len(crawled)} crawled pages")
        return stored

    def _extract_keywords(self, project_id: str, pages: List[StoredPage]) -> int:
        corpus = build_corpus([p.crawled.content for p in pages])
        stored = 0

        for i, page in enumerate(pages):
            terms = score_document(corpus, i, self.thresholds.tfidf_min_score)
            page.keywords = terms[: self.thresholds.keywords_per_page]
            try:
                stored += repository.store_page_keywords(
                    project_id,
                    page.page_id,
                    page.keywords,
                    relevant_threshold=self.thresholds.relevant_tfidf_score,
                )
            except Exception as e:
                logger.warning(f"Failed to store keywords for {page.crawled.url}: {e}")

        unique = len({t.keyword for p in pages for t in p.keywords})
        logger.info(
            f"Extracted {unique} unique keywords across {len(pages)} pages "
            f"({stored} page keywords stored)"
        )
        return unique

    def _store_enrichment(
        self,
        project_id: str,
        keyword_result: EnrichmentResult,
        search_result: EnrichmentResult,
    ):
        if not keyword_result.available:
            logger.warning(f"Keyword metrics unavailable: {keyword_result.reason}")
        if not search_result.available:
            logger.warning(f"Search performance unavailable: {search_result.reason}")

        try:
            repository.store_keyword_metrics(project_id, keyword_result.data)
        except Exception as e:
            logger.warning(f"Failed to store keyword metrics: {e}")

        try:
            repository.store_search_performance(project_id, search_result.data)
        except Exception as e:
            logger.warning(f"Failed to store search performance: {e}")


async def run_internal_linking_analysis(
    project_id: str,
    site_url: str,
    analysis_name: Optional[str] = None,
    clients: Optional[ExternalAPIClients] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """
    Run an analysis and return a caller-facing payload.

    Returns:
        The success payload, or {"success": False, "error": "..."}
    """
    owns_clients = clients is None
    clients = clients or ExternalAPIClients()

    try:
        pipeline = InternalLinkingPipeline(clients, settings=settings)
        return await pipeline.run(project_id, site_url, analysis_name)
    except Exception as e:
        return {"success": False, "error": str(e)}
    finally:
        if owns_clients:
            await clients.close()
