"""
Repository Layer - Clean Interface for Data Operations

Provides simple functions to store and retrieve internal-linking data.
Handles all SQLAlchemy complexity internally; callers only see plain
dicts, UUIDs and the analysis dataclasses.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from linkwise.analysis.tfidf import TermScore
from linkwise.integrations.firecrawl import CrawledPage
from linkwise.models import KeywordMetrics, SearchPerformanceMetric
from linkwise.scoring.opportunity import LinkOpportunity

from .models import (
    AnalysisRun, Page, PageKeyword, KeywordMetric, SearchPerformanceRecord,
    LinkOpportunityRecord, InternalLink, AnalysisStatus, ImplementationStatus,
)
from .session import get_db_context

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_NAME = "Internal Linking Analysis"


class RunAlreadyInProgressError(Exception):
    """Raised when a project already has a live running analysis."""

    def __init__(self, project_id: str, run_id: UUID):
        self.project_id = project_id
        self.run_id = run_id
        super().__init__(f"Analysis {run_id} is already running for project {project_id}")


def _as_uuid(value) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


# =============================================================================
# ANALYSIS RUN MANAGEMENT
# =============================================================================

def create_analysis_run(
    project_id: str,
    site_url: str,
    analysis_name: Optional[str] = None,
    stale_minutes: int = 60,
) -> UUID:
    """
    Create a new analysis run in `running` state.

    Running runs older than `stale_minutes` are considered stuck and are
    marked failed first.

    Returns:
        UUID of the created analysis run

    Raises:
        RunAlreadyInProgressError: project has a running run younger than stale_minutes
    """
    now = datetime.utcnow()
    cutoff = now - timedelta(minutes=stale_minutes)

    with get_db_context() as db:
        running = (
            db.query(AnalysisRun)
            .filter(
                AnalysisRun.project_id == project_id,
                AnalysisRun.status == AnalysisStatus.RUNNING,
            )
            .all()
        )

        for run in running:
            if run.started_at and run.started_at < cutoff:
                run.status = AnalysisStatus.FAILED
                run.completed_at = now
                run.error_message = f"Abandoned: still running after {stale_minutes} minutes"
                logger.warning(f"Marked stale run {run.id} for project {project_id} as failed")
            else:
                raise RunAlreadyInProgressError(project_id, run.id)

        run = AnalysisRun(
            project_id=project_id,
            site_url=site_url,
            analysis_name=analysis_name or DEFAULT_ANALYSIS_NAME,
            status=AnalysisStatus.RUNNING,
            started_at=now,
        )
        db.add(run)
        db.flush()

        run_id = run.id
        logger.info(f"Created analysis run {run_id} for project {project_id} ({site_url})")

        return run_id


def complete_run(
    run_id: UUID,
    pages_crawled: int,
    keywords_extracted: int,
    opportunities_found: int,
    results_summary: Optional[Dict[str, Any]] = None,
):
    """Mark analysis run as completed with its counts and summary snapshot."""
    with get_db_context() as db:
        run = db.get(AnalysisRun, _as_uuid(run_id))
        if run:
            run.status = AnalysisStatus.COMPLETED
            run.completed_at = datetime.utcnow()
            run.total_pages_crawled = pages_crawled
            run.total_keywords_extracted = keywords_extracted
            run.total_opportunities_found = opportunities_found
            run.results_summary = results_summary or {}
            if run.started_at:
                run.duration_seconds = int((run.completed_at - run.started_at).total_seconds())
            logger.info(
                f"Run {run_id} completed: {pages_crawled} pages, "
                f"{keywords_extracted} keywords, {opportunities_found} opportunities"
            )


def fail_run(run_id: UUID, error_message: str):
    """Mark analysis run as failed"""
    with get_db_context() as db:
        run = db.get(AnalysisRun, _as_uuid(run_id))
        if run:
            run.status = AnalysisStatus.FAILED
            run.completed_at = datetime.utcnow()
            run.error_message = error_message
            if run.started_at:
                run.duration_seconds = int((run.completed_at - run.started_at).total_seconds())
            logger.error(f"Run {run_id} failed: {error_message}")


# =============================================================================
# PAGES & KEYWORDS
# =============================================================================

def upsert_page(project_id: str, crawled: CrawledPage) -> UUID:
    """
    Insert or overwrite the page row for (project, url).

    Returns:
        Page ID
    """
    with get_db_context() as db:
        page = (
            db.query(Page)
            .filter(Page.project_id == project_id, Page.url == crawled.url)
            .first()
        )
        if page is None:
            page = Page(project_id=project_id, url=crawled.url)
            db.add(page)

        page.title = crawled.title
        page.content = crawled.content
        page.markdown_content = crawled.markdown
        page.word_count = crawled.word_count
        page.topics = list(crawled.topics)
        page.status = "active"
        page.last_crawled_at = datetime.utcnow()
        db.flush()

        return page.id


def store_page_keywords(
    project_id: str,
    page_id: UUID,
    terms: List[TermScore],
    relevant_threshold: float = 0.2,
) -> int:
    """
    Replace the TF-IDF keywords of one page with this run's terms.

    Keywords from an earlier crawl that are not in terms are deleted, so
    stored scores always come from a single corpus.

    Returns:
        Number of keywords stored
    """
    page_id = _as_uuid(page_id)
    current = {term.keyword for term in terms}

    with get_db_context() as db:
        existing = {}
        for row in db.query(PageKeyword).filter(PageKeyword.page_id == page_id).all():
            if row.keyword in current:
                existing[row.keyword] = row
            else:
                db.delete(row)
        db.flush()

        for term in terms:
            row = existing.get(term.keyword)
            if row is None:
                row = PageKeyword(project_id=project_id, page_id=page_id, keyword=term.keyword)
                db.add(row)
                existing[term.keyword] = row

            row.tf_idf_score = term.tf_idf_score
            row.term_frequency = term.term_frequency
            row.document_frequency = term.document_frequency
            row.is_relevant = term.tf_idf_score > relevant_threshold

        return len(terms)


# =============================================================================
# ENRICHMENT METRICS
# =============================================================================

def store_keyword_metrics(project_id: str, metrics: Dict[str, KeywordMetrics]) -> int:
    """Upsert keyword volume metrics per (project, keyword)."""
    if not metrics:
        return 0

    with get_db_context() as db:
        existing = {
            m.keyword: m
            for m in db.query(KeywordMetric)
            .filter(
                KeywordMetric.project_id == project_id,
                KeywordMetric.keyword.in_(list(metrics.keys())),
            )
            .all()
        }

        count = 0
        for keyword, metric in metrics.items():
            if not keyword:
                logger.warning(f"Skipping keyword metric without keyword: {metric}")
                continue

            row = existing.get(keyword)
            if row is None:
                row = KeywordMetric(project_id=project_id, keyword=keyword)
                db.add(row)

            row.search_volume = metric.search_volume
            row.keyword_difficulty = metric.keyword_difficulty
            row.cpc = metric.cpc
            row.competition_index = metric.competition_index
            count += 1

        logger.info(f"Stored {count} keyword metrics for project {project_id}")
        return count


def store_search_performance(
    project_id: str,
    metrics: Dict[str, SearchPerformanceMetric],
    metric_date: Optional[date] = None,
) -> int:
    """Upsert Search Console totals per (project, query, page, date)."""
    if not metrics:
        return 0

    metric_date = metric_date or date.today()

    with get_db_context() as db:
        existing = {
            (m.query, m.page_url): m
            for m in db.query(SearchPerformanceRecord)
            .filter(
                SearchPerformanceRecord.project_id == project_id,
                SearchPerformanceRecord.metric_date == metric_date,
            )
            .all()
        }

        count = 0
        for metric in metrics.values():
            if not metric.query or not metric.page_url:
                logger.warning(f"Skipping search metric without query or page: {metric}")
                continue

            row = existing.get((metric.query, metric.page_url))
            if row is None:
                row = SearchPerformanceRecord(
                    project_id=project_id,
                    query=metric.query,
                    page_url=metric.page_url,
                    metric_date=metric_date,
                )
                db.add(row)
                existing[(metric.query, metric.page_url)] = row

            row.impressions = metric.impressions
            row.clicks = metric.clicks
            row.ctr = metric.ctr
            row.position = metric.position
            count += 1

        logger.info(f"Stored {count} search performance rows for project {project_id}")
        return count


# =============================================================================
# LINKS & OPPORTUNITIES
# =============================================================================

def count_incoming_links(page_ids: Iterable) -> Dict[str, int]:
    """
    Count existing internal links pointing at each page.

    Returns:
        {str(page_id): count}, zero for pages without incoming links
    """
    ids = [_as_uuid(p) for p in page_ids]
    counts = {str(p): 0 for p in ids}
    if not ids:
        return counts

    with get_db_context() as db:
        rows = (
            db.query(InternalLink.target_page_id)
            .filter(InternalLink.target_page_id.in_(ids))
            .all()
        )
        for (target_id,) in rows:
            counts[str(target_id)] += 1

    return counts


def store_opportunities(
    project_id: str,
    run_id: UUID,
    opportunities: List[LinkOpportunity],
) -> int:
    """Persist opportunities for a run as pending."""
    if not opportunities:
        return 0

    run_id = _as_uuid(run_id)
    with get_db_context() as db:
        for opp in opportunities:
            db.add(LinkOpportunityRecord(
                project_id=project_id,
                analysis_run_id=run_id,
                source_page_id=_as_uuid(opp.source_page_id),
                source_url=opp.source_url,
                target_page_id=_as_uuid(opp.target_page_id),
                target_url=opp.target_url,
                keyword=opp.keyword,
                keyword_score=opp.keyword_score,
                page_score=opp.page_score,
                priority_score=opp.priority_score,
                suggested_anchor_text=opp.suggested_anchor_text,
                estimated_traffic_lift=opp.estimated_traffic_lift,
                implementation_status=ImplementationStatus.PENDING,
            ))

        logger.info(f"Stored {len(opportunities)} opportunities for run {run_id}")
        return len(opportunities)


def update_opportunity_status(
    opportunity_id: UUID,
    status: ImplementationStatus,
) -> Optional[Dict[str, Any]]:
    """
    Move an opportunity through the pending / implemented / rejected workflow.

    Returns:
        Updated opportunity dict, or None if it does not exist
    """
    with get_db_context() as db:
        opp = db.get(LinkOpportunityRecord, _as_uuid(opportunity_id))
        if opp is None:
            return None

        opp.implementation_status = status
        opp.updated_at = datetime.utcnow()
        db.flush()
        logger.info(f"Opportunity {opportunity_id} marked {status.value}")
        return _opportunity_to_dict(opp)


# =============================================================================
# READ ACCESS
# =============================================================================

def get_analysis_run(run_id: UUID) -> Optional[Dict[str, Any]]:
    with get_db_context() as db:
        run = db.get(AnalysisRun, _as_uuid(run_id))
        return _run_to_dict(run) if run else None


def list_analyses(project_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    """Most recent analysis runs of a project."""
    with get_db_context() as db:
        runs = (
            db.query(AnalysisRun)
            .filter(AnalysisRun.project_id == project_id)
            .order_by(AnalysisRun.created_at.desc())
            .limit(limit)
            .all()
        )
        return [_run_to_dict(r) for r in runs]


def list_opportunities(
    project_id: str,
    limit: int = 50,
    status: Optional[ImplementationStatus] = None,
) -> List[Dict[str, Any]]:
    """Opportunities of a project, highest priority first."""
    with get_db_context() as db:
        query = db.query(LinkOpportunityRecord).filter(
            LinkOpportunityRecord.project_id == project_id
        )
        if status is not None:
            query = query.filter(LinkOpportunityRecord.implementation_status == status)

        opps = (
            query.order_by(LinkOpportunityRecord.priority_score.desc())
            .limit(limit)
            .all()
        )
        return [_opportunity_to_dict(o) for o in opps]


def list_pages(project_id: str) -> List[Dict[str, Any]]:
    """Crawled pages of a project, most recently crawled first."""
    with get_db_context() as db:
        pages = (
            db.query(Page)
            .filter(Page.project_id == project_id)
            .order_by(Page.last_crawled_at.desc())
            .all()
        )
        return [_page_to_dict(p) for p in pages]


def get_page_keywords(project_id: str, page_id: UUID, limit: int = 20) -> List[Dict[str, Any]]:
    """Top TF-IDF keywords of a page."""
    with get_db_context() as db:
        keywords = (
            db.query(PageKeyword)
            .filter(
                PageKeyword.project_id == project_id,
                PageKeyword.page_id == _as_uuid(page_id),
            )
            .order_by(PageKeyword.tf_idf_score.desc())
            .limit(limit)
            .all()
        )
        return [_keyword_to_dict(k) for k in keywords]


def _run_to_dict(r: AnalysisRun) -> Dict:
    return {
        "id": str(r.id),
        "project_id": r.project_id,
        "analysis_name": r.analysis_name,
        "site_url": r.site_url,
        "status": r.status.value if r.status else None,
        "total_pages_crawled": r.total_pages_crawled,
        "total_keywords_extracted": r.total_keywords_extracted,
        "total_opportunities_found": r.total_opportunities_found,
        "results_summary": r.results_summary or {},
        "error_message": r.error_message,
        "started_at": r.started_at.isoformat() if r.started_at else None,
        "completed_at": r.completed_at.isoformat() if r.completed_at else None,
        "duration_seconds": r.duration_seconds,
    }


def _page_to_dict(p: Page) -> Dict:
    return {
        "id": str(p.id),
        "url": p.url,
        "title": p.title,
        "word_count": p.word_count,
        "topics": p.topics or [],
        "status": p.status,
        "last_crawled_at": p.last_crawled_at.isoformat() if p.last_crawled_at else None,
    }


def _keyword_to_dict(k: PageKeyword) -> Dict:
    return {
        "keyword": k.keyword,
        "tf_idf_score": k.tf_idf_score,
        "term_frequency": k.term_frequency,
        "document_frequency": k.document_frequency,
        "is_relevant": k.is_relevant,
    }


def _opportunity_to_dict(o: LinkOpportunityRecord) -> Dict:
    return {
        "id": str(o.id),
        "analysis_run_id": str(o.analysis_run_id),
        "source_page_id": str(o.source_page_id),
        "source_url": o.source_url,
        "target_page_id": str(o.target_page_id),
        "target_url": o.target_url,
        "keyword": o.keyword,
        "keyword_score": o.keyword_score,
        "page_score": o.page_score,
        "priority_score": o.priority_score,
        "suggested_anchor_text": o.suggested_anchor_text,
        "estimated_traffic_lift": o.estimated_traffic_lift,
        "implementation_status": o.implementation_status.value if o.implementation_status else None,
    }
