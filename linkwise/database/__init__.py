"""
Linkwise Database Layer

Usage:
    from linkwise.database import (
        # Session management
        init_db, get_db_context,

        # Repository (high-level operations)
        create_analysis_run, upsert_page, store_opportunities,
    )

    # Initialize database
    init_db()

    # Create a run
    run_id = create_analysis_run("project-1", "https://example.com")
"""

# Models
from .models import (
    Base,
    AnalysisRun,
    Page,
    PageKeyword,
    KeywordMetric,
    SearchPerformanceRecord,
    LinkOpportunityRecord,
    InternalLink,
    # Enums
    AnalysisStatus,
    ImplementationStatus,
)

# Session management
from .session import (
    get_database_url,
    get_engine,
    reset_engine,
    get_session_factory,
    get_db_context,
    init_db,
    check_db_connection,
)

# Repository
from .repository import (
    RunAlreadyInProgressError,
    create_analysis_run,
    complete_run,
    fail_run,
    upsert_page,
    store_page_keywords,
    store_keyword_metrics,
    store_search_performance,
    count_incoming_links,
    store_opportunities,
    update_opportunity_status,
    get_analysis_run,
    list_analyses,
    list_opportunities,
    list_pages,
    get_page_keywords,
)

__all__ = [
    # Models
    "Base",
    "AnalysisRun",
    "Page",
    "PageKeyword",
    "KeywordMetric",
    "SearchPerformanceRecord",
    "LinkOpportunityRecord",
    "InternalLink",
    "AnalysisStatus",
    "ImplementationStatus",
    # Session
    "get_database_url",
    "get_engine",
    "reset_engine",
    "get_session_factory",
    "get_db_context",
    "init_db",
    "check_db_connection",
    # Repository
    "RunAlreadyInProgressError",
    "create_analysis_run",
    "complete_run",
    "fail_run",
    "upsert_page",
    "store_page_keywords",
    "store_keyword_metrics",
    "store_search_performance",
    "count_incoming_links",
    "store_opportunities",
    "update_opportunity_status",
    "get_analysis_run",
    "list_analyses",
    "list_opportunities",
    "list_pages",
    "get_page_keywords",
]
