"""
Data Collection Module

External metric collection for extracted keywords:
- DataForSEO client (keyword volume)
- Enrichment fetchers that degrade to empty results on failure
"""

from .client import (
    DataForSEOClient,
    DataForSEOError,
    RetryConfig,
    KEYWORD_BATCH_SIZE,
    safe_get_result,
)
from .enrichment import (
    chunk_keywords,
    fetch_keyword_metrics,
    fetch_search_performance,
)

__all__ = [
    "DataForSEOClient",
    "DataForSEOError",
    "RetryConfig",
    "KEYWORD_BATCH_SIZE",
    "safe_get_result",
    "chunk_keywords",
    "fetch_keyword_metrics",
    "fetch_search_performance",
]
