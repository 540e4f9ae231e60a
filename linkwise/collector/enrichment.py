"""
Keyword & Performance Enrichment

Fetchers that attach external metrics to extracted keywords:
- Keyword volume / difficulty / CPC from DataForSEO (chunked, 100 per call)
- Query × page impressions / clicks / position from Search Console

Neither fetcher raises. A missing client, missing credentials, timeout or
API error yields EnrichmentResult.unavailable() and the analysis continues
with zeroed metrics.
"""

import logging
from typing import Dict, Iterable, List, Optional

from linkwise.models import EnrichmentResult, KeywordMetrics
from linkwise.integrations.search_console import (
    SearchConsoleClient,
    SearchConsoleError,
    aggregate_search_rows,
)

from .client import DataForSEOClient, DataForSEOError, KEYWORD_BATCH_SIZE

logger = logging.getLogger(__name__)


def chunk_keywords(keywords: Iterable[str], size: int = KEYWORD_BATCH_SIZE) -> List[List[str]]:
    """Split keywords into sorted, de-duplicated batches of at most `size`."""
    unique = sorted(set(k for k in keywords if k))
    return [unique[i:i + size] for i in range(0, len(unique), size)]


async def fetch_keyword_metrics(
    client: Optional[DataForSEOClient],
    keywords: Iterable[str],
    location_name: str = "United States",
    language_name: str = "English",
) -> EnrichmentResult:
    """
    Fetch search volume metrics for keywords.

    Args:
        client: DataForSEO client, or None when not configured
        keywords: Keywords to enrich
        location_name: Market location
        language_name: Market language

    Returns:
        EnrichmentResult with data = {keyword: KeywordMetrics}
    """
    if client is None:
        logger.warning("DataForSEO credentials not configured - skipping keyword metrics")
        return EnrichmentResult.unavailable("DataForSEO credentials not configured")

    batches = chunk_keywords(keywords)
    if not batches:
        return EnrichmentResult.enriched({})

    metrics: Dict[str, KeywordMetrics] = {}
    failed = 0

    for i, batch in enumerate(batches, 1):
        try:
            items = await client.get_search_volume(
                batch, location_name=location_name, language_name=language_name
            )
        except DataForSEOError as e:
            failed += 1
            logger.warning(f"Keyword metrics batch {i}/{len(batches)} failed: {e}")
            continue
        except Exception as e:
            failed += 1
            logger.error(f"Unexpected error in keyword metrics batch {i}/{len(batches)}: {e}")
            continue

        for item in items:
            # Search volume endpoint has no KD; competition index (0-100) stands in
            metrics[item["keyword"]] = KeywordMetrics(
                keyword=item["keyword"],
                search_volume=int(item["search_volume"]),
                keyword_difficulty=float(item["competition_index"]),
                cpc=float(item["cpc"]),
                competition_index=float(item["competition_index"]),
            )

    if failed == len(batches):
        return EnrichmentResult.unavailable(f"All {failed} keyword metrics batches failed")

    logger.info(
        f"Fetched metrics for {len(metrics)} keywords "
        f"({len(batches)} batches, {failed} failed)"
    )
    return EnrichmentResult.enriched(metrics)


async def fetch_search_performance(
    client: Optional[SearchConsoleClient],
    site_url: str,
) -> EnrichmentResult:
    """
    Fetch Search Console performance for a site, aggregated per (query, page).

    Args:
        client: Search Console client, or None when no credentials exist
        site_url: Property URL registered in Search Console

    Returns:
        EnrichmentResult with data = {"query|page": SearchPerformanceMetric}
    """
    if client is None:
        logger.info("No Search Console access token - skipping search performance")
        return EnrichmentResult.unavailable("Search Console credentials not configured")

    try:
        rows = await client.fetch_all_rows(site_url)
    except SearchConsoleError as e:
        logger.warning(f"Search Console fetch failed for {site_url}: {e}")
        return EnrichmentResult.unavailable(str(e))
    except Exception as e:
        logger.error(f"Unexpected error fetching Search Console data for {site_url}: {e}")
        return EnrichmentResult.unavailable(str(e))

    metrics = aggregate_search_rows(rows)
    logger.info(f"Aggregated {len(rows)} Search Console rows into {len(metrics)} query/page pairs")
    return EnrichmentResult.enriched(metrics)
