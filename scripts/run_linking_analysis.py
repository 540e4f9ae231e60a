#!/usr/bin/env python3
"""
Internal Linking Analysis Runner

Runs one internal-linking analysis from the command line:
1. Crawl (Firecrawl)
2. TF-IDF keyword extraction
3. Keyword metrics (DataForSEO) + search performance (Search Console)
4. Opportunity scoring, ranking and storage

Usage:
    # Set environment variables first (or put them in .env):
    export FIRECRAWL_API_KEY=your_key
    export DATAFORSEO_LOGIN=your_login          # optional
    export DATAFORSEO_PASSWORD=your_password    # optional
    export GSC_ACCESS_TOKEN=your_token          # optional

    # Run analysis:
    python scripts/run_linking_analysis.py my-project https://example.com

    # With options:
    python scripts/run_linking_analysis.py my-project https://example.com \
        --name "Q3 link audit" \
        --init-db
"""

import asyncio
import argparse
import logging
import os
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def run_linking_analysis(
    project_id: str,
    site_url: str,
    analysis_name: str = None,
    init_database: bool = False,
) -> dict:
    """Run the analysis pipeline and print a short report."""
    from linkwise.database import init_db
    from linkwise.integrations import ExternalAPIClients, ExternalAPIConfig
    from linkwise.pipeline import run_internal_linking_analysis

    config = ExternalAPIConfig()
    if not config.has_firecrawl:
        print("ERROR: Missing required environment variable FIRECRAWL_API_KEY")
        print("\nSet it with:")
        print("  export FIRECRAWL_API_KEY=your_key")
        sys.exit(1)

    if init_database:
        init_db()

    print(f"\n{'='*70}")
    print("LINKWISE - INTERNAL LINKING ANALYSIS")
    print(f"{'='*70}")
    print(f"Project:        {project_id}")
    print(f"Site:           {site_url}")
    print(f"DataForSEO:     {'enabled' if config.has_dataforseo else 'disabled'}")
    print(f"Search Console: {'enabled' if config.has_search_console else 'disabled'}")
    print(f"{'='*70}\n")

    async with ExternalAPIClients(config) as clients:
        result = await run_internal_linking_analysis(
            project_id, site_url, analysis_name=analysis_name, clients=clients
        )

    if not result["success"]:
        print(f"✗ Analysis failed: {result['error']}")
        return result

    print(f"✓ Pages crawled:       {result['pages_crawled']}")
    print(f"✓ Keywords extracted:  {result['keywords_extracted']}")
    print(f"✓ Opportunities found: {result['opportunities_found']}")

    if result["top_opportunities"]:
        print("\nTop opportunities:")
        for i, opp in enumerate(result["top_opportunities"], 1):
            print(
                f"  {i:2}. [{opp['keyword']}] {opp['source_url']} → {opp['target_url']} "
                f"(priority {opp['priority_score']:.1f}, +{opp['estimated_traffic_lift']} visits)"
            )

    return result


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Run an internal-linking analysis for a site"
    )
    parser.add_argument(
        "project_id",
        help="Project identifier results are stored under"
    )
    parser.add_argument(
        "site_url",
        help="Site root URL to crawl (e.g., https://example.com)"
    )
    parser.add_argument(
        "--name",
        default=None,
        help="Analysis name (optional)"
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create database tables before running"
    )

    args = parser.parse_args()

    result = asyncio.run(run_linking_analysis(
        project_id=args.project_id,
        site_url=args.site_url,
        analysis_name=args.name,
        init_database=args.init_db,
    ))

    sys.exit(0 if result.get("success") else 1)


if __name__ == "__main__":
    main()
