"""
Linkwise Internal Linking Engine

Finds internal-linking opportunities for a website:
1. Crawls the site with Firecrawl
2. Extracts per-page keywords with TF-IDF
3. Enriches keywords with DataForSEO volume and Search Console performance
4. Scores and ranks "link page A to page B" recommendations
"""

__version__ = "0.1.0"
