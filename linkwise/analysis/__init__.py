"""
Content Analysis

Tokenization and TF-IDF keyword extraction for crawled pages.
"""

from .tokenizer import STOPWORDS, tokenize
from .tfidf import (
    MIN_TFIDF_SCORE,
    CorpusIndex,
    TermScore,
    TfIdfCalculator,
    build_corpus,
    score_document,
)

__all__ = [
    "STOPWORDS",
    "tokenize",
    "MIN_TFIDF_SCORE",
    "CorpusIndex",
    "TermScore",
    "TfIdfCalculator",
    "build_corpus",
    "score_document",
]
