"""
TF-IDF Keyword Engine

Two-phase API:
    corpus = build_corpus(documents)       # tokenizes once, builds DF table
    scores = score_document(corpus, 0)     # per-document keyword weights

    tf  = count(term in doc) / tokens(doc)          (0 when doc has no tokens)
    idf = ln(N / df)                                (0 when df == 0)
    tf-idf = tf × idf

Document frequency is computed over the supplied corpus only, so scores are
not comparable between corpora built from different crawls.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .tokenizer import tokenize

# Minimum TF-IDF score for a term to be returned
MIN_TFIDF_SCORE = 0.1


@dataclass(frozen=True)
class TermScore:
    """TF-IDF weight of one keyword in one document."""
    keyword: str
    tf_idf_score: float
    term_frequency: int
    document_frequency: int


@dataclass
class CorpusIndex:
    """Tokenized corpus with its document-frequency table."""
    documents: List[List[str]]
    document_frequency: Dict[str, int] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.documents)

    def idf(self, term: str) -> float:
        df = self.document_frequency.get(term, 0)
        if df == 0:
            return 0.0
        return math.log(self.size / df)


def build_corpus(documents: Sequence[str]) -> CorpusIndex:
    """
    Tokenize every document and count in how many documents each term appears.

    Args:
        documents: Page contents, in the order pages will be scored

    Returns:
        CorpusIndex ready for score_document()
    """
    tokenized = [tokenize(doc) for doc in documents]
    df: Counter = Counter()
    for tokens in tokenized:
        df.update(set(tokens))
    return CorpusIndex(documents=tokenized, document_frequency=dict(df))


def score_document(
    corpus: CorpusIndex,
    document_index: int,
    min_score: float = MIN_TFIDF_SCORE,
) -> List[TermScore]:
    """
    Compute TF-IDF scores for one document of the corpus.

    Args:
        corpus: Index built from the full crawl
        document_index: Position of the document in the corpus
        min_score: Only terms scoring strictly above this are returned

    Returns:
        TermScore list sorted by score descending; ties keep first-appearance order
    """
    tokens = corpus.documents[document_index]
    total = len(tokens)
    if total == 0:
        return []

    counts = Counter(tokens)
    results = []
    # Counter preserves first-appearance order, which makes the sort below stable
    for term, count in counts.items():
        tf = count / total
        tf_idf = tf * corpus.idf(term)
        if tf_idf > min_score:
            results.append(TermScore(
                keyword=term,
                tf_idf_score=tf_idf,
                term_frequency=count,
                document_frequency=corpus.document_frequency.get(term, 0),
            ))

    results.sort(key=lambda r: r.tf_idf_score, reverse=True)
    return results


class TfIdfCalculator:
    """
    Incremental wrapper around the two-phase API.

    Usage:
        calc = TfIdfCalculator()
        for page in pages:
            calc.add_document(page.content)
        top = calc.calculate(0)[:20]
    """

    def __init__(self, min_score: float = MIN_TFIDF_SCORE):
        self.min_score = min_score
        self._documents: List[str] = []
        self._corpus: Optional[CorpusIndex] = None

    def add_document(self, content: str) -> int:
        """Add a document and return its index."""
        self._documents.append(content or "")
        self._corpus = None
        return len(self._documents) - 1

    @property
    def document_count(self) -> int:
        return len(self._documents)

    @property
    def corpus(self) -> CorpusIndex:
        if self._corpus is None:
            self._corpus = build_corpus(self._documents)
        return self._corpus

    def calculate(self, document_index: int) -> List[TermScore]:
        """Score one document against everything added so far."""
        return score_document(self.corpus, document_index, self.min_score)
