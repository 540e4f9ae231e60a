"""
Content Tokenizer

Turns page text into normalized keyword tokens for TF-IDF scoring.

Rules:
- Lowercase, punctuation replaced with whitespace, split on whitespace
- Drop stopwords, tokens of 3 characters or fewer, pure numbers
  and 1-2 letter alphabetic fragments
"""

import re
from typing import FrozenSet, List, Optional

STOPWORDS: FrozenSet[str] = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has", "he",
    "in", "is", "it", "its", "of", "on", "that", "the", "to", "was", "will",
    "with", "i", "you", "we", "they", "this", "these", "those", "can", "could",
    "should", "would", "may", "might", "must", "shall", "do", "does", "did",
    "have", "had", "having", "been", "being", "am", "were",
})

MIN_TOKEN_LENGTH = 4

_PUNCTUATION = re.compile(r"[^\w\s]")
_NUMERIC = re.compile(r"\d+")
_SHORT_ALPHA = re.compile(r"[a-z]{1,2}")


def _keep(token: str, stopwords: FrozenSet[str]) -> bool:
    return (
        len(token) >= MIN_TOKEN_LENGTH
        and token not in stopwords
        and not _NUMERIC.fullmatch(token)
        and not _SHORT_ALPHA.fullmatch(token)
    )


def tokenize(text: Optional[str], stopwords: FrozenSet[str] = STOPWORDS) -> List[str]:
    """
    Tokenize text into normalized keyword candidates.

    Args:
        text: Raw or extracted page content
        stopwords: Words to discard

    Returns:
        Tokens in document order (duplicates kept). Empty input gives [].
    """
    if not text:
        return []

    cleaned = _PUNCTUATION.sub(" ", text.lower())
    return [token for token in cleaned.split() if _keep(token, stopwords)]
