"""Tokenizer / normalizer shared by the classifier and the retriever"""

import re
from typing import List, Optional, Set

_NON_WORD_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> List[str]:
    """
    Lower-case, strip punctuation and split into tokens.

    Total over any input: None or blank text gives an empty list.

    >>> normalize("Hello, World!!")
    ['hello', 'world']
    """
    if not text:
        return []
    cleaned = _NON_WORD_RE.sub("", text.lower())
    return [token for token in cleaned.split() if token]


def normalize_term(text: Optional[str]) -> Optional[str]:
    """Canonical lookup key for a fact term: lower-case, trimmed, single-spaced."""
    if text is None:
        return None
    term = _SPACE_RE.sub(" ", text.strip().lower())
    return term or None


def normalize_content(text: str) -> str:
    """Dedup key for stored content (case and whitespace insensitive)"""
    return _SPACE_RE.sub(" ", text.lower()).strip()


class QueryContext:
    """Per-request view of a user query"""

    def __init__(self, raw_query: str, normalized_query: str, search_terms: Set[str]):
        self.raw_query = raw_query
        self.normalized_query = normalized_query
        self.search_terms = search_terms

    @classmethod
    def from_query(cls, query: Optional[str]) -> "QueryContext":
        tokens = normalize(query)
        return cls(
            raw_query=query or "",
            normalized_query=" ".join(tokens),
            search_terms={token for token in tokens if len(token) > 2},
        )

    def ordered_terms(self) -> List[str]:
        """Search terms in a stable order, for building deterministic store filters"""
        return sorted(self.search_terms)

    def __repr__(self) -> str:
        return f"QueryContext({self.normalized_query!r}, terms={self.ordered_terms()})"
