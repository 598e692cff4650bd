"""Retrieval of the most relevant stored fact for a query"""

import re
import time
import logging
import threading
from collections import OrderedDict
from typing import List, Optional

import numpy as np

from . import config
from .classifier import Classifier
from .knowledge import Fact, FactQuery, KnowledgeStore
from .patterns import DEFINITIONAL_RE, NOISE_RE, TECHNICAL_RE
from .tokenizer import QueryContext, normalize_content

logger = logging.getLogger(__name__)

_MISS = object()


def is_useful(content: str) -> bool:
    """
    Utility filter for a candidate answer.

    Useful means (definitional OR technical marker) AND no noise marker AND
    a length inside the configured bounds. A marker never rescues content
    that is too short, too long or noisy.
    """
    if not config.MIN_CONTENT_LENGTH <= len(content) <= config.MAX_CONTENT_LENGTH:
        return False
    if NOISE_RE.search(content):
        return False
    return bool(DEFINITIONAL_RE.search(content) or TECHNICAL_RE.search(content))


def deduplicate(facts: List[Fact]) -> List[Fact]:
    """Collapse facts whose content differs only in case or whitespace (first kept)"""
    seen = set()
    unique = []
    for fact in facts:
        key = normalize_content(fact.content)
        if key in seen:
            continue
        seen.add(key)
        unique.append(fact)
    return unique


def candidate_pattern(context: QueryContext) -> Optional[str]:
    """Regex matching the normalized query or any search term (all escaped)"""
    alternatives = []
    for text in [context.normalized_query] + context.ordered_terms():
        if text and text not in alternatives:
            alternatives.append(text)
    if not alternatives:
        return None
    return "|".join(re.escape(text) for text in alternatives)


def loose_definition_pattern(context: QueryContext) -> str:
    return re.escape(context.normalized_query) + r"\s+(?:is|are|means|é|são|significa)\b"


class _QueryCache:
    """Small LRU with expiry, keyed by normalized query"""

    def __init__(self, max_size: int, ttl: float):
        self.max_size = max_size
        self.ttl = ttl
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return _MISS
            stored_at, value = entry
            if time.monotonic() - stored_at > self.ttl:
                del self._entries[key]
                return _MISS
            self._entries.move_to_end(key)
            return value

    def put(self, key: str, value):
        if self.max_size <= 0:
            return
        with self._lock:
            self._entries[key] = (time.monotonic(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class Retriever:
    """
    Finds the best stored fact for a query:
      1. normalize the query and derive search terms (tokens longer than 2)
      2. fetch candidates whose content mentions the query or a term
      3. drop duplicates by normalized content
      4. keep only useful candidates (see :func:`is_useful`)
      5. rank: +2 per term in content, +3 same category, +2 trusted source
      6. if nothing survives, one relaxed lookup by term / definition phrase
    """

    def __init__(
        self,
        store: KnowledgeStore,
        classifier: Classifier,
        trusted_source: Optional[str] = None,
        cache_size: Optional[int] = None,
        cache_ttl: Optional[float] = None,
    ):
        self.store = store
        self.classifier = classifier
        self.trusted_source = trusted_source or config.TRUSTED_SOURCE
        self.cache = _QueryCache(
            config.RETRIEVAL_CACHE_SIZE if cache_size is None else cache_size,
            config.RETRIEVAL_CACHE_TTL if cache_ttl is None else cache_ttl,
        )

    def retrieve(self, query: str) -> Optional[Fact]:
        """Best matching fact, or None when nothing qualifies"""
        context = QueryContext.from_query(query)
        if not context.normalized_query:
            return None

        cached = self.cache.get(context.normalized_query)
        if cached is not _MISS:
            return cached

        fact = self._retrieve(context)
        self.cache.put(context.normalized_query, fact)
        return fact

    def invalidate(self):
        """Forget cached answers; called whenever a new fact is stored"""
        self.cache.clear()

    def _retrieve(self, context: QueryContext) -> Optional[Fact]:
        candidates = self.candidates(context)
        useful = [fact for fact in deduplicate(candidates) if is_useful(fact.content)]
        logger.debug(
            f"Query {context.normalized_query!r}: {len(candidates)} candidates, {len(useful)} useful"
        )
        if useful:
            category = self.classifier.classify(context.raw_query).category
            return self.rank(useful, context, category)
        return self.relaxed_lookup(context)

    def candidates(self, context: QueryContext) -> List[Fact]:
        pattern = candidate_pattern(context)
        if pattern is None:
            return []
        # No limit: a newest-first cut would drop older, better-scoring facts
        return self.store.query(FactQuery(content_pattern=pattern))

    def score(self, fact: Fact, context: QueryContext, category: str) -> int:
        content = fact.content.lower()
        score = sum(2 for term in context.search_terms if term in content)
        if fact.category is not None and fact.category == category:
            score += 3
        if fact.source == self.trusted_source:
            score += 2
        return score

    def rank(self, facts: List[Fact], context: QueryContext, category: str) -> Optional[Fact]:
        if not facts:
            return None
        scores = np.array([self.score(fact, context, category) for fact in facts])
        # argmax returns the first maximum, so ties keep the store's newest-first order
        best = int(np.argmax(scores))
        logger.debug(f"Best candidate scored {scores[best]}: {facts[best]!r}")
        return facts[best]

    def relaxed_lookup(self, context: QueryContext) -> Optional[Fact]:
        for term in [context.normalized_query] + context.ordered_terms():
            hits = self.store.query(FactQuery(term=term, limit=1))
            if hits:
                return hits[0]
        hits = self.store.query(FactQuery(content_pattern=loose_definition_pattern(context), limit=1))
        return hits[0] if hits else None
