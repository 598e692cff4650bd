"""Category classifier: keyword tables plus a boost from previously stored facts"""

import logging
from collections import Counter
from typing import List, Optional

from . import config
from .knowledge import FactQuery, KnowledgeStore
from .patterns import CATEGORY_KEYWORDS, CATEGORY_ORDER
from .tokenizer import normalize

logger = logging.getLogger(__name__)

GENERAL = "general"


class ClassificationResult:
    """Category decided for a message, with how sure we are"""

    def __init__(self, category: str, confidence: float, matched_tokens: List[str]):
        self.category = category
        self.confidence = confidence
        self.matched_tokens = matched_tokens

    def __repr__(self) -> str:
        return f"ClassificationResult({self.category!r}, confidence={self.confidence:.2f})"


class Classifier:
    """
    Frequency scoring, deterministic and explainable:
      1. +1 per message token found in a category's keyword set
      2. +1 per stored fact of that category sharing a token with the message
    The strictly highest score wins; ties and empty scores fall back to general.
    """

    def __init__(self, store: Optional[KnowledgeStore] = None, history_limit: int = None):
        self.store = store
        self.history_limit = history_limit or config.HISTORY_LIMIT

    def classify(self, text: str) -> ClassificationResult:
        tokens = normalize(text)
        scores = self._keyword_scores(tokens)
        if self.store is not None and tokens:
            self._add_history(tokens, scores)
        return self._decide(tokens, scores)

    def classify_offline(self, text: str) -> ClassificationResult:
        """Keyword stage only, without consulting the store"""
        tokens = normalize(text)
        return self._decide(tokens, self._keyword_scores(tokens))

    def _keyword_scores(self, tokens: List[str]) -> Counter:
        scores = Counter()
        for category in CATEGORY_ORDER:
            keywords = CATEGORY_KEYWORDS[category]
            score = sum(1 for token in tokens if token in keywords)
            if score:
                scores[category] = score
        return scores

    def _add_history(self, tokens: List[str], scores: Counter):
        related = self.store.query(FactQuery(
            tokens_any=tokens,
            has_category=True,
            limit=self.history_limit,
        ))
        for fact in related:
            scores[fact.category] += 1
        if related:
            logger.debug(f"Historical boost from {len(related)} facts: {dict(scores)}")

    def _decide(self, tokens: List[str], scores: Counter) -> ClassificationResult:
        best_category = GENERAL
        best_score = 0
        tied = False
        for category, score in scores.items():
            if score > best_score:
                best_category, best_score, tied = category, score, False
            elif score == best_score:
                tied = True

        if tied or best_score == 0:
            category = GENERAL
        else:
            category = best_category

        confidence = best_score / len(tokens) if tokens else 0.0
        confidence = min(max(confidence, 0.0), 1.0)
        keywords = CATEGORY_KEYWORDS.get(category, frozenset())
        matched = [token for token in tokens if token in keywords]
        return ClassificationResult(category, confidence, matched)
