"""Main FactSage agent: orchestrates evaluation, teaching and retrieval"""

import logging
from collections import Counter
from typing import Dict, Optional, Tuple

from . import config
from . import responses
from .arithmetic import InvalidExpression, calculate, find_expression, format_number
from .classifier import Classifier
from .extractor import Extractor
from .ingest import ingest_document
from .knowledge import (
    Fact,
    FactQuery,
    FileKnowledgeStore,
    KnowledgeStore,
    StoreUnavailable,
    TimeoutStore,
)
from .patterns import strip_teach_command
from .retriever import Retriever
from .seed import seed_base_knowledge, seed_basic_math

logger = logging.getLogger(__name__)


class State:
    """Stages of the answer pipeline, in order"""
    ARITHMETIC_CHECK = "arithmetic_check"
    TEACHING_CHECK = "teaching_check"
    RETRIEVAL = "retrieval"
    ERROR = "error"


class Answer:
    """What the agent replies, and which stage produced it"""

    def __init__(
        self,
        text: str,
        confidence: float,
        state: str,
        fact: Optional[Fact] = None,
        ok: bool = True,
    ):
        self.text = text
        self.confidence = confidence
        self.state = state
        self.fact = fact
        self.ok = ok

    def __repr__(self) -> str:
        return f"Answer({self.text[:40]!r}, confidence={self.confidence}, state={self.state!r})"


class FactSageAgent:
    """
    Answers one message at a time. Decision chain in respond():
      1. Arithmetic check: bare expression (no '=') is evaluated, not stored
      2. Teaching check: a teaching pattern or teach command stores a fact
      3. Retrieval: canned answers, then the best stored fact
      4. Format: category-specific rendering of the chosen fact

    Store failures never escape: they become an error answer with ok=False.
    """

    def __init__(self, store: Optional[KnowledgeStore] = None, trusted_source: Optional[str] = None):
        logger.info("Initializing FactSage Agent...")
        self.store = store if store is not None else TimeoutStore(FileKnowledgeStore())
        self.classifier = Classifier(self.store)
        self.extractor = Extractor(self.classifier)
        self.retriever = Retriever(self.store, self.classifier, trusted_source=trusted_source)

    # ── Pipeline stages ──────────────────────────────────────────────────────

    def _arithmetic_check(self, message: str) -> Optional[Answer]:
        if "=" in message:
            return None
        expression = find_expression(message)
        if expression is None:
            return None
        try:
            result = format_number(calculate(expression))
        except InvalidExpression as e:
            logger.debug(f"Arithmetic check fell through: {e}")
            return None

        # Formatted like any other fact, but never persisted
        fact = Fact(
            content=responses.format_calculation(expression, result),
            source="calculated",
            category="math",
            type="calculation",
            confidence=1.0,
        )
        return Answer(fact.content, 1.0, State.ARITHMETIC_CHECK, fact=fact)

    def _teaching_check(self, message: str) -> Optional[Answer]:
        body = strip_teach_command(message)
        explicit = body is not None
        extraction = self.extractor.extract(body if explicit else message, include_fallback=explicit)
        if extraction is None:
            return None

        fact = extraction.fact

        if not extraction.valid:
            expression = fact.content.split(" = ")[0]
            text = responses.correction(expression, fact.value, extraction.expected)
            return Answer(text, 0.0, State.TEACHING_CHECK)

        if extraction.rule_name == "arithmetic":
            existing = self.store.query(FactQuery(content=fact.content, category="math", limit=1))
            if existing:
                logger.info(f"Already known, skipping insert: {fact.content}")
                return Answer(responses.already_known(existing[0]), 1.0, State.TEACHING_CHECK, fact=existing[0])

        self.store.persist(fact)
        self.retriever.invalidate()
        logger.info(f"Learned ({fact.category}): {fact.content[:60]}")
        return Answer(responses.confirmation(extraction.rule_name, fact), 1.0, State.TEACHING_CHECK, fact=fact)

    def _retrieval(self, message: str) -> Answer:
        canned = responses.canned_response(message)
        if canned is not None:
            return Answer(canned, 1.0, State.RETRIEVAL)

        fact = self.retriever.retrieve(message)
        if fact is None:
            return Answer(responses.teach_me(message), 0.0, State.RETRIEVAL)

        confidence = fact.confidence if fact.confidence is not None else config.DEFAULT_CONFIDENCE
        return Answer(fact.content, confidence, State.RETRIEVAL, fact=fact)

    def _format(self, answer: Answer) -> Answer:
        if answer.fact is not None and answer.state in (State.ARITHMETIC_CHECK, State.RETRIEVAL):
            answer.text = responses.format_fact(answer.fact)
        return answer

    # ── Public API ───────────────────────────────────────────────────────────

    def respond(self, message: str) -> Answer:
        """Run the full pipeline for one message"""
        message = (message or "").strip()
        try:
            answer = (
                self._arithmetic_check(message)
                or self._teaching_check(message)
                or self._retrieval(message)
            )
        except StoreUnavailable as e:
            logger.error(f"Knowledge store unavailable: {e}")
            return Answer(responses.generate_error_response(), 0.0, State.ERROR, ok=False)
        return self._format(answer)

    def ask(self, message: str) -> str:
        """Answer text only"""
        return self.respond(message).text

    def chat(self, payload) -> Tuple[int, Dict]:
        """
        Message-endpoint contract: ``{message}`` in, ``(status, body)`` out.
        400 without a message, 500 on internal failure, 200 with ``{response}``.
        """
        message = payload.get("message") if isinstance(payload, dict) else None
        if not isinstance(message, str) or not message.strip():
            return 400, {"error": "message is required"}
        answer = self.respond(message)
        if not answer.ok:
            return 500, {"error": answer.text}
        return 200, {"response": answer.text}

    def get_stats(self) -> Dict:
        facts = self.store.query(FactQuery())
        return {
            "total_facts": len(facts),
            "categories": dict(Counter(fact.category or "uncategorized" for fact in facts)),
            "sources": dict(Counter(fact.source for fact in facts)),
        }

    def seed(self, show_progress: bool = False) -> int:
        """Load the arithmetic table and the base knowledge; returns facts inserted"""
        inserted = seed_basic_math(self.store, show_progress=show_progress)
        inserted += seed_base_knowledge(self.store)
        if inserted:
            self.retriever.invalidate()
        return inserted

    def ingest(self, content: str, source: str, url: Optional[str] = None) -> Dict:
        """Store a fetched document (see :func:`ingest.ingest_document`)"""
        result = ingest_document(self.store, content, source, url=url, classifier=self.classifier)
        if not result["skipped"]:
            self.retriever.invalidate()
        return result

    def get_greeting(self) -> str:
        return responses.generate_greeting()

    def close(self):
        self.store.close()
