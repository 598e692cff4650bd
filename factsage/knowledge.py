"""Fact model and the knowledge store contract with its adapters"""

import json
import re
import uuid
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from . import config
from .tokenizer import normalize_term

logger = logging.getLogger(__name__)

CATEGORIES = (
    "math", "geography", "politics", "html", "css", "javascript",
    "definition", "general",
)


class StoreUnavailable(RuntimeError):
    """The knowledge store failed, timed out, or could not be read"""


class Fact:
    """
    Single stored unit of knowledge.

    Facts are immutable once created: learning always appends a new fact,
    it never edits an existing one.
    """

    __slots__ = (
        "id", "content", "term", "value", "category", "type", "source",
        "path", "tokens", "confidence", "timestamp", "_frozen",
    )

    def __init__(
        self,
        content: str,
        source: str,
        path: Optional[str] = None,
        term: Optional[str] = None,
        value: Optional[str] = None,
        category: Optional[str] = None,
        type: Optional[str] = None,
        tokens: Optional[Iterable[str]] = None,
        confidence: Optional[float] = None,
        timestamp: Optional[datetime] = None,
        id: Optional[str] = None,
    ):
        content = (content or "").strip()
        source = (source or "").strip()
        if not content:
            raise ValueError("Fact content must not be empty")
        if not source:
            raise ValueError("Fact source must not be empty")
        if category is not None and category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category!r}")

        self.id = id or uuid.uuid4().hex
        self.content = content
        self.source = source
        self.term = normalize_term(term)
        self.value = value.strip() if value else None
        self.category = category
        self.type = type
        self.path = path or self._default_path(category, type)
        self.tokens = tuple(tokens) if tokens is not None else None
        self.confidence = None if confidence is None else min(max(float(confidence), 0.0), 1.0)
        self.timestamp = timestamp or datetime.now(timezone.utc)
        self._frozen = True

    def __setattr__(self, name, value):
        if getattr(self, "_frozen", False):
            raise AttributeError(f"Fact is immutable, cannot set {name!r}")
        object.__setattr__(self, name, value)

    @staticmethod
    def _default_path(category: Optional[str], type: Optional[str]) -> str:
        if category and type:
            return f"{category}/{type}"
        return category or "general"

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "content": self.content,
            "term": self.term,
            "value": self.value,
            "category": self.category,
            "type": self.type,
            "source": self.source,
            "path": self.path,
            "tokens": list(self.tokens) if self.tokens is not None else None,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Fact":
        """Create from dictionary"""
        timestamp = data.get("timestamp")
        return cls(
            content=data["content"],
            source=data["source"],
            path=data.get("path"),
            term=data.get("term"),
            value=data.get("value"),
            category=data.get("category"),
            type=data.get("type"),
            tokens=data.get("tokens"),
            confidence=data.get("confidence"),
            timestamp=datetime.fromisoformat(timestamp) if timestamp else None,
            id=data.get("id"),
        )

    def __repr__(self) -> str:
        return f"Fact({self.content[:40]!r}, category={self.category!r}, source={self.source!r})"


class FactQuery:
    """
    Filter accepted by :meth:`KnowledgeStore.query`.

    All given criteria must hold. ``content_pattern`` is a regular
    expression matched case-insensitively anywhere in the content; callers
    must escape any user text they embed in it.
    """

    def __init__(
        self,
        content_pattern: Optional[str] = None,
        content: Optional[str] = None,
        term: Optional[str] = None,
        category: Optional[str] = None,
        source: Optional[str] = None,
        tokens_any: Optional[Iterable[str]] = None,
        has_category: Optional[bool] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ):
        try:
            self.content_re = re.compile(content_pattern, re.IGNORECASE) if content_pattern else None
        except re.error as e:
            raise ValueError(f"Invalid content pattern: {e}") from e
        self.content = content
        self.term = normalize_term(term)
        self.category = category
        self.source = source
        self.tokens_any = frozenset(tokens_any) if tokens_any is not None else None
        self.has_category = has_category
        self.since = since
        self.until = until
        self.limit = limit

    def matches(self, fact: Fact) -> bool:
        if self.content is not None and fact.content != self.content:
            return False
        if self.term is not None and fact.term != self.term:
            return False
        if self.category is not None and fact.category != self.category:
            return False
        if self.source is not None and fact.source != self.source:
            return False
        if self.has_category is not None and (fact.category is not None) != self.has_category:
            return False
        if self.tokens_any is not None and not self.tokens_any.intersection(fact.tokens or ()):
            return False
        if self.since is not None and fact.timestamp < self.since:
            return False
        if self.until is not None and fact.timestamp > self.until:
            return False
        if self.content_re is not None and not self.content_re.search(fact.content):
            return False
        return True


class KnowledgeStore(ABC):
    """Append-only persistence collaborator for facts"""

    @abstractmethod
    def persist(self, fact: Fact) -> str:
        """Append a fact and return its id"""

    def persist_many(self, facts: Iterable[Fact]) -> List[str]:
        """Append several facts"""
        return [self.persist(fact) for fact in facts]

    @abstractmethod
    def query(self, filter: FactQuery) -> List[Fact]:
        """Facts matching ``filter``, newest first, at most ``filter.limit``"""

    def exists_by_source(self, source: str) -> bool:
        return bool(self.query(FactQuery(source=source, limit=1)))

    @abstractmethod
    def count(self) -> int:
        """Total number of stored facts"""

    def close(self):
        pass


class MemoryKnowledgeStore(KnowledgeStore):
    """In-process store, used for tests and ``--memory`` sessions"""

    def __init__(self, facts: Optional[Iterable[Fact]] = None):
        self._lock = threading.Lock()
        self._facts: List[Fact] = list(facts or [])

    def persist(self, fact: Fact) -> str:
        with self._lock:
            self._facts.append(fact)
            try:
                self._on_change()
            except StoreUnavailable:
                self._facts.pop()
                raise
        logger.debug(f"Persisted fact {fact.id}: {fact.content[:50]}")
        return fact.id

    def persist_many(self, facts: Iterable[Fact]) -> List[str]:
        facts = list(facts)
        if not facts:
            return []
        with self._lock:
            self._facts.extend(facts)
            try:
                self._on_change()
            except StoreUnavailable:
                del self._facts[-len(facts):]
                raise
        logger.debug(f"Persisted {len(facts)} facts")
        return [fact.id for fact in facts]

    def query(self, filter: FactQuery) -> List[Fact]:
        with self._lock:
            # Reversed insertion order breaks timestamp ties in favour of later inserts
            matches = [fact for fact in reversed(self._facts) if filter.matches(fact)]
        matches.sort(key=lambda f: f.timestamp, reverse=True)
        if filter.limit is not None:
            matches = matches[:filter.limit]
        return matches

    def count(self) -> int:
        with self._lock:
            return len(self._facts)

    def _on_change(self):
        """Hook called with the lock held after every write"""


class FileKnowledgeStore(MemoryKnowledgeStore):
    """
    Local JSON-file store.

    The whole file is loaded at start-up and rewritten after each write
    (through a temporary file, so a crash never leaves half a file behind).
    """

    def __init__(self, storage_path: Optional[Path] = None):
        super().__init__()
        self.storage_path = Path(storage_path or config.KNOWLEDGE_STORE_FILE)
        self.load()

    def load(self):
        """Load facts from disk"""
        if not self.storage_path.exists():
            logger.info("No existing knowledge store found, starting fresh")
            return
        try:
            with open(self.storage_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            facts = [Fact.from_dict(d) for d in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load knowledge store {self.storage_path}: {e}")
            raise StoreUnavailable(f"Cannot read knowledge store: {e}") from e
        with self._lock:
            self._facts = facts
        logger.info(f"Loaded {len(facts)} facts from knowledge store")

    def _on_change(self):
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.storage_path.with_suffix(self.storage_path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump([fact.to_dict() for fact in self._facts], f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.storage_path)
            logger.debug(f"Saved {len(self._facts)} facts to knowledge store")
        except OSError as e:
            logger.error(f"Failed to save knowledge store: {e}")
            raise StoreUnavailable(f"Cannot write knowledge store: {e}") from e


class TimeoutStore(KnowledgeStore):
    """
    Bounds every call to a wrapped store.

    A call that does not finish within ``timeout`` seconds, or that fails
    with any error, surfaces as :class:`StoreUnavailable`.
    """

    def __init__(self, inner: KnowledgeStore, timeout: Optional[float] = None, max_workers: int = 4):
        self.inner = inner
        self.timeout = config.STORE_TIMEOUT if timeout is None else timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="factsage-store")

    def _call(self, name: str, *args):
        future = self._executor.submit(getattr(self.inner, name), *args)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as e:
            future.cancel()
            logger.error(f"Store call {name} timed out after {self.timeout}s")
            raise StoreUnavailable(f"Store call {name} timed out") from e
        except StoreUnavailable:
            raise
        except Exception as e:
            logger.exception(f"Store call {name} failed")
            raise StoreUnavailable(f"Store call {name} failed: {e}") from e

    def persist(self, fact: Fact) -> str:
        return self._call("persist", fact)

    def persist_many(self, facts: Iterable[Fact]) -> List[str]:
        return self._call("persist_many", list(facts))

    def query(self, filter: FactQuery) -> List[Fact]:
        return self._call("query", filter)

    def exists_by_source(self, source: str) -> bool:
        return self._call("exists_by_source", source)

    def count(self) -> int:
        return self._call("count")

    def close(self):
        self._executor.shutdown(wait=False)
        self.inner.close()
