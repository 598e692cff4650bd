"""
Document ingestion: stores already-fetched page text as facts.

Fetching is somebody else's job; this module only receives the content
(HTML or plain text), cleans it, splits it into answer-sized chunks and
picks out every arithmetic equation that actually holds.
"""

import re
import logging
import textwrap
from typing import Dict, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from . import config
from .arithmetic import canonical_expression, operation_path, validate_equation
from .classifier import Classifier
from .knowledge import Fact, FactQuery, KnowledgeStore
from .tokenizer import normalize

logger = logging.getLogger(__name__)

WEB_SOURCE = "web"

_TAG_HINT_RE = re.compile(r"<(html|body|div|p|span|h[1-6]|article|main|section)\b", re.I)
_EQUATION_RE = re.compile(r"(\d+)\s*([+\-*xX/])\s*(\d+)\s*=\s*(\d+)")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def html_to_text(html: str) -> str:
    """
    Extract readable text from HTML
    Removes navigation, scripts, styles, etc.
    """
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "nav", "footer", "header", "aside", "iframe", "noscript"]):
        tag.decompose()
    main_content = soup.find("main") or soup.find("article") or soup.body or soup
    return clean_text(main_content.get_text(separator="\n", strip=True))


def clean_text(text: str) -> str:
    """Drop leftover web noise and normalise whitespace."""
    text = re.sub(r"https?://\S+", "", text)
    text = re.sub(r"Cookie Policy.*?Accept", "", text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"Subscribe to.*?Newsletter", "", text, flags=re.IGNORECASE)
    text = re.sub(r"[❮❯×]", " ", text)
    text = re.sub(r"&[a-z]{2,6};", " ", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def split_chunks(text: str, max_length: int = None) -> List[str]:
    """Group whole sentences into chunks no longer than ``max_length``"""
    max_length = max_length or config.MAX_CONTENT_LENGTH
    chunks: List[str] = []
    current = ""
    for sentence in _SENTENCE_SPLIT_RE.split(text):
        sentence = sentence.strip()
        if not sentence:
            continue
        if len(sentence) > max_length:
            if current:
                chunks.append(current)
                current = ""
            chunks.extend(textwrap.wrap(sentence, width=max_length))
            continue
        candidate = f"{current} {sentence}" if current else sentence
        if len(candidate) > max_length:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def path_from_url(url: Optional[str]) -> Optional[str]:
    """'https://site/html/tags/a' -> 'html/tags/a'"""
    if not url:
        return None
    parsed = urlparse(url)
    path = "/".join(part for part in parsed.path.split("/") if part)
    return path or parsed.netloc or None


def extract_equations(text: str) -> List[Fact]:
    """Every ``a op b = c`` in the text that holds, once each"""
    facts = []
    seen = set()
    for num1, op, num2, result in _EQUATION_RE.findall(text):
        lhs = f"{num1} {op} {num2}"
        if not validate_equation(lhs, result):
            continue
        expression = canonical_expression(lhs)
        content = f"{expression} = {result}"
        if content in seen:
            continue
        seen.add(content)
        facts.append(Fact(
            content=content,
            source=WEB_SOURCE,
            path=operation_path(lhs),
            term=expression.replace(" ", ""),
            value=result,
            category="math",
            type="calculation",
            tokens=normalize(content),
            confidence=1.0,
        ))
    return facts


def ingest_document(
    store: KnowledgeStore,
    content: str,
    source: str,
    url: Optional[str] = None,
    classifier: Optional[Classifier] = None,
) -> Dict:
    """
    Store a fetched document.

    Args:
        store: Knowledge store to write to
        content: Raw HTML or plain text
        source: Provenance tag, usually the URL or host
        url: Original location, used for the logical path
        classifier: Categorizes chunks (keyword stage only)

    Returns:
        Dict with 'skipped', 'chunks' and 'equations' counts
    """
    if store.exists_by_source(source):
        logger.info(f"Source already ingested, skipping: {source}")
        return {"skipped": True, "chunks": 0, "equations": 0}

    classifier = classifier or Classifier()
    text = html_to_text(content) if _TAG_HINT_RE.search(content) else clean_text(content)
    path = path_from_url(url) or path_from_url(source) or "documents"

    chunk_facts = []
    for chunk in split_chunks(text):
        result = classifier.classify_offline(chunk)
        chunk_facts.append(Fact(
            content=chunk,
            source=source,
            path=path,
            category=result.category,
            type="document",
            tokens=normalize(chunk),
            confidence=result.confidence,
        ))
    store.persist_many(chunk_facts)

    new_equations = [
        fact for fact in extract_equations(text)
        if not store.query(FactQuery(content=fact.content, category="math", limit=1))
    ]
    store.persist_many(new_equations)

    logger.info(
        f"Ingested {source}: {len(chunk_facts)} chunks, {len(new_equations)} new equations"
    )
    return {"skipped": False, "chunks": len(chunk_facts), "equations": len(new_equations)}
