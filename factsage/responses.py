"""Response formatting: turns facts and outcomes into user-facing text"""

import re
import logging
from typing import Dict, Optional

from bs4 import BeautifulSoup

from .knowledge import Fact
from .patterns import HTML_STRUCTURE_RE

logger = logging.getLogger(__name__)

_TAG_HINT_RE = re.compile(r"<[a-zA-Z!/][^>]*>")

HTML_DOCUMENT_STRUCTURE = """\
The basic structure of an HTML document is:

<!DOCTYPE html>
<html>
  <head>
    <meta charset="UTF-8">
    <title>Page title</title>
  </head>
  <body>
    <h1>Main heading</h1>
    <p>Page content goes here.</p>
  </body>
</html>

<!DOCTYPE html> declares the document type, <html> is the root element,
<head> holds metadata such as the title, and <body> holds the visible content."""


def strip_html(text: str) -> str:
    """Remove HTML tags and collapse whitespace."""
    if _TAG_HINT_RE.search(text):
        soup = BeautifulSoup(text, "lxml")
        for tag in soup(["script", "style"]):
            tag.decompose()
        text = soup.get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()


def format_fact(fact: Fact) -> str:
    """Render a fact according to its category"""
    if fact.category == "html":
        return f"The {fact.term or 'requested'} tag/element is {fact.content}"
    if fact.category in ("politics", "geography"):
        if fact.term:
            return f"{fact.term}: {fact.content}"
        return fact.content
    return strip_html(fact.content)


def canned_response(message: str) -> Optional[str]:
    """Fixed answers that never depend on the store"""
    if HTML_STRUCTURE_RE.search(message or ""):
        return HTML_DOCUMENT_STRUCTURE
    return None


def format_calculation(expression: str, result: str) -> str:
    compact = re.sub(r"\s+", "", expression)
    return f"{compact} = {result}"


def teach_me(message: str) -> str:
    subject = message.strip().rstrip("?").strip()
    return f"I don't know \"{subject}\" yet. Can you teach me?"


def confirmation(rule_name: str, fact: Fact) -> str:
    """Acknowledge a newly learned fact"""
    if rule_name == "arithmetic":
        return f"Got it! I learned that {fact.content}."
    if rule_name == "capital":
        return f"Got it! The capital of {fact.term} is {fact.value}."
    if rule_name == "leader":
        return f"Got it! The leader of {fact.term} is {fact.value}."
    if rule_name == "definition":
        return f"Got it! I learned what \"{fact.term}\" means."
    return "Got it! I'll remember that."


def already_known(fact: Fact) -> str:
    return f"I already know that {fact.content}."


def correction(expression: str, claimed: str, expected: Optional[str]) -> str:
    if expected is None:
        return f"I can't learn that: {expression} has no valid result."
    return f"I can't learn that: {expression} is {expected}, not {claimed}."


def generate_error_response() -> str:
    return "Something went wrong while processing your message. Please try again."


def generate_greeting() -> str:
    return (
        "Hello! I'm FactSage.\n"
        "Ask me something, or teach me a fact like \"the capital of Brazil is Brasília\"."
    )


def format_stats_response(stats: Dict) -> str:
    lines = ["FactSage Statistics\n" + "─" * 40]
    lines.append(f"  Facts      : {stats.get('total_facts', 0)}")

    categories = stats.get("categories", {})
    if categories:
        lines.append("\nBy category")
        for name, count in sorted(categories.items(), key=lambda x: (-x[1], x[0])):
            lines.append(f"  {name:<11}: {count}")

    sources = stats.get("sources", {})
    if sources:
        lines.append("\nBy source")
        for name, count in sorted(sources.items(), key=lambda x: (-x[1], x[0])):
            lines.append(f"  {name[:11]:<11}: {count}")

    return "\n".join(lines)
