"""
Pattern library: teaching rules, category keyword tables and the marker
patterns used when judging stored content.

Teaching rules are tried top to bottom and the first match wins. The last
rule always matches, so teaching degrades to storing the raw message as a
general record instead of failing.
"""

import re
from typing import Callable, Dict, FrozenSet, List, Optional, Pattern, Sequence

from .arithmetic import canonical_expression, operation_path

# ═══════════════════════════════════════════════════════════════════════════════
# § 1  TEACHING RULES
# ═══════════════════════════════════════════════════════════════════════════════

_END = r"\s*[.!]?\s*$"
# A short subject: one to five words
_SUBJECT = r"((?:\S+\s+){0,4}?\S+)"

_ARITHMETIC_FACT_RE = re.compile(
    r"^\s*(\d+(?:\s*[+\-*xX/]\s*\d+)+)\s*=\s*(-?\d+(?:\.\d+)?)" + _END)

_CAPITAL_RES = (
    re.compile(r"^\s*(?:the\s+)?capital\s+(?:city\s+)?of\s+(.+?)\s+is\s+(.+?)" + _END, re.I),
    re.compile(r"^\s*a\s+capital\s+d[eoa]s?\s+(.+?)\s+[ée]\s+(.+?)" + _END, re.I),
)

_LEADER_RES = (
    re.compile(
        r"^\s*(?:the\s+)?(?:current\s+)?(?:president|leader|prime\s+minister|head\s+of\s+state)"
        r"\s+of\s+(.+?)\s+is\s+(.+?)" + _END, re.I),
    re.compile(
        r"^\s*o\s+(?:atual\s+)?(?:presidente|l[ií]der|primeiro[-\s]ministro)"
        r"\s+d[eoa]s?\s+(.+?)\s+[ée]\s+(.+?)" + _END, re.I),
)

_DEFINITION_RES = (
    re.compile(r"^\s*(?:an?\s+|the\s+)?" + _SUBJECT + r"\s+is\s+defined\s+as\s+(.+?)" + _END, re.I),
    re.compile(r"^\s*(?:an?\s+|the\s+)?" + _SUBJECT + r"\s+(?:means|significa)\s+(.+?)" + _END, re.I),
    # A question immediately followed by its answer
    re.compile(r"^\s*what\s+(?:is|are)\s+(?:an?\s+|the\s+)?" + _SUBJECT + r"\s*\?\s*(\S.*?)\s*$", re.I | re.S),
    re.compile(r"^\s*o\s+que\s+(?:[ée]|s[ãa]o)\s+(?:um\s+|uma\s+|o\s+|a\s+)?" + _SUBJECT + r"\s*\?\s*(\S.*?)\s*$", re.I | re.S),
)


def _first_match(patterns: Sequence[Pattern], message: str):
    for pattern in patterns:
        m = pattern.match(message)
        if m:
            return m
    return None


def _extract_arithmetic(m, message: str) -> Dict:
    lhs, rhs = m.group(1), m.group(2)
    expression = canonical_expression(lhs)
    return {
        "term": expression.replace(" ", ""),
        "value": rhs,
        "content": f"{expression} = {rhs}",
        "lhs": lhs,
        "path": operation_path(lhs),
    }


def _extract_pair(m, message: str) -> Dict:
    return {
        "term": m.group(1).strip(),
        "value": m.group(2).strip(),
        "content": message.strip(),
    }


def _extract_definition(m, message: str) -> Dict:
    return {
        "term": m.group(1).strip(),
        "value": message.strip(),
        "content": message.strip(),
    }


def _extract_raw(m, message: str) -> Dict:
    return {"term": None, "value": None, "content": message.strip()}


class TeachingRule:
    """One entry of the pattern library: matcher + category/type + extractor"""

    def __init__(
        self,
        name: str,
        patterns: Sequence[Pattern],
        category: Optional[str],
        type: str,
        extract: Callable[[re.Match, str], Dict],
        structured: bool = True,
    ):
        self.name = name
        self.patterns = tuple(patterns)
        self.category = category
        self.type = type
        self.extract = extract
        self.structured = structured

    def match(self, message: str):
        if not self.structured:
            return True
        return _first_match(self.patterns, message)

    def __repr__(self) -> str:
        return f"TeachingRule({self.name!r})"


TEACHING_RULES: List[TeachingRule] = [
    TeachingRule("arithmetic", [_ARITHMETIC_FACT_RE], "math", "calculation", _extract_arithmetic),
    TeachingRule("capital", _CAPITAL_RES, "geography", "capital", _extract_pair),
    TeachingRule("leader", _LEADER_RES, "politics", "leader", _extract_pair),
    TeachingRule("definition", _DEFINITION_RES, "definition", "concept", _extract_definition),
    # Category of the fallback comes from the classifier
    TeachingRule("conversation", (), None, "conversation", _extract_raw, structured=False),
]

FALLBACK_RULE = TEACHING_RULES[-1]


def match_rule(message: str, include_fallback: bool = False):
    """
    Return ``(rule, match)`` for the first rule matching ``message``.

    Without ``include_fallback`` only structured rules are considered and
    ``(None, None)`` is returned when none matches.
    """
    if not message:
        return (FALLBACK_RULE, True) if include_fallback else (None, None)
    for rule in TEACHING_RULES:
        if not rule.structured and not include_fallback:
            continue
        m = rule.match(message)
        if m:
            return rule, m
    return None, None


# Explicit teach command: "teach: ...", "remember that ...", "aprenda: ..."
TEACH_COMMAND_RE = re.compile(
    r"^\s*(?:teach|learn|remember|ensine|aprenda)(?:\s*:|\s+(?:that|que)\b)\s*(\S.*?)\s*$",
    re.I | re.S,
)


def strip_teach_command(message: str) -> Optional[str]:
    """Body of an explicit teach command, or None when the message is not one"""
    m = TEACH_COMMAND_RE.match(message or "")
    return m.group(1) if m else None


# ═══════════════════════════════════════════════════════════════════════════════
# § 2  CATEGORY KEYWORDS
# ═══════════════════════════════════════════════════════════════════════════════

CATEGORY_KEYWORDS: Dict[str, FrozenSet[str]] = {
    "math": frozenset({
        "math", "maths", "mathematics", "arithmetic", "sum", "plus", "minus",
        "times", "divided", "multiply", "multiplication", "division",
        "addition", "subtraction", "equation", "number", "calculate",
        "soma", "multiplicação", "divisão", "equação", "número", "mais",
        "menos", "vezes",
    }),
    "geography": frozenset({
        "capital", "country", "city", "continent", "river", "mountain",
        "ocean", "population", "border", "map", "país", "cidade",
        "continente", "rio", "montanha",
    }),
    "politics": frozenset({
        "president", "leader", "minister", "government", "election",
        "senate", "congress", "democracy", "republic", "party", "vote",
        "presidente", "líder", "governo", "eleição", "república",
        "democracia",
    }),
    "html": frozenset({
        "html", "tag", "tags", "element", "elements", "attribute",
        "attributes", "doctype", "div", "span", "elemento", "atributo",
    }),
    "css": frozenset({
        "css", "style", "stylesheet", "selector", "layout", "flexbox",
        "margin", "padding", "estilo",
    }),
    "javascript": frozenset({
        "javascript", "js", "function", "variable", "const", "array",
        "promise", "dom", "função", "variável",
    }),
    "definition": frozenset({
        "define", "definition", "meaning", "means", "concept",
        "significa", "definição", "conceito",
    }),
}

# Fixed order used when walking the tables (general is the tie fallback)
CATEGORY_ORDER = tuple(CATEGORY_KEYWORDS)


# ═══════════════════════════════════════════════════════════════════════════════
# § 3  CONTENT MARKERS
# ═══════════════════════════════════════════════════════════════════════════════

# Navigation / login boilerplate left over from scraped pages
NOISE_RE = re.compile(
    r"(cookie[s\s]+(policy|consent|notice)|privacy\s+policy|"
    r"subscribe|click\s+here|sign\s+(up|in)|log\s*in\b|log\s+out|"
    r"newsletter|terms\s+of\s+(use|service)|all\s+rights\s+reserved|"
    r"copyright\s+\d{4}|skip\s+to\s+(main\s+)?content|"
    r"main\s+menu|toggle\s+navigation|back\s+to\s+top|"
    r"[×❮❯])",
    re.I,
)

DEFINITIONAL_RE = re.compile(r"\b(is|means|defines|é|significa|define)\b", re.I)

TECHNICAL_RE = re.compile(r"\b(tags?|elements?|attributes?|elementos?|atributos?)\b", re.I)

# "explain the HTML document structure" has a fixed answer
HTML_STRUCTURE_RE = re.compile(
    r"\b(explain|describe|show)\s+(me\s+)?(the\s+)?(basic\s+)?html\s+(document\s+|page\s+)?structure\b|"
    r"\bexpli(que|car)\s+a\s+estrutura\s+(b[aá]sica\s+)?(de\s+um\s+|do\s+)?documento\s+html\b",
    re.I,
)
