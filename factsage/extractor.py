"""Turns a teaching message into a structured Fact using the pattern library"""

import logging
from typing import Optional

from .arithmetic import InvalidExpression, calculate, format_distinct, validate_equation
from .classifier import Classifier
from .knowledge import Fact
from .patterns import match_rule
from .tokenizer import normalize

logger = logging.getLogger(__name__)

TEACHING_SOURCE = "user_teaching"
PASSIVE_SOURCE = "user_input"


class Extraction:
    """Result of running the pattern library over a message"""

    def __init__(self, rule_name: str, fact: Fact, valid: bool = True, expected: Optional[str] = None):
        self.rule_name = rule_name
        self.fact = fact
        self.valid = valid
        self.expected = expected  # recomputed result when an equation does not hold

    def __repr__(self) -> str:
        return f"Extraction({self.rule_name!r}, valid={self.valid}, fact={self.fact!r})"


class Extractor:
    """
    First-match extraction over the teaching rules.

    Structured rules produce facts with confidence 1. The fallback rule
    stores the raw message with the classifier's category and confidence.
    """

    def __init__(self, classifier: Classifier):
        self.classifier = classifier

    def extract(self, message: str, include_fallback: bool = False) -> Optional[Extraction]:
        rule, m = match_rule(message, include_fallback=include_fallback)
        if rule is None:
            return None

        data = rule.extract(m, message)
        content = data["content"]

        if not rule.structured:
            result = self.classifier.classify(content)
            fact = Fact(
                content=content,
                source=PASSIVE_SOURCE,
                category=result.category,
                type=rule.type,
                tokens=normalize(content),
                confidence=result.confidence,
            )
            logger.debug(f"No teaching pattern matched, logging as {result.category}")
            return Extraction(rule.name, fact)

        fact = Fact(
            content=content,
            source=TEACHING_SOURCE,
            path=data.get("path"),
            term=data["term"],
            value=data["value"],
            category=rule.category,
            type=rule.type,
            tokens=normalize(content),
            confidence=1.0,
        )

        if rule.name == "arithmetic" and not validate_equation(data["lhs"], data["value"]):
            try:
                expected = format_distinct(calculate(data["lhs"]), data["value"])
            except InvalidExpression:
                expected = None
            logger.info(f"Rejected invalid equation: {content}")
            return Extraction(rule.name, fact, valid=False, expected=expected)

        logger.debug(f"Extracted {rule.name} fact: term={fact.term!r}")
        return Extraction(rule.name, fact)
