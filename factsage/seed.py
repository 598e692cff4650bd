"""
Seeding of the basic arithmetic table and the base knowledge facts.

Each seed runs once per store: it is skipped when facts from its source
already exist. Run through FactSageAgent.seed(), never by the answer pipeline.
"""

import logging
from typing import Iterator, List

from tqdm import tqdm

from . import config
from .arithmetic import calculate, format_number
from .knowledge import Fact, KnowledgeStore
from .tokenizer import normalize

logger = logging.getLogger(__name__)


def _math_fact(expression: str, result, path: str) -> Fact:
    content = f"{expression} = {format_number(result)}"
    return Fact(
        content=content,
        source=config.SEED_SOURCE,
        path=path,
        term=expression.replace(" ", ""),
        value=format_number(result),
        category="math",
        type="calculation",
        tokens=normalize(content),
        confidence=1.0,
    )


def basic_math_facts(max_operand: int = None) -> Iterator[Fact]:
    """
    Addition and multiplication over 0..n, two composite forms, subtraction
    with non-negative results and division with integer results.
    """
    n = config.SEED_MAX_OPERAND if max_operand is None else max_operand

    for i in range(n + 1):
        for j in range(n + 1):
            yield _math_fact(f"{i} + {j}", i + j, "addition")
            yield _math_fact(f"{i} * {j}", i * j, "multiplication")

            # Composite forms use the same left-to-right rule as the evaluator
            combined = f"{i} + {j} * 10"
            yield _math_fact(combined, calculate(combined), "combined")
            combined = f"{i} * 10 + {j}"
            yield _math_fact(combined, calculate(combined), "combined")

    for i in range(n + 1):
        for j in range(i + 1):
            yield _math_fact(f"{i} - {j}", i - j, "subtraction")

    for i in range(1, n + 1):
        for j in range(1, n + 1):
            yield _math_fact(f"{i * j} / {i}", j, "division")


def seed_basic_math(store: KnowledgeStore, max_operand: int = None, show_progress: bool = False) -> int:
    """
    Load the arithmetic table into ``store`` unless it is already there.

    Returns:
        Number of facts inserted (0 when the seed already exists)
    """
    if store.exists_by_source(config.SEED_SOURCE):
        logger.info("Arithmetic table already seeded, skipping")
        return 0

    facts: List[Fact] = list(tqdm(
        basic_math_facts(max_operand),
        desc="Seeding arithmetic",
        unit="fact",
        disable=not show_progress,
    ))
    store.persist_many(facts)
    logger.info(f"Seeded {len(facts)} arithmetic facts")
    return len(facts)


# (country, contraction used in Portuguese, value)
CAPITALS = (
    ("Brasil", "do", "Brasília"),
    ("Portugal", "de", "Lisboa"),
)

LEADERS = (
    ("Brasil", "do", "Lula"),
    ("Estados Unidos", "dos", "Joe Biden"),
    ("Portugal", "de", "Marcelo Rebelo de Sousa"),
)

POLITICAL_SYSTEMS = (
    ("Brasil", "do", "República Federativa Presidencialista"),
    ("Reino Unido", "do", "Monarquia Parlamentarista"),
    ("França", "da", "República Semipresidencialista"),
)

CONCEPTS = (
    "Geografia é o estudo do espaço e das relações entre sociedade e natureza",
    "Democracia é um regime de governo em que o poder emana do povo",
    "República é uma forma de governo em que o chefe de Estado é eleito",
    "Presidencialismo é um sistema onde o presidente é chefe de Estado e governo",
)


def _base_fact(content: str, term: str, value: str, category: str, type: str) -> Fact:
    return Fact(
        content=content,
        source=config.BASE_KNOWLEDGE_SOURCE,
        term=term,
        value=value,
        category=category,
        type=type,
        tokens=normalize(content),
        confidence=1.0,
    )


def base_knowledge_facts() -> Iterator[Fact]:
    """Capitals, leaders, political systems and concept sentences"""
    for country, prep, capital in CAPITALS:
        yield _base_fact(f"a capital {prep} {country} é {capital}", country, capital,
                         "geography", "capital")
    for country, prep, leader in LEADERS:
        yield _base_fact(f"o presidente {prep} {country} é {leader}", country, leader,
                         "politics", "leader")
    for country, prep, system in POLITICAL_SYSTEMS:
        yield _base_fact(f"o sistema político {prep} {country} é {system}", country, system,
                         "politics", "system")
    for sentence in CONCEPTS:
        term, _, _ = sentence.partition(" é ")
        yield _base_fact(sentence, term, sentence, "definition", "concept")


def seed_base_knowledge(store: KnowledgeStore) -> int:
    """
    Load the base knowledge facts into ``store`` unless already present.

    Returns:
        Number of facts inserted (0 when the seed already exists)
    """
    if store.exists_by_source(config.BASE_KNOWLEDGE_SOURCE):
        logger.info("Base knowledge already seeded, skipping")
        return 0

    facts = list(base_knowledge_facts())
    store.persist_many(facts)
    logger.info(f"Seeded {len(facts)} base knowledge facts")
    return len(facts)
