"""Tests for arithmetic table seeding."""

from factsage.arithmetic import evaluate
from factsage.knowledge import FactQuery, MemoryKnowledgeStore
from factsage.seed import base_knowledge_facts, basic_math_facts, seed_base_knowledge, seed_basic_math


def test_table_size() -> None:
    """121 sums, 121 products, 242 composites, 66 differences, 100 quotients."""
    assert len(list(basic_math_facts())) == 650
    assert len(list(basic_math_facts(max_operand=2))) == 46


def test_every_fact_holds() -> None:
    for fact in basic_math_facts(max_operand=4):
        lhs, rhs = fact.content.split(" = ")
        assert evaluate(lhs) == float(rhs)
        assert fact.category == "math"
        assert fact.type == "calculation"
        assert fact.source == "basic_math"


def test_composites_are_left_to_right() -> None:
    contents = {fact.content for fact in basic_math_facts(max_operand=3)}
    assert "2 + 3 * 10 = 50" in contents
    assert "2 * 10 + 3 = 23" in contents
    assert "6 / 3 = 2" in contents
    assert "3 - 3 = 0" in contents
    assert "2 - 3 = -1" not in contents


def test_paths() -> None:
    paths = {fact.path for fact in basic_math_facts(max_operand=1)}
    assert paths == {"addition", "multiplication", "combined", "subtraction", "division"}


class TestSeedStore:
    def test_seed_once(self, store: MemoryKnowledgeStore) -> None:
        assert seed_basic_math(store) == 650
        assert seed_basic_math(store) == 0
        assert store.count() == 650

    def test_seeded_facts_are_queryable(self, store: MemoryKnowledgeStore) -> None:
        seed_basic_math(store, max_operand=3)
        assert store.query(FactQuery(term="2+3"))[0].value == "5"

    def test_seeded_equation_is_already_known(self, agent, store: MemoryKnowledgeStore) -> None:
        seed_basic_math(store)
        assert agent.ask("3 + 4 = 7") == "I already know that 3 + 4 = 7."
        assert store.count() == 650


def test_base_knowledge() -> None:
    facts = list(base_knowledge_facts())
    assert len(facts) == 12
    assert all(fact.source == "base_knowledge" for fact in facts)
    assert {(fact.category, fact.type) for fact in facts} == {
        ("geography", "capital"),
        ("politics", "leader"),
        ("politics", "system"),
        ("definition", "concept"),
    }
    capital = facts[0]
    assert capital.content == "a capital do Brasil é Brasília"
    assert capital.term == "brasil"
    assert capital.value == "Brasília"


def test_concept_term_is_the_defined_word() -> None:
    concepts = [fact for fact in base_knowledge_facts() if fact.type == "concept"]
    assert [fact.term for fact in concepts] == ["geografia", "democracia", "república", "presidencialismo"]


class TestSeedBaseKnowledge:
    def test_seed_once(self, store: MemoryKnowledgeStore) -> None:
        assert seed_base_knowledge(store) == 12
        assert seed_base_knowledge(store) == 0
        assert store.count() == 12

    def test_independent_of_arithmetic_seed(self, store: MemoryKnowledgeStore) -> None:
        seed_basic_math(store, max_operand=1)
        assert seed_base_knowledge(store) == 12
        assert store.query(FactQuery(term="portugal", category="geography"))[0].value == "Lisboa"
