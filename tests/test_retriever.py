"""Tests for retrieval: candidate filtering, ranking and fallbacks."""

from datetime import datetime, timedelta, timezone

import pytest

from factsage.classifier import Classifier
from factsage.knowledge import Fact, MemoryKnowledgeStore
from factsage.retriever import Retriever, candidate_pattern, deduplicate, is_useful
from factsage.tokenizer import QueryContext, normalize


def teach(store: MemoryKnowledgeStore, content: str, source: str = "user_teaching", **kwargs) -> Fact:
    fact = Fact(content=content, source=source, tokens=normalize(content), **kwargs)
    store.persist(fact)
    return fact


@pytest.fixture
def retriever(store: MemoryKnowledgeStore) -> Retriever:
    return Retriever(store, Classifier(store))


class TestUtilityFilter:
    def test_too_short(self) -> None:
        assert not is_useful("div is a box")

    def test_definitional(self) -> None:
        assert is_useful("The div element is a generic container")

    def test_technical_marker_without_verb(self) -> None:
        assert is_useful("Common tags: div, span, section, article")

    def test_no_marker(self) -> None:
        assert not is_useful("Paris Berlin Madrid Rome Lisbon Vienna")

    def test_noise_is_rejected(self) -> None:
        assert not is_useful("Subscribe to our newsletter, it is free")
        assert not is_useful("Accept the cookie policy, the site is nice")

    def test_too_long(self) -> None:
        assert not is_useful("html is " + "very " * 120)


def test_deduplicate_keeps_first() -> None:
    """Facts differing only in case and spacing collapse to the first one."""
    first = Fact(content="HTML is a markup language", source="web")
    second = Fact(content="html  is a MARKUP language", source="user_teaching")
    other = Fact(content="CSS is a style sheet language", source="web")
    assert deduplicate([first, second, other]) == [first, other]


def test_candidate_pattern_escapes_user_text() -> None:
    context = QueryContext.from_query("c++ (language)")
    pattern = candidate_pattern(context)
    assert "language" in pattern
    assert candidate_pattern(QueryContext.from_query("?!")) is None


class TestRetrieve:
    def test_unknown_query(self, retriever: Retriever) -> None:
        assert retriever.retrieve("quantum chromodynamics") is None

    def test_empty_query(self, retriever: Retriever) -> None:
        assert retriever.retrieve("?!") is None

    def test_finds_matching_fact(self, store, retriever: Retriever) -> None:
        fact = teach(store, "the capital of Brazil is Brasília", term="Brazil", category="geography")
        assert retriever.retrieve("capital of Brazil") is fact

    def test_short_candidates_are_filtered(self, store, retriever: Retriever) -> None:
        """A 10-character fact never wins over a useful 30-character one."""
        teach(store, "div is box")
        useful = teach(store, "a div element is a generic box")
        assert retriever.retrieve("div") is useful

    def test_ranking_prefers_category_and_trusted_source(self, store, retriever: Retriever) -> None:
        trusted = teach(store, "The div element is a block-level container for flow content",
                        category="html")
        teach(store, "A div element is a generic block container on the page", source="web",
              category="general")
        assert retriever.retrieve("div element") is trusted

    def test_ties_prefer_newest(self, store, retriever: Retriever) -> None:
        now = datetime.now(timezone.utc)
        teach(store, "a span element is an inline container", source="web",
              timestamp=now - timedelta(hours=1))
        newest = teach(store, "the span element is an inline wrapper", source="web", timestamp=now)
        assert retriever.retrieve("span") is newest

    def test_older_fact_among_many_candidates(self, store, retriever: Retriever) -> None:
        """Every matching fact is ranked, however many newer ones match too."""
        fact = teach(store, "the capital of Brazil is Brasília", term="Brazil", category="geography")
        for i in range(250):
            teach(store, f"capital gains note {i} is taxed yearly", source="web")
        assert retriever.retrieve("capital of Brazil") is fact

    def test_relaxed_lookup_by_term(self, store, retriever: Retriever) -> None:
        fact = teach(store, "Brazil: Lula", term="brazil", category="politics")
        assert retriever.retrieve("Brazil") is fact

    def test_relaxed_lookup_by_definition_phrase(self, store, retriever: Retriever) -> None:
        fact = teach(store, "api is an interface")
        assert retriever.retrieve("API") is fact

    def test_idempotent(self, store, retriever: Retriever) -> None:
        teach(store, "HTML means HyperText Markup Language", term="html", category="definition")
        first = retriever.retrieve("what is html")
        assert first is not None
        assert retriever.retrieve("What is HTML?") is first


class TestCache:
    def test_cached_until_invalidated(self, store, retriever: Retriever) -> None:
        assert retriever.retrieve("div element") is None
        fact = teach(store, "The div element is a generic container")
        assert retriever.retrieve("div element") is None
        retriever.invalidate()
        assert retriever.retrieve("div element") is fact

    def test_disabled_cache(self, store: MemoryKnowledgeStore) -> None:
        retriever = Retriever(store, Classifier(store), cache_size=0)
        assert retriever.retrieve("div element") is None
        fact = teach(store, "The div element is a generic container")
        assert retriever.retrieve("div element") is fact
        assert len(retriever.cache) == 0

    def test_lru_eviction(self, store: MemoryKnowledgeStore) -> None:
        retriever = Retriever(store, Classifier(store), cache_size=2)
        for query in ("alpha", "beta", "gamma"):
            retriever.retrieve(query)
        assert len(retriever.cache) == 2
