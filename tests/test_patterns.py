"""Tests for the pattern library, classifier and extractor."""

import pytest

from factsage.classifier import Classifier
from factsage.extractor import PASSIVE_SOURCE, TEACHING_SOURCE, Extractor
from factsage.knowledge import Fact, MemoryKnowledgeStore
from factsage.patterns import FALLBACK_RULE, match_rule, strip_teach_command
from factsage.tokenizer import normalize


class TestMatchRule:
    @pytest.mark.parametrize("message, rule_name", [
        ("5 + 3 = 8", "arithmetic"),
        ("12 x 4 = 48.", "arithmetic"),
        ("the capital of France is Paris", "capital"),
        ("Capital of Japan is Tokyo.", "capital"),
        ("a capital do Brasil é Brasília", "capital"),
        ("the president of France is Emmanuel Macron", "leader"),
        ("the prime minister of Canada is Mark Carney", "leader"),
        ("o presidente do Brasil é Lula", "leader"),
        ("HTML means HyperText Markup Language", "definition"),
        ("a closure is defined as a function bundled with its scope", "definition"),
        ("what is a div? a generic block container", "definition"),
        ("o que é CSS? a linguagem de estilos da web", "definition"),
    ])
    def test_structured_rules(self, message: str, rule_name: str) -> None:
        rule, match = match_rule(message)
        assert rule is not None
        assert rule.name == rule_name
        assert match

    def test_first_match_wins(self) -> None:
        """A capital statement is never taken as a definition."""
        rule, _ = match_rule("the capital of Peru is Lima")
        assert rule.name == "capital"

    @pytest.mark.parametrize("message", [
        "what is html",
        "what is html?",
        "capital of Brazil",
        "I like green tea",
        "",
    ])
    def test_no_structured_match(self, message: str) -> None:
        assert match_rule(message) == (None, None)

    def test_fallback_only_on_request(self) -> None:
        rule, _ = match_rule("I like green tea", include_fallback=True)
        assert rule is FALLBACK_RULE
        assert not rule.structured


def test_strip_teach_command() -> None:
    """Explicit teach commands expose their body; anything else is not a command."""
    assert strip_teach_command("teach: HTML is cool") == "HTML is cool"
    assert strip_teach_command("Remember that the sky is blue") == "the sky is blue"
    assert strip_teach_command("aprenda: o céu é azul") == "o céu é azul"
    assert strip_teach_command("teach me something") is None
    assert strip_teach_command("teacher: hello") is None
    assert strip_teach_command(None) is None


class TestClassifier:
    def test_keyword_match(self) -> None:
        result = Classifier().classify("capital city")
        assert result.category == "geography"
        assert result.confidence == 1.0
        assert result.matched_tokens == ["capital", "city"]

    def test_partial_confidence(self) -> None:
        result = Classifier().classify("who is the president")
        assert result.category == "politics"
        assert result.confidence == pytest.approx(0.25)

    def test_tie_falls_back_to_general(self) -> None:
        result = Classifier().classify("capital president")
        assert result.category == "general"
        assert result.matched_tokens == []

    def test_no_keywords(self) -> None:
        result = Classifier().classify("hello there")
        assert result.category == "general"
        assert result.confidence == 0.0

    def test_empty_message(self) -> None:
        result = Classifier().classify("")
        assert result.category == "general"
        assert result.confidence == 0.0

    def test_history_boost(self, store: MemoryKnowledgeStore) -> None:
        """Stored facts sharing a token vote for their category."""
        content = "grid is a two dimensional layout system"
        store.persist(Fact(content=content, source="user_teaching", category="css",
                           tokens=normalize(content)))
        assert Classifier(store).classify("grid").category == "css"
        assert Classifier(store).classify_offline("grid").category == "general"

    def test_history_breaks_tie(self, store: MemoryKnowledgeStore) -> None:
        content = "the president leads the executive"
        store.persist(Fact(content=content, source="user_teaching", category="politics",
                           tokens=normalize(content)))
        assert Classifier(store).classify("capital president").category == "politics"

    def test_uncategorized_history_ignored(self, store: MemoryKnowledgeStore) -> None:
        content = "grid notes"
        store.persist(Fact(content=content, source="user_input", tokens=normalize(content)))
        assert Classifier(store).classify("grid").category == "general"


@pytest.fixture
def extractor() -> Extractor:
    return Extractor(Classifier())


class TestExtractor:
    def test_arithmetic_fact(self, extractor: Extractor) -> None:
        extraction = extractor.extract("5+3 = 8")
        fact = extraction.fact
        assert extraction.rule_name == "arithmetic"
        assert extraction.valid
        assert fact.content == "5 + 3 = 8"
        assert fact.term == "5+3"
        assert fact.value == "8"
        assert fact.category == "math"
        assert fact.type == "calculation"
        assert fact.path == "addition"
        assert fact.source == TEACHING_SOURCE
        assert fact.confidence == 1.0

    def test_wrong_equation(self, extractor: Extractor) -> None:
        extraction = extractor.extract("5 + 3 = 9")
        assert not extraction.valid
        assert extraction.expected == "8"

    def test_equation_without_value(self, extractor: Extractor) -> None:
        extraction = extractor.extract("1 / 0 = 0")
        assert not extraction.valid
        assert extraction.expected is None

    def test_capital(self, extractor: Extractor) -> None:
        fact = extractor.extract("the capital of Brazil is Brasília").fact
        assert fact.term == "brazil"
        assert fact.value == "Brasília"
        assert fact.category == "geography"
        assert fact.type == "capital"
        assert fact.content == "the capital of Brazil is Brasília"

    def test_leader(self, extractor: Extractor) -> None:
        fact = extractor.extract("o presidente do Brasil é Lula").fact
        assert fact.term == "brasil"
        assert fact.value == "Lula"
        assert fact.category == "politics"

    def test_definition(self, extractor: Extractor) -> None:
        fact = extractor.extract("HTML means HyperText Markup Language").fact
        assert fact.term == "html"
        assert fact.category == "definition"
        assert fact.type == "concept"

    def test_no_match(self, extractor: Extractor) -> None:
        assert extractor.extract("I like green tea") is None

    def test_fallback_uses_classifier(self, extractor: Extractor) -> None:
        extraction = extractor.extract("flexbox margin tricks", include_fallback=True)
        assert extraction.rule_name == "conversation"
        assert extraction.fact.category == "css"
        assert extraction.fact.type == "conversation"
        assert extraction.fact.source == PASSIVE_SOURCE
        assert extraction.fact.confidence == pytest.approx(2 / 3)
