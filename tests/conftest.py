"""Shared fixtures for FactSage tests."""

import pytest

from factsage.agent import FactSageAgent
from factsage.classifier import Classifier
from factsage.knowledge import FactQuery, KnowledgeStore, MemoryKnowledgeStore, StoreUnavailable


class FailingStore(KnowledgeStore):
    """Store whose every call fails the way an unreachable backend does."""

    def persist(self, fact):
        raise StoreUnavailable("backend down")

    def query(self, filter: FactQuery):
        raise StoreUnavailable("backend down")

    def count(self) -> int:
        raise StoreUnavailable("backend down")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep the default file store out of the real home directory."""
    from factsage import config

    monkeypatch.setattr(config, "KNOWLEDGE_STORE_FILE", tmp_path / "home" / "facts.json")


@pytest.fixture
def store() -> MemoryKnowledgeStore:
    return MemoryKnowledgeStore()


@pytest.fixture
def classifier(store: MemoryKnowledgeStore) -> Classifier:
    return Classifier(store)


@pytest.fixture
def agent(store: MemoryKnowledgeStore) -> FactSageAgent:
    return FactSageAgent(store)


@pytest.fixture
def failing_agent() -> FactSageAgent:
    return FactSageAgent(FailingStore())
