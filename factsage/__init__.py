"""FactSage — a small conversational agent that learns facts from what you teach it"""

__version__ = "0.1.0"
__author__ = "Md. Abid Hasan Rafi"

from .agent import Answer, FactSageAgent
from .arithmetic import InvalidExpression
from .knowledge import (
    Fact,
    FactQuery,
    FileKnowledgeStore,
    KnowledgeStore,
    MemoryKnowledgeStore,
    StoreUnavailable,
    TimeoutStore,
)

__all__ = [
    "Answer",
    "FactSageAgent",
    "InvalidExpression",
    "Fact",
    "FactQuery",
    "FileKnowledgeStore",
    "KnowledgeStore",
    "MemoryKnowledgeStore",
    "StoreUnavailable",
    "TimeoutStore",
]
