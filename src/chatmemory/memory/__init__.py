"""Context memory management."""

from chatmemory.memory.context import (
    ContextMemoryManager,
    MemoryStats,
    balance_conversation,
    create_context_memory_manager,
    default_memory_manager,
)
from chatmemory.memory.keywords import STOPWORDS, extract_keywords
from chatmemory.memory.search import ScoredMessage, search_relevant_memories
from chatmemory.memory.summarizer import create_summary_turn, generate_summary
from chatmemory.memory.tokens import TokenEstimator, estimate_tokens

__all__ = [
    "STOPWORDS",
    "ContextMemoryManager",
    "MemoryStats",
    "ScoredMessage",
    "TokenEstimator",
    "balance_conversation",
    "create_context_memory_manager",
    "create_summary_turn",
    "default_memory_manager",
    "estimate_tokens",
    "extract_keywords",
    "generate_summary",
    "search_relevant_memories",
]
