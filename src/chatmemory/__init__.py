"""Conversation context memory for LLM chat sessions."""

from chatmemory.config import MemoryConfig
from chatmemory.memory import (
    ContextMemoryManager,
    MemoryStats,
    create_context_memory_manager,
    default_memory_manager,
)
from chatmemory.messages import ChatMessage, ContextTurn, InvalidMessageError

__version__ = "0.1.0"

__all__ = [
    "ChatMessage",
    "ContextMemoryManager",
    "ContextTurn",
    "InvalidMessageError",
    "MemoryConfig",
    "MemoryStats",
    "__version__",
    "create_context_memory_manager",
    "default_memory_manager",
]
