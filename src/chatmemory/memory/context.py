"""Context window selection for chat sessions."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from chatmemory.config import MemoryConfig
from chatmemory.logging.transcript import ContextTranscript
from chatmemory.memory.keywords import extract_keywords
from chatmemory.memory.search import search_relevant_memories
from chatmemory.memory.summarizer import create_summary_turn, generate_summary
from chatmemory.memory.tokens import TokenEstimator, estimate_tokens
from chatmemory.messages import ChatMessage, ContextTurn, Role


@dataclass(frozen=True)
class MemoryStats:
    """Snapshot statistics over a message list."""

    total_messages: int
    user_messages: int
    assistant_messages: int
    estimated_tokens: int
    earliest_message_time: datetime | None = None
    latest_message_time: datetime | None = None


def balance_conversation(messages: list[ChatMessage]) -> list[ChatMessage]:
    """Drop leading messages until the conversation opens with a user turn.

    Once a user message has been admitted, later messages are kept even if
    they do not alternate, so consecutive same-role runs pass through.

    Args:
        messages: Messages in chronological order.

    Returns:
        Balanced subsequence in the same order.
    """
    balanced: list[ChatMessage] = []
    expected_role: Role = "user"

    for msg in messages:
        if msg.role == expected_role:
            balanced.append(msg)
            expected_role = "assistant" if expected_role == "user" else "user"
        elif balanced:
            balanced.append(msg)

    return balanced


class ContextMemoryManager:
    """Selects which prior messages are forwarded to the model.

    The manager keeps a sliding window of the most recent messages that
    fits both a message-count and a token budget, and offers keyword
    extraction, relevance search and summaries over the history.

    The configuration is held as a frozen snapshot. ``update_config``
    swaps in a new snapshot, so a call that is already running keeps the
    values it started with. The manager is not locked: use one instance per
    session, or pass an explicit ``config`` snapshot into each call when an
    instance is shared.
    """

    def __init__(
        self,
        config: MemoryConfig | Mapping[str, Any] | None = None,
        estimator: TokenEstimator = estimate_tokens,
        transcript: ContextTranscript | None = None,
    ) -> None:
        """Initialize the memory manager.

        Args:
            config: Memory configuration, or a mapping of fields overriding
                the defaults.
            estimator: Token estimator used for budgets and statistics.
            transcript: Optional transcript recording each decision.
        """
        if config is None:
            config = MemoryConfig()
        elif not isinstance(config, MemoryConfig):
            config = MemoryConfig(**config)

        self._config = config
        self.estimator = estimator
        self.transcript = transcript

    def estimate_tokens(self, text: str) -> int:
        """Estimate the token count of text with the configured estimator."""
        return self.estimator(text)

    def get_memory_stats(self, messages: list[ChatMessage]) -> MemoryStats:
        """Compute statistics over a message list.

        Args:
            messages: Messages to inspect, oldest first.

        Returns:
            Fresh statistics for exactly the messages passed in.
        """
        if not messages:
            return MemoryStats(
                total_messages=0,
                user_messages=0,
                assistant_messages=0,
                estimated_tokens=0,
            )

        return MemoryStats(
            total_messages=len(messages),
            user_messages=sum(1 for m in messages if m.role == "user"),
            assistant_messages=sum(1 for m in messages if m.role == "assistant"),
            estimated_tokens=sum(self.estimate_tokens(m.content) for m in messages),
            earliest_message_time=messages[0].timestamp,
            latest_message_time=messages[-1].timestamp,
        )

    def optimize_context(
        self,
        messages: list[ChatMessage],
        config: MemoryConfig | None = None,
    ) -> list[ChatMessage]:
        """Reduce a history to the context forwarded to the model.

        The last ``max_messages`` messages are taken, then whole messages
        are kept from newest to oldest while the estimated total stays
        within ``max_tokens``, then the result is balanced so it opens with
        a user turn. The newest message is dropped too if it alone exceeds
        the budget.

        Args:
            messages: Full history, oldest first.
            config: Optional snapshot overriding the instance config.

        Returns:
            Order-preserving subsequence of ``messages``.
        """
        config = config if config is not None else self._config

        count_limited = self._limit_count(messages, config.max_messages)
        token_limited = self._limit_tokens(count_limited, config.max_tokens)
        balanced = balance_conversation(token_limited)

        if self.transcript:
            self.transcript.log_optimization(
                input_count=len(messages),
                count_kept=len(count_limited),
                token_kept=len(token_limited),
                balanced_kept=len(balanced),
                estimated_tokens=sum(self.estimate_tokens(m.content) for m in balanced),
            )

        return balanced

    def _limit_count(
        self,
        messages: list[ChatMessage],
        max_messages: int,
    ) -> list[ChatMessage]:
        """Keep the most recent ``max_messages`` messages."""
        if max_messages <= 0:
            return []
        return messages[-max_messages:]

    def _limit_tokens(
        self,
        messages: list[ChatMessage],
        max_tokens: int,
    ) -> list[ChatMessage]:
        """Keep the newest messages whose estimated total fits the budget."""
        kept: list[ChatMessage] = []
        total_tokens = 0

        for msg in reversed(messages):
            msg_tokens = self.estimate_tokens(msg.content)
            if total_tokens + msg_tokens > max_tokens:
                break
            kept.append(msg)
            total_tokens += msg_tokens

        kept.reverse()
        return kept

    def build_context_history(
        self,
        messages: list[ChatMessage],
        config: MemoryConfig | None = None,
    ) -> list[ContextTurn]:
        """Build the conversation history for an LLM request.

        Args:
            messages: Full history, oldest first.
            config: Optional snapshot overriding the instance config.

        Returns:
            The optimized context as ``{role, content}`` turns.
        """
        return [msg.to_turn() for msg in self.optimize_context(messages, config)]

    def summarize_dropped(
        self,
        messages: list[ChatMessage],
        config: MemoryConfig | None = None,
        kept: list[ChatMessage] | None = None,
    ) -> str | None:
        """Summarize the history that falls outside the context window.

        Args:
            messages: Full history, oldest first.
            config: Optional snapshot overriding the instance config.
            kept: Result of an earlier ``optimize_context`` call on the
                same history, to avoid selecting again.

        Returns:
            Summary of the dropped messages, or None when summaries are
            disabled or nothing was dropped.
        """
        config = config if config is not None else self._config
        if not config.enable_summary:
            return None
        if kept is None:
            kept = self.optimize_context(messages, config)
        return self._summarize_dropped(messages, kept)

    def _summarize_dropped(
        self,
        messages: list[ChatMessage],
        kept: list[ChatMessage],
    ) -> str | None:
        kept_ids = {id(m) for m in kept}
        dropped = [m for m in messages if id(m) not in kept_ids]
        if not dropped:
            return None
        return self.generate_summary(dropped)

    def build_request_messages(
        self,
        messages: list[ChatMessage],
        system_prompt: str | None = None,
        config: MemoryConfig | None = None,
    ) -> list[ContextTurn]:
        """Assemble the turns sent ahead of a new user message.

        Args:
            messages: Full history, oldest first.
            system_prompt: Optional system prompt, kept only when
                ``keep_system_messages`` is enabled.
            config: Optional snapshot overriding the instance config.

        Returns:
            System prompt, dropped-history summary and context history turns.
        """
        config = config if config is not None else self._config
        turns: list[ContextTurn] = []

        if system_prompt and config.keep_system_messages:
            turns.append(ContextTurn(role="system", content=system_prompt))

        kept = self.optimize_context(messages, config)
        if config.enable_summary:
            summary = self._summarize_dropped(messages, kept)
            if summary:
                turns.append(create_summary_turn(summary))

        turns.extend(msg.to_turn() for msg in kept)
        return turns

    def generate_summary(self, messages: list[ChatMessage]) -> str:
        """Generate a template summary of the messages."""
        summary = generate_summary(messages)
        if self.transcript and summary:
            self.transcript.log_summary(summary)
        return summary

    def search_relevant_memories(
        self,
        messages: list[ChatMessage],
        keywords: list[str],
        limit: int = 5,
    ) -> list[ChatMessage]:
        """Find the messages most relevant to the keywords."""
        results = search_relevant_memories(messages, keywords, limit)
        if self.transcript:
            self.transcript.log_search(keywords, [m.id for m in results])
        return results

    def extract_keywords(self, text: str, limit: int = 5) -> list[str]:
        """Extract the most frequent keywords from text."""
        return extract_keywords(text, limit)

    def update_config(
        self,
        changes: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Merge changes into a new configuration snapshot.

        Values are not range-checked. Unknown fields raise a pydantic
        ``ValidationError`` and leave the current snapshot in place.

        Args:
            changes: Mapping of fields to update.
            **kwargs: Fields to update, applied after ``changes``.
        """
        merged = {**(changes or {}), **kwargs}
        self._config = self._config.merged(merged)

        if self.transcript:
            self.transcript.log_config_update(merged)

    def get_config(self) -> MemoryConfig:
        """Get the current configuration snapshot."""
        return self._config


def create_context_memory_manager(
    config: MemoryConfig | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> ContextMemoryManager:
    """Create a memory manager.

    Args:
        config: Base configuration or mapping of fields.
        **overrides: Individual fields overriding ``config``.

    Returns:
        New manager with its own configuration.
    """
    base = config if isinstance(config, MemoryConfig) else MemoryConfig(**(config or {}))
    if overrides:
        base = base.merged(overrides)
    return ContextMemoryManager(base)


default_memory_manager = create_context_memory_manager(
    max_messages=20,
    max_tokens=4000,
    enable_summary=False,
    keep_system_messages=True,
)
