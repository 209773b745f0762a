"""Keyword relevance search over message history."""

from dataclasses import dataclass

from chatmemory.messages import ChatMessage


@dataclass(frozen=True)
class ScoredMessage:
    """A message paired with its relevance score."""

    message: ChatMessage
    score: int


def score_message(message: ChatMessage, keywords: list[str]) -> int:
    """Count case-insensitive, non-overlapping keyword occurrences.

    Empty keywords never match.

    Args:
        message: Message to score.
        keywords: Keywords to look for.

    Returns:
        Total occurrences of all keywords in the message content.
    """
    content = message.content.lower()
    return sum(content.count(keyword.lower()) for keyword in keywords if keyword)


def search_relevant_memories(
    messages: list[ChatMessage],
    keywords: list[str],
    limit: int = 5,
) -> list[ChatMessage]:
    """Rank historical messages by keyword relevance.

    Args:
        messages: Message history, oldest first.
        keywords: Keywords to search for.
        limit: Maximum number of messages to return.

    Returns:
        Messages with a positive score, highest score first. Equal scores
        keep their history order.
    """
    if not keywords or limit <= 0:
        return []

    scored = [ScoredMessage(message=msg, score=score_message(msg, keywords)) for msg in messages]
    relevant = [item for item in scored if item.score > 0]
    relevant.sort(key=lambda item: -item.score)
    return [item.message for item in relevant[:limit]]
