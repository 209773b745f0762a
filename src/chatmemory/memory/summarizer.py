"""Template-based conversation summaries."""

from chatmemory.messages import ChatMessage, ContextTurn

# Characters of a question quoted in the summary
QUESTION_PREVIEW_LENGTH = 50


def generate_summary(messages: list[ChatMessage]) -> str:
    """Produce a short digest of a conversation.

    The digest lists the message counts and quotes the opening of the
    first and, when there is more than one, the last user question. No
    model call is involved.

    Args:
        messages: Messages to summarize.

    Returns:
        Multi-line summary, or an empty string for no messages.
    """
    if not messages:
        return ""

    user_messages = [m for m in messages if m.role == "user"]
    assistant_messages = [m for m in messages if m.role == "assistant"]

    lines = [
        f"Conversation contains {len(messages)} messages",
        f"User questions: {len(user_messages)}",
        f"Assistant replies: {len(assistant_messages)}",
    ]

    if user_messages:
        first_question = user_messages[0].content[:QUESTION_PREVIEW_LENGTH]
        lines.append(f"First question: {first_question}...")

        if len(user_messages) > 1:
            last_question = user_messages[-1].content[:QUESTION_PREVIEW_LENGTH]
            lines.append(f"Last question: {last_question}...")

    return "\n".join(lines)


def create_summary_turn(summary: str) -> ContextTurn:
    """Create a system turn carrying a summary of earlier history.

    Args:
        summary: The summary text.

    Returns:
        ContextTurn with the summary.
    """
    return ContextTurn(
        role="system",
        content=f"Summary of earlier conversation:\n{summary}",
    )
