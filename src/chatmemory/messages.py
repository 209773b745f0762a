"""Message types exchanged with the session store and the LLM request layer."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, get_args

Role = Literal["user", "assistant"]
TurnRole = Literal["user", "assistant", "system"]

VALID_ROLES: frozenset[str] = frozenset(get_args(Role))

REQUIRED_FIELDS = ("id", "role", "content", "timestamp")


class InvalidMessageError(ValueError):
    """Raised when a message lacks required fields or has an unknown role."""


@dataclass(frozen=True)
class ContextTurn:
    """A single turn in the shape an LLM request expects."""

    role: TurnRole
    content: str

    def as_dict(self) -> dict[str, str]:
        """Return the plain ``{role, content}`` mapping."""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatMessage:
    """A stored chat message.

    Messages are created by the session store and handed to the memory
    manager on every call. The history is ordered oldest first and
    ``timestamp`` is assumed to follow that order.
    """

    id: str
    role: Role
    content: str
    timestamp: datetime
    metadata: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.role, str) or self.role not in VALID_ROLES:
            raise InvalidMessageError(f"Invalid role: {self.role!r}")
        if not isinstance(self.content, str):
            raise InvalidMessageError(
                f"Message {self.id!r} content must be a string, "
                f"got {type(self.content).__name__}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChatMessage":
        """Build a message from a store record.

        Args:
            data: Record with ``id``, ``role``, ``content`` and ``timestamp``
                keys and an optional ``metadata`` key. ``timestamp`` may be a
                datetime or an ISO 8601 string.

        Returns:
            The parsed message.

        Raises:
            InvalidMessageError: If a field is missing or malformed.
        """
        missing = [key for key in REQUIRED_FIELDS if data.get(key) is None]
        if missing:
            raise InvalidMessageError(f"Missing message fields: {', '.join(missing)}")

        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            try:
                timestamp = datetime.fromisoformat(timestamp)
            except ValueError:
                raise InvalidMessageError(f"Invalid timestamp: {timestamp!r}") from None
        elif not isinstance(timestamp, datetime):
            raise InvalidMessageError(f"Invalid timestamp: {timestamp!r}")

        return cls(
            id=str(data["id"]),
            role=data["role"],
            content=data["content"],
            timestamp=timestamp,
            metadata=data.get("metadata"),
        )

    def to_turn(self) -> ContextTurn:
        """Strip the message down to the fields an LLM request needs."""
        return ContextTurn(role=self.role, content=self.content)


def parse_messages(records: Iterable[Mapping[str, Any]]) -> list[ChatMessage]:
    """Parse store records into messages, preserving order.

    Args:
        records: Message records, oldest first.

    Returns:
        Parsed messages.

    Raises:
        InvalidMessageError: Naming the index of the first bad record.
    """
    messages: list[ChatMessage] = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InvalidMessageError(f"Message #{index} is not an object")
        try:
            messages.append(ChatMessage.from_dict(record))
        except InvalidMessageError as e:
            raise InvalidMessageError(f"Message #{index}: {e}") from e
    return messages
