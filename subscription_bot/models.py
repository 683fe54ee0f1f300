"""Data models for RSS Subscription Bot."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ChatKind(str, Enum):
    """Telegram chat types."""

    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"


@dataclass
class NewChat:
    """Chat descriptor received from the chat platform."""

    id: int
    kind: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_telegram(cls, chat: dict[str, Any]) -> "NewChat":
        """Build a descriptor from a Bot API Chat object.

        Args:
            chat: The ``chat`` field of a Telegram message

        Returns:
            NewChat descriptor

        Raises:
            ValueError: If the chat id or type is missing or the type is unknown
        """
        if "id" not in chat or "type" not in chat:
            raise ValueError("Telegram chat must contain 'id' and 'type'")

        return cls(
            id=int(chat["id"]),
            kind=ChatKind(chat["type"]).value,
            username=chat.get("username"),
            first_name=chat.get("first_name"),
            last_name=chat.get("last_name"),
        )


@dataclass
class Chat:
    """Persisted chat record keyed by the external chat id."""

    id: int
    kind: str
    username: str | None
    first_name: str | None
    last_name: str | None
    created_at: datetime
    updated_at: datetime


@dataclass
class Feed:
    """Persisted feed record, unique by URL."""

    id: int
    url: str
    created_at: datetime
    updated_at: datetime


@dataclass
class Subscription:
    """Link between one chat and one feed."""

    chat_id: int
    feed_id: int
    created_at: datetime
    updated_at: datetime


@dataclass
class FetchedFeedItem:
    """Represents a single normalized RSS/Atom feed item."""

    publication_date: datetime
    title: str | None = None
    description: str | None = None
    link: str | None = None
    author: str | None = None
    guid: str | None = None


@dataclass
class FetchedFeed:
    """Represents a normalized RSS/Atom feed document."""

    title: str
    link: str
    description: str
    items: list[FetchedFeedItem] = field(default_factory=list)
