"""Chat command handling for RSS Subscription Bot."""

from dataclasses import dataclass
from typing import Any

from .errors import (
    DbError,
    InvalidRssUrl,
    RssUrlNotProvided,
    SubscriptionAlreadyExists,
    SubscriptionCountLimit,
    SubscriptionError,
    UrlIsNotRss,
)
from .logging_config import create_execution_logger
from .models import NewChat
from .storage import Database
from .subscriptions import SUBSCRIPTION_LIMIT, SubscriptionService
from .telegram import TelegramClient, escape_html

HELP_TEXT = (
    "This bot sends you updates from RSS/Atom feeds.\n\n"
    "/subscribe <i>url</i> - subscribe to a feed "
    f"(up to {SUBSCRIPTION_LIMIT} per chat)"
)

ERROR_REPLIES = {
    RssUrlNotProvided: "Please provide a feed URL: /subscribe <i>url</i>",
    InvalidRssUrl: "This doesn't look like a valid URL.",
    UrlIsNotRss: "This URL doesn't serve an RSS or Atom feed.",
    SubscriptionAlreadyExists: "You are already subscribed to this feed.",
    SubscriptionCountLimit: (
        f"You have reached the limit of {SUBSCRIPTION_LIMIT} subscriptions."
    ),
    DbError: "Something went wrong on our side. Please try again later.",
}


@dataclass
class Command:
    """A bot command parsed from message text."""

    name: str
    argument: str | None = None


def parse_command(text: str | None) -> Command | None:
    """Parse ``/name[@bot] [argument]`` message text.

    Returns None when the text is not a command.
    """
    if not text or not text.startswith("/"):
        return None

    parts = text.strip().split(maxsplit=1)
    name = parts[0][1:].split("@", 1)[0].lower()
    argument = parts[1].strip() if len(parts) > 1 else None
    return Command(name=name, argument=argument or None)


class CommandHandler:
    """Dispatches Telegram updates to bot commands and sends the replies."""

    def __init__(
        self,
        database: Database,
        service: SubscriptionService,
        client: TelegramClient,
        execution_id: str | None = None,
    ):
        self.database = database
        self.service = service
        self.client = client
        self.logger = create_execution_logger("commands", execution_id)

    def handle_update(self, update: dict[str, Any]) -> str | None:
        """Handle one update.

        Args:
            update: Telegram Update object

        Returns:
            Name of the handled command, or None if the update was ignored

        Raises:
            TelegramError: If the reply could not be delivered
        """
        message = update.get("message") or update.get("channel_post")
        if not message or "chat" not in message:
            self.logger.debug("Ignoring update without a message")
            return None

        command = parse_command(message.get("text"))
        if command is None:
            return None

        chat = NewChat.from_telegram(message["chat"])
        self.logger.info(
            f"Received /{command.name} command", chat_id=chat.id, command=command.name
        )

        if command.name == "start":
            reply = HELP_TEXT
        elif command.name == "subscribe":
            reply = self.subscribe(chat, command.argument)
        else:
            reply = f"Unknown command.\n\n{HELP_TEXT}"

        self.client.send_message(chat.id, reply)
        return command.name

    def subscribe(self, chat: NewChat, url: str | None) -> str:
        """Create a subscription and return the reply text for the chat."""
        try:
            self.service.create_subscription(self.database, chat, url)
        except SubscriptionError as e:
            return reply_for_error(e)

        return f"Successfully subscribed to {escape_html(url)}"


def reply_for_error(error: SubscriptionError) -> str:
    for error_type, reply in ERROR_REPLIES.items():
        if isinstance(error, error_type):
            return reply
    return "Failed to create the subscription."
