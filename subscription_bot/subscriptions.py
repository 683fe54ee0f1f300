"""Subscription creation for RSS Subscription Bot."""

import sqlite3

from . import storage
from .errors import (
    RssUrlNotProvided,
    SubscriptionAlreadyExists,
    SubscriptionCountLimit,
    SubscriptionError,
)
from .logging_config import create_execution_logger
from .models import NewChat, Subscription
from .storage import Database
from .validation import FeedUrlValidator

# Maximum number of feeds a single chat may subscribe to
SUBSCRIPTION_LIMIT = 3


class SubscriptionService:
    """Creates subscriptions between chats and feeds."""

    def __init__(self, validator: FeedUrlValidator, execution_id: str | None = None):
        """Initialize the service.

        Args:
            validator: Validator used to check feed URLs before any storage access
            execution_id: Execution ID for logging context
        """
        self.validator = validator
        self.logger = create_execution_logger("subscriptions", execution_id)

    def create_subscription(
        self, database: Database, new_chat: NewChat, rss_url: str | None
    ) -> Subscription:
        """Subscribe a chat to the feed at ``rss_url``.

        The chat and feed are upserted and the subscription inserted in a single
        transaction; when any check fails nothing from this call is kept.

        Args:
            database: Storage handle
            new_chat: Descriptor of the subscribing chat
            rss_url: Feed URL, or None when the user did not give one

        Returns:
            The created Subscription

        Raises:
            RssUrlNotProvided: If ``rss_url`` is None
            InvalidRssUrl: If ``rss_url`` is not a URL
            UrlIsNotRss: If ``rss_url`` does not serve a feed
            SubscriptionAlreadyExists: If the chat is already subscribed to the feed
            SubscriptionCountLimit: If the chat already has the maximum subscriptions
            DbError: On any storage failure
        """
        try:
            if rss_url is None:
                raise RssUrlNotProvided()

            self.validator.validate(rss_url)

            with database.transaction() as conn:
                chat = storage.create_or_get_chat(conn, new_chat)
                feed = storage.create_or_get_feed(conn, rss_url)

                self._check_if_subscription_exists(conn, chat.id, feed.id)
                self._check_number_of_subscriptions(conn, chat.id)

                subscription = storage.create_subscription(conn, chat.id, feed.id)
        except SubscriptionError as e:
            self.logger.log_subscription_rejected(new_chat.id, rss_url, e)
            raise

        self.logger.info(
            "Subscription created",
            chat_id=subscription.chat_id,
            feed_id=subscription.feed_id,
            feed_url=rss_url,
        )
        return subscription

    def _check_if_subscription_exists(
        self, conn: sqlite3.Connection, chat_id: int, feed_id: int
    ) -> None:
        if storage.find_subscription(conn, chat_id, feed_id) is not None:
            raise SubscriptionAlreadyExists()

    def _check_number_of_subscriptions(
        self, conn: sqlite3.Connection, chat_id: int
    ) -> None:
        if storage.count_subscriptions(conn, chat_id) >= SUBSCRIPTION_LIMIT:
            raise SubscriptionCountLimit(
                f"Chat {chat_id} already has {SUBSCRIPTION_LIMIT} subscriptions"
            )
