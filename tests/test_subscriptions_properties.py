"""Property-based tests for SubscriptionService invariants."""

import os
import tempfile
from unittest.mock import Mock

import feedparser
from hypothesis import given, settings
from hypothesis import strategies as st

from subscription_bot import storage
from subscription_bot.errors import SubscriptionAlreadyExists, SubscriptionCountLimit
from subscription_bot.models import NewChat
from subscription_bot.rss import FeedSource
from subscription_bot.storage import Database, init_db
from subscription_bot.subscriptions import SUBSCRIPTION_LIMIT, SubscriptionService
from subscription_bot.validation import FeedUrlValidator

MINIMAL_FEED = (
    '<?xml version="1.0"?><rss version="2.0"><channel>'
    "<title>t</title><link>https://example.com/</link><description>d</description>"
    "</channel></rss>"
)

ATTEMPTS = st.lists(
    st.tuples(st.integers(min_value=1, max_value=3), st.integers(min_value=0, max_value=5)),
    max_size=25,
)


class TestSubscriptionServiceProperties:
    """Property-based tests for SubscriptionService."""

    @settings(max_examples=30, deadline=None)
    @given(ATTEMPTS)
    def test_subscription_invariants_property(self, attempts):
        """
        For any sequence of subscription attempts, each (chat, feed) pair is
        stored at most once and no chat ever exceeds the subscription limit.
        Every attempt's outcome matches a simple in-memory model.
        """
        source = Mock(spec=FeedSource)
        source.fetch.side_effect = lambda url: feedparser.parse(MINIMAL_FEED)
        service = SubscriptionService(FeedUrlValidator(source))

        with tempfile.TemporaryDirectory() as tmp:
            db_path = os.path.join(tmp, "subscriptions.db")
            init_db(db_path)
            database = Database(db_path)

            model: dict[int, set[str]] = {}

            for chat_id, feed_index in attempts:
                url = f"https://feed{feed_index}.example.com/rss"
                chat = NewChat(id=chat_id, kind="private")
                subscribed = model.setdefault(chat_id, set())

                if url in subscribed:
                    expected = SubscriptionAlreadyExists
                elif len(subscribed) >= SUBSCRIPTION_LIMIT:
                    expected = SubscriptionCountLimit
                else:
                    expected = None

                try:
                    service.create_subscription(database, chat, url)
                    outcome = None
                except (SubscriptionAlreadyExists, SubscriptionCountLimit) as e:
                    outcome = type(e)

                assert outcome is expected
                if expected is None:
                    subscribed.add(url)

            with database.transaction() as conn:
                for chat_id, urls in model.items():
                    assert storage.count_subscriptions(conn, chat_id) == len(urls)
                    assert len(urls) <= SUBSCRIPTION_LIMIT

                stored_feeds = conn.execute("SELECT COUNT(*) FROM feeds").fetchone()[0]

            assert stored_feeds == len(set().union(*model.values()))
