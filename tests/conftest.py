"""Shared fixtures for RSS Subscription Bot tests."""

from pathlib import Path
from unittest.mock import Mock

import feedparser
import pytest

from subscription_bot.models import NewChat
from subscription_bot.rss import FeedSource
from subscription_bot.storage import Database, init_db
from subscription_bot.subscriptions import SubscriptionService
from subscription_bot.validation import FeedUrlValidator

SUPPORT_DIR = Path(__file__).parent / "support"


@pytest.fixture
def rss_xml():
    """Canned RSS 2.0 document with three items."""
    return (SUPPORT_DIR / "rss_feed_example.xml").read_text(encoding="utf-8")


@pytest.fixture
def build_rss():
    """Factory building an RSS 2.0 document from item XML fragments."""

    def _build(*items: str) -> str:
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<rss version="2.0"><channel>'
            "<title>Generated feed</title>"
            "<link>https://generated.example.com/</link>"
            "<description>Generated for tests</description>"
            f"{''.join(items)}"
            "</channel></rss>"
        )

    return _build


@pytest.fixture
def feed_source(rss_xml):
    """Feed source serving the canned document for every URL."""
    source = Mock(spec=FeedSource)
    source.fetch.side_effect = lambda url: feedparser.parse(rss_xml)
    return source


@pytest.fixture
def database(tmp_path):
    """Creates a temporary SQLite database for each test."""
    db_path = tmp_path / "subscriptions.db"
    init_db(str(db_path))
    return Database(str(db_path))


@pytest.fixture
def service(feed_source):
    return SubscriptionService(FeedUrlValidator(feed_source))


@pytest.fixture
def new_chat():
    return NewChat(
        id=42,
        kind="private",
        username="Username",
        first_name="First",
        last_name="Last",
    )
