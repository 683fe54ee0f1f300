"""Property-based tests for feed normalization."""

import string
from datetime import UTC, datetime, timedelta, timezone
from email.utils import format_datetime

import feedparser
from hypothesis import given
from hypothesis import strategies as st

from subscription_bot.rss import FeedNormalizer

OFFSETS = st.sampled_from(
    [
        UTC,
        timezone(timedelta(hours=2)),
        timezone(timedelta(hours=-5)),
        timezone(timedelta(hours=5, minutes=30)),
        timezone(timedelta(hours=-9, minutes=-30)),
    ]
)

ITEMS = st.lists(
    st.tuples(
        st.text(alphabet=string.ascii_letters + string.digits, min_size=1, max_size=30),
        st.datetimes(
            min_value=datetime(1990, 1, 1),
            max_value=datetime(2090, 1, 1),
            timezones=OFFSETS,
        ),
    ),
    max_size=10,
)


def _rss_document(items: list[tuple[str, datetime]]) -> str:
    entries = "".join(
        f"<item><title>{title}</title><pubDate>{format_datetime(published)}</pubDate></item>"
        for title, published in items
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?><rss version="2.0"><channel>'
        "<title>Property feed</title><link>https://example.com/</link>"
        f"<description>Generated</description>{entries}</channel></rss>"
    )


class TestFeedNormalizerProperties:
    """Property-based tests for FeedNormalizer."""

    @given(ITEMS)
    def test_item_count_and_order_preserved_property(self, items):
        """
        Normalizing a channel with N items yields N items in source order.
        """
        feed = FeedNormalizer().normalize(feedparser.parse(_rss_document(items)))

        assert len(feed.items) == len(items)
        assert [item.title for item in feed.items] == [title for title, _ in items]

    @given(ITEMS)
    def test_publication_date_instant_preserved_property(self, items):
        """
        Each publication date is parsed into the same instant as its source,
        expressed in UTC. RFC2822 carries whole seconds only.
        """
        feed = FeedNormalizer().normalize(feedparser.parse(_rss_document(items)))

        for item, (_, published) in zip(feed.items, items):
            assert item.publication_date == published.replace(microsecond=0)
            assert item.publication_date.tzinfo == UTC

    @given(ITEMS)
    def test_absent_optional_fields_stay_absent_property(self, items):
        """Items carrying only title and date have no link, author or guid."""
        feed = FeedNormalizer().normalize(feedparser.parse(_rss_document(items)))

        for item in feed.items:
            assert item.link is None
            assert item.author is None
            assert item.guid is None
            assert item.description is None
