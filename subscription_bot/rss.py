"""RSS feed fetching and normalization for RSS Subscription Bot."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from enum import Enum

import feedparser
import requests
from dateutil import parser as date_parser

from .errors import FeedFetchError, InvalidPublicationDate
from .logging_config import create_execution_logger
from .models import FetchedFeed, FetchedFeedItem

# Parsed feedparser document: ``feed`` holds channel fields, ``entries`` the items
RawChannel = feedparser.FeedParserDict

# RFC 822 section 5.1 zone names, in seconds east of UTC
RFC822_TIMEZONES = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}

# Two defaults sharing no day, month or year
DEFAULT_DATES = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class DatePolicy(str, Enum):
    """What to do with an item whose publication date cannot be parsed."""

    REJECT_FEED = "reject"
    SKIP_ITEM = "skip"


class FeedSource(ABC):
    """Retrieves a remote feed document and parses it into a raw channel."""

    @abstractmethod
    def fetch(self, url: str) -> RawChannel:
        """Fetch and parse the feed at ``url``.

        Raises:
            FeedFetchError: On network error, non-2xx status or unparseable body
        """


class HttpFeedSource(FeedSource):
    """Downloads feeds over HTTP(S) with requests and parses them with feedparser."""

    def __init__(self, timeout: int = 30, execution_id: str | None = None):
        """Initialize HttpFeedSource with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_source", execution_id)
        self.session = requests.Session()
        self.session.headers.update(
            {"User-Agent": "RSS-Subscription-Bot/1.0 (Telegram RSS subscriptions)"}
        )

    def fetch(self, url: str) -> RawChannel:
        self.logger.info("Downloading feed content", feed_url=url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {url}: {e}", feed_url=url, error=str(e)
            )
            raise FeedFetchError(f"Failed to download feed {url}: {e}") from e

        channel = feedparser.parse(response.content)

        # feedparser leaves version empty when the body is not RSS or Atom
        if not channel.get("version"):
            reason = channel.get("bozo_exception", "unrecognized document format")
            self.logger.error(
                f"Document at {url} is not a feed: {reason}",
                feed_url=url,
                status_code=response.status_code,
            )
            raise FeedFetchError(f"Document at {url} is not a feed: {reason}")

        if channel.bozo:
            self.logger.warning(
                f"Feed parsing warning for {url}: {channel.get('bozo_exception')}",
                feed_url=url,
            )

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=url,
            status_code=response.status_code,
            feed_version=channel.version,
            entries_count=len(channel.entries),
        )
        return channel


def parse_publication_date(value: str | None) -> datetime:
    """Parse an RFC2822 publication date into a UTC datetime.

    Args:
        value: Raw date string from the feed item

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        InvalidPublicationDate: If the value is missing, malformed or has no zone
    """
    if not value or not value.strip():
        raise InvalidPublicationDate(value, "publication date is missing")

    try:
        published = date_parser.parse(
            value, tzinfos=RFC822_TIMEZONES, default=DEFAULT_DATES[0]
        )
        # dateutil fills missing fields from the default, so parse again with
        # another default to detect a date with no day, month or year
        check = date_parser.parse(
            value, tzinfos=RFC822_TIMEZONES, default=DEFAULT_DATES[1]
        )
    except (ValueError, OverflowError) as e:
        raise InvalidPublicationDate(value, str(e)) from e

    if published.date() != check.date():
        raise InvalidPublicationDate(value, "day, month or year is missing")

    if published.tzinfo is None or published.utcoffset() is None:
        raise InvalidPublicationDate(value, "time zone is missing")

    return published.astimezone(UTC)


class FeedNormalizer:
    """Converts a raw feedparser channel into the FetchedFeed model."""

    def __init__(
        self,
        date_policy: DatePolicy = DatePolicy.REJECT_FEED,
        execution_id: str | None = None,
    ):
        self.date_policy = date_policy
        self.logger = create_execution_logger("feed_normalizer", execution_id)

    def normalize(self, raw_channel: RawChannel) -> FetchedFeed:
        """Normalize a raw channel, keeping the source item order.

        Raises:
            InvalidPublicationDate: For the first bad item date under REJECT_FEED
        """
        channel = raw_channel.get("feed", {})
        items = []

        for position, entry in enumerate(raw_channel.get("entries", [])):
            try:
                items.append(self.normalize_item(entry))
            except InvalidPublicationDate as e:
                if self.date_policy is DatePolicy.REJECT_FEED:
                    self.logger.error(
                        f"Rejecting feed, item {position} has a bad date: {e}",
                        error=str(e),
                    )
                    raise
                self.logger.warning(
                    f"Skipping item {position} with a bad date: {e}", error=str(e)
                )

        return FetchedFeed(
            title=channel.get("title", ""),
            link=channel.get("link", ""),
            description=channel.get("description", ""),
            items=items,
        )

    def normalize_item(self, entry: feedparser.FeedParserDict) -> FetchedFeedItem:
        """Normalize a single feed entry."""
        link = entry.get("link")
        # feedparser copies a permalink guid into link when the item has none
        if entry.get("guidislink") and link == entry.get("id"):
            link = None

        return FetchedFeedItem(
            title=entry.get("title"),
            description=entry.get("description"),
            link=link,
            author=entry.get("author"),
            guid=entry.get("id"),
            publication_date=parse_publication_date(entry.get("published")),
        )


class FeedReader:
    """Fetches a feed and normalizes it in one step."""

    def __init__(self, source: FeedSource, normalizer: FeedNormalizer | None = None):
        self.source = source
        self.normalizer = normalizer or FeedNormalizer()

    def read(self, url: str) -> FetchedFeed:
        return self.normalizer.normalize(self.source.fetch(url))
