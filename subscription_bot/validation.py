"""Feed URL validation for RSS Subscription Bot."""

from urllib.parse import urlparse

from .errors import FeedFetchError, InvalidRssUrl, UrlIsNotRss
from .logging_config import create_execution_logger
from .rss import FeedSource

# Schemes that are meaningless without a host
NETWORK_SCHEMES = {"http", "https"}


def parse_feed_url(url: str) -> str:
    """Check that ``url`` is syntactically a URL, without network access.

    http and https URLs must name a host. A single-slash form such as
    ``https:/google.com`` is rejected rather than rewritten to
    ``https://google.com/``, so the stored feed URL is always what was typed.

    Args:
        url: Candidate feed URL

    Returns:
        The URL unchanged

    Raises:
        InvalidRssUrl: If the string is not an absolute URL
    """
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidRssUrl(f"Invalid RSS URL {url!r}: {e}") from e

    if not parsed.scheme:
        raise InvalidRssUrl(f"Invalid RSS URL {url!r}: scheme is missing")

    if parsed.scheme.lower() in NETWORK_SCHEMES and not parsed.hostname:
        raise InvalidRssUrl(f"Invalid RSS URL {url!r}: host is missing")

    return url


class FeedUrlValidator:
    """Checks that a URL is well formed and serves a readable feed."""

    def __init__(self, source: FeedSource, execution_id: str | None = None):
        self.source = source
        self.logger = create_execution_logger("validator", execution_id)

    def validate(self, url: str) -> None:
        """Validate ``url``, fetching it through the feed source.

        The fetched document is discarded.

        Raises:
            InvalidRssUrl: If the URL is syntactically invalid
            UrlIsNotRss: If the URL does not serve a parseable feed
        """
        try:
            candidate = parse_feed_url(url)
        except InvalidRssUrl as e:
            self.logger.warning(str(e), feed_url=url, error_kind="InvalidRssUrl")
            raise

        try:
            self.source.fetch(candidate)
        except FeedFetchError as e:
            self.logger.warning(
                f"URL is not a feed: {e}", feed_url=url, error_kind="UrlIsNotRss"
            )
            raise UrlIsNotRss(f"URL does not serve an RSS/Atom feed: {url}") from e

        self.logger.info("Feed URL validated", feed_url=url)
