"""Exceptions raised by RSS Subscription Bot."""


class SubscriptionError(Exception):
    """Base class for failures of the subscription pipeline."""

    message = "Subscription failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class DbError(SubscriptionError):
    """Storage layer failure. The original exception is kept in ``cause``."""

    message = "Database error"

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"{self.message}: {cause}")


class InvalidRssUrl(SubscriptionError):
    message = "Invalid RSS URL"


class UrlIsNotRss(SubscriptionError):
    message = "URL does not serve an RSS/Atom feed"


class RssUrlNotProvided(SubscriptionError):
    message = "RSS URL not provided"


class SubscriptionAlreadyExists(SubscriptionError):
    message = "Subscription already exists"


class SubscriptionCountLimit(SubscriptionError):
    message = "Subscription count limit reached"


class TelegramError(SubscriptionError):
    """Failure reported by, or while talking to, the Telegram Bot API."""

    message = "Telegram API error"


class FeedFetchError(Exception):
    """Feed could not be downloaded or is not an RSS/Atom document."""


class InvalidPublicationDate(ValueError):
    """Feed item publication date is missing or not a valid RFC2822 date."""

    def __init__(self, raw_value: str | None, reason: str):
        self.raw_value = raw_value
        super().__init__(f"Invalid publication date {raw_value!r}: {reason}")
