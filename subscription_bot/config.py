"""Configuration management for RSS Subscription Bot."""

import os
from dataclasses import dataclass

from .rss import DatePolicy


@dataclass
class TelegramConfig:
    """Configuration for Telegram Bot API."""

    bot_token: str
    parse_mode: str = "HTML"
    retry_attempts: int = 3
    backoff_factor: float = 2.0
    timeout: int = 30


@dataclass
class FeedConfig:
    """Configuration for feed download and normalization."""

    timeout: int = 30
    date_policy: DatePolicy = DatePolicy.REJECT_FEED


@dataclass
class StorageConfig:
    """Configuration for the SQLite subscription store."""

    database_path: str = "/tmp/subscription_bot/subscriptions.db"


class Config:
    """Main configuration manager."""

    DEFAULT_DATABASE_PATH = "/tmp/subscription_bot/subscriptions.db"

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.telegram_secret_name = os.getenv(
            "TELEGRAM_SECRET_NAME", "rss-subscription-bot-token"
        )
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.database_path = os.getenv("DATABASE_PATH", self.DEFAULT_DATABASE_PATH)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.feed_timeout = self._parse_positive_int(
            "FEED_TIMEOUT", os.getenv("FEED_TIMEOUT", "30")
        )
        self.date_policy = self._parse_date_policy(
            os.getenv("INVALID_DATE_POLICY", DatePolicy.REJECT_FEED.value)
        )

    @staticmethod
    def _parse_positive_int(name: str, value: str) -> int:
        try:
            parsed = int(value)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {value!r}")
        if parsed <= 0:
            raise ValueError(f"{name} must be positive, got {parsed}")
        return parsed

    @staticmethod
    def _parse_date_policy(value: str) -> DatePolicy:
        try:
            return DatePolicy(value.strip().lower())
        except ValueError:
            allowed = ", ".join(policy.value for policy in DatePolicy)
            raise ValueError(
                f"INVALID_DATE_POLICY must be one of: {allowed}; got {value!r}"
            )

    def get_telegram_config(self) -> TelegramConfig:
        """Get Telegram configuration."""
        # Token will be retrieved from Secrets Manager at runtime
        return TelegramConfig(bot_token="")

    def get_feed_config(self) -> FeedConfig:
        """Get feed download configuration."""
        return FeedConfig(timeout=self.feed_timeout, date_policy=self.date_policy)

    def get_storage_config(self) -> StorageConfig:
        """Get storage configuration."""
        return StorageConfig(database_path=self.database_path)
