"""Telegram Bot API client for RSS Subscription Bot."""

import json
import time
import urllib.error
import urllib.request

from .config import TelegramConfig
from .errors import TelegramError
from .logging_config import create_execution_logger


class TelegramClient:
    """Sends replies to Telegram chats."""

    def __init__(self, config: TelegramConfig, execution_id: str | None = None):
        """Initialize Telegram client with configuration."""
        self.config = config
        self.logger = create_execution_logger("telegram_client", execution_id)
        self.base_url = f"https://api.telegram.org/bot{config.bot_token}"

    def send_message(self, chat_id: int, text: str) -> None:
        """
        Send a message to a chat, retrying when rate limited.

        Args:
            chat_id: Telegram chat id
            text: HTML formatted message

        Raises:
            TelegramError: If the message could not be delivered
        """
        url = f"{self.base_url}/sendMessage"
        data = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": self.config.parse_mode,
            "disable_web_page_preview": True,
        }

        for attempt in range(self.config.retry_attempts):
            try:
                self.logger.debug(
                    f"Sending message to Telegram API (attempt {attempt + 1})",
                    chat_id=chat_id,
                    attempt=attempt + 1,
                    message_length=len(text),
                )

                req = urllib.request.Request(
                    url,
                    data=json.dumps(data).encode("utf-8"),
                    headers={
                        "Content-Type": "application/json",
                        "User-Agent": "RSS-Subscription-Bot/1.0",
                    },
                )

                with urllib.request.urlopen(req, timeout=self.config.timeout) as response:
                    if response.status == 200:
                        self.logger.info(
                            "Message sent successfully to Telegram",
                            chat_id=chat_id,
                            status_code=response.status,
                        )
                        return
                    raise TelegramError(
                        f"Telegram API returned status {response.status}"
                    )

            except urllib.error.HTTPError as e:
                if e.code == 429 and attempt < self.config.retry_attempts - 1:
                    self.handle_rate_limit(attempt)
                    continue
                self.logger.error(
                    f"HTTP error sending message: {e.code} - {e.reason}",
                    chat_id=chat_id,
                    http_code=e.code,
                )
                raise TelegramError(
                    f"Telegram API HTTP error {e.code}: {e.reason}"
                ) from e

            except urllib.error.URLError as e:
                self.logger.error(
                    f"URL error sending message: {e.reason}",
                    chat_id=chat_id,
                    error_reason=str(e.reason),
                )
                raise TelegramError(f"Cannot reach Telegram API: {e.reason}") from e

        raise TelegramError("Max retry attempts reached")

    def handle_rate_limit(self, retry_count: int) -> None:
        """
        Handle rate limiting with exponential backoff.

        Args:
            retry_count: Current retry attempt number
        """
        backoff_time = self.config.backoff_factor**retry_count
        self.logger.warning(
            f"Rate limited, waiting {backoff_time} seconds before retry {retry_count + 1}",
            retry_count=retry_count,
            backoff_time=backoff_time,
        )
        time.sleep(backoff_time)


def escape_html(text: str | None) -> str:
    """Escape HTML characters in text for Telegram HTML parsing."""
    if not text:
        return ""

    text = text.replace("&", "&amp;")
    text = text.replace("<", "&lt;")
    text = text.replace(">", "&gt;")
    text = text.replace('"', "&quot;")
    text = text.replace("'", "&#x27;")

    return text
