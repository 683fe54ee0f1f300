"""Unit tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from subscription_bot.config import Config
from subscription_bot.rss import DatePolicy


class TestConfigUnit:
    """Unit tests for Config class."""

    def test_defaults_when_no_env_vars(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

        assert config.telegram_secret_name == "rss-subscription-bot-token"
        assert config.aws_region == "us-east-1"
        assert config.database_path == Config.DEFAULT_DATABASE_PATH
        assert config.feed_timeout == 30
        assert config.date_policy is DatePolicy.REJECT_FEED

    def test_env_overrides(self):
        env = {
            "TELEGRAM_SECRET_NAME": "custom-secret",
            "CURRENT_AWS_REGION": "eu-south-1",
            "AWS_DEFAULT_REGION": "us-west-2",
            "DATABASE_PATH": "/data/subs.db",
            "FEED_TIMEOUT": "10",
            "INVALID_DATE_POLICY": "Skip",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config()

        assert config.telegram_secret_name == "custom-secret"
        assert config.aws_region == "eu-south-1"
        assert config.get_storage_config().database_path == "/data/subs.db"

        feed_config = config.get_feed_config()
        assert feed_config.timeout == 10
        assert feed_config.date_policy is DatePolicy.SKIP_ITEM

    def test_region_falls_back_to_default_region(self):
        with patch.dict(os.environ, {"AWS_DEFAULT_REGION": "us-west-2"}, clear=True):
            assert Config().aws_region == "us-west-2"

    @pytest.mark.parametrize("value", ["abc", "0", "-5"])
    def test_invalid_feed_timeout(self, value):
        with patch.dict(os.environ, {"FEED_TIMEOUT": value}, clear=True):
            with pytest.raises(ValueError, match="FEED_TIMEOUT"):
                Config()

    def test_invalid_date_policy(self):
        with patch.dict(os.environ, {"INVALID_DATE_POLICY": "ignore"}, clear=True):
            with pytest.raises(ValueError, match="INVALID_DATE_POLICY"):
                Config()

    def test_telegram_config_token_filled_at_runtime(self):
        with patch.dict(os.environ, {}, clear=True):
            telegram_config = Config().get_telegram_config()

        assert telegram_config.bot_token == ""
        assert telegram_config.parse_mode == "HTML"
