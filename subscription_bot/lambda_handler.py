"""Lambda webhook handler for RSS Subscription Bot."""

import json
import os
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError

from .bot import CommandHandler
from .config import Config
from .errors import TelegramError
from .logging_config import create_execution_logger, setup_structured_logging
from .rss import HttpFeedSource
from .storage import Database, init_db
from .subscriptions import SubscriptionService
from .telegram import TelegramClient
from .validation import FeedUrlValidator

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Handle one Telegram webhook update delivered through API Gateway.

    Args:
        event: API Gateway proxy event whose body is a Telegram Update
        context: Lambda context object

    Returns:
        Response dictionary with status and metrics
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    metrics = {
        "updates_received": 1,
        "commands_handled": 0,
        "errors": [],
    }

    try:
        update = parse_update(event)
    except ValueError as e:
        error_msg = f"Invalid webhook payload: {e}"
        main_logger.error(error_msg, error=str(e))
        metrics["errors"].append(error_msg)
        main_logger.log_execution_end(success=False, metrics=metrics)
        return _response(400, "Invalid update", execution_id, metrics)

    try:
        config = Config()
        main_logger.info("Configuration initialized")

        telegram_config = config.get_telegram_config()
        telegram_config.bot_token = get_telegram_token(
            config.telegram_secret_name, config.aws_region, execution_id
        )

        storage_config = config.get_storage_config()
        init_db(storage_config.database_path)
        database = Database(storage_config.database_path, execution_id=execution_id)

        feed_config = config.get_feed_config()
        feed_source = HttpFeedSource(
            timeout=feed_config.timeout, execution_id=execution_id
        )
        service = SubscriptionService(
            FeedUrlValidator(feed_source, execution_id=execution_id),
            execution_id=execution_id,
        )
        handler = CommandHandler(
            database,
            service,
            TelegramClient(telegram_config, execution_id=execution_id),
            execution_id=execution_id,
        )
    except Exception as e:
        error_msg = f"Critical error in Lambda handler: {str(e)}"
        main_logger.error(error_msg, error=str(e))
        metrics["errors"].append(error_msg)
        send_cloudwatch_metrics(
            metrics,
            config.aws_region if "config" in locals() else "us-east-1",
            execution_id,
        )
        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)
        return _response(500, "RSS Subscription Bot execution failed", execution_id, metrics)

    try:
        if handler.handle_update(update) is not None:
            metrics["commands_handled"] += 1
    except TelegramError as e:
        # Telegram redelivers on non-200 answers, the command already ran
        error_msg = f"Failed to reply to update: {e}"
        main_logger.error(error_msg, error=str(e))
        metrics["errors"].append(error_msg)
    except ValueError as e:
        error_msg = f"Unsupported update: {e}"
        main_logger.warning(error_msg, error=str(e))
        metrics["errors"].append(error_msg)

    main_logger.log_metrics(metrics)
    send_cloudwatch_metrics(metrics, config.aws_region, execution_id)
    main_logger.log_execution_end(success=not metrics["errors"], metrics=metrics)

    return _response(200, "Update processed", execution_id, metrics)


def parse_update(event: dict[str, Any]) -> dict[str, Any]:
    """Extract the Telegram Update from an API Gateway proxy event.

    Raises:
        ValueError: If the body is missing or not a JSON object
    """
    body = event.get("body")
    if body is None:
        raise ValueError("event has no body")

    if isinstance(body, dict):
        update = body
    else:
        try:
            update = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValueError(f"body is not valid JSON: {e}") from e

    if not isinstance(update, dict):
        raise ValueError("update must be a JSON object")
    return update


def _response(
    status_code: int, message: str, execution_id: str, metrics: dict[str, Any]
) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "body": json.dumps(
            {
                "message": message,
                "execution_id": execution_id,
                "metrics": metrics,
            }
        ),
    }


def get_telegram_token(secret_name: str, aws_region: str, execution_id: str) -> str:
    """
    Retrieve the Telegram bot token from AWS Secrets Manager.

    Supports both plain string and JSON secrets. The token is never logged.

    Args:
        secret_name: Name of the secret in Secrets Manager
        aws_region: AWS region for Secrets Manager client
        execution_id: Execution ID for logging context

    Returns:
        Telegram bot token

    Raises:
        RuntimeError: If the secret cannot be retrieved or holds no token
        ValueError: If secret name or region is empty
    """
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    if not secret_name or not secret_name.strip():
        raise ValueError("Secret name cannot be empty")

    if not aws_region or not aws_region.strip():
        raise ValueError("AWS region cannot be empty")

    try:
        secrets_logger.info(f"Retrieving Telegram token from Secrets Manager: {secret_name}")
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)

        secret_value = response.get("SecretString")
        if not secret_value or not secret_value.strip():
            raise ValueError(f"Secret {secret_name} contains no string value")

        try:
            secret_data = json.loads(secret_value)
        except json.JSONDecodeError:
            return secret_value.strip()

        if not isinstance(secret_data, dict):
            raise ValueError(f"JSON secret {secret_name} must be an object")

        for key in ["token", "bot_token", "telegram_token", "telegram_bot_token"]:
            value = secret_data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()

        raise ValueError(f"No token found in JSON secret {secret_name}")

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e
    except ValueError as e:
        secrets_logger.error(f"Invalid secret format for {secret_name}: {e}")
        raise RuntimeError(f"Invalid secret format for {secret_name}") from e


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)
        total_errors = len(metrics["errors"])

        metric_data = [
            {
                "MetricName": "UpdatesReceived",
                "Value": metrics["updates_received"],
                "Unit": "Count",
            },
            {
                "MetricName": "CommandsHandled",
                "Value": metrics["commands_handled"],
                "Unit": "Count",
            },
            {
                "MetricName": "Errors",
                "Value": total_errors,
                "Unit": "Count",
            },
        ]

        cloudwatch.put_metric_data(
            Namespace="RSS-Subscription-Bot", MetricData=metric_data
        )
        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace="RSS-Subscription-Bot",
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Don't raise - metrics failure shouldn't break the main flow
