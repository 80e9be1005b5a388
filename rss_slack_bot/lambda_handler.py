"""Lambda handler and shared wiring for RSS Slack Bot."""

import json
import os
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError

from .config import Config
from .history import DynamoDBHistoryStore, HistoryStore, JsonHistoryStore
from .logging_config import create_execution_logger, setup_structured_logging
from .rss import FeedProcessor
from .slack import SlackNotifier
from .summarize import Summarizer
from .sync import run_workflow

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

METRICS_NAMESPACE = "RSS-Slack-Bot"


def build_history_store(config: Config, execution_id: str) -> HistoryStore:
    """Pick DynamoDB when a table is configured, else the JSON file."""
    history_config = config.get_history_config()
    if history_config.use_dynamodb:
        return DynamoDBHistoryStore(
            table_name=history_config.dynamodb_table,
            aws_region=history_config.region,
            execution_id=execution_id,
        )
    return JsonHistoryStore(history_config.file_path, execution_id=execution_id)


def build_notifier(config: Config, execution_id: str) -> SlackNotifier:
    """Create the Slack notifier, resolving the webhook from Secrets Manager if needed.

    Raises:
        ValueError: If no webhook URL is configured
    """
    slack_config = config.get_slack_config()
    if not slack_config.webhook_url and config.slack_secret_name:
        slack_config.webhook_url = get_slack_webhook_url(
            config.slack_secret_name, config.aws_region, execution_id
        )

    if not slack_config.webhook_url or not slack_config.webhook_url.strip():
        raise ValueError(
            "SLACK_WEBHOOK_URL or SLACK_WEBHOOK_SECRET_NAME must be configured"
        )

    return SlackNotifier(slack_config, execution_id=execution_id)


def execute(config: Config, execution_id: str) -> dict[str, Any]:
    """Build all collaborators from configuration and run one sync pass.

    Raises:
        ValueError: If feeds or the webhook are not configured
    """
    feed_urls = config.get_feed_urls()
    history_store = build_history_store(config, execution_id)
    notifier = build_notifier(config, execution_id)
    feed_processor = FeedProcessor(execution_id=execution_id)
    summarizer = Summarizer(config.get_bedrock_config(), execution_id=execution_id)

    return run_workflow(
        feed_urls,
        history_store,
        fetch=feed_processor.parse_feed,
        summarize=summarizer.summarize,
        notify=notifier.notify,
        notify_error=notifier.notify_error,
        execution_id=execution_id,
    )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Main Lambda handler, invoked on a schedule by EventBridge.

    Args:
        event: Lambda event data
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

    try:
        config = Config()
        metrics = execute(config, execution_id)
    except Exception as e:
        error_msg = f"Critical error in Lambda handler: {str(e)}"
        main_logger.error(error_msg, error=str(e))
        main_logger.log_execution_end(success=False, error=error_msg)

        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "message": "RSS Slack Bot execution failed",
                    "execution_id": execution_id,
                    "error": error_msg,
                }
            ),
        }

    main_logger.log_metrics(metrics)
    send_cloudwatch_metrics(metrics, config.aws_region, execution_id)
    main_logger.log_execution_end(success=not metrics["errors"], metrics=metrics)

    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": "RSS Slack Bot execution completed",
                "execution_id": execution_id,
                "metrics": metrics,
            }
        ),
    }


def get_slack_webhook_url(secret_name: str, aws_region: str, execution_id: str) -> str:
    """
    Retrieve the Slack webhook URL from AWS Secrets Manager.

    Supports both plain string and JSON secrets. The webhook value is never
    logged.

    Args:
        secret_name: Name of the secret in Secrets Manager
        aws_region: AWS region for Secrets Manager client
        execution_id: Execution ID for logging context

    Returns:
        Slack webhook URL

    Raises:
        ValueError: If the secret name is empty
        RuntimeError: If the secret cannot be retrieved or holds no webhook
    """
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    if not secret_name or not secret_name.strip():
        raise ValueError("Secret name cannot be empty")

    try:
        secrets_logger.info(f"Retrieving Slack webhook from Secrets Manager: {secret_name}")
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e

    secret_value = (response.get("SecretString") or "").strip()
    if not secret_value:
        raise RuntimeError(f"Secret {secret_name} contains empty value")

    try:
        secret_data = json.loads(secret_value)
    except json.JSONDecodeError:
        # Not JSON, use as plain string
        secrets_logger.info("Retrieved webhook from plain text secret")
        return secret_value

    if not isinstance(secret_data, dict):
        raise RuntimeError(f"JSON secret {secret_name} must be an object")

    for key in ["webhook_url", "slack_webhook_url", "url"]:
        value = secret_data.get(key)
        if isinstance(value, str) and value.strip():
            secrets_logger.info("Retrieved webhook from JSON secret")
            return value.strip()

    raise RuntimeError(f"No webhook URL found in JSON secret {secret_name}")


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch. Failures are logged, never raised.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        total_errors = len(metrics["errors"])
        execution_success = total_errors == 0
        dimensions = [{"Name": "ExecutionId", "Value": execution_id}]
        status_dimensions = [
            {"Name": "Status", "Value": "Success" if execution_success else "Failure"}
        ]

        counts = {
            "FeedsProcessed": metrics["feeds_processed"],
            "FeedsFailed": metrics["feeds_failed"],
            "ItemsFound": metrics["items_found"],
            "NewItems": metrics["new_items"],
            "ItemsSummarized": metrics["items_summarized"],
            "MessagesSent": metrics["messages_sent"],
            "HistoriesSaved": metrics["histories_saved"],
            "Errors": total_errors,
        }
        metric_data = [
            {"MetricName": name, "Value": value, "Unit": "Count", "Dimensions": dimensions}
            for name, value in counts.items()
        ]
        metric_data += [
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": status_dimensions,
            },
            {
                "MetricName": "ExecutionFailure",
                "Value": 0 if execution_success else 1,
                "Unit": "Count",
                "Dimensions": status_dimensions,
            },
        ]

        # CloudWatch accepts at most 20 metrics per call
        batch_size = 20
        for i in range(0, len(metric_data), batch_size):
            batch = metric_data[i : i + batch_size]
            cloudwatch.put_metric_data(Namespace=METRICS_NAMESPACE, MetricData=batch)

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=METRICS_NAMESPACE,
            execution_success=execution_success,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
