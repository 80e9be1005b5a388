"""Configuration management for RSS Slack Bot."""

import json
import math
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SlackConfig:
    """Configuration for the Slack incoming webhook."""

    webhook_url: str
    retry_attempts: int = 3
    backoff_factor: float = 2.0
    timeout: int = 30


@dataclass
class BedrockConfig:
    """Configuration for Amazon Bedrock."""

    model_id: str = "anthropic.claude-sonnet-4-20250514-v1:0"
    region: str = "us-east-1"
    max_tokens: int = 1000
    max_summary_chars: int = 200


@dataclass
class HistoryConfig:
    """Configuration for the feed history store."""

    file_path: str = "./data/article-history.json"
    dynamodb_table: str = ""
    region: str = "us-east-1"

    @property
    def use_dynamodb(self) -> bool:
        return bool(self.dynamodb_table)


@dataclass
class ScheduleConfig:
    """Configuration for the local scheduled runner."""

    interval_hours: float = 6.0


class Config:
    """Main configuration manager."""

    # Default feeds file path
    FEEDS_FILE = "feeds.json"

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.feed_urls_env = os.getenv("RSS_FEED_URLS", "")
        self.feeds_file = os.getenv("FEEDS_FILE", self.FEEDS_FILE)
        self.slack_webhook_url = os.getenv("SLACK_WEBHOOK_URL", "")
        self.slack_secret_name = os.getenv("SLACK_WEBHOOK_SECRET_NAME", "")
        self.history_file = os.getenv("HISTORY_FILE", "./data/article-history.json")
        self.dynamodb_table = os.getenv("DYNAMODB_TABLE", "")
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.bedrock_model_id = os.getenv(
            "BEDROCK_MODEL_ID", BedrockConfig.model_id
        )
        self.schedule_interval = os.getenv("SCHEDULE_INTERVAL_HOURS", "6")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def get_feed_urls(self) -> list[str]:
        """Get RSS feed URLs from RSS_FEED_URLS or the feeds file.

        Raises:
            ValueError: If no feeds are configured or the feeds file is invalid
        """
        if self.feed_urls_env.strip():
            urls = [url.strip() for url in self.feed_urls_env.split(",")]
            urls = [url for url in urls if url]
            if urls:
                return urls

        feeds_file = Path(self.feeds_file)
        if not feeds_file.exists():
            # Try in Lambda root directory
            feeds_file = Path("/var/task") / self.feeds_file

        if not feeds_file.exists():
            raise ValueError(
                f"RSS_FEED_URLS is not set and feeds file not found: {self.feeds_file}"
            )

        try:
            with open(feeds_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in feeds file: {e}") from e

        # Extract enabled feeds
        feeds = data.get("feeds", []) if isinstance(data, dict) else []
        enabled_urls = [
            feed["url"].strip()
            for feed in feeds
            if isinstance(feed, dict) and feed.get("enabled", True) and feed.get("url")
        ]

        if not enabled_urls:
            raise ValueError(f"No enabled feeds found in {self.feeds_file}")

        return enabled_urls

    def get_slack_config(self) -> SlackConfig:
        """Get Slack configuration."""
        # Webhook may be populated later from Secrets Manager
        return SlackConfig(webhook_url=self.slack_webhook_url)

    def get_bedrock_config(self) -> BedrockConfig:
        """Get Bedrock configuration."""
        return BedrockConfig(model_id=self.bedrock_model_id, region=self.aws_region)

    def get_history_config(self) -> HistoryConfig:
        """Get history store configuration."""
        return HistoryConfig(
            file_path=self.history_file,
            dynamodb_table=self.dynamodb_table,
            region=self.aws_region,
        )

    def get_schedule_config(self) -> ScheduleConfig:
        """Get schedule configuration.

        Raises:
            ValueError: If SCHEDULE_INTERVAL_HOURS is not a positive number
        """
        try:
            interval_hours = float(self.schedule_interval)
        except ValueError:
            raise ValueError(
                f"Invalid SCHEDULE_INTERVAL_HOURS: {self.schedule_interval!r}"
            ) from None
        if not math.isfinite(interval_hours) or interval_hours <= 0:
            raise ValueError(
                f"SCHEDULE_INTERVAL_HOURS must be a positive number, got {self.schedule_interval!r}"
            )
        return ScheduleConfig(interval_hours=interval_hours)
