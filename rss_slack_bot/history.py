"""Feed history persistence for RSS Slack Bot."""

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import boto3
from botocore.exceptions import ClientError

from .logging_config import create_execution_logger
from .models import FeedHistory, TrackedArticle


class HistoryStore(Protocol):
    """Key-value store of feed histories keyed by feed URL."""

    def get(self, feed_url: str) -> FeedHistory | None: ...

    def put(self, history: FeedHistory) -> None: ...


class JsonHistoryStore:
    """Stores every feed history in a single JSON file.

    The file holds a list of history objects and is read and written as a
    whole. There is no locking, so concurrent writers can lose updates.
    """

    def __init__(self, file_path: str | Path, execution_id: str | None = None):
        """Initialize the store.

        Args:
            file_path: Path of the JSON history file (created on first put)
            execution_id: Execution ID for logging context
        """
        self.file_path = Path(file_path)
        self.logger = create_execution_logger("history_store", execution_id)

    def _load(self) -> list[dict]:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return []

    def get(self, feed_url: str) -> FeedHistory | None:
        """Return the stored history for a feed, or None if never saved."""
        for entry in self._load():
            if entry.get("feedUrl") == feed_url:
                return FeedHistory.from_dict(entry)
        return None

    def put(self, history: FeedHistory) -> None:
        """Replace (or add) the history entry for ``history.feed_url``."""
        histories = self._load()
        entry = history.to_dict()

        for index, existing in enumerate(histories):
            if existing.get("feedUrl") == history.feed_url:
                histories[index] = entry
                break
        else:
            histories.append(entry)

        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        # Readers only ever see the previous file or the complete new one
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.file_path.parent,
            prefix=f".{self.file_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            try:
                json.dump(histories, f, ensure_ascii=False, indent=2)
            except Exception:
                f.close()
                tmp_path.unlink(missing_ok=True)
                raise
        os.replace(tmp_path, self.file_path)

        self.logger.info(
            "Saved feed history",
            feed_url=history.feed_url,
            articles_count=len(history.articles),
            file_path=str(self.file_path),
        )


class DynamoDBHistoryStore:
    """Stores feed histories in DynamoDB, one item per feed."""

    def __init__(
        self,
        table_name: str,
        aws_region: str = "us-east-1",
        execution_id: str | None = None,
    ):
        """Initialize the store with DynamoDB configuration.

        Args:
            table_name: Name of the DynamoDB table (partition key ``feed_url``)
            aws_region: AWS region for DynamoDB client
            execution_id: Execution ID for logging context
        """
        self.table_name = table_name
        self.aws_region = aws_region
        self.logger = create_execution_logger("history_store", execution_id)
        self.dynamodb = boto3.resource("dynamodb", region_name=aws_region)
        self.table = self.dynamodb.Table(table_name)

        self.logger.info(
            "DynamoDBHistoryStore initialized",
            table_name=table_name,
            aws_region=aws_region,
        )

    def get(self, feed_url: str) -> FeedHistory | None:
        """Return the stored history for a feed, or None if never saved.

        Raises:
            ClientError: If DynamoDB cannot be read
        """
        try:
            response = self.table.get_item(Key={"feed_url": feed_url})
        except ClientError as e:
            self.logger.error(
                f"Error reading history for {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise

        item = response.get("Item")
        if item is None:
            return None

        return FeedHistory(
            feed_url=item["feed_url"],
            last_checked=item.get("last_checked", ""),
            articles=[
                TrackedArticle.from_dict(article)
                for article in item.get("articles", [])
            ],
        )

    def put(self, history: FeedHistory) -> None:
        """Overwrite the history item for ``history.feed_url``.

        Raises:
            ClientError: If DynamoDB cannot be written
        """
        try:
            self.table.put_item(
                Item={
                    "feed_url": history.feed_url,
                    "last_checked": history.last_checked,
                    "articles": [article.to_dict() for article in history.articles],
                }
            )
        except ClientError as e:
            self.logger.error(
                f"Error storing history for {history.feed_url}: {e}",
                feed_url=history.feed_url,
                error=str(e),
            )
            raise

        self.logger.info(
            "Stored feed history in DynamoDB",
            feed_url=history.feed_url,
            articles_count=len(history.articles),
        )
