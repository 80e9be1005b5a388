"""RSS Feed Processing module for RSS Slack Bot."""

from datetime import UTC

import feedparser
import requests
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .logging_config import create_execution_logger
from .models import FeedItem


class FeedFetchError(Exception):
    """Raised when a feed cannot be downloaded or parsed."""


class FeedProcessor:
    """Handles RSS/Atom feed download and normalization."""

    def __init__(self, timeout: int = 30, execution_id: str | None = None):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update(
            {"User-Agent": "RSS-Slack-Bot/1.0 (RSS to Slack summary bot)"}
        )

        self.logger.info("FeedProcessor initialized", timeout=timeout)

    def parse_feed(self, feed_url: str) -> list[FeedItem]:
        """Download and parse a single RSS/Atom feed.

        Args:
            feed_url: URL of the RSS/Atom feed

        Returns:
            FeedItem objects in document order

        Raises:
            FeedFetchError: If the feed cannot be downloaded or is unparseable
        """
        self.logger.info("Downloading feed content", feed_url=feed_url)
        try:
            response = self.session.get(feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FeedFetchError(f"Failed to download feed {feed_url}: {e}") from e

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )

        feed = feedparser.parse(response.content)

        if feed.bozo:
            bozo_exception = getattr(feed, "bozo_exception", "unknown error")
            if not feed.entries:
                raise FeedFetchError(
                    f"Failed to parse feed {feed_url}: {bozo_exception}"
                )
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {bozo_exception}",
                feed_url=feed_url,
                bozo_exception=str(bozo_exception),
            )

        items = []
        for entry in feed.entries:
            try:
                items.append(self.normalize_item(entry, feed_url))
            except Exception as e:
                self.logger.warning(
                    f"Failed to normalize entry from {feed_url}: {e}",
                    feed_url=feed_url,
                    error=str(e),
                )
                continue

        self.logger.info(
            "Successfully parsed feed",
            feed_url=feed_url,
            items_count=len(items),
            total_entries=len(feed.entries),
        )
        return items

    def normalize_item(self, raw_item, feed_url: str) -> FeedItem:
        """Normalize a raw feed entry into a FeedItem.

        Missing fields stay ``None``; defaulting is left to the consumers.

        Args:
            raw_item: Raw feed entry from feedparser
            feed_url: Source feed URL

        Returns:
            Normalized FeedItem object
        """
        guid = getattr(raw_item, "id", None) or getattr(raw_item, "guid", None)
        title = getattr(raw_item, "title", None) or None
        link = getattr(raw_item, "link", None) or None

        # Atom content first, then RSS summary/description
        content = None
        raw_content = getattr(raw_item, "content", None)
        if raw_content:
            if isinstance(raw_content, list):
                content = raw_content[0].get("value", "")
            else:
                content = str(raw_content)
        if not content:
            content = getattr(raw_item, "summary", None) or getattr(
                raw_item, "description", None
            )
        if content:
            content = self.clean_html_content(content)

        published = self.normalize_date(
            getattr(raw_item, "published", None) or getattr(raw_item, "updated", None)
        )

        return FeedItem(
            feed_url=feed_url,
            guid=guid,
            title=title,
            link=link,
            content=content,
            published=published,
        )

    def normalize_date(self, value: str | None) -> str | None:
        """Render a feed date as ISO-8601 UTC, or None if unparseable."""
        if not value:
            return None
        try:
            published = date_parser.parse(value)
            if published.tzinfo is None:
                published = published.replace(tzinfo=UTC)
            # Shifting to UTC can leave the datetime range near year 1 or 9999
            published = published.astimezone(UTC)
        except (ValueError, TypeError, OverflowError):
            self.logger.debug("Unparseable published date", published=value)
            return None
        return published.isoformat().replace("+00:00", "Z")

    def clean_html_content(self, content: str | None) -> str:
        """Remove HTML tags from content and normalize whitespace.

        Args:
            content: Raw content that may contain HTML

        Returns:
            Clean text content without HTML tags
        """
        if not content:
            return ""

        if "<" in content or ">" in content:
            soup = BeautifulSoup(content, "html.parser")
            for script in soup(["script", "style"]):
                script.decompose()
            text = soup.get_text(separator=" ")
            # Stray brackets survive get_text
            text = text.replace("<", "").replace(">", "")
        else:
            text = content

        return " ".join(text.split())
