"""Slack notifier for RSS Slack Bot."""

import json
import time
import urllib.error
import urllib.request

from .config import SlackConfig
from .logging_config import create_execution_logger

# Slack rejects plain_text header blocks longer than this
HEADER_MAX_CHARS = 150


class SlackNotifier:
    """Posts article summaries and error reports to a Slack incoming webhook.

    Delivery is best effort: neither ``notify`` nor ``notify_error`` raises.
    """

    def __init__(self, config: SlackConfig, execution_id: str | None = None):
        """Initialize Slack notifier with configuration."""
        self.config = config
        self.logger = create_execution_logger("slack_notifier", execution_id)

        self.logger.info(
            "SlackNotifier initialized", retry_attempts=config.retry_attempts
        )

    def notify(self, title: str, link: str, summary: str) -> bool:
        """Post a new-article notification.

        Returns:
            True if the message was delivered, False otherwise
        """
        try:
            payload = self.format_article_message(title, link, summary)
            success = self._post(payload)
        except Exception as e:
            self.logger.error(
                f"Failed to post article to Slack: {e}", item_title=title, error=str(e)
            )
            return False

        if success:
            self.logger.info("Article posted to Slack", item_title=title)
        else:
            self.logger.error("Failed to post article to Slack", item_title=title)
        return success

    def notify_error(self, error: BaseException, context: str) -> bool:
        """Post an error report naming the context it happened in.

        Returns:
            True if the message was delivered, False otherwise
        """
        try:
            payload = self.format_error_message(error, context)
            success = self._post(payload)
        except Exception as e:
            self.logger.error(
                f"Failed to post error to Slack: {e}", context=context, error=str(e)
            )
            return False

        if not success:
            self.logger.error("Failed to post error to Slack", context=context)
        return success

    def format_article_message(self, title: str, link: str, summary: str) -> dict:
        """Build the Block Kit payload for an article."""
        return {
            "text": f"New article: {title}",
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": self._header_text(title)},
                },
                {"type": "section", "text": {"type": "mrkdwn", "text": summary}},
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"<{link}|Read the article>"},
                },
            ],
        }

    def format_error_message(self, error: BaseException, context: str) -> dict:
        """Build the Block Kit payload for an error report."""
        heading = "⚠️ An error occurred"
        return {
            "text": heading,
            "blocks": [
                {"type": "header", "text": {"type": "plain_text", "text": heading}},
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Context:*\n{context}"},
                        {"type": "mrkdwn", "text": f"*Error:*\n{error}"},
                    ],
                },
            ],
        }

    def handle_rate_limit(self, retry_count: int) -> None:
        """Wait with exponential backoff before retrying a rate-limited post."""
        backoff_time = self.config.backoff_factor**retry_count
        self.logger.warning(
            f"Rate limited, waiting {backoff_time} seconds before retry {retry_count + 1}",
            retry_count=retry_count,
            backoff_time=backoff_time,
        )
        time.sleep(backoff_time)

    def _header_text(self, title: str) -> str:
        # Header blocks require non-empty text
        title = title or "(untitled)"
        if len(title) > HEADER_MAX_CHARS:
            return title[: HEADER_MAX_CHARS - 1] + "…"
        return title

    def _post(self, payload: dict) -> bool:
        """POST a payload to the webhook, retrying on HTTP 429."""
        if not self.config.webhook_url:
            self.logger.error("Slack webhook URL is not configured")
            return False

        json_data = json.dumps(payload).encode("utf-8")

        for attempt in range(self.config.retry_attempts):
            req = urllib.request.Request(
                self.config.webhook_url,
                data=json_data,
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": "RSS-Slack-Bot/1.0",
                },
            )
            try:
                with urllib.request.urlopen(req, timeout=self.config.timeout) as response:
                    if response.status == 200:
                        return True
                    self.logger.error(
                        f"Slack webhook returned status {response.status}",
                        status_code=response.status,
                    )
                    return False

            except urllib.error.HTTPError as e:
                if e.code == 429 and attempt < self.config.retry_attempts - 1:
                    self.handle_rate_limit(attempt)
                    continue
                self.logger.error(
                    f"HTTP error posting to Slack: {e.code} - {e.reason}",
                    http_code=e.code,
                    http_reason=e.reason,
                )
                return False

            except urllib.error.URLError as e:
                self.logger.error(
                    f"URL error posting to Slack: {e.reason}", error=str(e.reason)
                )
                return False

        return False
