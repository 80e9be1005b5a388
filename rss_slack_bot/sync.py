"""Incremental feed synchronization workflow."""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from .diff import classify_new
from .history import HistoryStore
from .logging_config import create_execution_logger
from .models import FeedHistory, FeedItem, TrackedArticle

FetchFn = Callable[[str], Sequence[FeedItem]]
SummarizeFn = Callable[[str, str, str], str]
NotifyFn = Callable[[str, str, str], Any]
NotifyErrorFn = Callable[[BaseException, str], Any]


def new_metrics() -> dict[str, Any]:
    return {
        "feeds_processed": 0,
        "feeds_failed": 0,
        "items_found": 0,
        "new_items": 0,
        "items_summarized": 0,
        "messages_sent": 0,
        "histories_saved": 0,
        "errors": [],
    }


class SyncOrchestrator:
    """Runs the fetch, diff, summarize, notify and commit cycle per feed.

    Feeds are processed one at a time in the given order. Any exception in a
    feed's cycle is reported once through ``notify_error`` and ends that
    feed's cycle: its remaining new items are not processed and its history
    is not committed. Other feeds are unaffected.
    """

    def __init__(
        self,
        history_store: HistoryStore,
        fetch: FetchFn,
        summarize: SummarizeFn,
        notify: NotifyFn,
        notify_error: NotifyErrorFn,
        execution_id: str | None = None,
    ):
        self.history_store = history_store
        self.fetch = fetch
        self.summarize = summarize
        self.notify = notify
        self.notify_error = notify_error
        self.logger = create_execution_logger("sync", execution_id)

    def run(self, feed_urls: Sequence[str]) -> dict[str, Any]:
        """Synchronize every feed; never raises.

        Returns:
            Metrics for the run
        """
        metrics = new_metrics()
        self.logger.log_execution_start(feed_count=len(feed_urls))

        for feed_url in feed_urls:
            try:
                self.sync_feed(feed_url, metrics)
                metrics["feeds_processed"] += 1
            except Exception as e:
                error_msg = f"Failed to process feed {feed_url}: {e}"
                self.logger.error(error_msg, feed_url=feed_url, error=str(e))
                metrics["feeds_failed"] += 1
                metrics["errors"].append(error_msg)
                self._report_error(e, f"Feed: {feed_url}")

        self.logger.log_execution_end(
            success=not metrics["errors"], metrics=metrics
        )
        return metrics

    def sync_feed(self, feed_url: str, metrics: dict[str, Any]) -> FeedHistory:
        """Run one feed's full cycle and commit its snapshot.

        Raises:
            Exception: Whatever a collaborator raised; the cycle stops there
        """
        self.logger.info(f"Processing feed: {feed_url}", feed_url=feed_url)
        items = list(self.fetch(feed_url))
        metrics["items_found"] += len(items)

        new_items = classify_new(feed_url, items, self.history_store.get)
        metrics["new_items"] += len(new_items)
        self.logger.log_feed_processing(feed_url, len(items), len(new_items))

        for item in new_items:
            self.process_item(item, metrics)

        history = FeedHistory(
            feed_url=feed_url,
            last_checked=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            articles=[TrackedArticle.from_item(item) for item in items],
        )
        self.history_store.put(history)
        metrics["histories_saved"] += 1
        return history

    def process_item(self, item: FeedItem, metrics: dict[str, Any]) -> None:
        """Summarize one new item and post it."""
        title = item.title or ""
        content = item.content or ""
        link = item.link or ""

        summary = self.summarize(title, content, link)
        metrics["items_summarized"] += 1
        self.logger.log_item_processing(title, "summarized")

        # Notifiers swallow their own failures; a False result is only counted
        if self.notify(title, link, summary) is not False:
            metrics["messages_sent"] += 1
            self.logger.log_item_processing(title, "sent_to_slack")
        else:
            error_msg = f"Failed to send message for: {title}"
            self.logger.error(error_msg, item_title=title)
            metrics["errors"].append(error_msg)

    def _report_error(self, error: BaseException, context: str) -> None:
        try:
            self.notify_error(error, context)
        except Exception as e:
            self.logger.error(f"Error notifier failed: {e}", error=str(e))


def run_workflow(
    feed_urls: Sequence[str],
    history_store: HistoryStore,
    fetch: FetchFn,
    summarize: SummarizeFn,
    notify: NotifyFn,
    notify_error: NotifyErrorFn,
    execution_id: str | None = None,
) -> dict[str, Any]:
    """Synchronize ``feed_urls`` in order. Always completes.

    Returns:
        Metrics for the run
    """
    orchestrator = SyncOrchestrator(
        history_store=history_store,
        fetch=fetch,
        summarize=summarize,
        notify=notify,
        notify_error=notify_error,
        execution_id=execution_id,
    )
    return orchestrator.run(feed_urls)
