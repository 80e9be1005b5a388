"""New-item detection for RSS Slack Bot."""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from dateutil import parser as date_parser

from .models import FeedHistory, FeedItem

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

HistoryLookup = Callable[[str], FeedHistory | None]


def parse_published(value: str | None) -> datetime:
    """Parse a published timestamp for ordering.

    Naive values are taken as UTC. Absent or unparseable values sort as the
    epoch so that any dated item wins over them.
    """
    if not value:
        return EPOCH
    try:
        published = date_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return EPOCH
    if published.tzinfo is None:
        published = published.replace(tzinfo=UTC)
    return published


def find_latest_item(items: Sequence[FeedItem]) -> FeedItem | None:
    """Return the most recently published item, first one wins on ties."""
    latest = None
    latest_date = None
    for item in items:
        published = parse_published(item.published)
        if latest is None or published > latest_date:
            latest = item
            latest_date = published
    return latest


def classify_new(
    feed_url: str, items: Sequence[FeedItem], history_lookup: HistoryLookup
) -> list[FeedItem]:
    """Select the items of a fetch that have not been seen before.

    On first contact with a feed (no stored history) only the newest item is
    returned, so onboarding an established feed does not flood the channel.
    Otherwise every item whose identifier is missing from the stored snapshot
    is returned in fetch order. Items without a guid use "" as identifier.

    Args:
        feed_url: URL of the feed the items came from
        items: Items in fetch order
        history_lookup: Returns the stored history for a feed URL, or None

    Returns:
        New items in fetch order
    """
    history = history_lookup(feed_url)

    if history is None:
        latest = find_latest_item(items)
        return [latest] if latest is not None else []

    known_ids = history.article_ids()
    return [item for item in items if (item.guid or "") not in known_ids]
