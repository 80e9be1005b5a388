"""Data models for RSS Slack Bot."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class FeedItem:
    """Represents a single RSS/Atom feed item as fetched.

    Every field except ``feed_url`` may be missing from the source feed and is
    then ``None``. ``published`` is an ISO-8601 string when the feed carried a
    parseable date.
    """

    feed_url: str
    guid: str | None = None
    title: str | None = None
    link: str | None = None
    content: str | None = None
    published: str | None = None


@dataclass
class TrackedArticle:
    """An article remembered in a feed's history snapshot."""

    id: str
    title: str = ""
    link: str = ""
    published_date: str = ""

    @classmethod
    def from_item(cls, item: FeedItem) -> "TrackedArticle":
        """Build a tracked article, defaulting missing fields to ""."""
        return cls(
            id=item.guid or "",
            title=item.title or "",
            link=item.link or "",
            published_date=item.published or "",
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "publishedDate": self.published_date,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackedArticle":
        return cls(
            id=data.get("id") or "",
            title=data.get("title") or "",
            link=data.get("link") or "",
            published_date=data.get("publishedDate") or "",
        )


@dataclass
class FeedHistory:
    """Last known full snapshot of a feed plus the time it was checked."""

    feed_url: str
    last_checked: str
    articles: list[TrackedArticle] = field(default_factory=list)

    def article_ids(self) -> set[str]:
        """Identifiers of every article in the snapshot."""
        return {article.id for article in self.articles}

    def to_dict(self) -> dict[str, Any]:
        return {
            "feedUrl": self.feed_url,
            "lastChecked": self.last_checked,
            "articles": [article.to_dict() for article in self.articles],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedHistory":
        return cls(
            feed_url=data["feedUrl"],
            last_checked=data.get("lastChecked", ""),
            articles=[
                TrackedArticle.from_dict(article)
                for article in data.get("articles", [])
            ],
        )
