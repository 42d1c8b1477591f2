from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

PublishedAt = Union[datetime, str, int, float]


@dataclass(frozen=True)
class Article:
    source: str
    title: str
    url: str
    published_at: Optional[PublishedAt] = None
    summary: Optional[str] = None
    content: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Article":
        """Build an article from an ingestion record (camelCase or snake_case keys)."""

        source = d.get("source")
        if isinstance(source, dict):
            source = source.get("name")
        published_at = d.get("published_at", d.get("publishedAt"))
        return cls(
            source=str(source or ""),
            title=str(d.get("title") or ""),
            url=str(d.get("url") or ""),
            published_at=published_at if published_at not in ("", None) else None,
            summary=d.get("summary") or d.get("description"),
            content=d.get("content") or d.get("text"),
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if isinstance(self.published_at, datetime):
            d["published_at"] = self.published_at.isoformat()
        return d


@dataclass
class Centroid:
    # keyword -> occurrences across member titles
    title_tokens: Counter[str] = field(default_factory=Counter)
    # running average publish time, epoch milliseconds (0 = no parsed timestamp yet)
    published_at_avg: int = 0

    def top_keywords(self, top_k: int) -> list[str]:
        # Counter.most_common keeps first-seen order for equal counts
        return [k for k, _ in self.title_tokens.most_common(top_k)]

    def published_at_avg_iso(self) -> str | None:
        if not self.published_at_avg:
            return None
        dt = datetime.fromtimestamp(self.published_at_avg / 1000.0, tz=timezone.utc)
        return dt.isoformat().replace("+00:00", "Z")


@dataclass
class Cluster:
    id: str
    signature: str
    keywords: list[str]
    articles: list[Article] = field(default_factory=list)
    centroid: Centroid = field(default_factory=Centroid)
    score: float = 0.0
    labels: list[str] = field(default_factory=list)
    rating: float = 0.0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def size(self) -> int:
        return len(self.articles)

    def to_dict(self, top_k: int = 12) -> dict[str, Any]:
        return {
            "id": self.id,
            "signature": self.signature,
            "keywords": list(self.keywords),
            "score": self.score,
            "size": self.size,
            "labels": list(self.labels),
            "rating": self.rating,
            "articles": [a.to_dict() for a in self.articles],
            "centroid": {
                "titleTopKeywords": self.centroid.top_keywords(top_k),
                "publishedAtAvg": self.centroid.published_at_avg_iso(),
            },
            "createdAt": self.created_at.isoformat(),
        }
