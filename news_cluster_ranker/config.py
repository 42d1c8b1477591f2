from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


DEFAULT_SOURCE_QUALITY: dict[str, float] = {
    "reuters.com": 1.15,
    "apnews.com": 1.12,
    "bbc.com": 1.10,
    "nytimes.com": 1.10,
    "wsj.com": 1.08,
    "bloomberg.com": 1.08,
    "nikkei.com": 1.05,
}


@dataclass(frozen=True)
class ClusterSettings:
    time_decay_tau_hours: float = 72.0
    freshness_floor: float = 0.2
    neutral_freshness: float = 0.9
    signature_top_k: int = 12
    max_cluster_size: int = 100
    merge_window: int = 5
    merge_overlap_ratio: float = 0.6
    max_labels: int = 2
    source_quality: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SOURCE_QUALITY))

    def __post_init__(self) -> None:
        if self.max_cluster_size < 1:
            raise ValueError(f"max_cluster_size must be at least 1, got {self.max_cluster_size}")

    @property
    def max_source_quality(self) -> float:
        if not self.source_quality:
            return 1.0
        return max(self.source_quality.values())

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> "ClusterSettings":
        raw = raw or {}
        d = cls()
        quality = raw.get("source_quality")
        if quality is None:
            quality = d.source_quality
        return cls(
            time_decay_tau_hours=float(raw.get("time_decay_tau_hours", d.time_decay_tau_hours)),
            freshness_floor=float(raw.get("freshness_floor", d.freshness_floor)),
            neutral_freshness=float(raw.get("neutral_freshness", d.neutral_freshness)),
            signature_top_k=int(raw.get("signature_top_k", d.signature_top_k)),
            max_cluster_size=int(raw.get("max_cluster_size", d.max_cluster_size)),
            merge_window=int(raw.get("merge_window", d.merge_window)),
            merge_overlap_ratio=float(raw.get("merge_overlap_ratio", d.merge_overlap_ratio)),
            max_labels=int(raw.get("max_labels", d.max_labels)),
            source_quality={str(k).lower(): float(v) for k, v in quality.items()},
        )


@dataclass(frozen=True)
class Config:
    raw: dict[str, Any]

    @property
    def clustering(self) -> ClusterSettings:
        return ClusterSettings.from_raw(self.raw.get("clustering"))

    @property
    def section(self) -> str | None:
        feed = self.raw.get("feed", {}) or {}
        return feed.get("section")

    @property
    def domain_cap(self) -> int:
        feed = self.raw.get("feed", {}) or {}
        return int(feed.get("domain_cap", 5))

    @property
    def drop_unlabeled(self) -> bool:
        feed = self.raw.get("feed", {}) or {}
        return bool(feed.get("drop_unlabeled", True))

    @property
    def lang(self) -> str:
        feed = self.raw.get("feed", {}) or {}
        return str(feed.get("lang", "en"))


def load_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: str | Path | None = None) -> Config:
    if path is None:
        return Config(raw={})
    return Config(raw=load_yaml(path))
