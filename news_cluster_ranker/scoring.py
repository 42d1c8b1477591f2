from __future__ import annotations

import math
from datetime import datetime
from typing import Sequence

import numpy as np

from news_cluster_ranker.config import ClusterSettings
from news_cluster_ranker.types import Article
from news_cluster_ranker.weights import freshness_weight, source_weight

_DEFAULT_SETTINGS = ClusterSettings()

RATING_FRESHNESS_WEIGHT = 0.50
RATING_SOURCE_WEIGHT = 0.35
RATING_SIZE_WEIGHT = 0.15


def _weight_arrays(
    articles: Sequence[Article], now: datetime | None, settings: ClusterSettings
) -> tuple[np.ndarray, np.ndarray]:
    fresh = np.fromiter((freshness_weight(a.published_at, now, settings) for a in articles), dtype=np.float64)
    src = np.fromiter((source_weight(a.url, settings) for a in articles), dtype=np.float64)
    return fresh, src


def cluster_score(
    articles: Sequence[Article],
    now: datetime | None = None,
    settings: ClusterSettings | None = None,
) -> float:
    """Internal ranking value: mean freshness * mean source weight * ln(1 + n)."""

    if not articles:
        return 0.0
    s = settings or _DEFAULT_SETTINGS
    fresh, src = _weight_arrays(articles, now, s)
    size_boost = math.log1p(len(articles))
    return round(float(fresh.mean()) * float(src.mean()) * size_boost, 6)


def compute_rating(
    articles: Sequence[Article],
    now: datetime | None = None,
    settings: ClusterSettings | None = None,
) -> float:
    """Externally reported rating in [0, 5], rounded to 2 decimals."""

    if not articles:
        return 0.0
    s = settings or _DEFAULT_SETTINGS
    fresh, src = _weight_arrays(articles, now, s)

    w_fresh = float(fresh.mean())
    w_source = float(src.mean()) / s.max_source_quality
    size_boost = math.log1p(len(articles)) / math.log1p(max(1, s.max_cluster_size))

    raw = (
        RATING_FRESHNESS_WEIGHT * w_fresh
        + RATING_SOURCE_WEIGHT * w_source
        + RATING_SIZE_WEIGHT * size_boost
    )
    raw = float(np.clip(raw, 0.0, 1.0))
    return round(raw * 5, 2)
