from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

from dateutil import parser as dateparser

from news_cluster_ranker.config import ClusterSettings

logger = logging.getLogger(__name__)

_DEFAULT_SETTINGS = ClusterSettings()

# Numbers at or above this are epoch milliseconds, below it epoch seconds.
_EPOCH_MILLIS_THRESHOLD = 1e11


def parse_published_at(value: Any) -> Optional[datetime]:
    """Parse a publish timestamp into an aware UTC datetime, or None."""

    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)):
            if not math.isfinite(value):
                return None
            seconds = value / 1000.0 if abs(value) >= _EPOCH_MILLIS_THRESHOLD else float(value)
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        else:
            dt = dateparser.parse(str(value))
            if dt is None:
                return None
        # Ensure tz-aware for consistent comparisons
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError, TypeError) as exc:
        logger.debug("Unparseable timestamp %r: %s", value, exc)
        return None


def published_at_millis(value: Any) -> Optional[int]:
    dt = parse_published_at(value)
    if dt is None:
        return None
    return int(round(dt.timestamp() * 1000))


def freshness_weight(
    published_at: Any,
    now: datetime | None = None,
    settings: ClusterSettings | None = None,
) -> float:
    """Exponential time decay, clamped to [floor, 1.0].

    Missing or unparseable timestamps get the neutral weight. Future dates
    count as zero hours old.
    """

    s = settings or _DEFAULT_SETTINGS
    dt = parse_published_at(published_at)
    if dt is None:
        return s.neutral_freshness

    now = now or datetime.now(timezone.utc)
    hours = (now - dt).total_seconds() / 3600.0
    w = math.exp(-max(0.0, hours) / s.time_decay_tau_hours)
    return min(1.0, max(s.freshness_floor, w))


def get_domain(url: str | None) -> str:
    if not url:
        return ""
    try:
        host = urlparse(str(url).strip()).hostname or ""
    except ValueError:
        logger.debug("Unparseable url %r", url)
        return ""
    return host.lower().removeprefix("www.")


def source_weight(url: str | None, settings: ClusterSettings | None = None) -> float:
    s = settings or _DEFAULT_SETTINGS
    domain = get_domain(url)
    if not domain:
        return 1.0

    # exact host first, then parent domains (edition.bbc.com -> bbc.com)
    labels = domain.split(".")
    for i in range(0, max(1, len(labels) - 1)):
        candidate = ".".join(labels[i:])
        quality = s.source_quality.get(candidate)
        if quality is not None:
            return float(quality)
    return 1.0
