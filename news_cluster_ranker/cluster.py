from __future__ import annotations

import hashlib
import itertools
import logging
import math
from datetime import datetime, timezone
from typing import Iterable

from news_cluster_ranker.config import ClusterSettings
from news_cluster_ranker.labels import detect_labels
from news_cluster_ranker.nlp import article_signature, extract_keywords, signature_keywords
from news_cluster_ranker.scoring import cluster_score, compute_rating
from news_cluster_ranker.types import Article, Cluster
from news_cluster_ranker.weights import published_at_millis

logger = logging.getLogger(__name__)


def cluster_id(signature: str, seq: int) -> str:
    return hashlib.sha256(f"{signature}:{seq}".encode()).hexdigest()[:12]


def update_centroid(cluster: Cluster, article: Article, top_k: int = 12) -> None:
    """Fold a just-appended article into the cluster centroid."""

    for k in extract_keywords(article.title or "", top_k):
        cluster.centroid.title_tokens[k] += 1

    ts = published_at_millis(article.published_at)
    if ts is None:
        return
    n = len(cluster.articles)
    prev = cluster.centroid.published_at_avg or ts
    cluster.centroid.published_at_avg = ts if n == 1 else int(round((prev * (n - 1) + ts) / n))


class ClusterStore:
    """Signature buckets for one batch of articles.

    A store is owned by a single invocation; nothing in it is shared between
    batches.
    """

    def __init__(
        self,
        settings: ClusterSettings | None = None,
        *,
        now: datetime | None = None,
        section: str | None = None,
    ) -> None:
        self._settings = settings or ClusterSettings()
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        self._now = now
        self._section = section
        self._buckets: dict[str, Cluster] = {}
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, signature: object) -> bool:
        return signature in self._buckets

    @property
    def clusters(self) -> list[Cluster]:
        return list(self._buckets.values())

    def get(self, signature: str) -> Cluster | None:
        return self._buckets.get(signature)

    def _create(self, signature: str) -> Cluster:
        cluster = Cluster(
            id=cluster_id(signature, next(self._seq)),
            signature=signature,
            keywords=signature_keywords(signature),
            created_at=self._now,
        )
        self._buckets[signature] = cluster
        return cluster

    def _append(self, cluster: Cluster, article: Article) -> bool:
        if len(cluster.articles) >= self._settings.max_cluster_size:
            return False
        cluster.articles.append(article)
        update_centroid(cluster, article, self._settings.signature_top_k)
        return True

    def _rescore(self, cluster: Cluster) -> None:
        cluster.score = cluster_score(cluster.articles, self._now, self._settings)

    def add(self, article: Article) -> bool:
        """Place an article in the bucket for its signature.

        Returns False when the bucket is already full; the article is dropped
        and the bucket is left untouched.
        """

        s = self._settings
        signature = article_signature(article, s.signature_top_k)
        cluster = self._buckets.get(signature) or self._create(signature)
        if not self._append(cluster, article):
            logger.debug("Cluster %s full, dropping %s", cluster.id, article.url)
            return False

        self._rescore(cluster)
        # last accepted article decides the labels
        text = " ".join(part for part in (article.title, article.summary) if part)
        cluster.labels = detect_labels(text, s.max_labels, self._section)
        return True

    def add_all(self, articles: Iterable[Article]) -> int:
        accepted = 0
        for a in articles:
            if self.add(a):
                accepted += 1
        return accepted

    def _absorb(self, into: Cluster, other: Cluster) -> None:
        moved = 0
        for art in other.articles:
            if not self._append(into, art):
                break
            moved += 1
        if moved < len(other.articles):
            logger.debug(
                "Cluster %s full, dropped %d articles from %s",
                into.id,
                len(other.articles) - moved,
                other.id,
            )
        self._rescore(into)
        del self._buckets[other.signature]

    def merge_nearby(self) -> int:
        """Merge buckets whose keyword sets overlap enough.

        Signatures are ordered by (length, text) once up front; each one is
        compared with the next ``merge_window`` signatures of that snapshot.
        Buckets absorbed earlier in the pass are skipped. Returns the number
        of merges.
        """

        s = self._settings
        sigs = sorted(self._buckets, key=lambda sig: (len(sig), sig))
        sig_sets = {sig: set(signature_keywords(sig)) for sig in sigs}

        merges = 0
        for i, a in enumerate(sigs):
            for b in sigs[i + 1 : i + 1 + s.merge_window]:
                if a not in self._buckets:
                    break
                if b not in self._buckets:
                    continue

                a_set, b_set = sig_sets[a], sig_sets[b]
                inter = len(a_set & b_set)
                min_size = min(len(a_set), len(b_set))
                if inter < math.ceil(min_size * s.merge_overlap_ratio):
                    continue

                first, second = self._buckets[a], self._buckets[b]
                into, other = (first, second) if first.score >= second.score else (second, first)
                logger.debug("Merging cluster %s into %s (%d/%d shared)", other.id, into.id, inter, min_size)
                self._absorb(into, other)
                merges += 1
        return merges

    def merge_until_stable(self) -> int:
        """Repeat merge passes until one merges nothing.

        An absorbed bucket shifts every later window, so a single pass can
        leave mergeable pairs that were never compared.
        """

        total = 0
        while True:
            merges = self.merge_nearby()
            if not merges:
                return total
            total += merges

    def finalize(self) -> list[Cluster]:
        """Rate every surviving bucket and return them by score, highest first."""

        clusters = list(self._buckets.values())
        for c in clusters:
            c.rating = compute_rating(c.articles, self._now, self._settings)
        # stable sort keeps creation order for equal scores
        clusters.sort(key=lambda c: c.score, reverse=True)
        return clusters


def cluster_articles(
    articles: Iterable[Article],
    *,
    section: str | None = None,
    settings: ClusterSettings | None = None,
    now: datetime | None = None,
) -> list[Cluster]:
    """Bucket, merge, rate and sort a batch of articles."""

    store = ClusterStore(settings, now=now, section=section)
    accepted = store.add_all(articles)
    if not len(store):
        return []

    before = len(store)
    merges = store.merge_until_stable()
    logger.debug("Bucketed %d articles into %d clusters, %d merges", accepted, before, merges)
    return store.finalize()
