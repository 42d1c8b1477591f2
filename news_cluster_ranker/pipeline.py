from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol

from news_cluster_ranker.cluster import cluster_articles
from news_cluster_ranker.config import ClusterSettings, load_config, load_yaml
from news_cluster_ranker.rss import fetch_rss_entries, rss_entry_to_article
from news_cluster_ranker.types import Article, Cluster
from news_cluster_ranker.weights import get_domain

logger = logging.getLogger(__name__)


class Summarizer(Protocol):
    def summarize(self, content: str, lang: str) -> Optional[str]:
        ...


class Translator(Protocol):
    def translate(self, text: str, target_lang: str) -> str:
        ...


def apply_domain_cap(articles: Iterable[Article], domain_cap: int) -> list[Article]:
    """Keep at most ``domain_cap`` articles per domain, in arrival order."""

    articles = list(articles)
    if domain_cap <= 0:
        return articles

    per_domain: dict[str, int] = {}
    capped: list[Article] = []
    for a in articles:
        d = get_domain(a.url)
        c = per_domain.get(d, 0)
        if c < domain_cap:
            capped.append(a)
            per_domain[d] = c + 1
    return capped


def summarize_articles(articles: list[Article], summarizer: Summarizer, lang: str) -> list[Article]:
    out: list[Article] = []
    for a in articles:
        if not a.content:
            out.append(a)
            continue
        try:
            summary = summarizer.summarize(a.content, lang)
        except Exception as exc:
            logger.warning("Summarizer failed for %s: %s", a.url, exc)
            summary = None
        out.append(replace(a, summary=summary) if summary else a)
    return out


def translate_articles(articles: list[Article], translator: Translator, lang: str) -> list[Article]:
    out: list[Article] = []
    for a in articles:
        try:
            title = translator.translate(a.title, lang) if a.title else a.title
            summary = translator.translate(a.summary, lang) if a.summary else a.summary
        except Exception as exc:
            logger.warning("Translator failed for %s: %s", a.url, exc)
            out.append(a)
            continue
        out.append(replace(a, title=title or a.title, summary=summary or a.summary))
    return out


def drop_unlabeled(clusters: list[Cluster]) -> list[Cluster]:
    return [c for c in clusters if c.labels]


@dataclass
class Feed:
    section: str | None
    domain_cap: int
    lang: str
    count: int
    clusters: list[Cluster]
    generated_at: datetime
    top_k: int = 12

    def to_dict(self) -> dict[str, Any]:
        return {
            "section": self.section,
            "domain_cap": self.domain_cap,
            "lang": self.lang,
            "count": self.count,
            "clusters": [c.to_dict(self.top_k) for c in self.clusters],
            "generatedAt": self.generated_at.isoformat(),
        }


def build_feed(
    articles: Iterable[Article],
    *,
    section: str | None = None,
    domain_cap: int = 5,
    lang: str = "en",
    settings: ClusterSettings | None = None,
    summarizer: Summarizer | None = None,
    translator: Translator | None = None,
    drop_unlabeled_clusters: bool = True,
    now: datetime | None = None,
) -> Feed:
    """Run collaborators over ``articles`` and rank what is left."""

    settings = settings or ClusterSettings()
    now = now or datetime.now(timezone.utc)
    items = list(articles)

    if summarizer is not None:
        items = summarize_articles(items, summarizer, lang)

    received = len(items)
    items = apply_domain_cap(items, domain_cap)

    if translator is not None:
        items = translate_articles(items, translator, lang)

    clusters = cluster_articles(items, section=section, settings=settings, now=now)
    ranked = len(clusters)
    if section and drop_unlabeled_clusters:
        clusters = drop_unlabeled(clusters)

    logger.info(
        "Feed %s: %d articles (%d after domain cap) -> %d clusters (%d kept)",
        section or "-",
        received,
        len(items),
        ranked,
        len(clusters),
    )

    return Feed(
        section=section,
        domain_cap=domain_cap,
        lang=lang,
        count=len(items),
        clusters=clusters,
        generated_at=now,
        top_k=settings.signature_top_k,
    )


def collect_articles(sources: list[dict[str, Any]], max_items: int) -> list[Article]:
    """Pull RSS entries for every enabled source, de-duplicated by URL."""

    articles: list[Article] = []
    seen: set[str] = set()
    for s in sources:
        if not s.get("enabled", False):
            continue
        sid = str(s.get("id"))
        for rss_url in s.get("rss_urls") or []:
            if not rss_url:
                continue
            for e in fetch_rss_entries(sid, rss_url, max_items=max_items):
                if e.url in seen:
                    continue
                seen.add(e.url)
                articles.append(rss_entry_to_article(e))
    return articles


def run_pipeline(
    config_path: str | Path | None,
    sources_path: str | Path,
    max_items: int,
    *,
    section: str | None = None,
    domain_cap: int | None = None,
    summarizer: Summarizer | None = None,
    translator: Translator | None = None,
    now: datetime | None = None,
) -> Feed:
    cfg = load_config(config_path)
    sources = load_yaml(sources_path).get("sources", [])

    articles = collect_articles(sources, max_items)
    logger.info("Collected %d articles from %d sources", len(articles), len(sources))

    return build_feed(
        articles,
        section=section if section is not None else cfg.section,
        domain_cap=domain_cap if domain_cap is not None else cfg.domain_cap,
        lang=cfg.lang,
        settings=cfg.clustering,
        summarizer=summarizer,
        translator=translator,
        drop_unlabeled_clusters=cfg.drop_unlabeled,
        now=now,
    )
