"""CLI for clustering and ranking news articles."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from news_cluster_ranker.config import load_config
from news_cluster_ranker.pipeline import Feed, build_feed, run_pipeline
from news_cluster_ranker.storage import clusters_to_frame, write_feed_json, write_frame
from news_cluster_ranker.types import Article

logger = logging.getLogger(__name__)


def read_articles(path: Path) -> list[Article]:
    """Read articles from a JSON array file or a JSONL file."""

    text = path.read_text(encoding="utf-8")
    if text.lstrip().startswith("["):
        records = json.loads(text)
    else:
        records = [json.loads(line) for line in text.splitlines() if line.strip()]
    return [Article.from_dict(r) for r in records]


def write_output(feed: Feed, output: Path | None) -> None:
    if output is None:
        json.dump(feed.to_dict(), sys.stdout, ensure_ascii=False, indent=2, default=str)
        sys.stdout.write("\n")
        return

    if output.suffix.lower() in {".csv", ".parquet"}:
        write_frame(output, clusters_to_frame(feed.clusters))
    else:
        write_feed_json(output, feed.to_dict())
    logger.info("Saved %d clusters to %s", len(feed.clusters), output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="news-cluster-ranker")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--input", type=Path, help="JSON or JSONL file of articles")
    src.add_argument("--sources", type=Path, help="sources.yaml listing RSS feeds")
    parser.add_argument("--config", type=Path, default=None, help="config.yaml")
    parser.add_argument("--section", default=None, help="section hint, e.g. world or japan")
    parser.add_argument("--domain-cap", type=int, default=None, help="max articles per domain (0 disables)")
    parser.add_argument("--max-items", type=int, default=50, help="max entries per RSS feed")
    parser.add_argument("--output", type=Path, default=None, help=".json, .csv or .parquet (default: stdout)")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.sources is not None:
        feed = run_pipeline(
            args.config,
            args.sources,
            args.max_items,
            section=args.section,
            domain_cap=args.domain_cap,
        )
    else:
        cfg = load_config(args.config)
        articles = read_articles(args.input)
        logger.info("Loaded %d articles from %s", len(articles), args.input)
        feed = build_feed(
            articles,
            section=args.section if args.section is not None else cfg.section,
            domain_cap=args.domain_cap if args.domain_cap is not None else cfg.domain_cap,
            lang=cfg.lang,
            settings=cfg.clustering,
            drop_unlabeled_clusters=cfg.drop_unlabeled,
        )

    if not feed.clusters:
        logger.warning("No clusters produced")
    write_output(feed, args.output)


if __name__ == "__main__":
    main()
