from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

from news_cluster_ranker.types import Cluster
from news_cluster_ranker.weights import parse_published_at


def clusters_to_frame(clusters: list[Cluster]) -> pd.DataFrame:
    """One row per article, carrying its cluster's id, rank, score, rating and labels."""

    rows = []
    for rank, c in enumerate(clusters, start=1):
        for a in c.articles:
            d = a.to_dict()
            d["published_at"] = parse_published_at(a.published_at)
            d.update(
                {
                    "cluster_id": c.id,
                    "cluster_rank": rank,
                    "cluster_size": c.size,
                    "cluster_score": c.score,
                    "cluster_rating": c.rating,
                    "cluster_labels": ",".join(c.labels),
                    "signature": c.signature,
                }
            )
            rows.append(d)

    df = pd.DataFrame(rows)
    if not df.empty:
        # Normalize datetime for parquet
        df["published_at"] = pd.to_datetime(df["published_at"], utc=True, errors="coerce")
    return df


def write_frame(path: Path, df: pd.DataFrame) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        df.to_parquet(path, index=False)
        return

    # default to csv
    df.to_csv(path, index=False, encoding="utf-8")


def write_feed_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
