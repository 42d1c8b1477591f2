"""Tests for news_cluster_ranker.cluster module."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from news_cluster_ranker.cluster import ClusterStore, cluster_articles, cluster_id
from news_cluster_ranker.config import ClusterSettings
from news_cluster_ranker.types import Article

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

FED_SUMMARY = "The Federal Reserve raised interest rates by a quarter point to fight inflation."

SHIFTED_WINDOW_TITLES = ["bb cc dd", "bc x1 x2", "bd x3 x4", "bg y1 y2", "bg y1 y3", "bh x5 x6", "cc dd zz"]


def _article(title, url="https://unknown.example/a", summary=None, content=None, published_at=None) -> Article:
    return Article(
        source="test",
        title=title,
        url=url,
        published_at=published_at,
        summary=summary,
        content=content,
    )


def _fed_articles() -> list[Article]:
    return [
        _article("Fed raises interest rates", "https://www.reuters.com/a", FED_SUMMARY, published_at=NOW - timedelta(minutes=20)),
        _article("Federal Reserve hikes rates again", "https://apnews.com/b", FED_SUMMARY, published_at=NOW - timedelta(minutes=40)),
        _article("Fed increases interest rate", "https://www.bbc.com/c", FED_SUMMARY, published_at=NOW - timedelta(minutes=50)),
    ]


class TestClusterArticles:
    def test_empty_input(self) -> None:
        assert cluster_articles([], now=NOW) == []

    def test_headlines_alone_do_not_overlap_enough(self) -> None:
        # the shared summary is what makes the Fed coverage merge
        arts = [replace(a, summary=None) for a in _fed_articles()]
        clusters = cluster_articles(arts, now=NOW)
        assert len(clusters) == 3
        assert sorted(c.signature for c in clusters) == [
            "again|federal|hikes|rates|reserve",
            "fed|increases|interest|rate",
            "fed|interest|raises|rates",
        ]

    def test_merges_pairs_brought_together_by_earlier_merges(self) -> None:
        arts = [_article(t) for t in SHIFTED_WINDOW_TITLES]
        clusters = cluster_articles(arts, now=NOW)

        assert len(clusters) == 5
        sizes = {c.signature: c.size for c in clusters}
        assert sizes["bb|cc|dd"] == 2
        assert "cc|dd|zz" not in sizes
        assert sum(sizes.values()) == len(arts)

    def test_naive_now_is_treated_as_utc(self) -> None:
        naive = cluster_articles(_fed_articles(), now=NOW.replace(tzinfo=None))
        aware = cluster_articles(_fed_articles(), now=NOW)
        assert [(c.score, c.rating) for c in naive] == [(c.score, c.rating) for c in aware]
        assert naive[0].created_at == NOW

    def test_related_coverage_merges_into_one_cluster(self) -> None:
        clusters = cluster_articles(_fed_articles(), now=NOW)

        assert len(clusters) == 1
        c = clusters[0]
        assert len(c.articles) == 3
        assert c.rating > 3.0
        assert 0 <= c.rating <= 5
        assert c.labels == ["economy"]

    def test_identical_titles_share_a_bucket(self) -> None:
        arts = [_article("Apple unveils new AI features"), _article("Apple unveils new AI features")]
        clusters = cluster_articles(arts, now=NOW)
        assert len(clusters) == 1
        assert clusters[0].size == 2

    def test_cap_limits_bucket_size(self) -> None:
        arts = [_article("Same headline every time", url=f"https://unknown.example/{i}") for i in range(120)]
        clusters = cluster_articles(arts, now=NOW)
        assert len(clusters) == 1
        assert len(clusters[0].articles) == 100
        assert clusters[0].articles[0].url == "https://unknown.example/0"

    def test_every_article_lands_in_one_cluster(self) -> None:
        arts = _fed_articles() + [
            _article("Olympic swimmer breaks world record"),
            _article("Apple unveils new AI features"),
            _article("Apple unveils new AI features"),
        ]
        clusters = cluster_articles(arts, now=NOW)

        assert sum(c.size for c in clusters) == len(arts)
        members = [id(a) for c in clusters for a in c.articles]
        assert len(members) == len(set(members)) == len(arts)

    def test_sorted_by_score_descending(self) -> None:
        arts = _fed_articles() + [
            _article("Olympic swimmer breaks world record", published_at=NOW - timedelta(days=10)),
            _article("Apple unveils new AI features"),
        ]
        clusters = cluster_articles(arts, now=NOW)
        scores = [c.score for c in clusters]
        assert scores == sorted(scores, reverse=True)
        assert all(0 <= c.rating <= 5 for c in clusters)

    def test_single_weak_article_rating(self) -> None:
        clusters = cluster_articles([_article("Local bakery opens")], now=NOW)
        assert 0 < clusters[0].rating <= 5

    def test_ids_are_reproducible(self) -> None:
        arts = _fed_articles() + [_article("Olympic swimmer breaks world record")]
        first = [c.id for c in cluster_articles(arts, now=NOW)]
        second = [c.id for c in cluster_articles(arts, now=NOW)]
        assert first == second
        assert len(set(first)) == len(first)

    def test_japan_section_korea_mention_gets_no_labels(self) -> None:
        arts = [_article("Japan and Korea hold summit in Tokyo")]
        clusters = cluster_articles(arts, section="japan", now=NOW)
        assert clusters[0].labels == []

        clusters = cluster_articles(arts, now=NOW)
        assert clusters[0].labels == ["japan", "korea"]


class TestClusterStore:
    def test_add_beyond_cap_is_noop(self) -> None:
        store = ClusterStore(ClusterSettings(max_cluster_size=2), now=NOW)
        arts = [_article("Same headline", url=f"https://unknown.example/{i}") for i in range(3)]

        assert store.add(arts[0]) is True
        assert store.add(arts[1]) is True
        score = store.clusters[0].score
        assert store.add(arts[2]) is False
        assert store.clusters[0].size == 2
        assert store.clusters[0].score == score

    def test_labels_follow_last_article(self) -> None:
        store = ClusterStore(now=NOW)
        store.add(_article("election", content="market"))
        store.add(_article("market", content="election"))

        assert len(store) == 1
        assert store.clusters[0].labels == ["economy"]

    def test_centroid(self) -> None:
        store = ClusterStore(now=NOW)
        store.add(_article("alpha beta", published_at=1_700_000_000))
        store.add(_article("alpha beta", published_at=1_700_003_600))
        store.add(_article("alpha beta"))

        c = store.get("alpha|beta")
        assert c is not None
        assert c.centroid.published_at_avg == 1_700_001_800_000
        assert c.centroid.title_tokens == {"alpha": 3, "beta": 3}
        assert c.created_at == NOW

    def test_merge_removes_absorbed_bucket(self) -> None:
        store = ClusterStore(now=NOW)
        store.add_all(_fed_articles())
        assert len(store) == 3

        assert store.merge_nearby() >= 1
        assert len(store) == 1

    def test_merge_is_idempotent(self) -> None:
        store = ClusterStore(now=NOW)
        store.add_all(_fed_articles() + [_article("Olympic swimmer breaks world record")])

        store.merge_nearby()
        survivors = {c.id: c.size for c in store.clusters}
        assert store.merge_nearby() == 0
        assert {c.id: c.size for c in store.clusters} == survivors

    def test_single_pass_can_leave_shifted_pairs(self) -> None:
        store = ClusterStore(now=NOW)
        store.add_all([_article(t) for t in SHIFTED_WINDOW_TITLES])

        # "bb|cc|dd" and "cc|dd|zz" only share a window once a "bg" bucket is gone
        assert store.merge_nearby() == 1
        assert store.merge_nearby() == 1
        assert store.merge_nearby() == 0

    def test_merge_until_stable(self) -> None:
        store = ClusterStore(now=NOW)
        store.add_all([_article(t) for t in SHIFTED_WINDOW_TITLES])

        assert store.merge_until_stable() == 2
        assert len(store) == 5
        assert store.merge_nearby() == 0

    def test_merge_respects_cap(self) -> None:
        store = ClusterStore(ClusterSettings(max_cluster_size=3), now=NOW)
        store.add_all(
            [
                _article("alpha beta gamma delta epsilon", url="https://unknown.example/1"),
                _article("alpha beta gamma delta epsilon", url="https://unknown.example/2"),
                _article("alpha beta gamma delta zeta", url="https://unknown.example/3"),
                _article("alpha beta gamma delta zeta", url="https://unknown.example/4"),
            ]
        )
        assert len(store) == 2

        assert store.merge_nearby() == 1
        assert len(store) == 1
        assert store.clusters[0].size == 3

    def test_disjoint_signatures_do_not_merge(self) -> None:
        store = ClusterStore(now=NOW)
        store.add_all([_article("alpha beta gamma"), _article("delta epsilon zeta")])
        assert store.merge_nearby() == 0
        assert len(store) == 2

    def test_merge_window_limits_comparisons(self) -> None:
        # "aa|bb" only overlaps with "aa|bb|ff", which sorts seven places later
        titles = ["aa bb", "c1 c2", "c3 c4", "c5 c6", "c7 c8", "c9 d1", "d2 d3", "aa bb ff"]
        store = ClusterStore(ClusterSettings(merge_window=5), now=NOW)
        store.add_all([_article(t) for t in titles])
        assert store.merge_nearby() == 0

        store = ClusterStore(ClusterSettings(merge_window=10), now=NOW)
        store.add_all([_article(t) for t in titles])
        assert store.merge_nearby() == 1


class TestClusterId:
    def test_depends_on_signature_and_sequence(self) -> None:
        assert cluster_id("a|b", 0) == cluster_id("a|b", 0)
        assert cluster_id("a|b", 0) != cluster_id("a|b", 1)
        assert len(cluster_id("a|b", 0)) == 12
