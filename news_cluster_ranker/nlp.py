from __future__ import annotations

import re
from collections import Counter

from news_cluster_ranker.types import Article


SIGNATURE_TOP_K = 12
SIGNATURE_DELIMITER = "|"
NO_TITLE_SIGNATURE = "no-title"
FALLBACK_TITLE_CHARS = 80

STOP_WORDS = frozenset(
    {
        # Korean
        "그",
        "이",
        "저",
        "것",
        "수",
        "등",
        "및",
        "에서",
        "으로",
        "하다",
        "했다",
        "지난",
        "오늘",
        "내일",
        "대한",
        "관련",
        "위해",
        "그리고",
        "하지만",
        "또한",
        "모든",
        "기사",
        "속보",
        "단독",
        # English
        "the",
        "a",
        "an",
        "and",
        "or",
        "but",
        "is",
        "are",
        "was",
        "were",
        "to",
        "of",
        "in",
        "on",
        "for",
        "with",
        "by",
        "from",
        "at",
        "as",
        "that",
        "this",
        "these",
        "those",
        "be",
        "been",
        "it",
        "its",
        "into",
        "about",
        "their",
        "his",
        "her",
        "you",
        "your",
        "we",
        "our",
        "they",
        "them",
        "he",
        "she",
    }
)

_URL_RE = re.compile(r"https?://\S+")
# \w minus "_" is Unicode letters and digits
_NON_WORD_RE = re.compile(r"[^\w\s]|_")
_WS_RE = re.compile(r"\s+")
_NUMERIC_RE = re.compile(r"^\d+$")


def normalize_text(text: str | None) -> str:
    """Lower-case text with URLs and punctuation removed and whitespace collapsed."""

    if not text:
        return ""
    text = _URL_RE.sub(" ", str(text))
    text = _NON_WORD_RE.sub(" ", text)
    text = _WS_RE.sub(" ", text).strip()
    return text.lower()


def tokenize(text: str) -> list[str]:
    return [t for t in text.split() if t] if text else []


def extract_keywords(text: str | None, top_k: int = SIGNATURE_TOP_K) -> list[str]:
    """Most frequent non-stop-word tokens of ``text``.

    Ties are broken by longer token first, then lexical order, so the result
    only depends on the token multiset.
    """

    freq: Counter[str] = Counter()
    for tok in tokenize(normalize_text(text)):
        if tok in STOP_WORDS:
            continue
        if _NUMERIC_RE.match(tok):
            continue
        freq[tok] += 1

    ranked = sorted(freq.items(), key=lambda kv: (-kv[1], -len(kv[0]), kv[0]))
    return [tok for tok, _ in ranked[: max(0, top_k)]]


def article_signature(article: Article, top_k: int = SIGNATURE_TOP_K) -> str:
    base = " ".join(part for part in (article.title, article.summary, article.content) if part)
    keys = sorted(extract_keywords(base, top_k))
    sig = SIGNATURE_DELIMITER.join(keys)
    if sig:
        return sig
    if article.title:
        fallback = normalize_text(article.title)[:FALLBACK_TITLE_CHARS]
        if fallback:
            return fallback
    return NO_TITLE_SIGNATURE


def signature_keywords(signature: str) -> list[str]:
    return signature.split(SIGNATURE_DELIMITER) if signature else []
