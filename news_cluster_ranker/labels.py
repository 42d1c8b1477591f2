from __future__ import annotations

import re
from enum import Enum


class Topic(str, Enum):
    POLITICS = "politics"
    ECONOMY = "economy"
    TECH = "tech"
    BUSINESS = "business"
    WORLD = "world"
    SPORT = "sport"
    ENTERTAINMENT = "entertainment"
    JAPAN = "japan"
    KOREA = "korea"


# Table order is the output order when no truncation is needed.
# Short Latin terms only stop at Latin letters, so "AI반도체" still matches.
_LABEL_PATTERNS: dict[Topic, tuple[str, ...]] = {
    Topic.POLITICS: (r"election|senate|parliament|white\s*house|의회|총선|대선|정당|의장|외교|국방",),
    Topic.ECONOMY: (r"inflation|gdp|interest|bond|market|고용|물가|성장률|경제|수출|환율",),
    Topic.TECH: (
        r"(?<![a-z])ai(?![a-z])|artificial\s*intelligence|chip|semiconductor|iphone|android|google|apple|samsung"
        r"|테크|반도체|클라우드",
    ),
    Topic.BUSINESS: (r"merger|acquisition|earnings|ipo|startup|buyback|기업|실적|인수|합병|상장|스타트업",),
    Topic.WORLD: (r"united\s*nations|(?<![a-z])eu(?![a-z])|nato|중동|우크라이나|이스라엘|국제|세계",),
    Topic.SPORT: (r"world\s*cup|olympic|league|match|경기|리그|올림픽|월드컵",),
    Topic.ENTERTAINMENT: (r"film|movie|box\s*office|drama|idol|k-pop|배우|영화|드라마|음원|아이돌",),
    Topic.JAPAN: (r"japan|tokyo|osaka|(?<![a-z])yen(?![a-z])|kishida|일본|도쿄|오사카|엔화|기시다",),
    Topic.KOREA: (r"korea|seoul|(?<![a-z])won(?![a-z])|한국|서울|부산|대한민국|원화",),
}

LABEL_RULES: dict[Topic, tuple[re.Pattern[str], ...]] = {
    topic: tuple(re.compile(p, re.IGNORECASE) for p in patterns) for topic, patterns in _LABEL_PATTERNS.items()
}

LABEL_PRIORITY: dict[Topic, int] = {
    Topic.TECH: 9,
    Topic.ECONOMY: 8,
    Topic.BUSINESS: 7,
    Topic.POLITICS: 6,
    Topic.WORLD: 5,
    Topic.KOREA: 4,
    Topic.JAPAN: 3,
    Topic.SPORT: 2,
    Topic.ENTERTAINMENT: 1,
}


def detect_labels(text: str | None, max_labels: int = 2, section: str | None = None) -> list[str]:
    """Topic labels for ``text``, at most ``max_labels`` of them.

    A japan-section text that also mentions Korea gets no labels at all; the
    feed uses that to drop it from the section.
    """

    text = text or ""
    hits: list[Topic] = []
    for topic, patterns in LABEL_RULES.items():
        if any(p.search(text) for p in patterns):
            hits.append(topic)

    if (section or "").lower() == Topic.JAPAN.value and Topic.KOREA in hits:
        return []

    if len(hits) > max_labels:
        hits.sort(key=lambda t: LABEL_PRIORITY.get(t, 0), reverse=True)
        hits = hits[: max(0, max_labels)]
    return [t.value for t in hits]
