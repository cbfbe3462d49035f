"""
Relevance Scoring
Scores a candidate title against a query on a 0..100 scale
"""
import math
import re
import unicodedata
from typing import List

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

TOKEN_WEIGHT = 0.55
CORE_WEIGHT = 0.25
PHRASE_WEIGHT = 0.10
YEAR_WEIGHT = 0.05
FUZZY_FLOOR = 0.75
FUZZY_SCALE = 0.5
RELEVANCE_POINTS = 80
POPULARITY_POINTS = 20


def normalize_text(value: str) -> str:
    """Lowercase, strip diacritics and collapse non-alphanumeric runs."""
    text = unicodedata.normalize("NFKD", str(value or ""))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", " ", text.lower())
    return text.strip()


def words(normalized: str) -> List[str]:
    return re.findall(r"[a-z0-9]+", normalized or "")


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(current[j - 1] + 1, previous[j] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def fuzzy_ratio(a: str, b: str) -> float:
    a = normalize_text(a)
    b = normalize_text(b)
    if not a or not b:
        return 0.0
    return 1.0 - (levenshtein(a, b) / max(len(a), len(b)))


def popularity(seeders: int) -> float:
    seeders = max(1, int(seeders or 0))
    return min(math.log10(seeders) / 3, 1.0) * POPULARITY_POINTS


def score(query: str, title: str, seeders: int = 0) -> int:
    """
    Score how well ``title`` answers ``query``.

    Token overlap dominates; core (len > 3) tokens guard against matches on
    filler words; phrase and year hits add small boosts; near-miss spellings
    get a fuzzy rescue; seeders add a capped popularity term.
    """
    query_raw = str(query or "")
    query_norm = normalize_text(query_raw)
    query_words = words(query_norm)
    title_norm = normalize_text(title)
    if not query_words or not title_norm:
        return 0

    title_words = set(words(title_norm))
    core_words = [w for w in query_words if len(w) > 3]

    match_ratio = sum(1 for w in query_words if w in title_words) / len(query_words)
    if core_words:
        core_match = sum(1 for w in core_words if w in title_words) / len(core_words)
    else:
        core_match = match_ratio
    phrase_match = 1 if query_norm in title_norm else 0

    year_match = 0
    year = _YEAR_RE.search(query_raw)
    if year and year.group(0) in title_words:
        year_match = 1

    fuzz = fuzzy_ratio(query_raw, title)
    base = (
        TOKEN_WEIGHT * match_ratio
        + CORE_WEIGHT * core_match
        + PHRASE_WEIGHT * phrase_match
        + YEAR_WEIGHT * year_match
    )
    fuzz_boost = max(0.0, fuzz - FUZZY_FLOOR) * FUZZY_SCALE
    total = (base + fuzz_boost) * RELEVANCE_POINTS + popularity(seeders)
    # half-up rounding, not banker's
    return max(0, min(100, int(math.floor(total + 0.5))))
