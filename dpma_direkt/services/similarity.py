import math
import re
from typing import Any

UMLAUT_FOLDING = [("ä", "ae"), ("ö", "oe"), ("ü", "ue"), ("ß", "ss")]
NON_WORD_PATTERN = re.compile(r"[^\w\s-]", re.ASCII)
WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_for_comparison(text: str) -> str:
    value = (text or "").lower()
    for source, target in UMLAUT_FOLDING:
        value = value.replace(source, target)
    value = NON_WORD_PATTERN.sub(" ", value)
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def levenshtein_distance(a: str | None, b: str | None, max_distance: float = math.inf) -> int:
    """Edit distance; returns max_distance + 1 as soon as the bound is certainly exceeded."""
    first = a or ""
    second = b or ""
    if first == second:
        return 0

    if not first:
        return int(min(len(second), max_distance + 1))
    if not second:
        return int(min(len(first), max_distance + 1))
    if abs(len(first) - len(second)) > max_distance:
        return int(max_distance + 1)

    shorter, longer = (first, second) if len(first) <= len(second) else (second, first)
    previous = list(range(len(shorter) + 1))
    for i, long_char in enumerate(longer, start=1):
        current = [i] + [0] * len(shorter)
        row_min = i
        for j, short_char in enumerate(shorter, start=1):
            cost = 0 if long_char == short_char else 1
            current[j] = min(current[j - 1] + 1, previous[j] + 1, previous[j - 1] + cost)
            row_min = min(row_min, current[j])
        if row_min > max_distance:
            return int(max_distance + 1)
        previous = current
    return previous[-1]


def levenshtein_similarity(a: str, b: str, *, min_similarity: float = 0.0, normalize: bool = True) -> float:
    first = a or ""
    second = b or ""
    if normalize:
        first = normalize_for_comparison(first)
        second = normalize_for_comparison(second)

    if first == second:
        return 1.0
    if not first or not second:
        return 0.0

    max_len = max(len(first), len(second))
    max_distance = math.floor(max_len * (1 - min_similarity)) if min_similarity > 0 else math.inf
    distance = levenshtein_distance(first, second, max_distance)
    if distance > max_distance:
        return 0.0 if min_similarity > 0 else 1 - distance / max_len
    return 1 - distance / max_len


def _has_prefix_overlap(query_words: list[str], candidate_words: list[str]) -> bool:
    for query_word in query_words:
        if len(query_word) < 2:
            continue
        for candidate_word in candidate_words:
            if candidate_word.startswith(query_word) or query_word.startswith(candidate_word):
                return True
    return False


def find_best_matches(
    query: str,
    candidates: list[str],
    *,
    limit: int = 10,
    min_similarity: float = 0.3,
    normalize: bool = True,
) -> list[dict[str, Any]]:
    normalized_query = normalize_for_comparison(query) if normalize else query
    if not normalized_query:
        return []

    results: list[dict[str, Any]] = []
    for index, candidate in enumerate(candidates):
        normalized_candidate = normalize_for_comparison(candidate) if normalize else candidate
        prefix_overlap = _has_prefix_overlap(normalized_query.split(" "), normalized_candidate.split(" "))
        score = levenshtein_similarity(
            normalized_query,
            normalized_candidate,
            min_similarity=min_similarity * 0.8 if prefix_overlap else min_similarity,
            normalize=False,
        )
        if normalized_query in normalized_candidate:
            score = min(1.0, score + 0.2)
        elif normalized_candidate in normalized_query:
            score = min(1.0, score + 0.1)
        if score >= min_similarity:
            results.append({"text": candidate, "score": score, "index": index})

    results.sort(key=lambda item: item["score"], reverse=True)
    return results[:limit]
