from dpma_direkt.services.similarity import (
    find_best_matches,
    levenshtein_distance,
    levenshtein_similarity,
    normalize_for_comparison,
)


def test_normalize_folds_umlauts_and_punctuation():
    assert normalize_for_comparison("  Bürogeräte, (elektrisch)  ") == "buerogeraete elektrisch"
    assert normalize_for_comparison("Straße") == "strasse"


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("ab", "ba") == 2
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance(None, "") == 0


def test_levenshtein_distance_stops_past_the_bound():
    assert levenshtein_distance("abcdef", "uvwxyz", max_distance=2) == 3
    assert levenshtein_distance("a", "abcdef", max_distance=2) == 3
    assert levenshtein_distance("", "abcdef", max_distance=1) == 2


def test_levenshtein_similarity():
    assert levenshtein_similarity("Müller", "Mueller") == 1.0
    assert levenshtein_similarity("software", "") == 0.0
    assert levenshtein_similarity("abcd", "abcx") == 0.75
    assert levenshtein_similarity("abcd", "wxyz", min_similarity=0.5) == 0.0


def test_find_best_matches_ranks_containment():
    matches = find_best_matches("soft", ["Software", "Hardware", "Tea"])

    assert matches[0]["text"] == "Software"
    assert matches[0]["index"] == 0
    assert all(match["score"] >= 0.3 for match in matches)
    assert find_best_matches("", ["Software"]) == []
