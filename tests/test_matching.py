"""Tests for name-to-person matching."""

from slakttrad.matching import NameMatcher, full_name, name_key

PEOPLE = [
    {"id": 1, "first_name": "Anna", "last_name": "Berg"},
    {"id": 2, "first_name": "Karl", "last_name": "Berg"},
    {"id": 3, "first_name": "Erik", "last_name": "Lund"},
    {"id": 4, "first_name": "Erik", "last_name": "Lund"},
]


def test_full_name_and_key():
    assert full_name({"first_name": " Anna ", "last_name": "Berg"}) == "Anna Berg"
    assert full_name({"first_name": "Anna", "last_name": None}) == "Anna"
    assert name_key("  Anna   BERG ") == "anna berg"


def test_lookup_is_case_insensitive():
    matcher = NameMatcher(PEOPLE)
    assert matcher.lookup("ANNA berg") == [1]
    assert matcher.lookup("Erik  Lund") == [3, 4]
    assert matcher.lookup("Okänd") == []


def test_match_partitions_names():
    result = NameMatcher(PEOPLE).match(["Anna Berg", "Erik Lund", "Sven Ek", "Anna Berg"])
    assert result.mapping == {"Anna Berg": 1}
    assert result.ambiguous == {"Erik Lund": [3, 4]}
    assert result.unmatched == ["Sven Ek"]
    assert not result.is_complete


def test_manual_resolution():
    result = NameMatcher(PEOPLE).match(["Erik Lund", "Sven Ek"])
    result.resolve("Erik Lund", 4)
    assert result.unresolved == ["Sven Ek"]
    result.resolve("Sven Ek", 2)
    assert result.is_complete

    result.clear("Sven Ek")
    assert result.unresolved == ["Sven Ek"]


def test_auto_fill_after_people_change():
    result = NameMatcher(PEOPLE).match(["Sven Ek", "Erik Lund"])
    result.resolve("Erik Lund", 3)

    more_people = PEOPLE + [{"id": 5, "first_name": "Sven", "last_name": "Ek"}]
    NameMatcher(more_people).auto_fill(result)

    assert result.mapping == {"Erik Lund": 3, "Sven Ek": 5}
    assert result.unmatched == []
    assert result.is_complete


def test_suggestions_are_ranked():
    matcher = NameMatcher(PEOPLE)
    suggestions = matcher.suggest("Ana Berg")
    assert suggestions[0].person_id == 1
    assert suggestions[0].score > 0.9
    assert [s.score for s in suggestions] == sorted((s.score for s in suggestions), reverse=True)
    assert "Anna Berg (ID: 1)" in str(suggestions[0])


def test_no_suggestions_below_threshold():
    assert NameMatcher(PEOPLE).suggest("Xyzzy Qwerty") == []
