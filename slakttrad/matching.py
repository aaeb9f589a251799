"""Name-to-person matching for relation imports.

Relation CSV files refer to people by display name. Names are mapped onto
person ids by exact, case-insensitive full-name match; names that hit several
people, or nobody, are left for the user to map by hand. Fuzzy scores are
only used to suggest candidates for that manual step, never to map.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rapidfuzz import fuzz


def full_name(person: Mapping[str, Any]) -> str:
    """Get a person's display name: first and last name joined by a space."""
    first = str(person.get("first_name") or "").strip()
    last = str(person.get("last_name") or "").strip()
    return f"{first} {last}".strip()


def name_key(name: str) -> str:
    """Comparison key for a name: lowercase with runs of whitespace collapsed."""
    return " ".join(name.split()).lower()


@dataclass
class MatchSuggestion:
    """A person that could be meant by an unresolved name."""

    person_id: int
    person_name: str
    score: float

    def __str__(self) -> str:
        """Format suggestion for display."""
        return f"{self.person_name} (ID: {self.person_id}) [score: {self.score:.2f}]"


@dataclass
class NameMatch:
    """Result of matching import names against the loaded people.

    ``mapping`` holds resolved names. ``ambiguous`` holds names shared by
    several people together with their ids; ``unmatched`` holds names
    without any hit. Both stay unresolved until mapped manually.
    """

    mapping: dict[str, int] = field(default_factory=dict)
    ambiguous: dict[str, list[int]] = field(default_factory=dict)
    unmatched: list[str] = field(default_factory=list)

    @property
    def unresolved(self) -> list[str]:
        """Names still without a person, in sorted order."""
        pending = set(self.ambiguous) | set(self.unmatched)
        return sorted(name for name in pending if name not in self.mapping)

    @property
    def is_complete(self) -> bool:
        return not self.unresolved

    def resolve(self, name: str, person_id: int) -> None:
        """Map a name by hand."""
        self.mapping[name] = person_id

    def clear(self, name: str) -> None:
        """Remove a mapping so that rows using the name are skipped."""
        self.mapping.pop(name, None)


class NameMatcher:
    """Match display names against a list of people."""

    def __init__(self, people: Iterable[Mapping[str, Any]], suggestion_threshold: float = 0.6):
        """Initialize the matcher.

        Args:
            people: Person dicts with id, first_name and last_name
            suggestion_threshold: Minimum fuzzy score (0-1) for suggestions
        """
        self.suggestion_threshold = suggestion_threshold
        self.people: list[tuple[int, str]] = []
        self.index: dict[str, list[int]] = {}
        for person in people:
            name = full_name(person)
            if not name:
                continue
            self.people.append((person["id"], name))
            self.index.setdefault(name_key(name), []).append(person["id"])

    def lookup(self, name: str) -> list[int]:
        """Get the ids of every person whose full name equals ``name``."""
        return list(self.index.get(name_key(name), []))

    def match(self, names: Iterable[str]) -> NameMatch:
        """Match names exactly (case-insensitive).

        Args:
            names: Names as written in the import file

        Returns:
            NameMatch with resolved, ambiguous and unmatched names
        """
        result = NameMatch()
        for name in sorted(set(names)):
            hits = self.lookup(name)
            if len(hits) == 1:
                result.mapping[name] = hits[0]
            elif hits:
                result.ambiguous[name] = hits
            else:
                result.unmatched.append(name)
        return result

    def auto_fill(self, result: NameMatch) -> NameMatch:
        """Map still-unresolved names that now have exactly one exact hit.

        Used after the people list changed, for example after importing the
        people file. Names mapped by hand are left untouched.
        """
        for name in result.unresolved:
            hits = self.lookup(name)
            if len(hits) == 1:
                result.mapping[name] = hits[0]
                result.ambiguous.pop(name, None)
                if name in result.unmatched:
                    result.unmatched.remove(name)
            elif hits:
                result.ambiguous[name] = hits
                if name in result.unmatched:
                    result.unmatched.remove(name)
        return result

    def suggest(self, name: str, limit: int = 3) -> list[MatchSuggestion]:
        """Suggest people for a name by fuzzy similarity.

        Args:
            name: Name as written in the import file
            limit: Maximum number of suggestions

        Returns:
            Suggestions sorted by score (highest first)
        """
        key = name_key(name)
        suggestions = []
        for person_id, person_name in self.people:
            score = fuzz.ratio(key, name_key(person_name)) / 100.0
            if score >= self.suggestion_threshold:
                suggestions.append(
                    MatchSuggestion(person_id=person_id, person_name=person_name, score=score)
                )
        suggestions.sort(key=lambda x: x.score, reverse=True)
        return suggestions[:limit]
