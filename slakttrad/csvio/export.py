"""CSV export of a tree: one people file and one relations file."""

from collections.abc import Iterable, Mapping
from typing import Any

from slakttrad.csvio.table import safe_file_slug, to_csv
from slakttrad.matching import full_name
from slakttrad.relation_types import relation_label

PEOPLE_HEADER = ["person_id", "förnamn", "efternamn", "kön", "födelseår", "dödsår", "platsnamn", "lat", "lng"]
RELATIONS_HEADER = ["relation_id", "person_a_id", "person_a", "relationstyp", "person_b_id", "person_b"]


def export_file_names(tree_name: str) -> tuple[str, str]:
    """Get the (people, relations) file names for a tree."""
    base = f"slakttrad-{safe_file_slug(tree_name)}"
    return f"{base}-personer.csv", f"{base}-relationer.csv"


def people_csv(people: Iterable[Mapping[str, Any]]) -> str:
    """Render people as CSV text with a UTF-8 BOM."""
    rows: list[list[Any]] = [PEOPLE_HEADER]
    for person in people:
        rows.append(
            [
                person.get("id"),
                person.get("first_name"),
                person.get("last_name"),
                person.get("gender"),
                person.get("birth_year"),
                person.get("death_year"),
                person.get("place_label"),
                person.get("lat"),
                person.get("lng"),
            ]
        )
    return to_csv(rows, bom=True)


def relations_csv(
    relations: Iterable[Mapping[str, Any]], people: Iterable[Mapping[str, Any]]
) -> str:
    """Render relations as CSV text with a UTF-8 BOM.

    Person columns hold the full names of the endpoints (empty if the person
    is not in ``people``); relationstyp holds the display label.
    """
    people_by_id = {person["id"]: person for person in people}
    rows: list[list[Any]] = [RELATIONS_HEADER]
    for relation in relations:
        a = people_by_id.get(relation["from_person_id"])
        b = people_by_id.get(relation["to_person_id"])
        rows.append(
            [
                relation.get("id"),
                relation["from_person_id"],
                full_name(a) if a else "",
                relation_label(relation.get("relation_type")),
                relation["to_person_id"],
                full_name(b) if b else "",
            ]
        )
    return to_csv(rows, bom=True)
