"""CSV import of relations.

The file names people instead of referencing ids, so importing goes through
three steps: ``preview_relations_csv`` parses and de-duplicates rows,
``match_names`` maps the names onto the people currently in the tree (the
caller then fixes what is left by hand), and ``commit_relations`` sends one
create request per row whose two names are mapped to different people.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from slakttrad.csvio.table import HeaderIndex, is_blank_row, parse_csv
from slakttrad.errors import CsvImportError, ImportAborted
from slakttrad.matching import NameMatch, NameMatcher
from slakttrad.relation_types import OTHER, normalize_relation_type

logger = logging.getLogger(__name__)

PERSON_A_COLUMNS = ("person_a", "person_a_namn")
PERSON_B_COLUMNS = ("person_b", "person_b_namn")
TYPE_COLUMNS = ("relationstyp", "typ", "relation_type")

UNRESOLVED_WARNING = "Matcha alla namn i listan nedan för att importera relationer korrekt."


class RelationCreator(Protocol):
    def create_relation(self, tree_id: int, payload: dict[str, Any]) -> dict[str, Any]: ...


@dataclass
class RelationImportRow:
    """An accepted row: two names and a normalized relation type."""

    line: int
    a_name: str
    b_name: str
    relation_type: str
    raw_type: str

    @property
    def dedupe_key(self) -> tuple[str, str, str]:
        return (self.a_name.lower(), self.relation_type, self.b_name.lower())


@dataclass
class RelationImportPreview:
    """Parsed file: accepted rows plus non-fatal warnings."""

    rows: list[RelationImportRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def accepted_count(self) -> int:
        return len(self.rows)

    @property
    def names(self) -> list[str]:
        """Every distinct name used by the rows, sorted."""
        return sorted({name for row in self.rows for name in (row.a_name, row.b_name)})


def preview_relations_csv(text: str) -> RelationImportPreview:
    """Parse a relations CSV file into an import preview.

    Accepts the exported headers (person_a, relationstyp, person_b) as well
    as the simpler person_a_namn / typ / person_b_namn.

    Raises:
        CsvImportError: If the file is empty, lacks required columns or has no
            importable rows
    """
    table = parse_csv(text)
    if len(table) < 2:
        raise CsvImportError("CSV verkar tom (ingen data).")

    header = HeaderIndex(table[0])
    a_column = header.first_of(*PERSON_A_COLUMNS)
    b_column = header.first_of(*PERSON_B_COLUMNS)
    type_column = header.first_of(*TYPE_COLUMNS)

    missing = []
    if a_column is None:
        missing.append("person_a")
    if b_column is None:
        missing.append("person_b")
    if type_column is None:
        missing.append("relationstyp")
    if missing:
        raise CsvImportError(f"CSV saknar kolumner: {', '.join(missing)}.")

    preview = RelationImportPreview()
    warnings = preview.warnings
    if "relation_id" in header:
        warnings.append("Obs: relation_id i CSV ignoreras vid import.")

    seen: set[tuple[str, str, str]] = set()
    for index, row in enumerate(table[1:], start=1):
        line = index + 1
        if is_blank_row(row):
            continue

        a_name = header.cell(row, a_column)
        b_name = header.cell(row, b_column)
        raw_type = header.cell(row, type_column)
        if not a_name and not b_name and not raw_type:
            continue
        if not a_name or not b_name:
            warnings.append(f"Rad {line}: saknar person_a eller person_b (hoppas över).")
            continue

        item = RelationImportRow(
            line=line,
            a_name=a_name,
            b_name=b_name,
            relation_type=normalize_relation_type(raw_type or OTHER),
            raw_type=raw_type,
        )
        if item.dedupe_key in seen:
            warnings.append(f"Rad {line}: dubblett (hoppas över).")
            continue
        seen.add(item.dedupe_key)
        preview.rows.append(item)

    if not preview.rows:
        raise CsvImportError("Ingen importerbar data hittades i CSV.")
    return preview


def match_names(
    preview: RelationImportPreview, people: Iterable[Mapping[str, Any]]
) -> NameMatch:
    """Map the preview's names onto people by exact full-name match.

    Adds a warning to the preview when some names remain unresolved.
    """
    result = NameMatcher(people).match(preview.names)
    if not result.is_complete and UNRESOLVED_WARNING not in preview.warnings:
        preview.warnings.append(UNRESOLVED_WARNING)
    return result


def importable_rows(
    preview: RelationImportPreview, mapping: Mapping[str, int]
) -> list[tuple[RelationImportRow, int, int]]:
    """Get the rows that can be sent, with their mapped person ids.

    Rows with an unmapped name, or whose names map to the same person, are
    left out.
    """
    result = []
    for row in preview.rows:
        from_id = mapping.get(row.a_name)
        to_id = mapping.get(row.b_name)
        if from_id is None or to_id is None:
            continue
        if from_id == to_id:
            continue
        result.append((row, from_id, to_id))
    return result


def count_importable(preview: RelationImportPreview, mapping: Mapping[str, int]) -> int:
    return len(importable_rows(preview, mapping))


def commit_relations(
    client: RelationCreator,
    tree_id: int,
    preview: RelationImportPreview,
    mapping: Mapping[str, int],
    on_progress: Callable[[int, int], None] | None = None,
) -> list[dict[str, Any]]:
    """Create the importable relations one request at a time.

    Args:
        client: Object with ``create_relation(tree_id, payload)``
        tree_id: Target tree
        preview: Result of preview_relations_csv
        mapping: Name -> person id mapping (automatic plus manual)
        on_progress: Optional callback receiving (done, total)

    Returns:
        Created relations as returned by the client

    Raises:
        CsvImportError: If no row is importable
        ImportAborted: At the first failing row; earlier rows stay created
    """
    rows = importable_rows(preview, mapping)
    if not rows:
        raise CsvImportError(
            "Inga relationer är möjliga att importera (saknar matchning eller self-relations)."
        )

    created: list[dict[str, Any]] = []
    total = len(rows)
    for row, from_id, to_id in rows:
        payload = {
            "from_person_id": from_id,
            "to_person_id": to_id,
            "relation_type": row.relation_type,
        }
        try:
            created.append(client.create_relation(tree_id, payload))
        except Exception as e:
            logger.warning(
                "Relation import into tree %s stopped at line %s after %s of %s rows: %s",
                tree_id, row.line, len(created), total, e,
            )
            raise ImportAborted(len(created), total, str(e)) from e
        if on_progress:
            on_progress(len(created), total)
    return created
