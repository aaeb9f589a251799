"""CSV import of people.

Importing is split in two steps. ``preview_people_csv`` parses the file and
applies the per-row policy without touching the network; the caller shows the
accepted rows and the warnings. ``commit_people`` then creates one person per
accepted row, in order, and stops at the first failure.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from slakttrad.csvio.table import HeaderIndex, is_blank_row, parse_csv
from slakttrad.errors import CsvImportError, ImportAborted
from slakttrad.schemas.records import GENDERS, parse_float, parse_year

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("förnamn", "efternamn")

PERSON_HEADER_ALIASES = {
    "fornamn": "förnamn",
    "first_name": "förnamn",
    "firstname": "förnamn",
    "last_name": "efternamn",
    "lastname": "efternamn",
    "kon": "kön",
    "gender": "kön",
    "fodelsear": "födelseår",
    "birth_year": "födelseår",
    "dodsar": "dödsår",
    "death_year": "dödsår",
    "plats": "platsnamn",
    "place": "platsnamn",
    "place_label": "platsnamn",
    "latitude": "lat",
    "lon": "lng",
    "long": "lng",
    "longitude": "lng",
    "id": "person_id",
}


class PersonCreator(Protocol):
    def create_person(self, tree_id: int, payload: dict[str, Any]) -> dict[str, Any]: ...


@dataclass
class PersonImportRow:
    """An accepted row, ready to be sent as a create request."""

    line: int
    first_name: str
    last_name: str
    gender: str | None = None
    birth_year: int | None = None
    death_year: int | None = None
    place_label: str | None = None
    lat: float | None = None
    lng: float | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "gender": self.gender,
            "birth_year": self.birth_year,
            "death_year": self.death_year,
            "place_label": self.place_label,
            "lat": self.lat,
            "lng": self.lng,
        }


@dataclass
class PersonImportPreview:
    """Parsed file: accepted rows plus non-fatal warnings."""

    rows: list[PersonImportRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def accepted_count(self) -> int:
        return len(self.rows)


def _year(raw: str, line: int, label: str, warnings: list[str]) -> int | None:
    try:
        return parse_year(raw, label)
    except ValueError:
        warnings.append(f'Rad {line}: ogiltigt {label} "{raw}" (sätts som tomt).')
        return None


def _location(
    raw_lat: str, raw_lng: str, place: str, line: int, warnings: list[str]
) -> tuple[float | None, float | None, str | None]:
    if not raw_lat and not raw_lng:
        if place:
            warnings.append(f"Rad {line}: platsnamn utan lat/lng (platsnamnet ignoreras).")
        return None, None, None

    try:
        lat = parse_float(raw_lat, "lat")
        lng = parse_float(raw_lng, "lng")
    except ValueError:
        lat = lng = None
    if lat is None or lng is None or not -90 <= lat <= 90 or not -180 <= lng <= 180:
        warnings.append(f"Rad {line}: ogiltig lat/lng (plats ignoreras).")
        return None, None, None
    return lat, lng, place or None


def preview_people_csv(text: str) -> PersonImportPreview:
    """Parse a people CSV file into an import preview.

    Args:
        text: File content (semicolon-separated, header row first)

    Returns:
        PersonImportPreview with accepted rows and warnings

    Raises:
        CsvImportError: If the file is empty, lacks required columns or has no
            importable rows
    """
    table = parse_csv(text)
    if len(table) < 2:
        raise CsvImportError("CSV verkar tom (ingen data).")

    header = HeaderIndex(table[0], PERSON_HEADER_ALIASES)
    missing = [name for name in REQUIRED_COLUMNS if name not in header]
    if missing:
        raise CsvImportError(f"CSV saknar kolumner: {', '.join(missing)}.")

    preview = PersonImportPreview()
    warnings = preview.warnings
    if "person_id" in header:
        warnings.append("Obs: person_id i CSV ignoreras vid import (nya ID skapas).")

    for index, row in enumerate(table[1:], start=1):
        line = index + 1
        if is_blank_row(row):
            continue

        first = header.cell(row, "förnamn")
        last = header.cell(row, "efternamn")
        if not first and not last:
            continue
        if not first or not last:
            warnings.append(f"Rad {line}: saknar förnamn eller efternamn (hoppas över).")
            continue

        gender = header.cell(row, "kön").lower()
        if gender and gender not in GENDERS:
            warnings.append(f'Rad {line}: okänt kön "{gender}" (sätts som tomt).')
            gender = ""

        lat, lng, place = _location(
            header.cell(row, "lat"),
            header.cell(row, "lng"),
            header.cell(row, "platsnamn"),
            line,
            warnings,
        )

        preview.rows.append(
            PersonImportRow(
                line=line,
                first_name=first,
                last_name=last,
                gender=gender or None,
                birth_year=_year(header.cell(row, "födelseår"), line, "födelseår", warnings),
                death_year=_year(header.cell(row, "dödsår"), line, "dödsår", warnings),
                place_label=place,
                lat=lat,
                lng=lng,
            )
        )

    if not preview.rows:
        raise CsvImportError("Ingen importerbar data hittades i CSV.")
    return preview


def commit_people(
    client: PersonCreator,
    tree_id: int,
    preview: PersonImportPreview,
    on_progress: Callable[[int, int], None] | None = None,
) -> list[dict[str, Any]]:
    """Create the previewed people one request at a time.

    Args:
        client: Object with ``create_person(tree_id, payload)``
        tree_id: Target tree
        preview: Result of preview_people_csv
        on_progress: Optional callback receiving (done, total)

    Returns:
        Created people as returned by the client

    Raises:
        ImportAborted: At the first failing row; earlier rows stay created
    """
    created: list[dict[str, Any]] = []
    total = len(preview.rows)
    for row in preview.rows:
        try:
            created.append(client.create_person(tree_id, row.to_payload()))
        except Exception as e:
            logger.warning(
                "Person import into tree %s stopped at line %s after %s of %s rows: %s",
                tree_id, row.line, len(created), total, e,
            )
            raise ImportAborted(len(created), total, str(e)) from e
        if on_progress:
            on_progress(len(created), total)
    return created
