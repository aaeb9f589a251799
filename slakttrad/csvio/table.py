"""Semicolon-separated tables as exchanged with spreadsheet programs.

Files are read and written with the ``csv`` module, which covers quoted
fields, doubled-quote escaping and CRLF/LF line ends. Exported text carries a
UTF-8 BOM so that Excel picks the right encoding.
"""

import csv
import io
import re
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from slakttrad.errors import CsvImportError

CSV_DELIMITER = ";"
UTF8_BOM = "\ufeff"


def parse_csv(text: str, delimiter: str = CSV_DELIMITER) -> list[list[str]]:
    """Parse CSV text into rows of cells.

    Blank lines are kept as empty lists so that a row's index plus one is its
    line number in the file (for files without multi-line cells). A leading
    BOM is removed.

    Args:
        text: Full file content
        delimiter: Cell separator

    Returns:
        List of rows, each a list of raw cell strings

    Raises:
        CsvImportError: If the csv module cannot read the text
    """
    if text.startswith(UTF8_BOM):
        text = text[len(UTF8_BOM) :]
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    try:
        return [row for row in reader]
    except csv.Error as e:
        raise CsvImportError(f"CSV-filen kunde inte läsas (rad {reader.line_num}): {e}") from e


def read_csv_file(path: Path) -> str:
    """Read a CSV file as UTF-8 text, with or without a BOM.

    Raises:
        CsvImportError: If the file is not valid UTF-8
    """
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvImportError(
            "CSV-filen är inte UTF-8-kodad. Spara filen som UTF-8 och försök igen."
        ) from e


def normalize_header(header: str) -> str:
    """Normalize a header cell: trimmed, lowercase, spaces to underscores.

    Anything that is not a word character (letters including åäö, digits,
    underscore) is dropped.
    """
    value = (header or "").strip().lower()
    value = re.sub(r"\s+", "_", value)
    return re.sub(r"[^\w]", "", value)


def is_blank_row(row: Sequence[str]) -> bool:
    return all(not cell.strip() for cell in row)


class HeaderIndex:
    """Column lookup over a normalized header row."""

    def __init__(self, header: Sequence[str], aliases: dict[str, str] | None = None):
        """Initialize the index.

        Args:
            header: Raw header cells
            aliases: Optional alternative name -> canonical name mapping
        """
        aliases = aliases or {}
        self.columns: dict[str, int] = {}
        for position, cell in enumerate(header):
            name = normalize_header(cell)
            name = aliases.get(name, name)
            self.columns.setdefault(name, position)

    def __contains__(self, name: str) -> bool:
        return name in self.columns

    def first_of(self, *names: str) -> str | None:
        """Get the first of the given column names present in the header."""
        for name in names:
            if name in self.columns:
                return name
        return None

    def cell(self, row: Sequence[str], name: str | None) -> str:
        """Get a trimmed cell by column name; missing columns or cells give ''."""
        if name is None or name not in self.columns:
            return ""
        position = self.columns[name]
        if position >= len(row):
            return ""
        return row[position].strip()


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def to_csv(
    rows: Iterable[Sequence[Any]], delimiter: str = CSV_DELIMITER, bom: bool = False
) -> str:
    """Render rows as CSV text with CRLF line ends.

    Cells containing the delimiter, a quote or a line break are quoted; None
    becomes an empty cell.
    """
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\r\n")
    for row in rows:
        writer.writerow([_cell_text(value) for value in row])
    content = buffer.getvalue()
    return UTF8_BOM + content if bom else content


def safe_file_slug(name: str) -> str:
    """Turn a tree name into a file-name-safe slug."""
    slug = (name or "").lower()
    slug = re.sub(r"[^a-z0-9åäö_-]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or "slakt"
